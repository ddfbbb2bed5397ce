"""
ApplyForm API - Registration Settings Schemas
"""

from typing import Optional
from pydantic import BaseModel


class RegistrationStatus(BaseModel):
    success: bool = True
    collection_paused: bool
    message: Optional[str] = None
