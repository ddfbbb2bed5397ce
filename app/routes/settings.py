"""
ApplyForm API - Settings Routes
Public registration status
"""

from fastapi import APIRouter, Depends

from app.schemas.settings import RegistrationStatus
from app.services.registration_service import RegistrationService, CLOSED_MESSAGE, get_registration_service

router = APIRouter(prefix="/settings", tags=["Settings"])


@router.get("", response_model=RegistrationStatus)
async def get_registration_status(
    registration: RegistrationService = Depends(get_registration_service)
):
    paused = await registration.is_paused()
    return RegistrationStatus(collection_paused=paused, message=CLOSED_MESSAGE if paused else None)
