"""
ApplyForm API - Services Module
Business logic for teams, members, avatars and registration
"""

from app.services.identity_service import IdentityBinder
from app.services.slot_allocator import SlotAllocator, SlotVerdict
from app.services.teams_service import TeamsService
from app.services.media_service import MediaTracker
from app.services.registration_service import RegistrationService
from app.services.members_service import MembersService

__all__ = [
    "IdentityBinder",
    "SlotAllocator",
    "SlotVerdict",
    "TeamsService",
    "MediaTracker",
    "RegistrationService",
    "MembersService",
]
