"""
ApplyForm API - Registration Service
Persisted switch that pauses team checks, team creation and joins
"""

import logging

from fastapi import Depends

from app.core.exceptions import PermissionDeniedError
from app.core.store import MemberStore, get_store

logger = logging.getLogger(__name__)

COLLECTION_PAUSED_KEY = "collection_paused"
CLOSED_MESSAGE = "Registration is currently closed. Please check back later."


class RegistrationService:

    def __init__(self, store: MemberStore):
        self.store = store

    async def is_paused(self) -> bool:
        # Unreadable setting means open
        try:
            value = await self.store.get_setting(COLLECTION_PAUSED_KEY)
        except Exception as e:
            logger.error(f"Could not read '{COLLECTION_PAUSED_KEY}' setting: {e}")
            return False
        return value == "true"

    async def toggle(self) -> bool:
        """Flip the switch; returns the new state."""
        paused = not await self.is_paused()
        await self.store.set_setting(COLLECTION_PAUSED_KEY, "true" if paused else "false")
        logger.info(f"Registration {'paused' if paused else 'resumed'}")
        return paused

    async def ensure_open(self):
        if await self.is_paused():
            raise PermissionDeniedError(CLOSED_MESSAGE)


def get_registration_service(store: MemberStore = Depends(get_store)) -> RegistrationService:
    return RegistrationService(store)
