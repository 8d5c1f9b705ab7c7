"""
Identity for a single client session.

A Principal is who is acting; an AuthSession tracks which principal (if
any) is signed in and tells its subscribers about every transition.
Components that need the current user get an AuthSession passed in.
"""

import logging
from typing import Awaitable, Callable, List, Optional
from pydantic import BaseModel, field_validator

logger = logging.getLogger(__name__)


class Principal(BaseModel):
    """An authenticated identity: opaque id, email, display name."""
    id: str
    email: str
    display_name: Optional[str] = None

    class Config:
        frozen = True

    @field_validator("email")
    @classmethod
    def _normalize_email(cls, value: str) -> str:
        return normalize_email(value)


def normalize_email(email: str) -> str:
    """Emails are compared case-insensitively everywhere."""
    return email.strip().lower()


PrincipalListener = Callable[[Optional[Principal]], Awaitable[None]]


class AuthSession:
    """
    Sign-in state for one session.

    loading is True until the first sign_in/sign_out resolves who the
    session belongs to. Listeners are awaited in subscription order on
    every transition, including a sign_in that restores the same
    principal.
    """

    def __init__(self):
        self._principal: Optional[Principal] = None
        self._listeners: List[PrincipalListener] = []
        self.loading = True

    @property
    def current_principal(self) -> Optional[Principal]:
        return self._principal

    def subscribe(self, listener: PrincipalListener) -> Callable[[], None]:
        """Register a transition listener; returns an unsubscribe callable."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    async def sign_in(self, principal: Principal) -> None:
        logger.info(f"Session signed in as {principal.id}")
        await self._transition(principal)

    async def sign_out(self) -> None:
        if self._principal is not None:
            logger.info(f"Session signed out ({self._principal.id})")
        await self._transition(None)

    async def _transition(self, principal: Optional[Principal]) -> None:
        self._principal = principal
        try:
            for listener in list(self._listeners):
                await listener(principal)
        finally:
            self.loading = False
