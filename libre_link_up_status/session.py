"""Holder for the current LibreLinkUp auth ticket"""

import logging
import time
from typing import Callable, Optional

from .types import AuthTicket

logger = logging.getLogger(__name__)


class AuthSession:
    """Single mutable slot for the auth ticket of one monitor instance"""

    def __init__(self, clock: Callable[[], float] = time.time):
        self._clock = clock
        self._ticket = AuthTicket()

    @property
    def ticket(self) -> AuthTicket:
        return self._ticket

    @property
    def token(self) -> Optional[str]:
        if self._ticket.token:
            return self._ticket.token
        logger.debug("No auth token in session")
        return None

    def is_valid(self) -> bool:
        """True while the ticket expiry lies strictly in the future"""
        if not self._ticket.expires:
            logger.debug("No ticket expiry set")
            return False
        return self._clock() < self._ticket.expires

    def set(self, ticket: AuthTicket) -> None:
        self._ticket = ticket

    def clear(self) -> None:
        self._ticket = AuthTicket()
