"""Login / connection / measurement pipeline behind every status update"""

import logging
from typing import Callable, Optional

from .client import LibreLinkUpClient
from .config import LinkUpConfig
from .exceptions import AuthenticationError, StageError
from .session import AuthSession
from .types import AuthFailure, ReadingResult

logger = logging.getLogger(__name__)

# failures a retry on the next tick cannot fix
USER_ACTION_FAILURES = (AuthFailure.REJECTED, AuthFailure.WRONG_REGION)


def log_notifier(message: str) -> None:
    logger.error(message)


class SessionManager:
    """
    Owns the auth ticket of one monitor and runs the fetch pipeline

    Each call to :meth:`fetch_latest_reading` renews the ticket if needed,
    resolves the connection and reads the latest measurement. Remote failures
    never raise: they come back as a failed :class:`ReadingResult`, and any
    failure after login clears the ticket so the next call logs in again.
    """

    def __init__(
        self,
        client: Optional[LibreLinkUpClient] = None,
        session: Optional[AuthSession] = None,
        notify: Callable[[str], None] = log_notifier,
    ):
        self.client = client or LibreLinkUpClient()
        self.session = session or AuthSession()
        self.notify = notify

    def _ensure_logged_in(self, config: LinkUpConfig) -> None:
        if self.session.is_valid():
            return
        logger.info("Renewing token")
        self.session.clear()
        ticket = self.client.login(config.username, config.password, config.region)
        self.session.set(ticket)

    def fetch_latest_reading(self, config: LinkUpConfig) -> ReadingResult:
        """Run login (if needed), connection lookup and measurement fetch"""
        self.client.client_version = config.client_version
        try:
            self._ensure_logged_in(config)
            ticket = self.session.ticket
            connection_id = self.client.get_connection_id(ticket, config.region, config.connection_id)
            measurement = self.client.get_latest_measurement(ticket, config.region, connection_id)
        except StageError as e:
            self.session.clear()
            logger.error(f"LibreLinkUp {e.stage} failed ({e.reason.value}): {e}")
            notification = None
            if isinstance(e, AuthenticationError) and e.reason in USER_ACTION_FAILURES:
                notification = f"LibreLinkUp: {e}"
                self.notify(notification)
            return ReadingResult.failed(e.stage, e.reason, str(e), notification=notification)

        logger.info(
            f"Received glucose measurement: {measurement.value_in_mg_per_dl} mg/dL "
            f"(trend {measurement.trend_arrow}) at {measurement.timestamp}"
        )
        return ReadingResult(measurement=measurement)
