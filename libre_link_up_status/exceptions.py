"""Exceptions raised by the LibreLinkUp status monitor"""

from enum import Enum
from typing import Optional

from .types import AuthFailure, ConnectionFailure, FetchFailure


class LibreLinkUpError(Exception):
    """Base class for all errors of this package"""


class ConfigurationError(LibreLinkUpError, ValueError):
    """Invalid or incomplete configuration; needs user action"""


class UnknownRegionError(ConfigurationError):
    def __init__(self, region: str, supported):
        self.region = region
        super().__init__(
            f"Unknown LibreLinkUp region '{region}'. "
            f"Supported regions are {', '.join(supported)}."
        )


class StageError(LibreLinkUpError):
    """A remote call failed at one stage of the fetch pipeline"""
    stage = 'unknown'

    def __init__(self, reason: Enum, message: str):
        self.reason = reason
        super().__init__(message)


class AuthenticationError(StageError):
    stage = 'login'

    def __init__(self, reason: AuthFailure, message: str, region: Optional[str] = None):
        self.region = region
        super().__init__(reason, message)


class ConnectionLookupError(StageError):
    stage = 'connection'

    def __init__(self, reason: ConnectionFailure, message: str):
        super().__init__(reason, message)


class MeasurementError(StageError):
    stage = 'measurement'

    def __init__(self, reason: FetchFailure, message: str):
        super().__init__(reason, message)
