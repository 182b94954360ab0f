"""LibreLinkUp glucose status monitor"""

from .client import LibreLinkUpClient
from .config import LinkUpConfig, load_config
from .display import present
from .poller import StatusPoller
from .session_manager import SessionManager
from .types import DisplayState, GlucoseMeasurement, ReadingResult

__all__ = [
    'LibreLinkUpClient',
    'LinkUpConfig',
    'load_config',
    'present',
    'StatusPoller',
    'SessionManager',
    'DisplayState',
    'GlucoseMeasurement',
    'ReadingResult',
]
