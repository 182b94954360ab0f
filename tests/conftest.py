from typing import Any, Dict, List, Optional, Tuple

import pytest
import requests

from libre_link_up_status.config import LinkUpConfig
from libre_link_up_status.types import GlucoseUnit


class FakeResponse:
    def __init__(self, payload: Any = None, status_code: int = 200) -> None:
        self.payload = payload
        self.status_code = status_code

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Error")

    def json(self) -> Any:
        if isinstance(self.payload, Exception):
            raise self.payload
        return self.payload


class FakeSession:
    """Stands in for requests.Session; routes by (method, url)"""

    def __init__(self, routes: Optional[Dict[Tuple[str, str], Any]] = None) -> None:
        self.routes: Dict[Tuple[str, str], Any] = dict(routes or {})
        self.calls: List[Dict[str, Any]] = []

    def request(self, method: str, url: str, headers=None, timeout=None, **kwargs) -> FakeResponse:
        self.calls.append({'method': method, 'url': url, 'headers': headers, 'timeout': timeout, **kwargs})
        result = self.routes[(method, url)]
        if isinstance(result, Exception):
            raise result
        return result


EU = 'https://api-eu.libreview.io'


def login_payload(token: str = 'jwt-token', expires: int = 2_000_000_000) -> Dict[str, Any]:
    return {
        'status': 0,
        'data': {
            'user': {'id': 'user-1'},
            'authTicket': {'token': token, 'expires': expires, 'duration': 15552000000},
        },
    }


def measurement_payload(value: float = 95, trend: int = 3, color: int = 1,
                        is_high: bool = False, is_low: bool = False) -> Dict[str, Any]:
    return {
        'FactoryTimestamp': '10/31/2025 5:36:41 PM',
        'Timestamp': '10/31/2025 7:36:41 PM',
        'type': 1,
        'ValueInMgPerDl': value,
        'TrendArrow': trend,
        'TrendMessage': None,
        'MeasurementColor': color,
        'GlucoseUnits': 1,
        'Value': value,
        'isHigh': is_high,
        'isLow': is_low,
    }


@pytest.fixture
def config() -> LinkUpConfig:
    return LinkUpConfig(
        region='EU',
        username='user@example.com',
        password='secret',
        connection_id='',
        glucose_units=GlucoseUnit.MILLIGRAMS,
    )
