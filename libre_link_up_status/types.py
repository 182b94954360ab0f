"""Type definitions for the LibreLinkUp status monitor"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional


class GlucoseUnit(str, Enum):
    """Display unit for glucose values"""
    MILLIGRAMS = 'milligrams'
    MILLIMOLAR = 'millimolar'

    @property
    def label(self) -> str:
        return 'mmol/L' if self is GlucoseUnit.MILLIMOLAR else 'mg/dL'


class BackgroundTone(str, Enum):
    """Status background highlight"""
    WARNING = 'warning'
    ERROR = 'error'


class AuthFailure(str, Enum):
    NETWORK_ERROR = 'network_error'
    REJECTED = 'rejected'
    WRONG_REGION = 'wrong_region'


class ConnectionFailure(str, Enum):
    NETWORK_ERROR = 'network_error'
    NONE_FOUND = 'none_found'
    PREFERRED_NOT_FOUND = 'preferred_not_found'


class FetchFailure(str, Enum):
    NETWORK_ERROR = 'network_error'


@dataclass
class AuthTicket:
    """Bearer token with absolute expiry (epoch seconds)"""
    token: str = ''
    expires: int = 0
    duration: int = 0
    account_id: Optional[str] = None

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> 'AuthTicket':
        ticket = data['authTicket']
        user = data.get('user')
        if not isinstance(user, dict):
            user = {}
        return cls(
            token=ticket['token'],
            expires=int(ticket.get('expires') or 0),
            duration=int(ticket.get('duration') or 0),
            account_id=user.get('id'),
        )


@dataclass
class Connection:
    """Connection/Patient information"""
    patient_id: str
    first_name: str = ''
    last_name: str = ''
    raw: Dict[str, Any] = field(default_factory=dict, repr=False)

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> 'Connection':
        return cls(
            patient_id=data['patientId'],
            first_name=data.get('firstName', ''),
            last_name=data.get('lastName', ''),
            raw=data,
        )


@dataclass(frozen=True)
class GlucoseMeasurement:
    """Latest glucose measurement as reported by the graph endpoint"""
    timestamp: str
    value_in_mg_per_dl: float
    trend_arrow: Optional[int] = None
    measurement_color: int = 0
    is_high: bool = False
    is_low: bool = False
    factory_timestamp: str = ''
    trend_message: Optional[str] = None

    @classmethod
    def from_api(cls, item: Dict[str, Any]) -> 'GlucoseMeasurement':
        return cls(
            timestamp=item.get('Timestamp', ''),
            value_in_mg_per_dl=item['ValueInMgPerDl'],
            trend_arrow=item.get('TrendArrow'),
            measurement_color=item.get('MeasurementColor', 0),
            is_high=item.get('isHigh', False),
            is_low=item.get('isLow', False),
            factory_timestamp=item.get('FactoryTimestamp', ''),
            trend_message=item.get('TrendMessage'),
        )


@dataclass(frozen=True)
class ReadingResult:
    """Outcome of one fetch: either a measurement or the stage/reason it failed at"""
    measurement: Optional[GlucoseMeasurement] = None
    stage: Optional[str] = None
    failure: Optional[Enum] = None
    detail: str = ''
    notification: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.measurement is not None

    @classmethod
    def failed(cls, stage: str, failure: Enum, detail: str = '',
               notification: Optional[str] = None) -> 'ReadingResult':
        return cls(stage=stage, failure=failure, detail=detail, notification=notification)


@dataclass(frozen=True)
class DisplayState:
    """What the status surface shows"""
    text: str
    warning: Optional[str] = None
    background: Optional[BackgroundTone] = None
    timestamp: Optional[str] = None


PLACEHOLDER = DisplayState(text='---')
