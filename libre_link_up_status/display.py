"""Mapping of measurements to status text, trend glyphs and warnings"""

from typing import Optional

from dateutil import parser as date_parser

from .config import LinkUpConfig
from .types import PLACEHOLDER, BackgroundTone, DisplayState, GlucoseMeasurement, GlucoseUnit

MG_PER_DL_PER_MMOL = 18

TREND_ICONS = {
    1: '↓',
    2: '↘',
    3: '→',
    4: '↗',
    5: '↑',
}
UNKNOWN_TREND_ICON = '??'

LOW_GLUCOSE_WARNING = 'Low blood glucose!'
HIGH_GLUCOSE_WARNING = 'High blood glucose!'


def get_trend_icon(trend_arrow: Optional[int]) -> str:
    return TREND_ICONS.get(trend_arrow, UNKNOWN_TREND_ICON)


def convert_value(value_in_mg_per_dl: float, unit: GlucoseUnit) -> float:
    """Convert a mg/dL value to ``unit``, rounded to one decimal"""
    if unit is GlucoseUnit.MILLIMOLAR:
        return round(value_in_mg_per_dl / MG_PER_DL_PER_MMOL, 1)
    return round(float(value_in_mg_per_dl), 1)


def format_timestamp(timestamp: str) -> str:
    """Normalise the API timestamp (e.g. '10/31/2025 7:36:41 PM') for display"""
    try:
        return date_parser.parse(timestamp).strftime('%Y-%m-%d %H:%M:%S')
    except (ValueError, OverflowError):
        return timestamp


def present(measurement: Optional[GlucoseMeasurement], config: LinkUpConfig) -> DisplayState:
    """Build the display state for a measurement, or the placeholder for none"""
    if measurement is None or measurement.value_in_mg_per_dl <= 0:
        return PLACEHOLDER

    unit = config.glucose_units
    value = convert_value(measurement.value_in_mg_per_dl, unit)
    text = f"{value:.1f} {unit.label} {get_trend_icon(measurement.trend_arrow)}"

    warning = None
    if measurement.is_low and config.low_warning_enabled:
        warning = LOW_GLUCOSE_WARNING
    elif measurement.is_high and config.high_warning_enabled:
        warning = HIGH_GLUCOSE_WARNING

    background = None
    if config.background_warning_enabled:
        if measurement.measurement_color in (2, 3):
            background = BackgroundTone.WARNING
        elif measurement.measurement_color == 4:
            background = BackgroundTone.ERROR

    return DisplayState(
        text=text,
        warning=warning,
        background=background,
        timestamp=measurement.timestamp or None,
    )
