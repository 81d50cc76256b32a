"""Unit conversion helpers.

Every provider is normalized to imperial display units: degrees Fahrenheit,
miles per hour, miles and millibar.
"""

import math
from typing import Optional

METERS_PER_MILE = 1609.344
MPS_TO_MPH = 3600 / METERS_PER_MILE
HPA_PER_INHG = 33.8639


def round_half_up(value: Optional[float]) -> int:
    """Round to the nearest integer, halves away from zero"""
    if value is None:
        return 0
    value = float(value)
    if value < 0:
        return -int(math.floor(-value + 0.5))
    return int(math.floor(value + 0.5))


def clamp_percent(value: Optional[float]) -> int:
    if value is None:
        return 0
    return max(0, min(100, round_half_up(value)))


def probability_to_percent(probability: Optional[float]) -> int:
    """0.0 - 1.0 probability to an integer percentage"""
    if probability is None:
        return 0
    return clamp_percent(float(probability) * 100)


def kelvin_to_fahrenheit(kelvin: float) -> float:
    return (float(kelvin) - 273.15) * 9 / 5 + 32


def mps_to_mph(speed: float) -> float:
    return float(speed) * MPS_TO_MPH


def meters_to_miles(distance: float) -> float:
    return float(distance) / METERS_PER_MILE


def inhg_to_mb(pressure: float) -> float:
    return float(pressure) * HPA_PER_INHG
