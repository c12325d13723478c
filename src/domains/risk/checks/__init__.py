from .amount import AmountCheck, record_daily_activity
from .base import EvaluationScope, RiskCheck, validate_context
from .device import DeviceCheck
from .location import LocationCheck, haversine
from .pattern import PatternCheck
from .velocity import VelocityCheck

__all__ = [
    "AmountCheck",
    "DeviceCheck",
    "EvaluationScope",
    "LocationCheck",
    "PatternCheck",
    "RiskCheck",
    "VelocityCheck",
    "haversine",
    "record_daily_activity",
    "validate_context",
]
