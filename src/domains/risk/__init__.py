"""Real-time risk scoring for transactions, logins and account recovery."""

from .config import RiskConfig, default_config
from .events import KafkaRiskEventPublisher, RiskEventPublisher, build_risk_event
from .models import (
    AmountTrigger,
    CheckName,
    CheckResult,
    Coordinates,
    DeviceTrigger,
    EngineTrigger,
    FraudCheckResult,
    LocationTrigger,
    PatternTrigger,
    TransactionContext,
    VelocityTrigger,
)
from .orchestrator import RiskOrchestrator

__all__ = [
    "AmountTrigger",
    "CheckName",
    "CheckResult",
    "Coordinates",
    "DeviceTrigger",
    "EngineTrigger",
    "FraudCheckResult",
    "KafkaRiskEventPublisher",
    "LocationTrigger",
    "PatternTrigger",
    "RiskConfig",
    "RiskEventPublisher",
    "RiskOrchestrator",
    "TransactionContext",
    "VelocityTrigger",
    "build_risk_event",
    "default_config",
]
