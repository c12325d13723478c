"""Pydantic models for the risk domain."""

from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class CheckName(StrEnum):
    AMOUNT = "amount"
    VELOCITY = "velocity"
    LOCATION = "location"
    DEVICE = "device"
    PATTERN = "pattern"


# Trigger codes keep their upper-snake spelling on the wire for alert consumers.


class AmountTrigger(StrEnum):
    HIGH_SINGLE_TRANSACTION_AMOUNT = "HIGH_SINGLE_TRANSACTION_AMOUNT"
    DAILY_AMOUNT_EXCEEDED = "DAILY_AMOUNT_EXCEEDED"
    DAILY_COUNT_EXCEEDED = "DAILY_COUNT_EXCEEDED"


class VelocityTrigger(StrEnum):
    HIGH_VELOCITY = "HIGH_VELOCITY"
    RAPID_SMALL_TRANSACTIONS = "RAPID_SMALL_TRANSACTIONS"


class LocationTrigger(StrEnum):
    UNKNOWN_LOCATION = "UNKNOWN_LOCATION"
    SUSPICIOUS_COUNTRY = "SUSPICIOUS_COUNTRY"
    SIGNIFICANT_LOCATION_CHANGE = "SIGNIFICANT_LOCATION_CHANGE"


class DeviceTrigger(StrEnum):
    RECENT_DEVICE_CHANGE = "RECENT_DEVICE_CHANGE"
    MULTIPLE_DEVICES = "MULTIPLE_DEVICES"


class PatternTrigger(StrEnum):
    REPEATED_TRANSACTIONS = "REPEATED_TRANSACTIONS"
    ROUND_AMOUNT = "ROUND_AMOUNT"


class EngineTrigger(StrEnum):
    UNAVAILABLE_CHECK = "UNAVAILABLE_CHECK"


TriggerCode = (
    AmountTrigger
    | VelocityTrigger
    | LocationTrigger
    | DeviceTrigger
    | PatternTrigger
    | EngineTrigger
)


class Coordinates(BaseModel):
    model_config = ConfigDict(frozen=True)

    latitude: float = Field(ge=-90.0, le=90.0)
    longitude: float = Field(ge=-180.0, le=180.0)


class TransactionContext(BaseModel):
    """One in-flight action to evaluate. Never persisted."""

    model_config = ConfigDict(frozen=True)

    user_id: str = ""
    amount: float | None = Field(default=None, ge=0)
    type: str = "TRANSACTION"
    device_id: str = ""
    ip: str = ""
    location: Coordinates | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)


class CheckResult(BaseModel):
    """Partial risk contribution of a single check."""

    check: CheckName
    risk_score: int = 0
    triggers: list[TriggerCode] = []
    # 0-100 trust snapshot reported as metadata, never folded into risk_score
    trust_score: int | None = None
    evidence: dict[str, Any] = Field(default_factory=dict)


class FraudCheckResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    is_allowed: bool
    risk_score: int = Field(ge=0, le=100)
    triggers: tuple[str, ...] = ()
    requires_verification: bool
    metadata: dict[str, Any] = Field(default_factory=dict)
