"""Risk engine configuration with sensible defaults."""

import os
from dataclasses import dataclass, field
from typing import Literal

FailurePolicy = Literal["fail_closed", "degrade"]


@dataclass
class AmountThresholds:
    max_single_transaction_amount: float = 5_000.0
    max_daily_transaction_amount: float = 10_000.0
    max_daily_transaction_count: int = 20
    daily_window_hours: int = 24


@dataclass
class VelocityThresholds:
    window_minutes: int = 5
    max_transactions_in_window: int = 3
    small_amount: float = 100.0
    max_small_transactions: int = 3
    max_window_entries: int = 100

    @property
    def window_ms(self) -> int:
        return self.window_minutes * 60 * 1000


@dataclass
class LocationThresholds:
    # FATF call-for-action jurisdictions
    suspicious_country_codes: tuple[str, ...] = ("IR", "KP", "MM")
    significant_change_km: float = 500.0
    last_location_ttl_days: int = 30


@dataclass
class DeviceThresholds:
    device_change_hours: int = 24
    multiple_devices_window_hours: int = 24
    max_recent_devices: int = 3
    history_size: int = 10
    history_ttl_days: int = 30


@dataclass
class PatternThresholds:
    repeat_tolerance: float = 1.0
    min_repeated: int = 2
    round_unit: float = 100.0
    round_amount_min: float = 1_000.0


@dataclass
class DecisionThresholds:
    deny_at: int = 70
    verify_at: int = 40
    # Set from Settings.failure_policy (FAILURE_POLICY) by the engine
    failure_policy: FailurePolicy = "fail_closed"


@dataclass
class RiskConfig:
    amount: AmountThresholds = field(default_factory=AmountThresholds)
    velocity: VelocityThresholds = field(default_factory=VelocityThresholds)
    location: LocationThresholds = field(default_factory=LocationThresholds)
    device: DeviceThresholds = field(default_factory=DeviceThresholds)
    patterns: PatternThresholds = field(default_factory=PatternThresholds)
    decision: DecisionThresholds = field(default_factory=DecisionThresholds)

    @classmethod
    def from_env(cls) -> "RiskConfig":
        """Load config with env var overrides. Env vars use RISK_ prefix."""
        config = cls()

        # Amount overrides
        if v := os.getenv("RISK_MAX_SINGLE_TRANSACTION_AMOUNT"):
            config.amount.max_single_transaction_amount = float(v)
        if v := os.getenv("RISK_MAX_DAILY_TRANSACTION_AMOUNT"):
            config.amount.max_daily_transaction_amount = float(v)
        if v := os.getenv("RISK_MAX_DAILY_TRANSACTION_COUNT"):
            config.amount.max_daily_transaction_count = int(v)

        # Velocity overrides
        if v := os.getenv("RISK_VELOCITY_WINDOW_MINUTES"):
            config.velocity.window_minutes = int(v)
        if v := os.getenv("RISK_VELOCITY_THRESHOLD"):
            config.velocity.max_transactions_in_window = int(v)

        # Location overrides
        if v := os.getenv("RISK_SUSPICIOUS_COUNTRIES"):
            config.location.suspicious_country_codes = tuple(
                code.strip().upper() for code in v.split(",") if code.strip()
            )
        if v := os.getenv("RISK_LOCATION_CHANGE_KM"):
            config.location.significant_change_km = float(v)

        # Device overrides
        if v := os.getenv("RISK_DEVICE_CHANGE_HOURS"):
            config.device.device_change_hours = int(v)

        # Decision overrides
        if v := os.getenv("RISK_DENY_THRESHOLD"):
            config.decision.deny_at = int(v)
        if v := os.getenv("RISK_VERIFY_THRESHOLD"):
            config.decision.verify_at = int(v)

        return config


# Module-level default instance
default_config = RiskConfig()
