"""Device trust configuration with sensible defaults."""

import os
from dataclasses import dataclass, field


@dataclass
class TrustWeights:
    consistent_components: float = 0.3
    known_location: float = 0.2
    recent_activity: float = 0.2
    browser_fingerprint: float = 0.2
    anomaly_score: float = 0.1


@dataclass
class TrustConfig:
    trust_threshold: float = 0.7
    recent_activity_window_days: int = 7
    browser_fingerprint_baseline: float = 1.0
    anomaly_penalty: float = 0.2
    inconsistency_penalty: float = 0.5
    device_ttl_days: int = 30
    known_locations_ttl_days: int = 90
    weights: TrustWeights = field(default_factory=TrustWeights)

    @property
    def recent_activity_window_ms(self) -> int:
        return self.recent_activity_window_days * 24 * 60 * 60 * 1000

    @property
    def device_ttl_seconds(self) -> int:
        return self.device_ttl_days * 24 * 60 * 60

    @property
    def known_locations_ttl_seconds(self) -> int:
        return self.known_locations_ttl_days * 24 * 60 * 60

    @classmethod
    def from_env(cls) -> "TrustConfig":
        """Load config with env var overrides. Env vars use DEVICE_ prefix."""
        config = cls()

        if v := os.getenv("DEVICE_TRUST_THRESHOLD"):
            config.trust_threshold = float(v)
        if v := os.getenv("DEVICE_RECENT_ACTIVITY_WINDOW_DAYS"):
            config.recent_activity_window_days = int(v)
        if v := os.getenv("DEVICE_BROWSER_FINGERPRINT_BASELINE"):
            config.browser_fingerprint_baseline = float(v)
        if v := os.getenv("DEVICE_TTL_DAYS"):
            config.device_ttl_days = int(v)

        return config


default_trust_config = TrustConfig()
