"""Device fingerprinting and trust domain."""

from .config import TrustConfig, TrustWeights
from .fingerprint import DeviceFingerprintService, derive_device_id, hash_signals
from .models import DeviceInfo, DeviceMetadata, DeviceSignals
from .trust import Anomaly, TrustFactors, detect_anomalies
from .user_agent import ParsedUserAgent, parse_user_agent

__all__ = [
    "Anomaly",
    "DeviceFingerprintService",
    "DeviceInfo",
    "DeviceMetadata",
    "DeviceSignals",
    "ParsedUserAgent",
    "TrustConfig",
    "TrustFactors",
    "TrustWeights",
    "derive_device_id",
    "detect_anomalies",
    "hash_signals",
    "parse_user_agent",
]
