"""Synthetic browser signal vectors with anomaly injection."""

from typing import Any

from .base import BaseGenerator

BROWSER_PROFILES = [
    {
        "userAgent": (
            "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
            "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
        ),
        "platform": "Win32",
        "screenResolution": [1920, 1080],
        "touchSupport": [0, False, False],
    },
    {
        "userAgent": (
            "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/605.1.15 "
            "(KHTML, like Gecko) Version/17.1 Safari/605.1.15"
        ),
        "platform": "MacIntel",
        "screenResolution": [2560, 1600],
        "touchSupport": [0, False, False],
    },
    {
        "userAgent": (
            "Mozilla/5.0 (iPhone; CPU iPhone OS 17_1 like Mac OS X) AppleWebKit/605.1.15 "
            "(KHTML, like Gecko) Version/17.1 Mobile/15E148 Safari/604.1"
        ),
        "platform": "iPhone",
        "screenResolution": [390, 844],
        "touchSupport": [5, True, True],
    },
    {
        "userAgent": (
            "Mozilla/5.0 (Linux; Android 14; Pixel 8) AppleWebKit/537.36 "
            "(KHTML, like Gecko) Chrome/120.0.0.0 Mobile Safari/537.36"
        ),
        "platform": "Linux armv8l",
        "screenResolution": [412, 915],
        "touchSupport": [5, True, True],
    },
    {
        "userAgent": (
            "Mozilla/5.0 (Windows NT 10.0; Win64; x64; rv:121.0) Gecko/20100101 Firefox/121.0"
        ),
        "platform": "Win32",
        "screenResolution": [1366, 768],
        "touchSupport": [0, False, False],
    },
]

LANGUAGES = ["en-US", "fr-FR", "ht-HT", "es-US"]
TIMEZONES = [
    ("America/New_York", 300),
    ("America/Chicago", 360),
    ("America/Los_Angeles", 480),
    ("America/Port-au-Prince", 300),
]
FONT_POOL = ["Arial", "Courier New", "Georgia", "Helvetica", "Times New Roman", "Verdana"]


class DeviceSignalGenerator(BaseGenerator):
    """Generates camelCase signal vectors accepted by DeviceSignals."""

    def generate(self, num_devices: int = 100) -> list[dict[str, Any]]:
        anomaly_rate = self.config.get("anomaly_injection_rate", 0.0)
        devices = []
        for _ in range(num_devices):
            signals = self._make_signals()
            if self.rng.random() < anomaly_rate:
                self._inject_anomaly(signals)
            devices.append(signals)
        return devices

    def _make_signals(self) -> dict[str, Any]:
        profile = self.rng.choice(BROWSER_PROFILES)
        timezone, offset = self.rng.choice(TIMEZONES)
        width, height = profile["screenResolution"]
        return {
            **profile,
            "language": self.rng.choice(LANGUAGES),
            "colorDepth": self.rng.choice([24, 30, 32]),
            "deviceMemory": self.rng.choice([4, 8, 16]),
            "hardwareConcurrency": self.rng.choice([4, 8, 12]),
            "availableScreenResolution": [width, height - 40],
            "timezoneOffset": offset,
            "timezone": timezone,
            "sessionStorage": True,
            "localStorage": True,
            "indexedDb": True,
            "canvas": f"canvas-{self.rng.getrandbits(64):016x}",
            "webgl": f"webgl-{self.rng.getrandbits(64):016x}",
            "fonts": sorted(self.rng.sample(FONT_POOL, k=4)),
            "hasLiedLanguages": False,
            "hasLiedResolution": False,
            "hasLiedOs": False,
            "hasLiedBrowser": False,
        }

    def _inject_anomaly(self, signals: dict[str, Any]) -> None:
        kind = self.rng.choice(["lied_browser", "lied_os", "no_storage", "no_webgl"])
        if kind == "lied_browser":
            signals["hasLiedBrowser"] = True
        elif kind == "lied_os":
            signals["hasLiedOs"] = True
        elif kind == "no_storage":
            signals["localStorage"] = False
            signals["sessionStorage"] = False
        else:
            signals.pop("webgl")
