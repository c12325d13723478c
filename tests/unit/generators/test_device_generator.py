"""Tests for the synthetic device signal generator."""

from generators.device_generator import DeviceSignalGenerator
from src.domains.device.fingerprint import hash_signals
from src.domains.device.models import DeviceSignals


class TestDeviceSignalGenerator:
    def test_deterministic_output(self):
        devices1 = DeviceSignalGenerator(seed=42).generate(num_devices=10)
        devices2 = DeviceSignalGenerator(seed=42).generate(num_devices=10)
        assert devices1 == devices2

    def test_signals_validate(self):
        for raw in DeviceSignalGenerator(seed=42).generate(num_devices=25):
            signals = DeviceSignals.model_validate(raw)
            assert signals.user_agent
            assert signals.local_storage is True

    def test_devices_hash_distinctly(self):
        devices = DeviceSignalGenerator(seed=42).generate(num_devices=25)
        hashes = {hash_signals(DeviceSignals.model_validate(d)) for d in devices}
        assert len(hashes) == 25

    def test_anomaly_injection(self):
        devices = DeviceSignalGenerator(config={"anomaly_injection_rate": 1.0}, seed=42).generate(
            num_devices=20
        )
        for d in devices:
            assert (
                d["hasLiedBrowser"]
                or d["hasLiedOs"]
                or d["localStorage"] is False
                or "webgl" not in d
            )
