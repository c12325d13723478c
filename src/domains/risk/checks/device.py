"""Device-change and device-multiplicity checks."""

from src.domains.device.fingerprint import DeviceFingerprintService
from src.shared.state_store import StateStore, dump_json, load_json

from ..config import RiskConfig
from ..models import CheckName, CheckResult, DeviceTrigger, TransactionContext
from .base import FULL_TRUST, EvaluationScope, RiskCheck

DEVICE_HISTORY_KEY = "device-history:{user_id}"

RISK_RECENT_DEVICE_CHANGE = 25
RISK_MULTIPLE_DEVICES = 20
TRUST_PENALTY_RECENT_DEVICE_CHANGE = 20
TRUST_PENALTY_MULTIPLE_DEVICES = 15

MS_PER_HOUR = 60 * 60 * 1000


async def get_device_history(store: StateStore, user_id: str) -> list[dict]:
    history = await load_json(store, DEVICE_HISTORY_KEY.format(user_id=user_id), [])
    if not isinstance(history, list):
        return []
    return [entry for entry in history if isinstance(entry, dict)]


class DeviceCheck(RiskCheck):
    """Flags switching devices recently and juggling many devices in a day."""

    name = CheckName.DEVICE

    def __init__(
        self,
        store: StateStore,
        fingerprints: DeviceFingerprintService | None = None,
    ) -> None:
        super().__init__(store)
        self._fingerprints = fingerprints

    async def evaluate(
        self,
        context: TransactionContext,
        scope: EvaluationScope,
        config: RiskConfig,
    ) -> CheckResult:
        thresholds = config.device
        now_ms = scope.now_ms
        history = await get_device_history(self._store, context.user_id)

        triggers: list[DeviceTrigger] = []
        risk = 0
        trust = FULL_TRUST
        evidence: dict = {}

        last = history[0] if history else None
        if last and last.get("deviceId") != context.device_id:
            hours_since = (now_ms - last.get("timestamp", 0)) / MS_PER_HOUR
            evidence["hours_since_last_device"] = round(hours_since, 3)
            if hours_since < thresholds.device_change_hours:
                triggers.append(DeviceTrigger.RECENT_DEVICE_CHANGE)
                risk += RISK_RECENT_DEVICE_CHANGE
                trust -= TRUST_PENALTY_RECENT_DEVICE_CHANGE

        window_ms = thresholds.multiple_devices_window_hours * MS_PER_HOUR
        recent_devices = {
            entry.get("deviceId")
            for entry in history
            if now_ms - entry.get("timestamp", 0) < window_ms
        }
        evidence["recent_device_count"] = len(recent_devices)
        if len(recent_devices) > thresholds.max_recent_devices:
            triggers.append(DeviceTrigger.MULTIPLE_DEVICES)
            risk += RISK_MULTIPLE_DEVICES
            trust -= TRUST_PENALTY_MULTIPLE_DEVICES

        if self._fingerprints is not None and context.device_id:
            evidence["device_trusted"] = await self._fingerprints.is_device_trusted(
                context.device_id, context.user_id
            )

        history.insert(0, {"deviceId": context.device_id, "timestamp": now_ms})
        await dump_json(
            self._store,
            DEVICE_HISTORY_KEY.format(user_id=context.user_id),
            history[: thresholds.history_size],
            thresholds.history_ttl_days * 24 * 60 * 60,
        )

        return self._result(
            risk_score=risk, triggers=triggers, trust_score=trust, evidence=evidence
        )
