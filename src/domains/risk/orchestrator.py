"""Risk orchestrator: fan out the five checks, join, aggregate, publish."""

import asyncio
import uuid
from typing import Any

import structlog

from src.domains.device.fingerprint import DeviceFingerprintService
from src.shared.clock import Clock, utc_now
from src.shared.errors import EvaluationUnavailableError, InfrastructureError, InvalidContextError
from src.shared.geolocation import GeoLocator
from src.shared.state_store import StateStore

from .checks import (
    AmountCheck,
    DeviceCheck,
    EvaluationScope,
    LocationCheck,
    PatternCheck,
    RiskCheck,
    VelocityCheck,
    record_daily_activity,
    validate_context,
)
from .config import RiskConfig, default_config
from .events import RiskEventPublisher, build_risk_event
from .models import CheckName, CheckResult, EngineTrigger, FraudCheckResult, TransactionContext

logger = structlog.get_logger()

MAX_RISK_SCORE = 100
FAIL_CLOSED = "fail_closed"
DEGRADE = "degrade"


class RiskOrchestrator:
    """Evaluates one in-flight action and returns a FraudCheckResult.

    Callers own the time budget: wrap ``evaluate`` in ``asyncio.timeout`` and
    treat a timeout as requiring verification, never as allowed.
    """

    def __init__(
        self,
        store: StateStore,
        geolocator: GeoLocator,
        fingerprints: DeviceFingerprintService | None = None,
        config: RiskConfig | None = None,
        clock: Clock = utc_now,
        publisher: RiskEventPublisher | None = None,
    ) -> None:
        self._store = store
        self._config = config or default_config
        if self._config.decision.failure_policy not in (FAIL_CLOSED, DEGRADE):
            raise ValueError(
                f"Unknown failure policy: {self._config.decision.failure_policy!r}"
            )
        self._clock = clock
        self._publisher = publisher
        self._checks: list[RiskCheck] = [
            AmountCheck(store),
            VelocityCheck(store),
            LocationCheck(store, geolocator),
            DeviceCheck(store, fingerprints),
            PatternCheck(store),
        ]

    @property
    def config(self) -> RiskConfig:
        return self._config

    async def evaluate(self, context: TransactionContext) -> FraudCheckResult:
        validate_context(context)
        scope = EvaluationScope(evaluation_id=str(uuid.uuid4()), now=self._clock())

        outcomes = await asyncio.gather(
            *(check.evaluate(context, scope, self._config) for check in self._checks),
            return_exceptions=True,
        )

        results: list[CheckResult] = []
        failures: dict[str, BaseException] = {}
        for check, outcome in zip(self._checks, outcomes, strict=True):
            if isinstance(outcome, InvalidContextError):
                raise outcome
            if isinstance(outcome, Exception):
                failures[check.name.value] = outcome
            elif isinstance(outcome, BaseException):
                raise outcome
            else:
                results.append(outcome)

        degraded = False
        if failures:
            self._log_failures(context, scope, failures)
            if self._config.decision.failure_policy != DEGRADE:
                raise EvaluationUnavailableError(failures=failures)
            degraded = True

        result = self._aggregate(results, failures, scope)

        logger.info(
            "fraud_check_completed",
            evaluation_id=scope.evaluation_id,
            user_id=context.user_id,
            device_id=context.device_id,
            amount=context.amount,
            action_type=context.type,
            risk_score=result.risk_score,
            is_allowed=result.is_allowed,
            requires_verification=result.requires_verification,
            triggers=list(result.triggers),
            degraded=degraded,
            checks={r.check.value: r.model_dump(mode="json", exclude={"check"}) for r in results},
        )

        if self._publisher is not None:
            try:
                await self._publisher.publish(build_risk_event(context, result))
            except Exception:
                logger.exception("risk_event_publish_failed", user_id=context.user_id)

        return result

    async def record_completed_transaction(self, user_id: str, amount: float) -> None:
        """Add an action the caller actually performed to the daily totals."""
        validate_context(TransactionContext(user_id=user_id, amount=amount))
        total, count = await record_daily_activity(self._store, user_id, amount, self._config)
        logger.debug("daily_activity_recorded", user_id=user_id, daily_total=total, daily_count=count)

    def _aggregate(
        self,
        results: list[CheckResult],
        failures: dict[str, BaseException],
        scope: EvaluationScope,
    ) -> FraudCheckResult:
        decision = self._config.decision
        by_name = {r.check: r for r in results}

        risk_score = min(sum(r.risk_score for r in results), MAX_RISK_SCORE)
        risk_score = max(risk_score, 0)

        triggers: list[str] = []
        for r in results:
            for trigger in r.triggers:
                if trigger.value not in triggers:
                    triggers.append(trigger.value)

        metadata: dict[str, Any] = {
            "checkTimestamp": scope.now_ms,
            "deviceTrust": _trust_of(by_name, CheckName.DEVICE),
            "locationTrust": _trust_of(by_name, CheckName.LOCATION),
            "velocityTrust": _trust_of(by_name, CheckName.VELOCITY),
        }

        requires_verification = decision.verify_at <= risk_score < MAX_RISK_SCORE
        if failures:
            triggers.append(EngineTrigger.UNAVAILABLE_CHECK.value)
            metadata["unavailableChecks"] = sorted(failures)
            requires_verification = True

        return FraudCheckResult(
            is_allowed=risk_score < decision.deny_at,
            risk_score=risk_score,
            triggers=tuple(triggers),
            requires_verification=requires_verification,
            metadata=metadata,
        )

    def _log_failures(
        self,
        context: TransactionContext,
        scope: EvaluationScope,
        failures: dict[str, BaseException],
    ) -> None:
        for name, error in failures.items():
            if isinstance(error, InfrastructureError):
                logger.warning(
                    "risk_check_unavailable",
                    evaluation_id=scope.evaluation_id,
                    user_id=context.user_id,
                    check=name,
                    error=str(error),
                )
            else:
                logger.error(
                    "risk_check_failed",
                    evaluation_id=scope.evaluation_id,
                    user_id=context.user_id,
                    check=name,
                    exc_info=error,
                )


def _trust_of(results: dict[CheckName, CheckResult], name: CheckName) -> int | None:
    result = results.get(name)
    return result.trust_score if result is not None else None
