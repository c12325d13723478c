"""Unit tests for the risk orchestrator: aggregation, decisions, failure policy."""

import json
from unittest.mock import AsyncMock

import pytest

from src.domains.device.fingerprint import DeviceFingerprintService
from src.domains.risk.config import RiskConfig
from src.domains.risk.models import (
    AmountTrigger,
    CheckName,
    CheckResult,
    EngineTrigger,
    TransactionContext,
)
from src.domains.risk.orchestrator import RiskOrchestrator
from src.shared.clock import to_epoch_ms
from src.shared.errors import (
    EvaluationUnavailableError,
    GeolocationUnavailableError,
    InvalidContextError,
)
from tests.conftest import (
    IR_IP,
    NOW,
    US_IP,
    FailingGeoLocator,
    FailingStateStore,
    FrozenClock,
)

NOW_MS = to_epoch_ms(NOW)

SIGNALS = {
    "userAgent": (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
    ),
    "platform": "Win32",
    "localStorage": True,
    "sessionStorage": True,
}


def _make_context(**kwargs) -> TransactionContext:
    defaults = {"user_id": "user-1", "amount": 50.0, "device_id": "dev-1", "ip": US_IP}
    defaults.update(kwargs)
    return TransactionContext(**defaults)


def _degrade_config() -> RiskConfig:
    config = RiskConfig()
    config.decision.failure_policy = "degrade"
    return config


def _stub_scores(orchestrator: RiskOrchestrator, scores: dict[CheckName, int]) -> None:
    for check in orchestrator._checks:
        check.evaluate = AsyncMock(
            return_value=CheckResult(check=check.name, risk_score=scores.get(check.name, 0))
        )


class TestEvaluate:
    @pytest.mark.asyncio
    async def test_clean_transaction(self, store, geolocator, clock):
        orchestrator = RiskOrchestrator(store, geolocator, clock=clock)
        result = await orchestrator.evaluate(_make_context())
        assert result.risk_score == 0
        assert result.is_allowed
        assert not result.requires_verification
        assert result.triggers == ()
        assert result.metadata == {
            "checkTimestamp": NOW_MS,
            "deviceTrust": 100,
            "locationTrust": 100,
            "velocityTrust": 100,
        }

    @pytest.mark.asyncio
    async def test_sums_contributions(self, store, geolocator, clock):
        orchestrator = RiskOrchestrator(store, geolocator, clock=clock)
        result = await orchestrator.evaluate(_make_context(amount=6000, ip=IR_IP))
        # 30 high amount + 10 round amount + 40 suspicious country
        assert result.risk_score == 80
        assert not result.is_allowed
        assert result.requires_verification
        assert result.triggers == (
            "HIGH_SINGLE_TRANSACTION_AMOUNT",
            "SUSPICIOUS_COUNTRY",
            "ROUND_AMOUNT",
        )

    @pytest.mark.asyncio
    async def test_clamped_to_one_hundred(self, store, geolocator, clock):
        orchestrator = RiskOrchestrator(store, geolocator, clock=clock)
        _stub_scores(orchestrator, {CheckName.AMOUNT: 75, CheckName.VELOCITY: 60})
        result = await orchestrator.evaluate(_make_context())
        assert result.risk_score == 100
        assert not result.is_allowed
        assert not result.requires_verification

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("score", "allowed", "verify"),
        [(39, True, False), (40, True, True), (69, True, True), (70, False, True), (99, False, True)],
    )
    async def test_decision_thresholds(self, store, geolocator, clock, score, allowed, verify):
        orchestrator = RiskOrchestrator(store, geolocator, clock=clock)
        _stub_scores(orchestrator, {CheckName.AMOUNT: score})
        result = await orchestrator.evaluate(_make_context())
        assert result.is_allowed is allowed
        assert result.requires_verification is verify

    @pytest.mark.asyncio
    async def test_triggers_deduplicated(self, store, geolocator, clock):
        orchestrator = RiskOrchestrator(store, geolocator, clock=clock)
        for check in orchestrator._checks:
            check.evaluate = AsyncMock(
                return_value=CheckResult(
                    check=check.name,
                    risk_score=5,
                    triggers=[AmountTrigger.DAILY_COUNT_EXCEEDED],
                )
            )
        result = await orchestrator.evaluate(_make_context())
        assert result.triggers == ("DAILY_COUNT_EXCEEDED",)

    @pytest.mark.asyncio
    async def test_every_check_sees_same_scope(self, store, geolocator, clock):
        orchestrator = RiskOrchestrator(store, geolocator, clock=clock)
        _stub_scores(orchestrator, {})
        await orchestrator.evaluate(_make_context())
        scopes = {check.evaluate.call_args.args[1] for check in orchestrator._checks}
        assert len(scopes) == 1
        assert scopes.pop().now == NOW

    @pytest.mark.asyncio
    async def test_device_trust_lookup_does_not_scan(self, store, geolocator, clock):
        fingerprints = DeviceFingerprintService(store, geolocator, clock=clock)
        device = await fingerprints.generate_fingerprint(SIGNALS, "user-1", US_IP)
        orchestrator = RiskOrchestrator(store, geolocator, fingerprints=fingerprints, clock=clock)
        store.scans.clear()
        result = await orchestrator.evaluate(_make_context(device_id=device.id))
        assert result.is_allowed
        assert store.scans == []


class TestValidation:
    @pytest.mark.asyncio
    async def test_missing_user_rejected_before_state_is_touched(self, store, geolocator, clock):
        orchestrator = RiskOrchestrator(store, geolocator, clock=clock)
        with pytest.raises(InvalidContextError):
            await orchestrator.evaluate(_make_context(user_id=""))
        assert store.data == {}
        assert geolocator.calls == []

    @pytest.mark.asyncio
    async def test_missing_amount_rejected(self, store, geolocator, clock):
        orchestrator = RiskOrchestrator(store, geolocator, clock=clock)
        with pytest.raises(InvalidContextError):
            await orchestrator.evaluate(_make_context(amount=None))

    @pytest.mark.asyncio
    async def test_validation_error_from_check_propagates_in_degrade_mode(
        self, store, geolocator, clock
    ):
        orchestrator = RiskOrchestrator(store, geolocator, config=_degrade_config(), clock=clock)
        orchestrator._checks[1].evaluate = AsyncMock(side_effect=InvalidContextError("bad"))
        with pytest.raises(InvalidContextError):
            await orchestrator.evaluate(_make_context())


class TestFailurePolicy:
    def test_unknown_policy_rejected(self, store, geolocator):
        config = RiskConfig()
        config.decision.failure_policy = "degraded"
        with pytest.raises(ValueError, match="degraded"):
            RiskOrchestrator(store, geolocator, config=config)

    @pytest.mark.asyncio
    async def test_fail_closed_on_geolocation_failure(self, store, clock):
        orchestrator = RiskOrchestrator(store, FailingGeoLocator(), clock=clock)
        with pytest.raises(EvaluationUnavailableError) as exc_info:
            await orchestrator.evaluate(_make_context())
        assert set(exc_info.value.failures) == {"location"}
        assert isinstance(exc_info.value.failures["location"], GeolocationUnavailableError)

    @pytest.mark.asyncio
    async def test_fail_closed_on_store_failure(self, geolocator, clock):
        orchestrator = RiskOrchestrator(FailingStateStore(), geolocator, clock=clock)
        with pytest.raises(EvaluationUnavailableError) as exc_info:
            await orchestrator.evaluate(_make_context())
        assert set(exc_info.value.failures) == {
            "amount",
            "velocity",
            "location",
            "device",
            "pattern",
        }

    @pytest.mark.asyncio
    async def test_degrade_scores_remaining_checks(self, store, clock):
        orchestrator = RiskOrchestrator(
            store, FailingGeoLocator(), config=_degrade_config(), clock=clock
        )
        result = await orchestrator.evaluate(_make_context(amount=6000))
        # high amount 30 + round amount 10, location contributes nothing
        assert result.risk_score == 40
        assert EngineTrigger.UNAVAILABLE_CHECK.value in result.triggers
        assert result.requires_verification
        assert result.metadata["unavailableChecks"] == ["location"]
        assert result.metadata["locationTrust"] is None

    @pytest.mark.asyncio
    async def test_degrade_forces_verification_on_low_score(self, store, clock):
        orchestrator = RiskOrchestrator(
            store, FailingGeoLocator(), config=_degrade_config(), clock=clock
        )
        result = await orchestrator.evaluate(_make_context())
        assert result.risk_score == 0
        assert result.is_allowed
        assert result.requires_verification
        assert result.triggers == ("UNAVAILABLE_CHECK",)

    @pytest.mark.asyncio
    async def test_unexpected_error_counts_as_failure(self, store, geolocator, clock):
        orchestrator = RiskOrchestrator(store, geolocator, clock=clock)
        orchestrator._checks[4].evaluate = AsyncMock(side_effect=KeyError("boom"))
        with pytest.raises(EvaluationUnavailableError) as exc_info:
            await orchestrator.evaluate(_make_context())
        assert list(exc_info.value.failures) == ["pattern"]

    @pytest.mark.asyncio
    async def test_other_checks_still_run_when_one_fails(self, store, clock):
        orchestrator = RiskOrchestrator(store, FailingGeoLocator(), clock=clock)
        with pytest.raises(EvaluationUnavailableError):
            await orchestrator.evaluate(_make_context())
        assert "velocity:user-1:TRANSACTION" in store.data
        assert "device-history:user-1" in store.data


class TestPublishing:
    @pytest.mark.asyncio
    async def test_publishes_event(self, store, geolocator, clock):
        publisher = AsyncMock()
        orchestrator = RiskOrchestrator(store, geolocator, clock=clock, publisher=publisher)
        result = await orchestrator.evaluate(_make_context(amount=2000))
        publisher.publish.assert_awaited_once()
        event = publisher.publish.call_args.args[0]
        assert event["userId"] == "user-1"
        assert event["deviceId"] == "dev-1"
        assert event["amount"] == 2000
        assert event["type"] == "TRANSACTION"
        assert event["riskScore"] == result.risk_score
        assert event["triggers"] == ["ROUND_AMOUNT"]

    @pytest.mark.asyncio
    async def test_publish_failure_does_not_fail_evaluation(self, store, geolocator, clock):
        publisher = AsyncMock()
        publisher.publish.side_effect = RuntimeError("broker down")
        orchestrator = RiskOrchestrator(store, geolocator, clock=clock, publisher=publisher)
        result = await orchestrator.evaluate(_make_context())
        assert result.is_allowed

    @pytest.mark.asyncio
    async def test_no_event_when_evaluation_unavailable(self, store, clock):
        publisher = AsyncMock()
        orchestrator = RiskOrchestrator(
            store, FailingGeoLocator(), clock=clock, publisher=publisher
        )
        with pytest.raises(EvaluationUnavailableError):
            await orchestrator.evaluate(_make_context())
        publisher.publish.assert_not_awaited()


class TestRecordCompletedTransaction:
    @pytest.mark.asyncio
    async def test_feeds_daily_totals(self, store, geolocator):
        orchestrator = RiskOrchestrator(store, geolocator, clock=FrozenClock())
        for _ in range(2):
            await orchestrator.record_completed_transaction("user-1", 4_800)
        result = await orchestrator.evaluate(_make_context(amount=500))
        assert "DAILY_AMOUNT_EXCEEDED" in result.triggers

    @pytest.mark.asyncio
    async def test_daily_count_limit(self, store, geolocator, clock):
        orchestrator = RiskOrchestrator(store, geolocator, clock=clock)
        for _ in range(20):
            await orchestrator.record_completed_transaction("user-1", 1)
        assert json.loads(store.data["daily-count:user-1"]) == 20.0
        result = await orchestrator.evaluate(_make_context())
        assert "DAILY_COUNT_EXCEEDED" in result.triggers

    @pytest.mark.asyncio
    async def test_rejects_blank_user(self, store, geolocator, clock):
        orchestrator = RiskOrchestrator(store, geolocator, clock=clock)
        with pytest.raises(InvalidContextError):
            await orchestrator.record_completed_transaction("", 10)
