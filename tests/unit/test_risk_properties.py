"""Invariants that hold for every evaluation, checked over generated traffic."""

import pytest

from generators.context_generator import ContextGenerator
from generators.replay import RecordedGeoLocator, ReplayClock, replay
from src.domains.device import DeviceFingerprintService
from src.domains.risk.models import TransactionContext
from src.domains.risk.orchestrator import RiskOrchestrator
from tests.conftest import NOW, InMemoryStateStore, StaticGeoLocator

GENERATOR_CONFIG = {"num_users": 15, "time_span_days": 1}


@pytest.fixture(scope="module")
def records() -> list[dict]:
    return ContextGenerator(config=GENERATOR_CONFIG, seed=7).generate(num_contexts=300)


class TestResultInvariants:
    @pytest.mark.asyncio
    async def test_bounds_and_decision_rule(self, records):
        store = InMemoryStateStore()
        clock = ReplayClock()
        orchestrator = RiskOrchestrator(store, RecordedGeoLocator(records), clock=clock)
        outcomes = await replay(orchestrator, clock, records)

        assert len(outcomes) == 300
        for _, result in outcomes:
            assert 0 <= result.risk_score <= 100
            assert result.is_allowed == (result.risk_score < 70)
            assert result.requires_verification == (40 <= result.risk_score < 100)
            assert len(set(result.triggers)) == len(result.triggers)
            if result.risk_score == 0:
                assert result.triggers == ()

    @pytest.mark.asyncio
    async def test_injected_scenarios_are_flagged(self, records):
        store = InMemoryStateStore()
        clock = ReplayClock()
        orchestrator = RiskOrchestrator(store, RecordedGeoLocator(records), clock=clock)
        outcomes = await replay(orchestrator, clock, records)

        for record, result in outcomes:
            if record["scenario"] == "suspicious_country":
                assert "SUSPICIOUS_COUNTRY" in result.triggers
            elif record["scenario"] == "high_amount":
                assert "HIGH_SINGLE_TRANSACTION_AMOUNT" in result.triggers
            elif record["scenario"] == "round_amount":
                assert "ROUND_AMOUNT" in result.triggers


class TestDeterministicReplay:
    @pytest.mark.asyncio
    async def test_same_snapshot_same_score(self, records, clock):
        store = InMemoryStateStore()
        replay_clock = ReplayClock()
        geolocator = RecordedGeoLocator(records)
        warmup = RiskOrchestrator(store, geolocator, clock=replay_clock)
        await replay(warmup, replay_clock, records[:200])

        snapshot = store.snapshot()
        last = records[199]
        context = TransactionContext.model_validate(last["context"])

        scores = []
        for _ in range(2):
            store.data = dict(snapshot)
            orchestrator = RiskOrchestrator(store, geolocator, clock=clock)
            scores.append(await orchestrator.evaluate(context))

        assert scores[0].risk_score == scores[1].risk_score
        assert scores[0].triggers == scores[1].triggers


class TestNewUserScenario:
    @pytest.mark.asyncio
    async def test_brand_new_user_and_device(self, store, geolocator, clock):
        fingerprints = DeviceFingerprintService(store, geolocator, clock=clock)
        orchestrator = RiskOrchestrator(store, geolocator, fingerprints=fingerprints, clock=clock)
        context = TransactionContext(user_id="new-user", amount=50, device_id="new-device", ip="8.8.8.8")
        result = await orchestrator.evaluate(context)
        assert result.risk_score == 0
        assert result.is_allowed
        assert not result.requires_verification

    @pytest.mark.asyncio
    async def test_brand_new_user_geolocation_unresolved(self, store, clock):
        orchestrator = RiskOrchestrator(store, StaticGeoLocator(), clock=clock)
        context = TransactionContext(user_id="new-user", amount=50, device_id="new-device")
        result = await orchestrator.evaluate(context)
        assert result.risk_score == 20
        assert result.triggers == ("UNKNOWN_LOCATION",)
        assert result.is_allowed
        assert not result.requires_verification
        assert result.metadata["checkTimestamp"] == int(NOW.timestamp() * 1000)
