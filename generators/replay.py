"""Replay generated contexts through a RiskOrchestrator on a simulated clock."""

from datetime import UTC, datetime
from typing import Any

import structlog

from src.domains.risk import FraudCheckResult, RiskOrchestrator, TransactionContext
from src.shared.geolocation import GeoLocation

logger = structlog.get_logger()


class ReplayClock:
    """Clock that returns whatever moment the replay last set."""

    def __init__(self, start: datetime | None = None) -> None:
        self._now = start or datetime(2026, 1, 1, tzinfo=UTC)

    def set(self, moment: datetime) -> None:
        self._now = moment

    def __call__(self) -> datetime:
        return self._now


class RecordedGeoLocator:
    """Serves lookups from the ``geo`` field of generated records."""

    def __init__(self, records: list[dict[str, Any]]) -> None:
        self._by_ip: dict[str, GeoLocation] = {}
        for record in records:
            geo = record.get("geo")
            if geo:
                self._by_ip[record["context"]["ip"]] = GeoLocation.model_validate(geo)

    async def lookup(self, ip: str) -> GeoLocation | None:
        return self._by_ip.get(ip)


async def replay(
    orchestrator: RiskOrchestrator,
    clock: ReplayClock,
    records: list[dict[str, Any]],
    record_completed: bool = True,
) -> list[tuple[dict[str, Any], FraudCheckResult]]:
    """Evaluate every record in timestamp order.

    Allowed transactions are added to the daily totals when
    ``record_completed`` is set, as a caller would after performing them.
    """
    outcomes = []
    for record in sorted(records, key=lambda r: r["timestamp"]):
        clock.set(datetime.fromisoformat(record["timestamp"]))
        context = TransactionContext.model_validate(record["context"])
        result = await orchestrator.evaluate(context)
        if record_completed and result.is_allowed and context.amount:
            await orchestrator.record_completed_transaction(context.user_id, context.amount)
        outcomes.append((record, result))

    logger.info(
        "replay_completed",
        evaluations=len(outcomes),
        denied=sum(1 for _, r in outcomes if not r.is_allowed),
        verification_required=sum(1 for _, r in outcomes if r.requires_verification),
    )
    return outcomes
