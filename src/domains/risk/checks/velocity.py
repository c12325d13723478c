"""Velocity checks over a sliding per-user, per-action window."""

from src.shared.state_store import StateStore, dump_json, load_json

from ..config import RiskConfig
from ..models import CheckName, CheckResult, TransactionContext, VelocityTrigger
from .base import FULL_TRUST, EvaluationScope, RiskCheck

VELOCITY_KEY = "velocity:{user_id}:{action_type}"

RISK_HIGH_VELOCITY = 35
RISK_RAPID_SMALL = 25
TRUST_PENALTY_HIGH_VELOCITY = 30
TRUST_PENALTY_RAPID_SMALL = 20


def velocity_key(context: TransactionContext) -> str:
    return VELOCITY_KEY.format(user_id=context.user_id, action_type=context.type)


def prune_window(entries: list[dict], now_ms: int, window_ms: int) -> list[dict]:
    """Keep entries younger than the window, newest first."""
    return [
        entry
        for entry in entries
        if isinstance(entry, dict) and now_ms - entry.get("timestamp", 0) < window_ms
    ]


async def load_window(store: StateStore, key: str, now_ms: int, window_ms: int) -> list[dict]:
    entries = await load_json(store, key, [])
    if not isinstance(entries, list):
        return []
    return prune_window(entries, now_ms, window_ms)


class VelocityCheck(RiskCheck):
    """Counts recent actions of the same type and appends the current one.

    The window is read, pruned, checked and written back without a lock;
    concurrent evaluations for one user may under-count until the next one.
    """

    name = CheckName.VELOCITY

    async def evaluate(
        self,
        context: TransactionContext,
        scope: EvaluationScope,
        config: RiskConfig,
    ) -> CheckResult:
        thresholds = config.velocity
        key = velocity_key(context)
        window = await load_window(self._store, key, scope.now_ms, thresholds.window_ms)

        triggers: list[VelocityTrigger] = []
        risk = 0
        trust = FULL_TRUST

        if len(window) >= thresholds.max_transactions_in_window:
            triggers.append(VelocityTrigger.HIGH_VELOCITY)
            risk += RISK_HIGH_VELOCITY
            trust -= TRUST_PENALTY_HIGH_VELOCITY

        small = [e for e in window if e.get("amount", 0) < thresholds.small_amount]
        if len(small) >= thresholds.max_small_transactions:
            triggers.append(VelocityTrigger.RAPID_SMALL_TRANSACTIONS)
            risk += RISK_RAPID_SMALL
            trust -= TRUST_PENALTY_RAPID_SMALL

        window.insert(
            0,
            {
                "amount": context.amount,
                "timestamp": scope.now_ms,
                "evaluationId": scope.evaluation_id,
            },
        )
        await dump_json(
            self._store,
            key,
            window[: thresholds.max_window_entries],
            thresholds.window_minutes * 60,
        )

        return self._result(
            risk_score=risk,
            triggers=triggers,
            trust_score=trust,
            evidence={"window_count": len(window) - 1, "small_count": len(small)},
        )
