"""Amount-based checks against single and rolling daily ceilings."""

from src.shared.state_store import StateStore

from ..config import RiskConfig
from ..models import AmountTrigger, CheckName, CheckResult, TransactionContext
from .base import EvaluationScope, RiskCheck, validate_context

DAILY_TOTAL_KEY = "daily-total:{user_id}"
DAILY_COUNT_KEY = "daily-count:{user_id}"

RISK_HIGH_SINGLE_AMOUNT = 30
RISK_DAILY_AMOUNT_EXCEEDED = 25
RISK_DAILY_COUNT_EXCEEDED = 20


async def get_daily_total(store: StateStore, user_id: str) -> float:
    raw = await store.get(DAILY_TOTAL_KEY.format(user_id=user_id))
    return float(raw) if raw else 0.0


async def get_daily_count(store: StateStore, user_id: str) -> int:
    raw = await store.get(DAILY_COUNT_KEY.format(user_id=user_id))
    return int(float(raw)) if raw else 0


async def record_daily_activity(
    store: StateStore, user_id: str, amount: float, config: RiskConfig
) -> tuple[float, int]:
    """Add a completed action to the rolling daily total and count."""
    ttl = config.amount.daily_window_hours * 60 * 60
    total = await store.increment(DAILY_TOTAL_KEY.format(user_id=user_id), float(amount), ttl)
    count = await store.increment(DAILY_COUNT_KEY.format(user_id=user_id), 1, ttl)
    return total, int(count)


class AmountCheck(RiskCheck):
    """Single-transaction ceiling plus daily amount and count ceilings."""

    name = CheckName.AMOUNT

    async def evaluate(
        self,
        context: TransactionContext,
        scope: EvaluationScope,
        config: RiskConfig,
    ) -> CheckResult:
        validate_context(context)
        thresholds = config.amount
        amount = context.amount
        triggers: list[AmountTrigger] = []
        risk = 0

        if amount > thresholds.max_single_transaction_amount:
            triggers.append(AmountTrigger.HIGH_SINGLE_TRANSACTION_AMOUNT)
            risk += RISK_HIGH_SINGLE_AMOUNT

        daily_total = await get_daily_total(self._store, context.user_id)
        if daily_total + amount > thresholds.max_daily_transaction_amount:
            triggers.append(AmountTrigger.DAILY_AMOUNT_EXCEEDED)
            risk += RISK_DAILY_AMOUNT_EXCEEDED

        daily_count = await get_daily_count(self._store, context.user_id)
        if daily_count >= thresholds.max_daily_transaction_count:
            triggers.append(AmountTrigger.DAILY_COUNT_EXCEEDED)
            risk += RISK_DAILY_COUNT_EXCEEDED

        return self._result(
            risk_score=risk,
            triggers=triggers,
            evidence={
                "amount": amount,
                "daily_total": daily_total,
                "daily_count": daily_count,
            },
        )
