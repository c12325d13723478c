"""Amount pattern checks: repeated amounts and round numbers."""

from ..config import RiskConfig
from ..models import CheckName, CheckResult, PatternTrigger, TransactionContext
from .base import EvaluationScope, RiskCheck
from .velocity import load_window, velocity_key

RISK_REPEATED_TRANSACTIONS = 15
RISK_ROUND_AMOUNT = 10


def is_round_amount(amount: float, unit: float, minimum: float) -> bool:
    return amount > minimum and amount % unit == 0


class PatternCheck(RiskCheck):
    """Reads the velocity window; entries written by this evaluation are ignored."""

    name = CheckName.PATTERN

    async def evaluate(
        self,
        context: TransactionContext,
        scope: EvaluationScope,
        config: RiskConfig,
    ) -> CheckResult:
        thresholds = config.patterns
        amount = context.amount
        window = await load_window(
            self._store, velocity_key(context), scope.now_ms, config.velocity.window_ms
        )
        prior = [e for e in window if e.get("evaluationId") != scope.evaluation_id]

        triggers: list[PatternTrigger] = []
        risk = 0

        repeated = [
            e
            for e in prior
            if abs(float(e.get("amount", 0)) - amount) < thresholds.repeat_tolerance
        ]
        if len(repeated) >= thresholds.min_repeated:
            triggers.append(PatternTrigger.REPEATED_TRANSACTIONS)
            risk += RISK_REPEATED_TRANSACTIONS

        if is_round_amount(amount, thresholds.round_unit, thresholds.round_amount_min):
            triggers.append(PatternTrigger.ROUND_AMOUNT)
            risk += RISK_ROUND_AMOUNT

        return self._result(
            risk_score=risk,
            triggers=triggers,
            evidence={"repeated_count": len(repeated)},
        )
