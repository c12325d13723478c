"""Abstract base class for the risk checks."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from src.shared.clock import to_epoch_ms
from src.shared.errors import InvalidContextError
from src.shared.state_store import StateStore

from ..config import RiskConfig
from ..models import CheckName, CheckResult, TransactionContext, TriggerCode

# Trust snapshots start from full trust and lose points per trigger
FULL_TRUST = 100


@dataclass(frozen=True)
class EvaluationScope:
    """Values shared by every check of one evaluation."""

    evaluation_id: str
    now: datetime

    @property
    def now_ms(self) -> int:
        return to_epoch_ms(self.now)


def validate_context(context: TransactionContext) -> None:
    if not context.user_id or not context.user_id.strip():
        raise InvalidContextError("Invalid transaction context: user_id is required")
    if context.amount is None:
        raise InvalidContextError("Invalid transaction context: amount is required")


class RiskCheck(ABC):
    """Base class for the five concurrent checks.

    A check reads and writes its own slice of the ephemeral store and never
    depends on another check's result within the same evaluation.
    """

    name: CheckName

    def __init__(self, store: StateStore) -> None:
        self._store = store

    @abstractmethod
    async def evaluate(
        self,
        context: TransactionContext,
        scope: EvaluationScope,
        config: RiskConfig,
    ) -> CheckResult:
        """Evaluate this check and return its partial contribution."""
        ...

    def _result(
        self,
        risk_score: int = 0,
        triggers: list[TriggerCode] | None = None,
        trust_score: int | None = None,
        evidence: dict[str, Any] | None = None,
    ) -> CheckResult:
        return CheckResult(
            check=self.name,
            risk_score=risk_score,
            triggers=triggers or [],
            trust_score=trust_score,
            evidence=evidence or {},
        )
