"""Risk evaluation events for downstream alerting."""

import asyncio
from functools import partial
from typing import Any, Protocol

import structlog
from aiokafka import AIOKafkaProducer

from .models import FraudCheckResult, TransactionContext

logger = structlog.get_logger()


class RiskEventPublisher(Protocol):
    async def publish(self, event: dict[str, Any]) -> None: ...


def build_risk_event(context: TransactionContext, result: FraudCheckResult) -> dict[str, Any]:
    """Build the wire payload for one evaluation."""
    return {
        "userId": context.user_id,
        "deviceId": context.device_id,
        "amount": context.amount,
        "type": context.type,
        "riskScore": result.risk_score,
        "triggers": list(result.triggers),
        "metadata": result.metadata,
    }


class KafkaRiskEventPublisher:
    """Publishes risk events keyed by user id.

    Args:
        producer: A started aiokafka AIOKafkaProducer with a JSON value serializer.
        topic: Destination topic.
    """

    def __init__(self, producer: AIOKafkaProducer, topic: str) -> None:
        self._producer = producer
        self._topic = topic

    async def publish(self, event: dict[str, Any]) -> None:
        """Enqueue the event without waiting for the broker acknowledgement."""
        user_id = event["userId"]
        try:
            delivery = await self._producer.send(self._topic, value=event, key=user_id)
        except Exception:
            logger.exception("risk_event_publish_failed", user_id=user_id, topic=self._topic)
            return
        delivery.add_done_callback(partial(self._on_delivery, user_id))

    def _on_delivery(self, user_id: str, delivery: asyncio.Future) -> None:
        if delivery.cancelled():
            logger.warning("risk_event_delivery_cancelled", user_id=user_id, topic=self._topic)
        elif (exc := delivery.exception()) is not None:
            logger.error(
                "risk_event_publish_failed",
                user_id=user_id,
                topic=self._topic,
                error=str(exc),
            )
        else:
            logger.debug("risk_event_published", user_id=user_id, topic=self._topic)
