"""In-process entry point for the risk engine."""

import contextlib
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from dataclasses import dataclass

import structlog
from aiokafka import AIOKafkaProducer

from src.config import Settings, settings as default_settings
from src.domains.device import DeviceFingerprintService, TrustConfig
from src.domains.risk import KafkaRiskEventPublisher, RiskConfig, RiskOrchestrator
from src.shared.geolocation import IpApiGeoLocator
from src.shared.kafka_utils import create_producer
from src.shared.logging import setup_logging
from src.shared.state_store import RedisStateStore

logger = structlog.get_logger()


@dataclass
class RiskEngine:
    orchestrator: RiskOrchestrator
    fingerprints: DeviceFingerprintService
    store: RedisStateStore


@asynccontextmanager
async def risk_engine(settings: Settings | None = None) -> AsyncGenerator[RiskEngine, None]:
    """Wire Redis, geolocation, Kafka and the orchestrator; tear them down on exit.

    Usage::

        async with risk_engine() as engine:
            async with asyncio.timeout(0.5):
                result = await engine.orchestrator.evaluate(context)
    """
    settings = settings or default_settings
    setup_logging(settings.log_level, json_logs=not settings.debug)

    logger.info(
        "risk_engine_starting",
        app_name=settings.app_name,
        version=settings.app_version,
        failure_policy=settings.failure_policy,
    )

    store = RedisStateStore.from_url(settings.redis_url)
    if not await store.ping():
        logger.warning("redis_unreachable_at_startup", redis_url=settings.redis_url)

    geolocator = IpApiGeoLocator(
        store=store,
        api_url=settings.geoip_api_url,
        timeout_seconds=settings.geoip_timeout_seconds,
        cache_ttl_seconds=settings.geoip_cache_ttl_seconds,
    )
    fingerprints = DeviceFingerprintService(store, geolocator, config=TrustConfig.from_env())

    config = RiskConfig.from_env()
    config.decision.failure_policy = settings.failure_policy

    producer: AIOKafkaProducer | None = None
    publisher = None
    if settings.kafka_bootstrap_servers:
        try:
            producer = await create_producer(settings.kafka_bootstrap_servers)
            publisher = KafkaRiskEventPublisher(producer, settings.risk_events_topic)
        except Exception:
            logger.warning("kafka_producer_failed_to_start", exc_info=True)

    orchestrator = RiskOrchestrator(
        store,
        geolocator,
        fingerprints=fingerprints,
        config=config,
        publisher=publisher,
    )

    try:
        yield RiskEngine(orchestrator=orchestrator, fingerprints=fingerprints, store=store)
    finally:
        if producer is not None:
            with contextlib.suppress(Exception):
                await producer.stop()
        await store.close()
        logger.info("risk_engine_shutting_down")
