"""Health checks for the database, Redis broker and document store."""

import time
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional

import redis
from sqlalchemy import text
from sqlalchemy.orm import Session

from config import settings
from domain.documents.ports.document_store_port import DocumentStore

from .logging_config import get_logger

logger = get_logger(__name__)


class HealthStatus(str, Enum):
    HEALTHY = "healthy"
    UNHEALTHY = "unhealthy"
    DEGRADED = "degraded"


@dataclass
class ComponentHealth:
    status: HealthStatus
    message: Optional[str] = None
    latency_ms: Optional[float] = None


def check_database_health(db: Session) -> ComponentHealth:
    try:
        start = time.time()
        db.execute(text("SELECT 1"))
        latency_ms = (time.time() - start) * 1000
        return ComponentHealth(HealthStatus.HEALTHY, "Database connection OK", round(latency_ms, 2))
    except Exception as e:
        logger.error(f"Database health check failed: {e}", exc_info=True)
        return ComponentHealth(HealthStatus.UNHEALTHY, f"Database error: {str(e)}")


def check_redis_health() -> ComponentHealth:
    try:
        client = redis.from_url(settings.REDIS_URL, decode_responses=True, socket_timeout=2)
        start = time.time()
        client.ping()
        latency_ms = (time.time() - start) * 1000
        return ComponentHealth(HealthStatus.HEALTHY, "Redis connection OK", round(latency_ms, 2))
    except Exception as e:
        logger.error(f"Redis health check failed: {e}")
        return ComponentHealth(HealthStatus.UNHEALTHY, f"Redis error: {str(e)}")


def check_document_store_health(store: DocumentStore) -> ComponentHealth:
    """A missing probe key is healthy; an exception from the backend is not."""
    try:
        start = time.time()
        store.exists("health-check/probe")
        latency_ms = (time.time() - start) * 1000
        return ComponentHealth(HealthStatus.HEALTHY, "Document store OK", round(latency_ms, 2))
    except Exception as e:
        logger.error(f"Document store health check failed: {e}")
        return ComponentHealth(HealthStatus.UNHEALTHY, f"Document store error: {str(e)}")


def get_overall_health(components: Dict[str, ComponentHealth]) -> HealthStatus:
    if all(c.status == HealthStatus.HEALTHY for c in components.values()):
        return HealthStatus.HEALTHY

    if components.get("database") and components["database"].status == HealthStatus.UNHEALTHY:
        return HealthStatus.UNHEALTHY

    # Broker or storage down: submissions still commit, side effects queue up
    return HealthStatus.DEGRADED
