# prover/monitoring.py
"""
Centralized monitoring: Prometheus metrics, structured JSON logging, optional Sentry.

Env vars:
- PROMETHEUS_ENABLED (default: true)
- SENTRY_DSN (optional)
- LOG_AS_JSON (default: true)
- LOG_LEVEL (default: INFO)
- ENVIRONMENT (default: development)
"""

import os
import logging
import time
from typing import Tuple

import sentry_sdk
from prometheus_client import (
    Counter, Histogram, Gauge,
    generate_latest, CONTENT_TYPE_LATEST, REGISTRY,
)
from pythonjsonlogger import jsonlogger

# --- ENV flags
PROMETHEUS_ENABLED = os.getenv("PROMETHEUS_ENABLED", "true").lower() in ("1", "true", "yes")
SENTRY_DSN = os.getenv("SENTRY_DSN", None)
LOG_AS_JSON = os.getenv("LOG_AS_JSON", "true").lower() in ("1", "true", "yes")
ENVIRONMENT = os.getenv("ENVIRONMENT", "development")


# --- Logger setup
def setup_logger(name: str = "prover", level: int = None) -> logging.Logger:
    level = logging.getLevelName(os.getenv("LOG_LEVEL", "INFO")) if level is None else level
    logger = logging.getLogger(name)
    logger.setLevel(level)
    if not logger.handlers:
        handler = logging.StreamHandler()
        if LOG_AS_JSON:
            fmt = jsonlogger.JsonFormatter(
                "%(asctime)s %(levelname)s %(name)s %(message)s"
            )
        else:
            fmt = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
        handler.setFormatter(fmt)
        logger.addHandler(handler)
    return logger


logger = setup_logger()

# --- Sentry (optional)
if SENTRY_DSN:
    sentry_sdk.init(dsn=SENTRY_DSN, environment=ENVIRONMENT)
    logger.info("Sentry initialized")


# --- Prometheus metrics
REQUEST_COUNT = Counter(
    "prover_requests_total",
    "Total HTTP requests",
    ["method", "endpoint", "status"],
)

REQUEST_LATENCY = Histogram(
    "prover_request_latency_seconds",
    "Request latency in seconds",
    ["endpoint"],
)

COMMAND_COUNT = Counter(
    "prover_commands_total",
    "Commands dispatched, by outcome",
    ["command", "outcome"],
)

QUERY_COUNT = Counter(
    "prover_queries_total",
    "Read-only queries, by outcome",
    ["selector", "outcome"],
)

RECORDS = Gauge(
    "prover_records",
    "Records in the current snapshot",
)


def outcome_for_code(code: int) -> str:
    if code == 404:
        return "not_found"
    if 200 <= code < 300:
        return "ok"
    return "rejected"


# --- Helper wrappers (never crash the app)
def observe_request(start_ts: float, endpoint: str, method: str, status: str):
    try:
        REQUEST_LATENCY.labels(endpoint=endpoint).observe(time.time() - start_ts)
        REQUEST_COUNT.labels(method=method, endpoint=endpoint, status=status).inc()
    except Exception:
        logger.debug("metrics: observe_request failed", exc_info=True)


def inc_command(command: str, code: int):
    try:
        COMMAND_COUNT.labels(command=command, outcome=outcome_for_code(code)).inc()
    except Exception:
        logger.debug("metrics: inc_command failed", exc_info=True)


def inc_query(selector: str, outcome: str):
    try:
        QUERY_COUNT.labels(selector=selector, outcome=outcome).inc()
    except Exception:
        logger.debug("metrics: inc_query failed", exc_info=True)


def set_record_count(n: int):
    try:
        RECORDS.set(n)
    except Exception:
        logger.debug("metrics: set_record_count failed", exc_info=True)


def prometheus_metrics_response() -> Tuple[bytes, str]:
    """Return (body_bytes, content_type) for Prometheus scrape."""
    try:
        return generate_latest(REGISTRY), CONTENT_TYPE_LATEST
    except Exception:
        return b"", CONTENT_TYPE_LATEST
