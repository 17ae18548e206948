"""Operation metrics for poster sources."""

from __future__ import annotations

import asyncio
import json
import logging
import time
from collections import defaultdict
from dataclasses import asdict, dataclass
from typing import Any, Awaitable, Callable, DefaultDict, Iterable, TypeVar

from posterdb.utils.redaction import redact_secrets

logger = logging.getLogger("posterdb.sources")

T = TypeVar("T")


@dataclass
class OperationMetrics:
    """Aggregated counters for a source operation."""
    started: int = 0
    succeeded: int = 0
    failed: int = 0
    last_latency_ms: float | None = None
    last_error: str | None = None


class SourceMonitor:
    """Track lookup latency and failures per source and operation.

    Tracking is a side channel: results and exceptions pass through untouched.
    """
    def __init__(self) -> None:
        self._metrics: DefaultDict[str, DefaultDict[str, OperationMetrics]] = defaultdict(
            lambda: defaultdict(OperationMetrics)
        )
        self._lock = asyncio.Lock()

    async def track(
        self,
        source: str,
        operation: str,
        func: Callable[[], Awaitable[T]],
        *,
        context: dict[str, Any] | None = None,
        secrets: Iterable[str | None] = (),
    ) -> T:
        """Execute a source call while recording its outcome."""
        context = context or {}
        async with self._lock:
            self._metrics[source][operation].started += 1

        start = time.monotonic()
        try:
            result = await func()
        except Exception as exc:  # noqa: BLE001
            error = redact_secrets(str(exc), *secrets)
            latency_ms = (time.monotonic() - start) * 1000
            async with self._lock:
                metrics = self._metrics[source][operation]
                metrics.failed += 1
                metrics.last_latency_ms = latency_ms
                metrics.last_error = error
            payload = {
                "event": "lookup_failure",
                "source": source,
                "operation": operation,
                "error": error,
                "latency_ms": round(latency_ms, 2),
                "context": context,
            }
            logger.warning(json.dumps(payload))
            raise

        latency_ms = (time.monotonic() - start) * 1000
        async with self._lock:
            metrics = self._metrics[source][operation]
            metrics.succeeded += 1
            metrics.last_latency_ms = latency_ms
            metrics.last_error = None
        payload = {
            "event": "lookup_success",
            "source": source,
            "operation": operation,
            "latency_ms": round(latency_ms, 2),
            "context": context,
        }
        logger.info(json.dumps(payload))
        return result

    async def snapshot(self) -> dict[str, dict[str, dict[str, Any]]]:
        """Return a snapshot of all tracked source metrics."""
        async with self._lock:
            return {
                source: {name: asdict(metrics) for name, metrics in operations.items()}
                for source, operations in self._metrics.items()
            }
