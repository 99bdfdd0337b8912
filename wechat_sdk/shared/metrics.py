"""
Prometheus metrics for credential caching and fetching.
"""

import threading
import time
from contextlib import contextmanager
from typing import Dict, Any, Iterator, Optional

from prometheus_client import REGISTRY, CollectorRegistry, Counter, Histogram

from .errors import ContextError, RemoteAPIError


class MetricsCollector:
    """Credential metrics, registered on one registry."""

    def __init__(self, registry: Optional[CollectorRegistry] = None):
        self.registry = registry
        self._metrics: Dict[str, Any] = {}
        self._setup_metrics()

    def _setup_metrics(self):
        self._metrics["cache_lookups_total"] = Counter(
            "wechat_credential_cache_lookups_total",
            "Credential cache lookups",
            ["credential", "result"],
            registry=self.registry
        )

        self._metrics["fetch_total"] = Counter(
            "wechat_credential_fetch_total",
            "Remote credential fetches",
            ["credential", "status"],
            registry=self.registry
        )

        self._metrics["fetch_duration_seconds"] = Histogram(
            "wechat_credential_fetch_duration_seconds",
            "Remote credential fetch duration in seconds",
            ["credential"],
            registry=self.registry
        )

    def record_cache_lookup(self, credential: str, hit: bool) -> None:
        self._metrics["cache_lookups_total"].labels(
            credential=credential,
            result="hit" if hit else "miss"
        ).inc()

    @contextmanager
    def track_fetch(self, credential: str) -> Iterator[None]:
        """Count and time one remote fetch; the outcome label follows the exception raised."""
        start = time.time()
        status = "success"
        try:
            yield
        except ContextError:
            status = "cancelled"
            raise
        except RemoteAPIError:
            status = "remote_error"
            raise
        except Exception:
            status = "error"
            raise
        finally:
            self._metrics["fetch_total"].labels(credential=credential, status=status).inc()
            self._metrics["fetch_duration_seconds"].labels(credential=credential).observe(time.time() - start)


_collector: Optional[MetricsCollector] = None
_collector_lock = threading.Lock()


def get_metrics() -> MetricsCollector:
    """Process-wide collector registered on the default Prometheus registry."""
    global _collector
    with _collector_lock:
        if _collector is None:
            _collector = MetricsCollector(REGISTRY)
        return _collector
