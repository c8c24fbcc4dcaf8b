"""
Service health monitor.

Periodically probes a fixed roster of services (the database, the auth
API and the SMS / WhatsApp / email channels), classifies each one as
operational, degraded or down and folds the roster into one overall
status.  Readers only ever see immutable :class:`HealthSnapshot`
objects; a probe cycle publishes its results in one swap once every
probe has resolved.
"""
from __future__ import annotations

import enum
import logging
import random
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Callable, Iterable, Optional, Sequence

import requests
from django.db import connections
from django.utils import timezone

logger = logging.getLogger(__name__)

PROBE_INTERVAL_SECONDS = 30

DATABASE = 'Database'
API_CONNECTIVITY = 'API Connectivity'
SMS_SERVICE = 'SMS Service'
WHATSAPP_API = 'WhatsApp API'
EMAIL_SERVICE = 'Email Service'


class ServiceStatus(str, enum.Enum):
    OPERATIONAL = 'operational'
    DEGRADED = 'degraded'
    DOWN = 'down'
    UNKNOWN = 'unknown'


def error_rate_for(status: ServiceStatus, degraded_rate: int) -> Optional[int]:
    """Synthetic error rate implied by ``status``; ``None`` until probed."""
    if status is ServiceStatus.DOWN:
        return 100
    if status is ServiceStatus.DEGRADED:
        return degraded_rate
    if status is ServiceStatus.OPERATIONAL:
        return 0
    return None


def classify_latency(elapsed_ms: float, degraded_after_ms: Optional[float]) -> ServiceStatus:
    if degraded_after_ms is not None and elapsed_ms > degraded_after_ms:
        return ServiceStatus.DEGRADED
    return ServiceStatus.OPERATIONAL


def overall_status(statuses: Iterable[ServiceStatus]) -> ServiceStatus:
    """Down dominates degraded dominates operational; unknown never wins."""
    seen = set(statuses)
    for status in (ServiceStatus.DOWN, ServiceStatus.DEGRADED, ServiceStatus.OPERATIONAL):
        if status in seen:
            return status
    return ServiceStatus.UNKNOWN


def health_percentage(statuses: Sequence[ServiceStatus]) -> int:
    """Share of probed services that are operational; unknown ones are left out."""
    known = [s for s in statuses if s is not ServiceStatus.UNKNOWN]
    if not known:
        return 0
    operational = sum(1 for s in known if s is ServiceStatus.OPERATIONAL)
    return round(operational / len(known) * 100)


@dataclass(frozen=True)
class ProbeResult:
    status: ServiceStatus
    response_time_ms: float
    error: Optional[str] = None


@dataclass(frozen=True)
class ServiceRecord:
    name: str
    status: ServiceStatus = ServiceStatus.UNKNOWN
    last_checked: Optional[datetime] = None
    response_time_ms: Optional[float] = None
    error_rate_percent: Optional[int] = None
    error: Optional[str] = None

    @classmethod
    def from_result(cls, name: str, result: ProbeResult, checked_at: datetime, degraded_rate: int) -> 'ServiceRecord':
        return cls(
            name=name,
            status=result.status,
            last_checked=checked_at,
            response_time_ms=round(result.response_time_ms, 1),
            error_rate_percent=error_rate_for(result.status, degraded_rate),
            error=result.error,
        )

    def to_dict(self) -> dict:
        return {
            'name': self.name,
            'status': self.status.value,
            'lastChecked': self.last_checked.isoformat() if self.last_checked else None,
            'responseTimeMs': self.response_time_ms,
            'errorRatePercent': self.error_rate_percent,
            'error': self.error,
        }


@dataclass(frozen=True)
class HealthSnapshot:
    services: tuple[ServiceRecord, ...]
    checked_at: Optional[datetime] = None
    overall: ServiceStatus = field(init=False)
    health_percentage: int = field(init=False)
    unknown_count: int = field(init=False)

    def __post_init__(self):
        statuses = [s.status for s in self.services]
        object.__setattr__(self, 'overall', overall_status(statuses))
        object.__setattr__(self, 'health_percentage', health_percentage(statuses))
        object.__setattr__(self, 'unknown_count', statuses.count(ServiceStatus.UNKNOWN))

    def get(self, name: str) -> ServiceRecord:
        for record in self.services:
            if record.name == name:
                return record
        raise KeyError(name)

    def to_dict(self) -> dict:
        return {
            'overall': self.overall.value,
            'healthPercentage': self.health_percentage,
            'unknownCount': self.unknown_count,
            'checkedAt': self.checked_at.isoformat() if self.checked_at else None,
            'services': [s.to_dict() for s in self.services],
        }


# ---------------------------------------------------------------------------
# Probes
# ---------------------------------------------------------------------------

class Probe:
    """Execute one bounded health check and report latency + outcome.

    Subclasses implement :meth:`check`, which raises on failure.  The
    elapsed time is measured around ``check`` with ``timer`` (seconds,
    monotonic) and classified against ``degraded_after_ms``.
    """
    degraded_after_ms: Optional[float] = 1000
    degraded_error_rate: int = 20

    def __init__(self, name: str, *, timer: Callable[[], float] = time.perf_counter):
        self.name = name
        self.timer = timer

    def check(self) -> None:
        raise NotImplementedError

    def run(self) -> ProbeResult:
        start = self.timer()
        try:
            self.check()
        except Exception as exc:
            elapsed = (self.timer() - start) * 1000
            logger.warning('health probe %s failed after %.0fms: %s', self.name, elapsed, exc)
            return ProbeResult(ServiceStatus.DOWN, elapsed, error=str(exc)[:200])
        elapsed = (self.timer() - start) * 1000
        return ProbeResult(classify_latency(elapsed, self.degraded_after_ms), elapsed)


class DatabaseProbe(Probe):
    """Bounded row count against the profiles table."""
    degraded_after_ms = 2000
    degraded_error_rate = 25

    def __init__(self, name: str = DATABASE, *, using: str = 'default', **kwargs):
        super().__init__(name, **kwargs)
        self.using = using

    def check(self) -> None:
        from dashboard.models import Profile

        Profile.objects.using(self.using).all()[:1].count()


class HttpProbe(Probe):
    """GET ``url``; any transport error or non-2xx answer means down."""

    def __init__(self, name: str, url: str, *, timeout: float = 5.0, session=None, **kwargs):
        super().__init__(name, **kwargs)
        self.url = url
        self.timeout = timeout
        self.session = session or requests

    def accept(self, response) -> bool:
        return response.ok

    def check(self) -> None:
        response = self.session.get(self.url, timeout=self.timeout)
        if not self.accept(response):
            raise RuntimeError(f'HTTP {response.status_code} from {self.url}')


class AuthProbe(HttpProbe):
    """"Who am I" call against the auth API.

    401/403 only mean there is no active session, which still proves the
    endpoint is answering.
    """
    degraded_after_ms = 1000
    degraded_error_rate = 15

    def __init__(self, url: str, name: str = API_CONNECTIVITY, **kwargs):
        super().__init__(name, url, **kwargs)

    def accept(self, response) -> bool:
        return response.ok or response.status_code in (401, 403)


class UnconfiguredProbe(Probe):
    """Channel without a health endpoint; it stays unknown."""

    def run(self) -> ProbeResult:
        return ProbeResult(ServiceStatus.UNKNOWN, 0.0)


class SimulatedProbe(Probe):
    """Synthetic channel check for demo environments.

    Latency is drawn from [200, 1200) ms; 5% of checks are down and 10%
    of the rest degraded.
    """

    def __init__(self, name: str, *, rng: Optional[random.Random] = None, **kwargs):
        super().__init__(name, **kwargs)
        self.rng = rng or random.Random()

    def run(self) -> ProbeResult:
        latency = self.rng.random() * 1000 + 200
        if self.rng.random() < 0.05:
            status = ServiceStatus.DOWN
        elif self.rng.random() < 0.1:
            status = ServiceStatus.DEGRADED
        else:
            status = ServiceStatus.OPERATIONAL
        return ProbeResult(status, latency)


# ---------------------------------------------------------------------------
# Aggregator
# ---------------------------------------------------------------------------

class HealthAggregator:
    """Own the service roster and refresh it on a fixed interval.

    ``start`` runs an immediate cycle in a daemon thread and then one
    every ``interval`` seconds; ``stop`` cancels the loop and joins the
    thread.  Cycles never overlap and publish atomically.
    """

    def __init__(self, probes: Sequence[Probe], *, interval: float = PROBE_INTERVAL_SECONDS,
                 clock: Callable[[], datetime] = timezone.now,
                 on_publish: Optional[Callable[[HealthSnapshot], None]] = None):
        names = [p.name for p in probes]
        if len(set(names)) != len(names):
            raise ValueError(f'duplicate service names in roster: {names}')
        self._probes = tuple(probes)
        self.interval = interval
        self._clock = clock
        self._on_publish = on_publish
        self._snapshot = HealthSnapshot(services=tuple(ServiceRecord(name=n) for n in names))
        self._lock = threading.Lock()
        self._cycle_lock = threading.Lock()
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def service_names(self) -> tuple[str, ...]:
        return tuple(p.name for p in self._probes)

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def snapshot(self) -> HealthSnapshot:
        with self._lock:
            return self._snapshot

    def start(self) -> None:
        with self._lock:
            if self._thread is not None and self._thread.is_alive():
                return
            self._stop_event = threading.Event()
            self._thread = threading.Thread(
                target=self._loop, args=(self._stop_event,), name='health-monitor', daemon=True
            )
            self._thread.start()
        logger.info('health monitor started (%d services, every %ss)', len(self._probes), self.interval)

    def stop(self, timeout: Optional[float] = None) -> None:
        with self._lock:
            thread, self._thread = self._thread, None
            self._stop_event.set()
        if thread is None:
            return
        if thread is not threading.current_thread():
            thread.join(timeout)
        logger.info('health monitor stopped')

    def _loop(self, stop_event: threading.Event) -> None:
        while not stop_event.is_set():
            try:
                self.run_cycle()
            except Exception:
                logger.exception('health cycle failed')
            if stop_event.wait(self.interval):
                break

    def run_cycle(self) -> Optional[HealthSnapshot]:
        """Probe every service once and publish the result.

        Returns the new snapshot, or ``None`` when another cycle is
        still in flight.
        """
        if not self._cycle_lock.acquire(blocking=False):
            logger.debug('health cycle skipped: previous cycle still running')
            return None
        try:
            with ThreadPoolExecutor(max_workers=len(self._probes) or 1,
                                    thread_name_prefix='health-probe') as pool:
                results = list(pool.map(self._run_probe, self._probes))
            checked_at = self._clock()
            records = tuple(
                ServiceRecord.from_result(probe.name, result, checked_at, probe.degraded_error_rate)
                if result.status is not ServiceStatus.UNKNOWN
                else replace(self._record(probe.name), error=result.error)
                for probe, result in zip(self._probes, results)
            )
            snapshot = HealthSnapshot(services=records, checked_at=checked_at)
            with self._lock:
                previous, self._snapshot = self._snapshot, snapshot
        finally:
            self._cycle_lock.release()

        self._log_transitions(previous, snapshot)
        if self._on_publish is not None:
            try:
                self._on_publish(snapshot)
            except Exception:
                logger.exception('health snapshot publish hook failed')
        return snapshot

    def _record(self, name: str) -> ServiceRecord:
        with self._lock:
            return self._snapshot.get(name)

    @staticmethod
    def _run_probe(probe: Probe) -> ProbeResult:
        start = time.perf_counter()
        try:
            return probe.run()
        except Exception as exc:
            logger.exception('health probe %s raised', probe.name)
            return ProbeResult(ServiceStatus.DOWN, (time.perf_counter() - start) * 1000, error=str(exc)[:200])
        finally:
            # probes run on pool threads; drop any connection they opened
            connections.close_all()

    @staticmethod
    def _log_transitions(previous: HealthSnapshot, current: HealthSnapshot) -> None:
        for before, after in zip(previous.services, current.services):
            if before.status is not after.status:
                logger.info('service %s status changed: %s -> %s', after.name, before.status.value, after.status.value)
        if previous.overall is not current.overall:
            logger.info('overall system status: %s -> %s', previous.overall.value, current.overall.value)


# ---------------------------------------------------------------------------
# Process-wide monitor
# ---------------------------------------------------------------------------

SNAPSHOT_CACHE_KEY = 'health:snapshot'
STATUS_GROUP = 'system-status'

_monitor: Optional[HealthAggregator] = None
_monitor_lock = threading.Lock()


def _channel_probe(name: str, url: str, *, timeout: float, simulate: bool) -> Probe:
    if url:
        return HttpProbe(name, url, timeout=timeout)
    if simulate:
        return SimulatedProbe(name)
    return UnconfiguredProbe(name)


def build_probes() -> list[Probe]:
    from django.conf import settings

    timeout = settings.HEALTH_PROBE_TIMEOUT
    simulate = settings.HEALTH_SIMULATE_EXTERNAL
    return [
        DatabaseProbe(),
        _channel_probe(SMS_SERVICE, settings.SMS_GATEWAY_HEALTH_URL, timeout=timeout, simulate=simulate),
        _channel_probe(WHATSAPP_API, settings.WHATSAPP_API_HEALTH_URL, timeout=timeout, simulate=simulate),
        _channel_probe(EMAIL_SERVICE, settings.EMAIL_SERVICE_HEALTH_URL, timeout=timeout, simulate=simulate),
        AuthProbe(settings.HEALTH_API_URL, timeout=timeout),
    ]


def publish_snapshot(snapshot: HealthSnapshot) -> None:
    """Cache the snapshot for other workers and push it to WebSocket clients."""
    from asgiref.sync import async_to_sync
    from channels.layers import get_channel_layer
    from django.conf import settings
    from django.core.cache import cache

    payload = snapshot.to_dict()
    cache.set(SNAPSHOT_CACHE_KEY, payload, settings.HEALTH_SNAPSHOT_CACHE_TTL)
    channel_layer = get_channel_layer()
    if channel_layer is not None:
        async_to_sync(channel_layer.group_send)(STATUS_GROUP, {'type': 'system.status', 'snapshot': payload})


def get_monitor() -> HealthAggregator:
    global _monitor
    with _monitor_lock:
        if _monitor is None:
            _monitor = HealthAggregator(build_probes(), on_publish=publish_snapshot)
        return _monitor


def reset_monitor() -> None:
    """Stop and forget the process-wide monitor (settings changes, tests)."""
    global _monitor
    with _monitor_lock:
        monitor, _monitor = _monitor, None
    if monitor is not None:
        monitor.stop()


def current_status() -> dict:
    """Latest published snapshot, from cache first, then this process."""
    from django.core.cache import cache

    cached = cache.get(SNAPSHOT_CACHE_KEY)
    if cached:
        return cached
    return get_monitor().snapshot().to_dict()
