"""
Tests for the service health monitor.

Probes here are fakes with scripted timers, so no test depends on real
network latency or on the database being reachable from pool threads.
"""
import itertools
import random
import threading
import time
from datetime import datetime, timezone as dt_timezone

import pytest
import requests

from dashboard.services import health
from dashboard.services.health import (
    API_CONNECTIVITY,
    DATABASE,
    EMAIL_SERVICE,
    SMS_SERVICE,
    WHATSAPP_API,
    AuthProbe,
    DatabaseProbe,
    HealthAggregator,
    HealthSnapshot,
    HttpProbe,
    Probe,
    ProbeResult,
    ServiceRecord,
    ServiceStatus,
    SimulatedProbe,
    UnconfiguredProbe,
    error_rate_for,
    overall_status,
)

FIXED_NOW = datetime(2026, 3, 2, 9, 30, tzinfo=dt_timezone.utc)
KNOWN = (ServiceStatus.OPERATIONAL, ServiceStatus.DEGRADED, ServiceStatus.DOWN)


def scripted_timer(*elapsed_ms):
    """Timer returning start/end pairs so each run() sees the given latency."""
    ticks = []
    t = 100.0
    for ms in elapsed_ms:
        ticks += [t, t + ms / 1000]
        t += 10
    it = iter(ticks)
    return lambda: next(it)


class FakeProbe(Probe):
    def __init__(self, name, *, fail=None, degraded_after_ms=1000, degraded_error_rate=20, **kwargs):
        super().__init__(name, **kwargs)
        self.fail = fail
        self.degraded_after_ms = degraded_after_ms
        self.degraded_error_rate = degraded_error_rate
        self.calls = 0
        self._calls_lock = threading.Lock()

    def check(self):
        with self._calls_lock:
            self.calls += 1
        if self.fail:
            raise self.fail


class FixedProbe(Probe):
    def __init__(self, name, status, latency=10.0, degraded_error_rate=20):
        super().__init__(name)
        self.result = ProbeResult(status, latency)
        self.degraded_error_rate = degraded_error_rate

    def run(self):
        return self.result


def roster(**overrides):
    """Five-service roster of fast, healthy fake probes."""
    probes = {
        DATABASE: FakeProbe(DATABASE, degraded_after_ms=2000, degraded_error_rate=25, timer=scripted_timer(50)),
        API_CONNECTIVITY: FakeProbe(API_CONNECTIVITY, degraded_error_rate=15, timer=scripted_timer(80)),
        SMS_SERVICE: FakeProbe(SMS_SERVICE, timer=scripted_timer(300)),
        WHATSAPP_API: FakeProbe(WHATSAPP_API, timer=scripted_timer(400)),
        EMAIL_SERVICE: FakeProbe(EMAIL_SERVICE, timer=scripted_timer(500)),
    }
    probes.update(overrides)
    return list(probes.values())


def aggregator(probes, **kwargs):
    kwargs.setdefault('clock', lambda: FIXED_NOW)
    return HealthAggregator(probes, **kwargs)


# ---------------------------------------------------------------------
# Pure rules
# ---------------------------------------------------------------------
@pytest.mark.parametrize('rate', [15, 20, 25])
def test_error_rate_follows_status(rate):
    assert error_rate_for(ServiceStatus.OPERATIONAL, rate) == 0
    assert error_rate_for(ServiceStatus.DEGRADED, rate) == rate
    assert error_rate_for(ServiceStatus.DOWN, rate) == 100
    assert error_rate_for(ServiceStatus.UNKNOWN, rate) is None


def test_overall_status_holds_for_every_roster_combination():
    for combo in itertools.product(KNOWN, repeat=5):
        if ServiceStatus.DOWN in combo:
            expected = ServiceStatus.DOWN
        elif ServiceStatus.DEGRADED in combo:
            expected = ServiceStatus.DEGRADED
        else:
            expected = ServiceStatus.OPERATIONAL
        assert overall_status(combo) is expected, combo



def test_aggregator_publishes_consistent_records_for_every_combination():
    rates = {DATABASE: 25, API_CONNECTIVITY: 15, SMS_SERVICE: 20, WHATSAPP_API: 20, EMAIL_SERVICE: 20}
    names = list(rates)
    for combo in itertools.product(KNOWN, repeat=len(names)):
        probes = [FixedProbe(n, s, degraded_error_rate=rates[n]) for n, s in zip(names, combo)]
        snap = aggregator(probes).run_cycle()
        assert snap.overall is overall_status(combo)
        assert snap.health_percentage == round(combo.count(ServiceStatus.OPERATIONAL) / 5 * 100)
        for record in snap.services:
            assert record.error_rate_percent == error_rate_for(record.status, rates[record.name])

def test_unknown_never_raises_overall_severity():
    for combo in itertools.product(KNOWN + (ServiceStatus.UNKNOWN,), repeat=5):
        known = [s for s in combo if s is not ServiceStatus.UNKNOWN]
        expected = overall_status(known) if known else ServiceStatus.UNKNOWN
        assert overall_status(combo) is expected, combo


def test_snapshot_to_dict_shape():
    snap = HealthSnapshot(services=(
        ServiceRecord(DATABASE, ServiceStatus.OPERATIONAL, FIXED_NOW, 12.5, 0),
        ServiceRecord(SMS_SERVICE),
    ), checked_at=FIXED_NOW)
    data = snap.to_dict()
    assert data['overall'] == 'operational'
    assert data['healthPercentage'] == 100
    assert data['unknownCount'] == 1
    assert data['checkedAt'] == FIXED_NOW.isoformat()
    assert data['services'][1] == {
        'name': SMS_SERVICE, 'status': 'unknown', 'lastChecked': None,
        'responseTimeMs': None, 'errorRatePercent': None, 'error': None,
    }


# ---------------------------------------------------------------------
# Aggregator
# ---------------------------------------------------------------------
def test_initial_snapshot_is_unknown():
    agg = aggregator(roster())
    snap = agg.snapshot()
    assert snap.overall is ServiceStatus.UNKNOWN
    assert snap.health_percentage == 0
    assert snap.checked_at is None
    assert all(s.status is ServiceStatus.UNKNOWN and s.response_time_ms is None for s in snap.services)
    assert [s.name for s in snap.services] == [DATABASE, API_CONNECTIVITY, SMS_SERVICE, WHATSAPP_API, EMAIL_SERVICE]


def test_duplicate_service_names_rejected():
    with pytest.raises(ValueError):
        HealthAggregator([FakeProbe(DATABASE), FakeProbe(DATABASE)])


def test_all_operational_gives_full_health():
    agg = aggregator(roster())
    snap = agg.run_cycle()
    assert snap.overall is ServiceStatus.OPERATIONAL
    assert snap.health_percentage == 100
    assert all(s.error_rate_percent == 0 and s.last_checked == FIXED_NOW for s in snap.services)
    assert agg.snapshot() is snap


def test_slow_auth_probe_degrades_overall():
    agg = aggregator(roster(**{
        DATABASE: FakeProbe(DATABASE, degraded_after_ms=2000, degraded_error_rate=25, timer=scripted_timer(50)),
        API_CONNECTIVITY: FakeProbe(API_CONNECTIVITY, degraded_error_rate=15, timer=scripted_timer(1500)),
    }))
    snap = agg.run_cycle()
    assert snap.get(DATABASE).status is ServiceStatus.OPERATIONAL
    assert snap.get(DATABASE).response_time_ms == 50.0
    auth = snap.get(API_CONNECTIVITY)
    assert auth.status is ServiceStatus.DEGRADED
    assert auth.error_rate_percent == 15
    assert auth.response_time_ms == 1500.0
    assert snap.overall is ServiceStatus.DEGRADED
    assert snap.health_percentage == 80


def test_store_failure_is_contained():
    store = FakeProbe(DATABASE, fail=RuntimeError('connection refused'), degraded_after_ms=2000,
                      degraded_error_rate=25, timer=scripted_timer(120))
    probes = roster(**{DATABASE: store})
    agg = aggregator(probes)
    snap = agg.run_cycle()
    db = snap.get(DATABASE)
    assert db.status is ServiceStatus.DOWN
    assert db.error_rate_percent == 100
    assert db.response_time_ms == 120.0
    assert 'connection refused' in db.error
    assert snap.overall is ServiceStatus.DOWN
    assert snap.health_percentage == 80
    # the other probes still ran and reported
    assert all(p.calls == 1 for p in probes)
    assert all(s.status is ServiceStatus.OPERATIONAL for s in snap.services if s.name != DATABASE)


def test_probe_whose_run_raises_is_down():
    class Broken(Probe):
        def run(self):
            raise ValueError('bug in probe')

    snap = aggregator(roster(**{SMS_SERVICE: Broken(SMS_SERVICE)})).run_cycle()
    assert snap.get(SMS_SERVICE).status is ServiceStatus.DOWN
    assert snap.overall is ServiceStatus.DOWN


def test_unconfigured_channel_stays_unknown():
    snap = aggregator(roster(**{EMAIL_SERVICE: UnconfiguredProbe(EMAIL_SERVICE)})).run_cycle()
    email = snap.get(EMAIL_SERVICE)
    assert email.status is ServiceStatus.UNKNOWN
    assert email.last_checked is None
    assert snap.overall is ServiceStatus.OPERATIONAL
    assert snap.health_percentage == 100
    assert snap.unknown_count == 1


def test_health_percentage_ignores_unconfigured_channels():
    channels = (SMS_SERVICE, WHATSAPP_API, EMAIL_SERVICE)
    snap = aggregator(roster(**{name: UnconfiguredProbe(name) for name in channels})).run_cycle()
    assert snap.overall is ServiceStatus.OPERATIONAL
    assert snap.health_percentage == 100
    assert snap.to_dict()['unknownCount'] == 3

    snap = aggregator(roster(**{
        SMS_SERVICE: UnconfiguredProbe(SMS_SERVICE),
        WHATSAPP_API: UnconfiguredProbe(WHATSAPP_API),
        EMAIL_SERVICE: UnconfiguredProbe(EMAIL_SERVICE),
        DATABASE: FakeProbe(DATABASE, fail=RuntimeError('connection refused')),
    })).run_cycle()
    assert snap.overall is ServiceStatus.DOWN
    assert snap.health_percentage == 50


def test_publish_hook_receives_snapshot_and_errors_are_swallowed():
    seen = []
    agg = aggregator(roster(), on_publish=seen.append)
    snap = agg.run_cycle()
    assert seen == [snap]

    def explode(_):
        raise RuntimeError('cache down')

    agg = aggregator(roster(), on_publish=explode)
    assert agg.run_cycle().overall is ServiceStatus.OPERATIONAL


def test_overlapping_cycle_is_skipped():
    entered = threading.Event()
    release = threading.Event()

    class Slow(Probe):
        degraded_after_ms = None

        def check(self):
            entered.set()
            release.wait(5)

    agg = aggregator([Slow(DATABASE)])
    worker = threading.Thread(target=agg.run_cycle)
    worker.start()
    assert entered.wait(5)
    assert agg.run_cycle() is None
    # readers never see a partial cycle
    assert agg.snapshot().get(DATABASE).status is ServiceStatus.UNKNOWN
    release.set()
    worker.join(5)
    assert agg.snapshot().get(DATABASE).status is ServiceStatus.OPERATIONAL


def test_start_runs_immediately_and_twice_is_one_loop():
    ran = threading.Event()
    probe = FakeProbe(DATABASE)
    agg = aggregator([probe], interval=60, on_publish=lambda s: ran.set())
    try:
        agg.start()
        agg.start()
        assert ran.wait(5)
        loops = [t for t in threading.enumerate() if t.name == 'health-monitor']
        assert len(loops) == 1
        time.sleep(0.1)
        assert probe.calls == 1
    finally:
        agg.stop()
    assert not agg.running


def test_stop_prevents_further_cycles():
    probe = FakeProbe(DATABASE)
    cycles = []
    agg = aggregator([probe], interval=0.05, on_publish=cycles.append)
    agg.start()
    deadline = time.monotonic() + 5
    while len(cycles) < 2 and time.monotonic() < deadline:
        time.sleep(0.01)
    agg.stop()
    frozen = agg.snapshot()
    calls = probe.calls
    time.sleep(0.3)
    assert probe.calls == calls
    assert agg.snapshot() is frozen
    assert len(cycles) >= 2


def test_stop_is_safe_when_never_started_or_repeated():
    agg = aggregator(roster())
    agg.stop()
    agg.start()
    agg.stop()
    agg.stop()
    assert not agg.running


# ---------------------------------------------------------------------
# Probes
# ---------------------------------------------------------------------
class FakeResponse:
    def __init__(self, status_code):
        self.status_code = status_code
        self.ok = 200 <= status_code < 400


class FakeSession:
    def __init__(self, status_code=200, exc=None):
        self.status_code = status_code
        self.exc = exc
        self.calls = []

    def get(self, url, timeout):
        self.calls.append((url, timeout))
        if self.exc:
            raise self.exc
        return FakeResponse(self.status_code)


@pytest.mark.parametrize('code', [200, 401, 403])
def test_auth_probe_treats_missing_session_as_healthy(code):
    session = FakeSession(code)
    result = AuthProbe('http://api/auth/user', timeout=3, session=session, timer=scripted_timer(40)).run()
    assert result.status is ServiceStatus.OPERATIONAL
    assert session.calls == [('http://api/auth/user', 3)]


@pytest.mark.parametrize('session', [FakeSession(500), FakeSession(exc=requests.ConnectTimeout('timed out'))])
def test_auth_probe_other_errors_are_down(session):
    result = AuthProbe('http://api/auth/user', session=session, timer=scripted_timer(40)).run()
    assert result.status is ServiceStatus.DOWN


def test_http_probe_rejects_auth_errors():
    assert HttpProbe(SMS_SERVICE, 'http://sms/health', session=FakeSession(401)).run().status is ServiceStatus.DOWN
    slow = HttpProbe(SMS_SERVICE, 'http://sms/health', session=FakeSession(204), timer=scripted_timer(1001))
    assert slow.run().status is ServiceStatus.DEGRADED


@pytest.mark.django_db
def test_database_probe_reads_profiles():
    result = DatabaseProbe(timer=scripted_timer(5)).run()
    assert result.status is ServiceStatus.OPERATIONAL
    assert DatabaseProbe.degraded_after_ms == 2000
    assert DatabaseProbe.degraded_error_rate == 25


def test_simulated_probe_stays_in_range():
    probe = SimulatedProbe(SMS_SERVICE, rng=random.Random(7))
    results = [probe.run() for _ in range(500)]
    assert all(200 <= r.response_time_ms < 1200 for r in results)
    assert {r.status for r in results} <= set(KNOWN)
    assert sum(r.status is ServiceStatus.OPERATIONAL for r in results) > 350


def test_build_probes_from_settings(settings):
    settings.SMS_GATEWAY_HEALTH_URL = 'http://sms.example/health'
    settings.WHATSAPP_API_HEALTH_URL = ''
    settings.EMAIL_SERVICE_HEALTH_URL = ''
    settings.HEALTH_SIMULATE_EXTERNAL = False
    probes = {p.name: p for p in health.build_probes()}
    assert set(probes) == {DATABASE, API_CONNECTIVITY, SMS_SERVICE, WHATSAPP_API, EMAIL_SERVICE}
    assert isinstance(probes[SMS_SERVICE], HttpProbe)
    assert isinstance(probes[WHATSAPP_API], UnconfiguredProbe)
    assert isinstance(probes[API_CONNECTIVITY], AuthProbe)

    settings.HEALTH_SIMULATE_EXTERNAL = True
    probes = {p.name: p for p in health.build_probes()}
    assert isinstance(probes[EMAIL_SERVICE], SimulatedProbe)


def test_publish_snapshot_caches_for_other_workers():
    from django.core.cache import cache

    snap = aggregator(roster()).run_cycle()
    health.publish_snapshot(snap)
    assert cache.get(health.SNAPSHOT_CACHE_KEY) == snap.to_dict()
    assert health.current_status() == snap.to_dict()
