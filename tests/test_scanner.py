"""
Tests for the Qt scan controller: cadence, worker threads and cancellation.

Slots are driven by hand; the cadence timer itself is never left to fire.
"""

import pytest

from agemirror.scanner import ScanController
from agemirror.session import SessionStatus

from conftest import FakeEstimator, dispose, drain


@pytest.fixture
def make_controller(qapp, frame):
    made = []

    def _make(estimator, frame_source=None):
        ctl = ScanController(estimator, frame_source or (lambda: frame),
                             interval_ms=60_000)
        made.append(ctl)
        return ctl

    yield _make
    for ctl in made:
        ctl.shutdown()
    dispose(*made)


def collect(signal):
    got = []
    signal.connect(lambda v: got.append(v))
    return got


def sample(ctl):
    ctl._on_sample_tick()
    drain(ctl._worker)


class TestStart:
    """Starting a scan."""

    def test_start_arms_cadence_and_announces_countdown(self, make_controller):
        ctl = make_controller(FakeEstimator())
        counts = collect(ctl.countdown)
        statuses = collect(ctl.statusChanged)
        ctl.start()
        assert ctl.active
        assert ctl.status is SessionStatus.SCANNING
        assert counts == [5]
        assert statuses == [SessionStatus.SCANNING]


class TestSampling:
    """The sampling action."""

    def test_detected_face_is_recorded(self, make_controller):
        ctl = make_controller(FakeEstimator(ages=[33.6]))
        recorded = collect(ctl.sampleRecorded)
        ctl.start()
        sample(ctl)
        assert recorded == [34]
        assert ctl.session.samples == [34]

    def test_no_face_records_nothing(self, make_controller):
        ctl = make_controller(FakeEstimator(ages=[None]))
        ctl.start()
        sample(ctl)
        assert ctl.session.samples == []
        assert ctl.status is SessionStatus.SCANNING

    def test_estimator_error_is_swallowed(self, make_controller):
        est = FakeEstimator(error=RuntimeError("onnx blew up"))
        ctl = make_controller(est)
        ctl.start()
        sample(ctl)
        assert est.calls == 1
        assert ctl.session.samples == []
        assert ctl.status is SessionStatus.SCANNING

    def test_missing_frame_skips_tick(self, make_controller):
        est = FakeEstimator(ages=[30])
        ctl = make_controller(est, frame_source=lambda: None)
        ctl.start()
        ctl._on_sample_tick()
        assert ctl._worker is None
        assert est.calls == 0

    def test_overlapping_tick_is_dropped(self, make_controller, gate):
        est = FakeEstimator(ages=[30, 50], gate=gate)
        ctl = make_controller(est)
        ctl.start()
        ctl._on_sample_tick()
        first = ctl._worker
        ctl._on_sample_tick()
        assert ctl._worker is first
        gate.set()
        drain(first)
        assert est.calls == 1
        assert ctl.session.samples == [30]


class TestCountdown:
    """Countdown action and resolution."""

    def test_resolves_with_average_on_fifth_tick(self, make_controller):
        ctl = make_controller(FakeEstimator())
        outcomes = collect(ctl.resolved)
        counts = collect(ctl.countdown)
        ctl.start()
        gen = ctl.session.generation
        for age in (29, 31, 30):
            ctl._on_detected(gen, age)
        for _ in range(4):
            ctl._on_countdown_tick()
        assert outcomes == []
        ctl._on_countdown_tick()

        assert len(outcomes) == 1
        assert outcomes[0].status is SessionStatus.SUCCEEDED
        assert outcomes[0].average == 30
        assert counts == [5, 4, 3, 2, 1, 0]
        assert not ctl.active

    def test_no_samples_resolves_to_failure(self, make_controller):
        ctl = make_controller(FakeEstimator(error=ValueError("no")))
        outcomes = collect(ctl.resolved)
        ctl.start()
        for _ in range(5):
            sample(ctl)
            ctl._on_countdown_tick()
        assert [o.status for o in outcomes] == [SessionStatus.FAILED]
        assert ctl.status is SessionStatus.FAILED

    def test_outcome_emitted_before_status(self, make_controller):
        ctl = make_controller(FakeEstimator())
        order = []
        ctl.resolved.connect(lambda o: order.append("resolved"))
        ctl.statusChanged.connect(lambda s: order.append(s))
        ctl.start()
        order.clear()
        for _ in range(5):
            ctl._on_countdown_tick()
        assert order == ["resolved", SessionStatus.FAILED]


class TestCancellation:
    """Nothing leaks past resolution, restart or teardown."""

    def test_result_after_resolution_is_ignored(self, make_controller, gate):
        est = FakeEstimator(ages=[44], gate=gate)
        ctl = make_controller(est)
        outcomes = collect(ctl.resolved)
        ctl.start()
        ctl._on_sample_tick()
        in_flight = ctl._worker
        for _ in range(5):
            ctl._on_countdown_tick()
        gate.set()
        drain(in_flight)
        assert outcomes[0].status is SessionStatus.FAILED
        assert ctl.session.samples == []
        assert ctl.status is SessionStatus.FAILED

    def test_restart_drops_previous_window(self, make_controller, gate):
        est = FakeEstimator(ages=[70], gate=gate)
        ctl = make_controller(est)
        ctl.start()
        ctl._on_sample_tick()
        in_flight = ctl._worker
        ctl.start()
        gate.set()
        drain(in_flight)
        assert ctl.session.samples == []
        assert ctl.session.remaining == 5

    def test_stop_cancels_both_actions(self, make_controller):
        est = FakeEstimator(ages=[30])
        ctl = make_controller(est)
        statuses = collect(ctl.statusChanged)
        ctl.start()
        gen = ctl.session.generation
        ctl.stop()

        assert not ctl.active
        assert ctl.status is SessionStatus.IDLE
        assert statuses[-1] is SessionStatus.IDLE

        ctl._on_sample_tick()
        ctl._on_countdown_tick()
        ctl._on_detected(gen, 30)
        assert est.calls == 0
        assert ctl.session.samples == []
        assert ctl.session.outcome is None

    def test_stop_when_idle_is_quiet(self, make_controller):
        ctl = make_controller(FakeEstimator())
        statuses = collect(ctl.statusChanged)
        ctl.stop()
        assert statuses == []
