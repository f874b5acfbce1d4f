"""
Tests for the stopwatch and env-driven phase profiling.
"""

import time

from splitstep.timing import PhaseTimer, Stopwatch


def test_stopwatch_measures_interval():
    watch = Stopwatch()
    assert watch.stop() == 0.0  # never started

    watch.start()
    time.sleep(0.01)
    elapsed = watch.stop()

    assert elapsed >= 0.005
    assert watch.elapsed == elapsed
    assert watch.format().endswith(" s")


def test_phase_timer_disabled_by_default(monkeypatch):
    monkeypatch.delenv("SPLITSTEP_PROFILE", raising=False)
    timer = PhaseTimer()

    with timer.time('compute'):
        pass

    assert not timer.enabled
    assert timer.timings == {}


def test_phase_timer_env_enabled(monkeypatch):
    monkeypatch.setenv("SPLITSTEP_PROFILE", "1")
    timer = PhaseTimer()

    for _ in range(3):
        with timer.time('compute'):
            pass

    other = PhaseTimer(enabled=True)
    with other.time('sync'):
        pass
    timer.merge(other)

    assert timer.enabled
    assert set(timer.timings) == {'compute', 'sync'}

    timer.reset()
    assert timer.timings == {}
