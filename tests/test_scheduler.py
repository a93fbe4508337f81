import threading

import pytest

from dashboard_scheduler import Scheduler


def test_cadences_fire_independently():
    sched = Scheduler(clock=lambda: 0.0)
    fired = {"clock": 0, "refresh": 0, "stream": 0}
    sched.add("clock", 1, lambda: fired.__setitem__("clock", fired["clock"] + 1))
    sched.add("refresh", 60, lambda: fired.__setitem__("refresh", fired["refresh"] + 1))
    sched.add("stream", 5, lambda: fired.__setitem__("stream", fired["stream"] + 1))

    for second in range(0, 121):
        sched.run_pending(float(second))

    # first pass fires everything, then one tick per interval
    assert fired == {"clock": 121, "refresh": 3, "stream": 25}


def test_first_pass_fires_all_tasks():
    sched = Scheduler()
    sched.add("a", 10, lambda: None)
    sched.add("b", 20, lambda: None)
    assert sched.run_pending(100.0) == ["a", "b"]
    assert sched.run_pending(105.0) == []
    assert sched.run_pending(110.0) == ["a"]
    assert sched.run_pending(120.0) == ["a", "b"]


def test_missed_ticks_are_not_replayed():
    sched = Scheduler()
    task = sched.add("stream", 5, lambda: None)
    sched.run_pending(0.0)
    sched.run_pending(23.0)
    assert task.runs == 2
    assert task.next_due == 25.0


def test_failing_task_does_not_stop_others():
    sched = Scheduler()
    seen = []

    def boom():
        raise RuntimeError("boom")

    sched.add("bad", 1, boom)
    sched.add("good", 1, lambda: seen.append(1))
    assert sched.run_pending(0.0) == ["bad", "good"]
    assert seen == [1]


def test_duplicate_or_invalid_tasks():
    sched = Scheduler()
    sched.add("clock", 1, lambda: None)
    with pytest.raises(ValueError):
        sched.add("clock", 1, lambda: None)
    with pytest.raises(ValueError):
        sched.add("never", 0, lambda: None)


def test_start_and_stop_as_a_unit():
    sched = Scheduler(resolution_s=0.01)
    ran = threading.Event()
    sched.add("clock", 1, ran.set)

    sched.start()
    try:
        assert ran.wait(2)
        assert sched.running
    finally:
        sched.stop()
    assert not sched.running
    assert sched.task("clock").next_due is None
