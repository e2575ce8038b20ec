"""Tests for the ticker, worker pool and counter demos."""

import threading
import time
from datetime import datetime, timedelta, timezone

import pytest
from golang import chan

from sessionctl import (
    SharedCounter,
    counter_program,
    multiple_worker_program,
    send_data,
    spawn,
    timer_program,
)

STOPPED = "The counter has been stopped."


def message_time(line):
    return datetime.fromisoformat(line.split("Time: ", 1)[1])


def test_workers_completion_printed_after_every_done():
    lines = []
    assert multiple_worker_program(5, work_seconds=0.05, out=lines.append) == 5

    assert lines[-1] == "All workers completed"
    assert lines.count("All workers completed") == 1
    done = [line for line in lines[:-1] if line.endswith(" done")]
    assert sorted(done) == sorted(f"Worker {i} done" for i in range(1, 6))
    for i in range(1, 6):
        assert lines.index(f"Worker {i} starting") < lines.index(f"Worker {i} done")


def test_workers_zero_count_prints_only_completion():
    lines = []
    assert multiple_worker_program(0, work_seconds=0, out=lines.append) == 0
    assert lines == ["All workers completed"]


def test_workers_reject_negative_arguments():
    with pytest.raises(ValueError):
        multiple_worker_program(-1)
    with pytest.raises(ValueError):
        multiple_worker_program(1, work_seconds=-1)


def test_shared_counter_increment_returns_new_value():
    counter = SharedCounter()
    lines = []
    assert counter.increment(lines.append) == 1
    assert counter.increment(lines.append) == 2
    assert counter.value == 2
    assert lines == ["Counter: 1", "Counter: 2"]


def test_counter_program_hundred_increments():
    lines = []
    assert counter_program(100, out=lines.append) == 100

    assert lines[:-1] == [f"Counter: {i}" for i in range(1, 101)]
    assert lines[-1] == "Final Counter: 100"


def test_counter_program_zero():
    lines = []
    assert counter_program(0, out=lines.append) == 0
    assert lines == ["Final Counter: 0"]


def test_counter_program_rejects_negative():
    with pytest.raises(ValueError):
        counter_program(-3)


def test_send_data_hands_message_to_receiver():
    ch, done = chan(), chan()
    received = []
    t = spawn(lambda: received.append(ch.recv()))
    assert send_data(ch, done) is True
    t.join()
    assert received[0].startswith("New Message - Time: ")


def test_send_data_gives_up_once_done_is_closed():
    ch, done = chan(), chan()
    done.close()
    assert send_data(ch, done) is False


def test_blocked_sender_released_by_closing_done():
    ch, done = chan(), chan()
    sender = spawn(send_data, args=(ch, done))
    time.sleep(0.05)
    assert sender.is_alive()
    done.close()
    sender.join(timeout=1)
    assert not sender.is_alive()


def test_timer_program_consumes_before_timeout_and_stops():
    lines = []
    report = timer_program(0.02, 0.3, out=lines.append)

    assert report["ticks"] >= 1
    assert report["consumed"] >= 1
    assert report["produced"] == report["consumed"] + report["discarded"]
    assert report["ticks"] == report["produced"] + report["dropped"]
    assert lines[-1] == STOPPED
    assert lines.count(STOPPED) == 1
    messages = lines[:-1]
    assert len(messages) == report["consumed"]
    assert all(m.startswith("New Message - Time: ") for m in messages)
    assert not any(t.name.startswith("sender-") for t in threading.enumerate())


def test_timer_program_discards_events_pending_at_deadline():
    lines = []

    def slow_out(line):
        lines.append(line)
        if line.startswith("New Message"):
            # outlast the deadline so the next tick is already queued
            time.sleep(0.3)

    deadline = datetime.now(timezone.utc) + timedelta(seconds=0.2)
    report = timer_program(0.05, 0.2, out=slow_out)

    assert report["ticks"] == 1
    assert report["consumed"] == 1
    assert report["produced"] == report["consumed"] + report["discarded"]
    assert lines[-1] == STOPPED
    assert len(lines) == 2
    assert message_time(lines[0]) <= deadline
    assert not any(t.name.startswith("sender-") for t in threading.enumerate())


def test_timer_program_timeout_before_first_tick():
    lines = []
    report = timer_program(1.0, 0.05, out=lines.append)

    assert report["ticks"] == 0
    assert report["produced"] == 0
    assert lines == [STOPPED]


@pytest.mark.parametrize("interval,timeout", [(0, 1), (-1, 1), (0.1, 0), (0.1, -2)])
def test_timer_program_rejects_non_positive_durations(interval, timeout):
    with pytest.raises(ValueError):
        timer_program(interval, timeout)
