import threading
import time

import pytest

from broval.sync import Semaphore


def _wait_until(predicate, deadline=5.0):
    end = time.monotonic() + deadline
    while time.monotonic() < end:
        if predicate():
            return True
        time.sleep(0.005)
    return predicate()


def test_starts_at_zero():
    sem = Semaphore()
    assert sem.value() == 0
    assert sem.blocked() == 0


def test_try_decrement_on_zero_fails():
    sem = Semaphore()
    assert sem.try_decrement() is False
    assert sem.value() == 0


def test_increment_then_try_decrement():
    sem = Semaphore()
    sem.increment()
    assert sem.value() == 1
    assert sem.try_decrement() is True
    assert sem.value() == 0


def test_decrement_times_out():
    sem = Semaphore()
    assert sem.decrement(timeout=0.01) is False
    assert sem.blocked() == 0
    assert sem.value() == 0


def test_decrement_without_wait_when_positive():
    sem = Semaphore()
    sem.increment()
    sem.increment()
    assert sem.decrement(timeout=0) is True
    assert sem.value() == 1


def test_negative_timeout_rejected():
    sem = Semaphore()
    with pytest.raises(ValueError):
        sem.decrement(timeout=-1)


def test_blocked_waiter_is_released_by_increment():
    sem = Semaphore()
    results = []
    worker = threading.Thread(target=lambda: results.append(sem.decrement(timeout=5)))
    worker.start()
    assert _wait_until(lambda: sem.blocked() == 1)
    sem.increment()
    worker.join(5)
    assert results == [True]
    assert sem.value() == 0
    assert sem.blocked() == 0


def test_each_increment_releases_one_waiter():
    sem = Semaphore()
    results = []
    lock = threading.Lock()

    def wait():
        outcome = sem.decrement(timeout=5)
        with lock:
            results.append(outcome)

    workers = [threading.Thread(target=wait) for _ in range(2)]
    for worker in workers:
        worker.start()
    assert _wait_until(lambda: sem.blocked() == 2)
    sem.increment()
    assert _wait_until(lambda: len(results) == 1)
    assert sem.blocked() == 1
    sem.increment()
    for worker in workers:
        worker.join(5)
    assert results == [True, True]
    assert sem.value() == 0


def test_increments_and_decrements_balance():
    sem = Semaphore()
    for _ in range(5):
        sem.increment()
    taken = sum(sem.try_decrement() for _ in range(7))
    assert taken == 5
    assert sem.value() == 0