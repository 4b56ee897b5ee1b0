import threading

import pytest

from core.config import CircuitConfig
from forecasting.circuit import CircuitBreaker, CircuitState


def _breaker(clock, **overrides):
    config = CircuitConfig(**{"failure_threshold": 3, "cooldown_seconds": 60.0, "max_cooldown_seconds": 200.0, **overrides})
    return CircuitBreaker(config, clock=clock)


def test_opens_after_consecutive_failures(clock):
    breaker = _breaker(clock)
    for _ in range(2):
        breaker.record_failure()
    assert breaker.state == CircuitState.CLOSED
    assert breaker.can_execute()

    breaker.record_failure()
    assert breaker.state == CircuitState.OPEN
    assert not breaker.can_execute()


def test_success_resets_failure_count(clock):
    breaker = _breaker(clock)
    breaker.record_failure()
    breaker.record_failure()
    breaker.record_success()
    breaker.record_failure()
    assert breaker.state == CircuitState.CLOSED


def test_half_open_after_cooldown_then_closes(clock):
    breaker = _breaker(clock)
    for _ in range(3):
        breaker.record_failure()

    clock.advance(59)
    assert not breaker.can_execute()
    clock.advance(1)
    assert breaker.can_execute()
    assert breaker.state == CircuitState.HALF_OPEN

    breaker.record_success()
    assert breaker.state == CircuitState.CLOSED
    assert breaker.current_cooldown == 60.0


def test_failed_probe_doubles_cooldown_up_to_cap(clock):
    breaker = _breaker(clock)
    for _ in range(3):
        breaker.record_failure()

    expected = [120.0, 200.0, 200.0]
    for cooldown in expected:
        clock.advance(breaker.current_cooldown)
        assert breaker.can_execute()
        breaker.record_failure()
        assert breaker.state == CircuitState.OPEN
        assert breaker.current_cooldown == cooldown


def test_success_threshold_above_one(clock):
    breaker = _breaker(clock, success_threshold=2)
    for _ in range(3):
        breaker.record_failure()
    clock.advance(60)
    assert breaker.can_execute()

    breaker.record_success()
    assert breaker.state == CircuitState.HALF_OPEN
    breaker.record_success()
    assert breaker.state == CircuitState.CLOSED


def test_half_open_lets_one_probe_through(clock):
    breaker = _breaker(clock)
    for _ in range(3):
        breaker.record_failure()
    clock.advance(60)

    assert breaker.can_execute()
    assert not breaker.can_execute()
    assert not breaker.can_execute()

    breaker.release_probe()
    assert breaker.can_execute()
    breaker.record_success()
    assert breaker.state == CircuitState.CLOSED
    assert breaker.can_execute()
    assert breaker.can_execute()


def test_concurrent_callers_share_one_probe(clock):
    breaker = _breaker(clock)
    for _ in range(3):
        breaker.record_failure()
    clock.advance(60)

    allowed = []
    start = threading.Barrier(8)

    def caller():
        start.wait()
        allowed.append(breaker.can_execute())

    threads = [threading.Thread(target=caller) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert allowed.count(True) == 1


@pytest.mark.parametrize(
    "overrides",
    [
        {"failure_threshold": 0},
        {"success_threshold": 0},
        {"cooldown_seconds": -1.0},
        {"cooldown_seconds": 100.0, "max_cooldown_seconds": 50.0},
    ],
)
def test_invalid_circuit_config(overrides):
    with pytest.raises(ValueError):
        CircuitConfig(**overrides)
