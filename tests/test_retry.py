import pytest

from latticekit.retry import (
    RetryError,
    RetryStrategy,
    Strategy,
    default_backoff_retry_strategy,
    default_fixed_retry_strategy,
    default_random_retry_strategy,
    new_backoff_retry_strategy,
    new_fixed_retry_strategy,
    new_random_retry_strategy,
    run_with_retry,
)


class _Flaky:
    def __init__(self, failures, result="done"):
        self.failures = failures
        self.calls = 0
        self.result = result

    def __call__(self):
        self.calls += 1
        if self.calls <= self.failures:
            raise RuntimeError(f"failure {self.calls}")
        return self.result


def test_default_strategies_match_documented_values():
    backoff = default_backoff_retry_strategy()
    assert (backoff.strategy, backoff.attempts, backoff.delay) == (Strategy.BACKOFF, 15, 0.15)
    fixed = default_fixed_retry_strategy()
    assert (fixed.strategy, fixed.attempts, fixed.delay) == (Strategy.FIXED_INTERVAL, 15, 0.15)
    rand = default_random_retry_strategy()
    assert (rand.strategy, rand.attempts, rand.delay, rand.max_jitter) == (
        Strategy.RANDOM_INTERVAL,
        15,
        0.15,
        0.5,
    )


def test_strategy_values_are_wire_names():
    strategies = [
        new_backoff_retry_strategy(1, 0.1),
        new_fixed_retry_strategy(1, 0.1),
        new_random_retry_strategy(1, 0.1, 0.2),
    ]
    assert [str(s.strategy) for s in strategies] == [
        "BackOff",
        "FixedInterval",
        "RandomInterval",
    ]


def test_fixed_delays_repeat_delay():
    strategy = new_fixed_retry_strategy(4, 0.25)
    assert list(strategy.delays()) == [0.25, 0.25, 0.25]


def test_backoff_delays_double():
    delays = list(new_backoff_retry_strategy(5, 0.5).delays())
    assert len(delays) == 4
    assert delays[0] == 0.5
    for previous, current in zip(delays, delays[1:]):
        assert current == 2 * previous


def test_backoff_shift_is_capped():
    delays = list(new_backoff_retry_strategy(40, 1.0).delays())
    assert delays[-1] == delays[-2]
    assert delays[0] == 1.0


def test_random_delays_within_jitter():
    delays = list(new_random_retry_strategy(50, 0.1, 0.2).delays())
    assert len(delays) == 49
    assert all(0 <= d < 0.2 for d in delays)


def test_random_without_jitter_raises():
    with pytest.raises(ValueError):
        list(new_random_retry_strategy(3, 0.1, 0).delays())


def test_unknown_strategy_uses_fallback_attempts():
    delays = list(RetryStrategy("Unknown", attempts=3, delay=1.0).delays())
    assert len(delays) == 9
    assert all(d >= 0.1 for d in delays)


def test_run_with_retry_returns_first_success():
    func = _Flaky(0, result=42)
    sleeps = []
    assert run_with_retry(func, default_fixed_retry_strategy(), sleeps.append) == 42
    assert func.calls == 1
    assert sleeps == []


def test_run_with_retry_retries_until_success():
    func = _Flaky(2)
    sleeps = []
    result = run_with_retry(func, new_fixed_retry_strategy(5, 0.3), sleeps.append)
    assert result == "done"
    assert func.calls == 3
    assert sleeps == [0.3, 0.3]


def test_run_with_retry_all_fail():
    func = _Flaky(100)
    sleeps = []
    with pytest.raises(RetryError) as info:
        run_with_retry(func, new_fixed_retry_strategy(3, 0.1), sleeps.append)
    assert func.calls == 3
    assert len(sleeps) == 2
    assert [str(e) for e in info.value.errors] == ["failure 1", "failure 2", "failure 3"]
    assert str(info.value).startswith("All attempts fail:\n#1: failure 1")


def test_run_with_retry_none_strategy_uses_fallback():
    func = _Flaky(100)
    sleeps = []
    with pytest.raises(RetryError) as info:
        run_with_retry(func, None, sleeps.append)
    assert func.calls == 10
    assert len(info.value.errors) == 10
    assert len(sleeps) == 9


def test_run_with_retry_zero_attempts():
    func = _Flaky(0)
    with pytest.raises(RetryError) as info:
        run_with_retry(func, new_fixed_retry_strategy(0, 0.1), lambda _: None)
    assert func.calls == 0
    assert info.value.errors == []