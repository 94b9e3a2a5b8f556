from rudderanalytics.impl.retry_delay import (DefaultBackoffStrategy,
                                              DefaultJitterStrategy,
                                              RetryDelayStrategy)


def test_fixed_retry_delay():
    d0 = 10
    r = RetryDelayStrategy(d0, None, None)
    for i in range(3):
        assert r.next_retry_delay() == d0


def test_backoff_doubles_each_time():
    r = RetryDelayStrategy(0.2, DefaultBackoffStrategy(), None)

    assert [r.next_retry_delay() for _ in range(4)] == [0.2, 0.4, 0.8, 1.6]
    assert r.retry_count == 4


def test_backoff_with_max():
    r = RetryDelayStrategy(10, DefaultBackoffStrategy(30), None)

    assert [r.next_retry_delay() for _ in range(4)] == [10, 20, 30, 30]


def test_jitter_adds_at_most_ratio():
    base = 10
    r = RetryDelayStrategy(base, None, DefaultJitterStrategy(0.2, 0))
    for _ in range(100):
        delay = r.next_retry_delay()
        assert base <= delay <= base * 1.2


def test_backoff_with_jitter_is_strictly_increasing():
    r = RetryDelayStrategy(0.2, DefaultBackoffStrategy(), DefaultJitterStrategy(0.2, 1))
    delays = [r.next_retry_delay() for _ in range(3)]

    assert 0.2 <= delays[0] <= 0.24
    assert 0.4 <= delays[1] <= 0.48
    assert 0.8 <= delays[2] <= 0.96
    assert delays[0] < delays[1] < delays[2]


def test_jitter_is_repeatable_with_seed():
    r1 = RetryDelayStrategy(1, None, DefaultJitterStrategy(0.5, 42))
    r2 = RetryDelayStrategy(1, None, DefaultJitterStrategy(0.5, 42))

    assert [r1.next_retry_delay() for _ in range(5)] == [r2.next_retry_delay() for _ in range(5)]
