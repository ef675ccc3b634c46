from livesync.monitoring.metrics import MetricsTracker


def test_record_and_count():
    metrics = MetricsTracker()
    metrics.record('broadcast_clients', 2)
    metrics.record('broadcast_clients', 0)
    metrics.record('custom', 'x')

    assert metrics.count('broadcast_clients') == 2
    assert metrics.count('missing') == 0
    assert metrics.summary()['custom'] == 1


def test_record_error():
    metrics = MetricsTracker()
    metrics.record_error('send', 'closed')
    assert metrics.errors == {'send': ['closed']}


def test_time_is_monotonic():
    metrics = MetricsTracker()
    assert metrics.time() <= metrics.time()
