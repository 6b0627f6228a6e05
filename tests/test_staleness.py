from datetime import datetime, timedelta

import pytest

from forex_service.staleness import STALE_AFTER, StalenessPolicy, is_stale

NOW = datetime(2024, 3, 1, 12, 0, 0)


@pytest.mark.parametrize("age, expected", [
    (timedelta(minutes=0), False),
    (timedelta(minutes=14, seconds=59), False),
    (timedelta(minutes=15), False),
    (timedelta(minutes=15, seconds=1), True),
    (timedelta(hours=3), True),
])
def test_threshold_is_strictly_greater_than_fifteen_minutes(age, expected):
    assert is_stale(NOW - age, NOW) is expected


def test_never_refreshed_is_stale():
    assert is_stale(None, NOW)


def test_future_timestamp_is_fresh():
    assert not is_stale(NOW + timedelta(minutes=5), NOW)


def test_policy_threshold_is_configurable():
    policy = StalenessPolicy.minutes(1)
    assert policy.is_stale(NOW - timedelta(minutes=2), NOW)
    assert not StalenessPolicy().is_stale(NOW - timedelta(minutes=2), NOW)
    assert StalenessPolicy().threshold == STALE_AFTER
