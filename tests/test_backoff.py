from __future__ import annotations

from solfolio.core.dto.internal.common import RetryPolicyDomain
from solfolio.core.services.backoff import compute_next_backoff


def test_backoff_grows_exponentially_without_jitter() -> None:
    policy = RetryPolicyDomain(initial_backoff=0.5, backoff_multiplier=2.0, max_backoff=10, jitter=0)

    delays = [compute_next_backoff(policy, attempt) for attempt in range(4)]

    assert delays == [0.5, 1.0, 2.0, 4.0]


def test_backoff_is_capped_by_max_backoff() -> None:
    policy = RetryPolicyDomain(initial_backoff=1.0, backoff_multiplier=3.0, max_backoff=5, jitter=0)

    assert compute_next_backoff(policy, 10) == 5


def test_backoff_jitter_stays_within_range() -> None:
    policy = RetryPolicyDomain(initial_backoff=1.0, backoff_multiplier=2.0, max_backoff=10, jitter=0.2)

    for _ in range(50):
        delay = compute_next_backoff(policy, 1)
        assert 1.6 <= delay <= 2.4
