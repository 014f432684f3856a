from credential_rotator.cooldown_policy import CooldownPolicy
from credential_rotator.pool import CredentialPool
from credential_rotator.selector import RoundRobinSelector
from credential_rotator.types import FailureTier

from conftest import KEYS, FakeClock


def make_selector(keys, clock: FakeClock):
    pool = CredentialPool(list(keys))
    policy = CooldownPolicy()
    return pool, policy, RoundRobinSelector(pool, policy, clock)


def test_round_robin_cycles_in_configured_order(clock: FakeClock) -> None:
    _, _, selector = make_selector(KEYS, clock)

    first_cycle = [selector.select() for _ in KEYS]
    second_cycle = [selector.select() for _ in KEYS]

    assert first_cycle == KEYS
    assert second_cycle == KEYS


def test_empty_pool_is_always_unavailable(clock: FakeClock) -> None:
    pool, _, selector = make_selector([], clock)

    for _ in range(3):
        assert selector.select() is None
    assert pool.current_index == 0


def test_selection_stamps_last_used(clock: FakeClock) -> None:
    pool, _, selector = make_selector(KEYS, clock)

    selector.select()

    assert pool.record_at(0).last_used == clock.now
    assert pool.record_at(1).last_used is None


def test_suspended_keys_are_skipped(clock: FakeClock) -> None:
    pool, policy, selector = make_selector(KEYS, clock)
    policy.apply_failure(pool.record_at(1), FailureTier.QUOTA, clock())

    picks = [selector.select() for _ in range(4)]

    assert picks == [KEYS[0], KEYS[2], KEYS[0], KEYS[2]]


def test_skipping_advances_cursor_past_selected_key(clock: FakeClock) -> None:
    pool, policy, selector = make_selector(KEYS, clock)
    policy.apply_failure(pool.record_at(0), FailureTier.PERMANENT, clock())

    assert selector.select() == KEYS[1]
    assert pool.current_index == 2


def test_quota_key_is_reactivated_after_cooldown(clock: FakeClock) -> None:
    pool, policy, selector = make_selector(KEYS[:1], clock)
    record = pool.record_at(0)
    policy.apply_failure(record, FailureTier.QUOTA, clock())

    clock.advance(23 * 60 * 60)
    assert selector.select() is None

    clock.advance(60 * 60 + 1)
    assert selector.select() == KEYS[0]
    assert record.active is True
    assert record.error_count == 0
    assert record.quota_exhausted is False
    assert record.last_used == clock.now


def test_all_suspended_returns_none_and_keeps_cursor(clock: FakeClock) -> None:
    pool, policy, selector = make_selector(KEYS, clock)
    selector.select()
    for record in pool:
        policy.apply_failure(record, FailureTier.PERMANENT, clock())

    assert selector.select() is None
    assert pool.current_index == 1


def test_duplicate_keys_are_collapsed() -> None:
    pool = CredentialPool([KEYS[0], KEYS[1], KEYS[0]])

    assert pool.size() == 2
    assert pool.index_of(KEYS[1]) == 1
    assert pool.find("not-configured-key") is None
