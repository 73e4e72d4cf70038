"""Tests for the bike lock manager."""

import threading
from datetime import timedelta

import pytest
from django.db import connection

from apps.reservations.models import BikeLock
from apps.reservations.services import BikeLockManager
from shared.domain.exceptions import LockContention, LockOwnershipLost

ALICE = "session-alice"
BOB = "session-bob"


@pytest.fixture
def locks(clock):
    return BikeLockManager(clock=clock)


@pytest.mark.django_db
def test_second_session_is_refused_immediately(locks):
    assert locks.acquire_lock(5, ALICE, ttl=300)
    assert not locks.acquire_lock(5, BOB, ttl=300)
    assert BikeLock.objects.get(bike_id=5).session_token == ALICE


@pytest.mark.django_db(transaction=True)
def test_racing_sessions_yield_exactly_one_winner(clock):
    contenders = 8
    barrier = threading.Barrier(contenders)
    results = []
    errors = []

    def contend(token):
        try:
            barrier.wait()
            results.append((token, BikeLockManager(clock=clock).acquire_lock(5, token, ttl=300)))
        except Exception as exc:  # noqa: BLE001
            errors.append(exc)
        finally:
            connection.close()

    threads = [threading.Thread(target=contend, args=(f"session-{n}",)) for n in range(contenders)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=30)

    assert errors == []
    winners = [token for token, won in results if won]
    assert len(results) == contenders
    assert len(winners) == 1
    assert BikeLock.objects.get(bike_id=5).session_token == winners[0]


@pytest.mark.django_db
def test_same_session_refreshes_its_lock(locks, clock):
    locks.acquire_lock(5, ALICE, ttl=60)
    first = BikeLock.objects.get(bike_id=5)

    clock.advance(seconds=30)
    assert locks.acquire_lock(5, ALICE, ttl=60)

    refreshed = BikeLock.objects.get(bike_id=5)
    assert refreshed.expires_at == first.expires_at + timedelta(seconds=30)
    assert refreshed.acquired_at == first.acquired_at


@pytest.mark.django_db
def test_expired_lock_is_taken_over_without_cleanup(locks, clock):
    locks.acquire_lock(5, ALICE, ttl=1)

    clock.advance(seconds=2)

    assert locks.active_lock(5) is None
    assert locks.acquire_lock(5, BOB, ttl=300)
    lock = BikeLock.objects.get(bike_id=5)
    assert lock.session_token == BOB
    assert lock.acquired_at == clock.now


@pytest.mark.django_db
def test_lock_is_still_held_until_expiry(locks, clock):
    locks.acquire_lock(5, ALICE, ttl=10)
    clock.advance(seconds=9)
    assert not locks.acquire_lock(5, BOB)


@pytest.mark.django_db
def test_acquire_locks_rolls_back_on_conflict(locks):
    locks.acquire_lock(3, BOB)

    assert not locks.acquire_locks([4, 1, 3, 2], ALICE)

    assert not BikeLock.objects.held_by(ALICE).exists()
    assert BikeLock.objects.get(bike_id=3).session_token == BOB


@pytest.mark.django_db
def test_acquire_locks_takes_every_bike(locks):
    assert locks.acquire_locks([2, 1, 2], ALICE)
    assert set(BikeLock.objects.held_by(ALICE).values_list("bike_id", flat=True)) == {1, 2}


@pytest.mark.django_db
def test_rollback_also_releases_refreshed_locks(locks):
    locks.acquire_lock(1, ALICE)
    locks.acquire_lock(3, BOB)

    assert not locks.acquire_locks([1, 2, 3], ALICE)

    # Bike 1 was refreshed, then released by the rollback
    assert not BikeLock.objects.held_by(ALICE).exists()


@pytest.mark.django_db
def test_lock_or_raise_names_the_contended_bike(locks):
    locks.acquire_lock(7, BOB)

    with pytest.raises(LockContention) as excinfo:
        locks.lock_or_raise([7, 8], ALICE)

    assert excinfo.value.bike_ids == [7]
    assert excinfo.value.retryable


@pytest.mark.django_db
def test_only_the_owner_can_release(locks):
    locks.acquire_lock(5, ALICE)

    assert not locks.release_lock(5, BOB)
    assert BikeLock.objects.filter(bike_id=5).exists()
    assert locks.release_lock(5, ALICE)
    assert not BikeLock.objects.filter(bike_id=5).exists()


@pytest.mark.django_db
def test_releasing_an_expired_lock_reports_false(locks, clock):
    locks.acquire_lock(5, ALICE, ttl=1)
    clock.advance(seconds=5)
    assert not locks.release_lock(5, ALICE)


@pytest.mark.django_db
def test_release_all_is_idempotent(locks):
    locks.acquire_locks([1, 2, 3], ALICE)
    locks.acquire_lock(4, BOB)

    assert locks.release_all(ALICE) == 3
    assert locks.release_all(ALICE) == 0
    assert locks.release_all("never-locked") == 0
    assert BikeLock.objects.filter(bike_id=4).exists()


@pytest.mark.django_db
def test_locked_bike_ids_ignores_expired_and_own_locks(locks, clock):
    locks.acquire_lock(1, ALICE, ttl=1)
    locks.acquire_lock(2, BOB, ttl=300)
    locks.acquire_lock(3, ALICE, ttl=300)
    clock.advance(seconds=2)

    assert locks.locked_bike_ids() == {2, 3}
    assert locks.locked_bike_ids(exclude_session=ALICE) == {2}


@pytest.mark.django_db
def test_verify_ownership_detects_takeover(locks, clock):
    locks.acquire_locks([1, 2], ALICE, ttl=10)
    locks.verify_ownership([1, 2], ALICE)

    clock.advance(seconds=11)
    locks.acquire_lock(2, BOB)

    with pytest.raises(LockOwnershipLost) as excinfo:
        locks.verify_ownership([1, 2], ALICE)
    assert excinfo.value.bike_ids == [1, 2]


@pytest.mark.django_db
def test_purge_expired_keeps_recent_rows(locks, clock):
    locks.acquire_lock(1, ALICE, ttl=1)
    clock.advance(hours=2)
    locks.acquire_lock(2, ALICE, ttl=1)
    clock.advance(seconds=5)
    locks.acquire_lock(3, BOB, ttl=300)

    assert locks.purge_expired(timedelta(hours=1)) == 1
    assert set(BikeLock.objects.values_list("bike_id", flat=True)) == {2, 3}


@pytest.mark.django_db
@pytest.mark.parametrize("token, ttl", [("", 300), (ALICE, 0), (ALICE, -5)])
def test_invalid_arguments_are_rejected(locks, token, ttl):
    with pytest.raises(ValueError):
        locks.acquire_lock(1, token, ttl=ttl)
