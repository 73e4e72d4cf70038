"""Reservation Lock Manager.

Grants short-lived exclusive leases on single bikes so that the bikes
picked by the planner cannot be claimed by a concurrent checkout before
the booking is written.

Lock acquisition is the only synchronisation point of the booking flow.
It is a single conditional write at the database level:

1. UPDATE the bike's row if it is expired or already ours (take over or
   refresh). Row-level write locks serialise racing updates, and a
   waiting updater re-checks the condition against the committed row.
2. Otherwise INSERT a new row. The unique constraint on ``bike_id``
   lets exactly one of several racing inserts succeed.

Neither step reads first and decides later, so two callers can never
both observe success for the same bike.

Multi-bike acquisition is not a transaction: locks are taken one by one
in bike id order and, if any fails, the ones taken by the same call are
released again. Between the failure and the end of the rollback other
sessions can briefly see those bikes as locked.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Callable, Iterable, List, Optional, Set

import structlog
from django.conf import settings  # type: ignore
from django.db import IntegrityError, transaction  # type: ignore
from django.db.models import Case, F, Q, Value, When  # type: ignore
from django.db.utils import NotSupportedError  # type: ignore
from django.utils import timezone  # type: ignore

from shared.domain.exceptions import LockContention, LockOwnershipLost

from .models import BikeLock

logger = structlog.get_logger(__name__)

Clock = Callable[[], datetime]


def default_lock_ttl() -> int:
    return int(getattr(settings, "BIKE_LOCK_TTL_SECONDS", 300))


def _lock_queryset_if_possible(queryset):
    """Apply select_for_update when inside transaction.atomic()."""

    if not transaction.get_connection().in_atomic_block:
        return queryset

    try:
        return queryset.select_for_update()
    except NotSupportedError:
        return queryset


class BikeLockManager:
    """
    Checkout leases on individual bikes

    Usage:
        locks = BikeLockManager()
        if locks.acquire_locks([3, 7], session_token, ttl=300):
            ...  # commit the booking, then
            locks.release_all(session_token)

    `clock` returns the current aware datetime; tests pass a fake one to
    move time forward without sleeping.
    """

    def __init__(self, clock: Optional[Clock] = None):
        self.clock = clock or timezone.now

    def acquire_lock(self, bike_id: int, session_token: str, ttl: Optional[int] = None) -> bool:
        """
        Lease one bike to a session

        Succeeds when the bike has no unexpired lock, or the lock already
        belongs to the same session (which refreshes its expiry). Fails
        immediately otherwise; there is no waiting or retry here.
        """
        if not session_token:
            raise ValueError("A session token is required to lock a bike")

        now = self.clock()
        ttl_seconds = default_lock_ttl() if ttl is None else int(ttl)
        if ttl_seconds <= 0:
            raise ValueError("Lock TTL must be positive")
        expires_at = now + timedelta(seconds=ttl_seconds)

        with transaction.atomic():
            updated = (
                BikeLock.objects.filter(bike_id=bike_id)
                .filter(Q(session_token=session_token) | Q(expires_at__lte=now))
                .update(
                    acquired_at=Case(
                        When(session_token=session_token, then=F("acquired_at")),
                        default=Value(now),
                    ),
                    session_token=session_token,
                    expires_at=expires_at,
                )
            )
            if updated:
                logger.debug("bike_lock.renewed", bike_id=bike_id, session=session_token[:8])
                return True

            try:
                with transaction.atomic():
                    BikeLock.objects.create(
                        bike_id=bike_id,
                        session_token=session_token,
                        acquired_at=now,
                        expires_at=expires_at,
                    )
            except IntegrityError:
                logger.info("bike_lock.contended", bike_id=bike_id, session=session_token[:8])
                return False

        logger.debug("bike_lock.acquired", bike_id=bike_id, session=session_token[:8], ttl=ttl_seconds)
        return True

    def acquire_locks(self, bike_ids: Iterable[int], session_token: str, ttl: Optional[int] = None) -> bool:
        """
        Lease every bike or none of them

        On the first failure every lock taken by this call is released
        before returning False.
        """
        return not self._acquire_all(bike_ids, session_token, ttl)

    def lock_or_raise(self, bike_ids: Iterable[int], session_token: str, ttl: Optional[int] = None) -> None:
        """Same as acquire_locks but raises LockContention naming the contended bike."""
        conflicts = self._acquire_all(bike_ids, session_token, ttl)
        if conflicts:
            raise LockContention(bike_ids=conflicts)

    def _acquire_all(self, bike_ids: Iterable[int], session_token: str, ttl: Optional[int]) -> List[int]:
        # Fixed order so two sessions wanting overlapping sets cannot
        # each grab half and both fail
        ordered = sorted(set(bike_ids))
        acquired: List[int] = []

        for bike_id in ordered:
            if self.acquire_lock(bike_id, session_token, ttl):
                acquired.append(bike_id)
                continue

            for taken in acquired:
                self.release_lock(taken, session_token)
            logger.info(
                "bike_lock.rolled_back",
                session=session_token[:8],
                contended_bike_id=bike_id,
                released=len(acquired),
            )
            return [bike_id]

        if ordered:
            logger.info("bike_lock.batch_acquired", session=session_token[:8], bike_ids=ordered)
        return []

    def release_lock(self, bike_id: int, session_token: str) -> bool:
        """
        Give one lease back

        Only the owning session can release. Returns False if the bike is
        not locked by this session (never locked, expired or taken over).
        """
        now = self.clock()
        with transaction.atomic():
            mine = BikeLock.objects.filter(bike_id=bike_id, session_token=session_token)
            was_active = mine.filter(expires_at__gt=now).exists()
            mine.delete()
        return was_active

    def release_all(self, session_token: str) -> int:
        """
        Give back every lease of a session

        Idempotent: safe to call when the session holds nothing. Expired
        rows of the session are removed as well. Returns the number of
        rows deleted.
        """
        deleted, _ = BikeLock.objects.filter(session_token=session_token).delete()
        if deleted:
            logger.info("bike_lock.released_all", session=session_token[:8], released=deleted)
        return deleted

    def active_lock(self, bike_id: int) -> Optional[BikeLock]:
        """The unexpired lock on a bike, if any."""
        return BikeLock.objects.active(self.clock()).filter(bike_id=bike_id).first()

    def locked_bike_ids(self, exclude_session: Optional[str] = None) -> Set[int]:
        """Bikes currently leased, optionally ignoring one session's own leases."""
        queryset = BikeLock.objects.active(self.clock())
        if exclude_session:
            queryset = queryset.exclude(session_token=exclude_session)
        return set(queryset.values_list("bike_id", flat=True))

    def verify_ownership(self, bike_ids: Iterable[int], session_token: str) -> None:
        """
        Check that the session still holds every lease, right before commit

        Inside a transaction the rows are selected FOR UPDATE, so a
        takeover cannot slip in between this check and the booking write.

        Raises:
            LockOwnershipLost: naming the bikes whose lease expired or moved
        """
        wanted = set(bike_ids)
        queryset = BikeLock.objects.active(self.clock()).held_by(session_token).filter(bike_id__in=wanted)
        held = set(_lock_queryset_if_possible(queryset).values_list("bike_id", flat=True))
        lost = wanted - held
        if lost:
            logger.warning("bike_lock.ownership_lost", session=session_token[:8], bike_ids=sorted(lost))
            raise LockOwnershipLost(bike_ids=lost)

    def purge_expired(self, older_than: timedelta) -> int:
        """Delete lease rows that expired more than `older_than` ago."""
        cutoff = self.clock() - older_than
        deleted, _ = BikeLock.objects.filter(expires_at__lte=cutoff).delete()
        return deleted
