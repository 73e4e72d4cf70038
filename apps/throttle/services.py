"""Attempt Throttle.

Sliding-window limits per ``(client, category)``. Each category has a
policy: at most ``limit`` counted attempts within the last
``window_seconds``. A policy counts either every attempt or failures
only, so a client that logs in successfully is not penalised while
repeated wrong passwords are.

Once the ceiling is reached further attempts are rejected until enough
of the counted attempts have aged out of the window.

`enforce` followed later by `record_attempt` is advisory: requests from
one client that arrive together can all pass the check before any of
them is recorded. `begin_attempt` closes that gap by checking and
recording under a per-(client, category) row lock; the attempt counts
as a failure until `finish_attempt` settles its outcome.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Dict, Optional

import structlog
from django.conf import settings  # type: ignore
from django.db import transaction  # type: ignore
from django.db.models import Exists, OuterRef  # type: ignore
from django.utils import timezone  # type: ignore

from shared.domain.exceptions import RateLimited

from .models import AttemptRecord, ThrottleKey

logger = structlog.get_logger(__name__)

COUNT_ALL = "all"
COUNT_FAILURES = "failure"

DEFAULT_POLICIES = {
    AttemptRecord.Category.BOOKING: {"limit": 5, "window_seconds": 3600, "count": COUNT_ALL},
    AttemptRecord.Category.COUPON: {"limit": 10, "window_seconds": 3600, "count": COUNT_FAILURES},
    AttemptRecord.Category.LOGIN: {"limit": 5, "window_seconds": 900, "count": COUNT_FAILURES},
}


@dataclass(frozen=True)
class ThrottlePolicy:
    limit: int
    window_seconds: int
    count: str = COUNT_ALL

    def __post_init__(self):
        if self.limit < 1:
            raise ValueError("Throttle limit must be at least 1")
        if self.window_seconds < 1:
            raise ValueError("Throttle window must be at least one second")
        if self.count not in (COUNT_ALL, COUNT_FAILURES):
            raise ValueError(f"Unknown throttle count mode: {self.count}")

    @property
    def window(self) -> timedelta:
        return timedelta(seconds=self.window_seconds)


@dataclass(frozen=True)
class ThrottleDecision:
    allowed: bool
    attempts_remaining: int
    retry_after_seconds: int
    limit: int

    def to_dict(self) -> dict:
        return {
            "allowed": self.allowed,
            "attempts_remaining": self.attempts_remaining,
            "retry_after_seconds": self.retry_after_seconds,
            "limit": self.limit,
        }


def load_policies() -> Dict[str, ThrottlePolicy]:
    """Policies from settings, falling back to the defaults per category."""
    configured = getattr(settings, "ATTEMPT_THROTTLE_POLICIES", {}) or {}
    policies = {}
    for category in AttemptRecord.Category.values:
        raw = {**DEFAULT_POLICIES[category], **configured.get(category, {})}
        policies[category] = ThrottlePolicy(**raw)
    return policies


class AttemptThrottle:
    """
    Records attempts and evaluates per-client limits

    Usage:
        throttle = AttemptThrottle()
        throttle.enforce(client_id, "coupon")        # raises RateLimited
        ok = validate_coupon(code)
        throttle.record_attempt(client_id, "coupon", success=ok)

        attempt = throttle.begin_attempt(client_id, "booking")   # atomic
        ...
        throttle.finish_attempt(attempt, success=True)
    """

    def __init__(
        self,
        policies: Optional[Dict[str, ThrottlePolicy]] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.policies = policies or load_policies()
        self.clock = clock or timezone.now

    def policy_for(self, category: str) -> ThrottlePolicy:
        try:
            return self.policies[category]
        except KeyError:
            raise ValueError(f"Unknown attempt category: {category}") from None

    def record_attempt(self, client_id: str, category: str, success: bool, detail: str = "") -> AttemptRecord:
        self.policy_for(category)
        return AttemptRecord.objects.create(
            client_identifier=client_id,
            category=category,
            outcome=AttemptRecord.Outcome.SUCCESS if success else AttemptRecord.Outcome.FAILURE,
            attempted_at=self.clock(),
            detail=detail[:255],
        )

    def begin_attempt(self, client_id: str, category: str, detail: str = "") -> AttemptRecord:
        """
        Admit and record one attempt, or raise RateLimited

        Concurrent callers with the same client and category are
        serialised on their ThrottleKey row, so at most `limit` of them
        are admitted per window.
        """
        self.policy_for(category)
        with transaction.atomic():
            key, _created = ThrottleKey.objects.get_or_create(client_identifier=client_id, category=category)
            ThrottleKey.objects.select_for_update().get(pk=key.pk)
            self.enforce(client_id, category)
            return self.record_attempt(client_id, category, success=False, detail=detail)

    def finish_attempt(self, attempt: AttemptRecord, success: bool, detail: str = "") -> AttemptRecord:
        """Settle the outcome of an attempt admitted by begin_attempt."""
        attempt.outcome = AttemptRecord.Outcome.SUCCESS if success else AttemptRecord.Outcome.FAILURE
        update_fields = ["outcome"]
        if detail:
            attempt.detail = detail[:255]
            update_fields.append("detail")
        attempt.save(update_fields=update_fields)
        return attempt

    def check_limit(self, client_id: str, category: str) -> ThrottleDecision:
        """
        Evaluate the client's window without recording anything

        attempts_remaining is how many more counted attempts fit in the
        window; retry_after_seconds is 0 when allowed, otherwise the
        whole seconds until enough counted attempts age out.
        """
        policy = self.policy_for(category)
        now = self.clock()

        counted = AttemptRecord.objects.filter(
            client_identifier=client_id,
            category=category,
            attempted_at__gt=now - policy.window,
            attempted_at__lte=now,
        )
        if policy.count == COUNT_FAILURES:
            counted = counted.filter(outcome=AttemptRecord.Outcome.FAILURE)

        timestamps = list(counted.order_by("attempted_at").values_list("attempted_at", flat=True))
        used = len(timestamps)

        if used < policy.limit:
            return ThrottleDecision(
                allowed=True,
                attempts_remaining=policy.limit - used,
                retry_after_seconds=0,
                limit=policy.limit,
            )

        # Allowed again once the count drops below the limit
        unblocking = timestamps[used - policy.limit]
        wait = (unblocking + policy.window - now).total_seconds()
        return ThrottleDecision(
            allowed=False,
            attempts_remaining=0,
            retry_after_seconds=max(1, math.ceil(wait)),
            limit=policy.limit,
        )

    def enforce(self, client_id: str, category: str) -> ThrottleDecision:
        """check_limit that raises RateLimited when the client is over the ceiling"""
        decision = self.check_limit(client_id, category)
        if not decision.allowed:
            logger.warning(
                "throttle.rejected",
                client=client_id,
                category=category,
                retry_after=decision.retry_after_seconds,
            )
            raise RateLimited(
                category=category,
                retry_after_seconds=decision.retry_after_seconds,
                attempts_remaining=decision.attempts_remaining,
            )
        return decision

    def prune(self, older_than: timedelta) -> int:
        """Delete attempt records older than the retention period."""
        deleted, _ = AttemptRecord.objects.filter(attempted_at__lt=self.clock() - older_than).delete()
        ThrottleKey.objects.exclude(
            Exists(AttemptRecord.objects.filter(
                client_identifier=OuterRef("client_identifier"),
                category=OuterRef("category"),
            ))
        ).delete()
        return deleted
