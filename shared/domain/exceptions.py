"""
Reservation Error Taxonomy

Every failure the reservation engine surfaces to callers. The classes
fall into two families that callers must keep apart:

- inventory failures ("no bikes for your height/date"):
  NoMatchingSize, InsufficientInventory, SessionClosed
- contention failures ("someone else is booking, try again"):
  LockContention, LockOwnershipLost

RateLimited is separate and carries the wait the client must observe.
BookingStateError covers changes to bookings that already ended.
"""

from typing import Iterable, Optional


class ReservationError(Exception):
    """Base class for reservation engine failures"""

    code = 'reservation_error'
    retryable = False
    status_code = 400
    default_detail = 'Reservation failed.'

    def __init__(self, detail: Optional[str] = None):
        self.detail = detail or self.default_detail
        super().__init__(self.detail)

    def to_dict(self) -> dict:
        return {
            'code': self.code,
            'detail': self.detail,
            'retryable': self.retryable,
        }


class NoMatchingSize(ReservationError):
    """Rider height falls outside every configured height range"""

    code = 'no_matching_size'
    status_code = 422
    default_detail = 'No bike size is configured for this rider height.'

    def __init__(self, rider_id=None, height=None, detail: Optional[str] = None):
        self.rider_id = rider_id
        self.height = height
        if detail is None and height is not None:
            detail = f"No bike size is configured for height {height} cm."
        super().__init__(detail)

    def to_dict(self) -> dict:
        data = super().to_dict()
        data.update({'rider_id': self.rider_id, 'height': self.height})
        return data


class InsufficientInventory(ReservationError):
    """No ideal or tolerated bike is free for a rider in the slot"""

    code = 'insufficient_inventory'
    retryable = True
    status_code = 409
    default_detail = 'No bikes are available for this date and session.'

    def __init__(self, rider_id=None, detail: Optional[str] = None):
        self.rider_id = rider_id
        super().__init__(detail)

    def to_dict(self) -> dict:
        data = super().to_dict()
        data['rider_id'] = self.rider_id
        return data


class SessionClosed(ReservationError):
    """The slot can no longer be booked (past date or cutoff passed)"""

    code = 'session_closed'
    status_code = 422
    default_detail = 'This session can no longer be booked.'

    def __init__(self, reason: str, detail: Optional[str] = None):
        self.reason = reason
        super().__init__(detail)

    def to_dict(self) -> dict:
        data = super().to_dict()
        data['reason'] = self.reason
        return data


class LockContention(ReservationError):
    """Another checkout session holds an unexpired lock on a bike"""

    code = 'lock_contention'
    retryable = True
    status_code = 409
    default_detail = 'Someone else is booking these bikes right now. Please try again.'

    def __init__(self, bike_ids: Iterable[int] = (), detail: Optional[str] = None):
        self.bike_ids = sorted(bike_ids)
        super().__init__(detail)

    def to_dict(self) -> dict:
        data = super().to_dict()
        data['bike_ids'] = self.bike_ids
        return data


class LockOwnershipLost(ReservationError):
    """A lock expired or was taken over before the booking was written"""

    code = 'lock_ownership_lost'
    retryable = True
    status_code = 409
    default_detail = 'Your reservation hold expired. Please start the booking again.'

    def __init__(self, bike_ids: Iterable[int] = (), detail: Optional[str] = None):
        self.bike_ids = sorted(bike_ids)
        super().__init__(detail)

    def to_dict(self) -> dict:
        data = super().to_dict()
        data['bike_ids'] = self.bike_ids
        return data


class RateLimited(ReservationError):
    """The attempt throttle rejected the operation"""

    code = 'rate_limited'
    retryable = True
    status_code = 429
    default_detail = 'Too many attempts. Please wait before trying again.'

    def __init__(
        self,
        category: str,
        retry_after_seconds: int,
        attempts_remaining: int = 0,
        detail: Optional[str] = None,
    ):
        self.category = category
        self.retry_after_seconds = retry_after_seconds
        self.attempts_remaining = attempts_remaining
        super().__init__(detail)

    def to_dict(self) -> dict:
        data = super().to_dict()
        data.update({
            'category': self.category,
            'attempts_remaining': self.attempts_remaining,
            'retry_after_seconds': self.retry_after_seconds,
        })
        return data


class BookingStateError(ReservationError):
    """The booking is in a state that does not allow the operation"""

    code = 'invalid_booking_state'
    status_code = 409
    default_detail = 'This booking can no longer be changed.'

    def __init__(self, status: str, detail: Optional[str] = None):
        self.status = status
        super().__init__(detail)

    def to_dict(self) -> dict:
        data = super().to_dict()
        data['status'] = self.status
        return data
