"""
Request identity helpers.

The reservation engine never authenticates anyone; it only needs two
opaque keys from the calling layer:

- the checkout session token, scoping bike locks to one checkout
  attempt (one per browser tab), sent as ``X-Checkout-Session``
- a stable client identifier for the attempt throttle, sent as
  ``X-Client-Id`` or derived from the remote address

Raw addresses are never stored: they are hashed with the project
secret before they reach a throttle record.
"""

import hashlib
import hmac
import re
from typing import Optional

from django.conf import settings

SESSION_HEADER = 'HTTP_X_CHECKOUT_SESSION'
CLIENT_HEADER = 'HTTP_X_CLIENT_ID'

_TOKEN_PATTERN = re.compile(r'^[A-Za-z0-9_\-]{8,64}$')


def checkout_session_token(request) -> Optional[str]:
    """Session token from the request header, None if absent or malformed"""
    token = request.META.get(SESSION_HEADER, '').strip()
    if not token or not _TOKEN_PATTERN.match(token):
        return None
    return token


def _hash_address(address: str) -> str:
    digest = hmac.new(
        settings.SECRET_KEY.encode(),
        address.encode(),
        hashlib.sha256,
    ).hexdigest()
    return f"ip:{digest[:32]}"


def client_identifier(request) -> str:
    """
    Stable per-client throttle key

    Prefers the explicit client header; otherwise hashes the first
    forwarded address (or REMOTE_ADDR).
    """
    explicit = request.META.get(CLIENT_HEADER, '').strip()
    if explicit:
        return explicit[:128]

    forwarded = request.META.get('HTTP_X_FORWARDED_FOR', '')
    address = forwarded.split(',')[0].strip() if forwarded else request.META.get('REMOTE_ADDR', '')
    return _hash_address(address or 'unknown')
