"""Reservations app package.

Checkout leases on individual bikes. A lease keeps the bikes picked by
the planner out of other checkouts until the booking is written, and
expires by itself when a checkout is abandoned.
"""
