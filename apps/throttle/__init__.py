"""Throttle app package.

Per-client sliding-window limits on booking creation, coupon
validation and login attempts. Attempts are appended to a log table;
limits are evaluated by counting recent rows.
"""
