"""Bookings app package.

Group bookings of bikes for a date and session. The app owns the
availability calculator, the bike assignment planner and the checkout
flow that turns a planned assignment into a committed booking while
holding locks on every planned bike.
"""
