"""Fleet app package.

This app owns the bike roster and the height range table that maps
riders to frame sizes. Both are configuration data for the reservation
engine: they are read on every availability query and changed only by
staff through the admin.
"""
