"""Pure fleet domain: size classes, height ranges and bike snapshots."""
