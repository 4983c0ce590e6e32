"""
Geolocation and proximity service.

Responsibilities:
- Wrap a callback-based position backend as awaitable one-shot requests and
  cancellable watches.
- Compute great-circle distances (scalar and numpy batch).
- Run radius queries over the catalog and push the sorted result into the engine.
"""
