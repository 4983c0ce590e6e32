"""
Catalog filter engine.

Responsibilities:
- Hold the immutable catalog and the derived filtered view.
- Apply free-text search and dropdown filters (search first, then filters).
- Manage the bounded comparison set.
- Notify rendering listeners when the filtered view or comparison set changes.
"""
