"""
Preschool directory core.

Responsibilities:
- Load the preschool dataset into an immutable catalog.
- Search, filter and compare facilities through an explicit engine object.
- Acquire the user's position and run proximity queries against the catalog.
- Hand map markers to a folium-backed map view.
"""
