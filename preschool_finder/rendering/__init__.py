"""
Rendering collaborators.

- map_view: folium map with clustered facility markers and the user's position.
- tables: pandas frames for the results list and the side-by-side comparison.
"""
