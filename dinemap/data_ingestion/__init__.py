"""
Offline extraction for the map application.

Responsibilities:
- Read the raw guide export (one row per restaurant).
- Normalize it into the stored restaurant schema.
- Derive the static city directory (centroid and count per city).
"""
