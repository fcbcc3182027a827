"""
Restaurant data access.

Responsibilities:
- Hold the processed guide dataset and answer filtered, paginated queries.
- Map stored rows into ``Restaurant`` records.
- Provide the clients the map shell uses to fetch restaurants.
"""
