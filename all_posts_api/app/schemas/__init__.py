"""
Pydantic schema definitions.

``params`` holds the resolved request parameters, ``query`` the
structured store query and ``post`` the records returned by a content
store.  Output records are plain dictionaries so enrichment stages can
add arbitrary keys.
"""
