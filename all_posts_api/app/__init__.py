"""
Application package initializer.

The service exposes a single read endpoint which aggregates posts of
several content types.  Request parameters are resolved into a query
(``services.param_resolver`` and ``services.query_compiler``), the query
is executed by a content store (``services.sqlite_store`` by default)
and every returned record is projected and enriched
(``services.result_mapper``).  Both the query and the output records pass
through ordered stage chains kept in ``services.stages``, which is where
extensions hook in.
"""

from .main import app  # noqa: F401
