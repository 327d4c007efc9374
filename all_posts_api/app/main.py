"""
Main entrypoint for the All-Posts API.

This module assembles the FastAPI application, sets up logging, wires
the content store collaborators, registers the built-in pipeline
stages and includes the versioned router under the configured
namespace.  The ``create_app`` function builds and configures the app,
which is then instantiated at module import time as ``app``::

    uvicorn all_posts_api.app.main:app --reload
"""

from typing import Callable, Optional

from fastapi import FastAPI

from .core.config import settings
from .core.db import init_db
from .core.logging_config import setup_logging
from .api.v1.router import router as v1_router
from .services.all_posts_service import AllPostsService
from .services.content_store import Collaborators
from .services.query_compiler import register_builtin_filters
from .services.result_mapper import register_builtin_enrichments
from .services.sqlite_store import build_collaborators
from .services.stages import StageRegistry


def build_registry(
    collaborators: Collaborators,
    extensions: Optional[Callable[[StageRegistry], None]] = None,
) -> StageRegistry:
    """Register the built-in stages, then any extension stages, and freeze.

    ``extensions`` receives the registry after the built-in stages so
    that extension stages run after them.
    """
    registry = StageRegistry()
    register_builtin_filters(registry)
    register_builtin_enrichments(
        registry,
        collaborators.taxonomies,
        collaborators.custom_fields,
        settings.ignored_taxonomies,
    )
    if extensions is not None:
        extensions(registry)
    registry.freeze()
    return registry


def create_app(
    collaborators: Optional[Collaborators] = None,
    extensions: Optional[Callable[[StageRegistry], None]] = None,
) -> FastAPI:
    """Create and configure a FastAPI application.

    Parameters
    ----------
    collaborators : Optional[Collaborators]
        Content store collaborators.  When omitted, the SQLite
        implementations are built from ``settings`` and the database
        schema is migrated on startup.
    extensions : Optional[Callable[[StageRegistry], None]]
        Hook to register additional filter or enrichment stages.

    Returns
    -------
    FastAPI
        A configured FastAPI application instance.
    """
    setup_logging(settings.log_level, settings.log_file or None)

    use_default_store = collaborators is None
    if collaborators is None:
        collaborators = build_collaborators(settings)

    app = FastAPI(title=settings.project_name, version=settings.api_version, debug=settings.debug)
    app.state.collaborators = collaborators
    app.state.stage_registry = build_registry(collaborators, extensions)
    app.state.all_posts_service = AllPostsService(collaborators, app.state.stage_registry)

    app.include_router(v1_router, prefix="/" + settings.namespace.strip("/"))

    if use_default_store:
        @app.on_event("startup")
        async def startup_event() -> None:
            init_db()

    return app


# Create the application instance at import time so that tools such as
# uvicorn can discover it without calling create_app manually.
app = create_app()
