"""
Top‑level router for version 1 of the API.

The router is mounted under the deployment namespace by ``main``.  When
new endpoints are added, include their routers here.
"""

from fastapi import APIRouter

from .endpoints import all_posts

router = APIRouter()

router.include_router(all_posts.router, tags=["posts"])
