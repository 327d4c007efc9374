"""
All-posts endpoint for API v1.

``GET /all-posts`` returns posts of one or more content types as a
JSON array.  Supported query parameters:

- **order**, **orderby** - sort direction (``ASC``/``DESC``) and key.
- **page**, **per_page** - pagination.
- **type** - comma separated content types (default ``post``).
- **event_after**, **event_before** - numeric bounds on the ``date`` /
  ``end_date`` metadata of events.
- **tax_<taxonomy>** - comma separated term slugs for any taxonomy the
  store knows, e.g. ``tax_category=news,sports``.

Totals are returned in the ``X-WP-Total`` and ``X-WP-TotalPages``
headers.
"""

import logging
from typing import Any, Dict, List

from fastapi import APIRouter, HTTPException, Request, Response, status

from all_posts_api.app.services.all_posts_service import AllPostsService
from all_posts_api.app.services.content_store import ContentStoreError
from all_posts_api.app.services.param_resolver import InvalidParameterError


logger = logging.getLogger(__name__)

router = APIRouter()


def get_service(request: Request) -> AllPostsService:
    return request.app.state.all_posts_service


@router.get("/all-posts", response_model=List[Dict[str, Any]])
def list_all_posts(request: Request, response: Response) -> List[Dict[str, Any]]:
    """Return posts of the requested types with custom fields and terms."""
    service = get_service(request)
    try:
        page = service.list_posts(dict(request.query_params))
    except InvalidParameterError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e
    except ContentStoreError as e:
        logger.exception("Content store failed while listing posts")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e)) from e
    response.headers["X-WP-Total"] = str(page.total)
    response.headers["X-WP-TotalPages"] = str(page.total_pages)
    return page.posts
