"""Pytest configuration and fixtures."""

import pytest
from fastapi.testclient import TestClient

from all_posts_api.app.core.db import init_db
from all_posts_api.app.core.config import Settings
from all_posts_api.app.main import create_app
from all_posts_api.app.services.sqlite_store import build_collaborators
from seed_content import load_document


SITE_URL = "https://example.org"


def make_post(index, **overrides):
    post = {
        "post_title": f"Post {index}",
        "post_name": f"post-{index}",
        "post_date": f"2024-01-{index:02d} 09:00:00",
        "post_content": f"<p>Body {index}</p>",
        "post_excerpt": f"Excerpt {index}",
        "post_author": 1,
    }
    post.update(overrides)
    return post


@pytest.fixture
def db_path(tmp_path):
    """Create an empty, migrated content store in a temporary directory."""
    path = str(tmp_path / "content.db")
    init_db(path)
    return path


@pytest.fixture
def seed(db_path):
    """Return a loader writing a seed document into the temporary store."""

    def _seed(posts, taxonomies=()):
        return load_document(db_path, {"posts": list(posts), "taxonomies": list(taxonomies)})

    return _seed


@pytest.fixture
def collaborators(db_path):
    return build_collaborators(Settings(site_url=SITE_URL, custom_fields_enabled=True), database_url=db_path)


@pytest.fixture
def client(collaborators):
    app = create_app(collaborators)
    with TestClient(app) as test_client:
        yield test_client
