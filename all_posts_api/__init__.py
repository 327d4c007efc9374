"""
Top‑level package for the All-Posts API.

This file makes ``all_posts_api`` a Python package so that modules
within ``app`` can be imported using fully qualified names like
``all_posts_api.app.main``.

The package provides no public exports; all functionality lives in
submodules under ``app``.
"""

__all__ = []
