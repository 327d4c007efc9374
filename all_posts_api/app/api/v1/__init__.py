"""
Version 1 of the API.

Breaking changes to the response format should be introduced in a new
version subpackage (e.g. ``v2``) mounted under its own namespace.
"""
