"""
API package containing versioned routes.

A version subpackage exposes a top‑level ``router`` which includes all
of its endpoints.  The router is mounted under the deployment
namespace (``settings.namespace``), e.g. ``/custom-endpoint/v1``.
"""
