"""
Service layer.

The request pipeline lives here: parameter resolution, query
compilation, result mapping and the stage registry tying them
together.  ``content_store`` declares the collaborator interfaces and
``sqlite_store`` provides the default implementations.
"""
