"""
Todo API package.

A FastAPI service exposing CRUD endpoints for todo items stored in a MongoDB
collection. The ASGI application lives in ``todo_api.main:app``.
"""

__version__ = "0.1.0"
