"""FastAPI service exposing CRUD operations over tours.

This package provides REST API endpoints for listing, reading, creating,
updating and deleting tour documents stored in MongoDB.
"""

__version__ = "1.0.0"
