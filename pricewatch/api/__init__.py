"""FastAPI HTTP layer package.

Public re-export so callers can write::

    from pricewatch.api import app

    uvicorn pricewatch.api:app --reload
"""

from pricewatch.api.app import app, create_app

__all__ = ["app", "create_app"]
