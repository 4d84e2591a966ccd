"""Mini README: HTTP interface for the finance dashboard.

Exports the FastAPI application factory consumed by ``main_finance_centre``
and by uvicorn's ``--factory`` mode.
"""

from .web_app import create_application

__all__ = ["create_application"]
