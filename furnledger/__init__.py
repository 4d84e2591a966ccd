"""Mini README: Core package initializer for the furniture finance ledger.

Exposes the logging helper so entry points can configure output without
reaching into submodules. Domain packages (``ledger``, ``finance``,
``store``, ``export``, ``interface``) are imported explicitly by callers.
"""

from .logging_utils import get_logger

__all__ = ["get_logger"]
