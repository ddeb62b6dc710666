"""Test utilities for bookswap applications::

    from bookswap.testing import TestClient
"""

from bookswap.testing.client import TestClient

__all__ = ["TestClient"]
