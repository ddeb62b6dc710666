"""kida templates: environment setup and the View/layout renderer."""

from bookswap.templating.integration import create_environment, url_globals
from bookswap.templating.view import View

__all__ = ["View", "create_environment", "url_globals"]
