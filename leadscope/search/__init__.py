"""Global search - API client, cache, service and search-box session."""

from .client import ApiClient
from .cache import SearchCache
from .service import GlobalSearchService
from .session import GlobalSearch

__all__ = ["ApiClient", "SearchCache", "GlobalSearchService", "GlobalSearch"]
