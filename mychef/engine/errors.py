"""
Exception classes for the recipe resolution engine
"""

from typing import List, Optional


class MyChefError(Exception):
    """Base exception for the resolution engine"""
    pass


class CatalogError(MyChefError):
    """Raised when a single catalog call fails (network, timeout or non-2xx)"""
    def __init__(self, message: str, status: Optional[int] = None):
        self.status = status
        detail = f" (HTTP {status})" if status is not None else ""
        super().__init__(f"Catalog request failed{detail}: {message}")


class CatalogUnavailable(MyChefError):
    """Raised when every rung of the relaxation ladder failed to reach the catalog"""
    def __init__(self, attempts: List[str], last_error: Optional[Exception] = None):
        self.attempts = attempts
        self.last_error = last_error
        super().__init__(
            f"Recipe catalog unavailable after {len(attempts)} attempts ({', '.join(attempts)}): {last_error}"
        )


class AnalysisParseFailure(MyChefError):
    """Raised when intent analysis returns content that cannot be parsed"""
    def __init__(self, raw: str):
        self.raw = raw
        preview = raw[:80] + "..." if len(raw) > 80 else raw
        super().__init__(f"Could not parse analysis response: {preview!r}")
