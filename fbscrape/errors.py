"""
Error taxonomy for fbscrape.

Backend failures of every kind are absorbed by the orchestrator and turned
into a fallback; only ExhaustionError ever reaches a caller, and then only
as the text of a failure envelope.
"""

from typing import List, Optional


class ScraperError(Exception):
    """Base class for all fbscrape errors."""


class ConfigurationError(ScraperError):
    """A required credential or flag is absent or malformed."""

    def __init__(self, message: str, errors: Optional[List[str]] = None):
        super().__init__(message)
        self.errors = errors or [message]


class TransportError(ScraperError):
    """Network failure or non-2xx upstream status."""

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.status = status


class EmptyResponseError(ScraperError):
    """The fetch succeeded but produced nothing usable."""


class ParseError(ScraperError):
    """A single element could not be extracted."""


class ExhaustionError(ScraperError):
    """Every backend failed."""
