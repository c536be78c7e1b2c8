"""Text and payload preprocessing."""

from .cleaner import TextCleaner
from .payloads import PayloadReader

__all__ = ["TextCleaner", "PayloadReader"]
