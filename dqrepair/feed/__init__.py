"""Record feed input."""

from .reader import FeedData, FeedHeaderError, FeedLine, FeedReadError, iter_records, read_feed

__all__ = [
    "FeedData",
    "FeedHeaderError",
    "FeedLine",
    "FeedReadError",
    "iter_records",
    "read_feed",
]
