"""Model output sanitization."""

from .deduplication import deduplicate_blocks, similarity
from .sanitizer import OutputSanitizer, clean

__all__ = [
    "OutputSanitizer",
    "clean",
    "deduplicate_blocks",
    "similarity",
]
