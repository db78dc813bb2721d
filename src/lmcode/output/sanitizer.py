"""Reduce a raw model reply to clean, non-duplicated code."""

import structlog

from lmcode.config import settings

from .cleaning import (
    cut_at_prose,
    fenced_bodies,
    normalize_lines,
    strip_comments,
    strip_reasoning,
)
from .deduplication import deduplicate_blocks

logger = structlog.get_logger(__name__)

# Upper bound on cleanup passes; one pass can expose prose or comment text
# that only the next pass removes.
MAX_PASSES = 10


class OutputSanitizer:
    """Cleanup pipeline applied to every model reply before insertion.

    Stages run in order: reasoning removal, code extraction, comment
    stripping, line normalization, near-duplicate block removal. Fenced
    bodies are taken whole; only an unfenced reply is cut at its first prose
    line. The cleanup is repeated until its output is stable.
    """

    def __init__(self, similarity_threshold: float | None = None):
        if similarity_threshold is None:
            similarity_threshold = settings.sanitizer.similarity_threshold
        self.similarity_threshold = similarity_threshold

    def clean(self, raw: str | None) -> str:
        if not raw:
            return ""

        try:
            text = strip_reasoning(raw)
            bodies = fenced_bodies(text)
            if bodies:
                # Later passes must not re-extract: the fences are gone.
                step = self._tidy
                result = step("\n\n".join(bodies))
            else:
                step = self._clean_unfenced
                result = step(text)

            for _ in range(MAX_PASSES - 1):
                again = step(result)
                if again == result:
                    break
                result = again
        except Exception:
            logger.exception("sanitize_failed", raw_length=len(raw))
            return ""

        return result

    def _clean_unfenced(self, text: str) -> str:
        return self._tidy(cut_at_prose(strip_reasoning(text)))

    def _tidy(self, code: str) -> str:
        code = strip_comments(code)
        lines = normalize_lines(code)
        blocks = deduplicate_blocks(lines, self.similarity_threshold)

        result = "\n\n".join("\n".join(block) for block in blocks).strip()
        return f"{result}\n" if result else ""


def clean(raw: str | None) -> str:
    """Convenience function using the configured similarity threshold."""
    return OutputSanitizer().clean(raw)
