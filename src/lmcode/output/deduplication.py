"""Near-duplicate block removal for looping model output."""

import difflib

import structlog

logger = structlog.get_logger(__name__)


def similarity(a: str, b: str) -> float:
    """Similarity ratio in [0, 1] between two text blocks."""
    return difflib.SequenceMatcher(None, a, b).ratio()


def is_repeat(reference: str, candidate: str, threshold: float) -> bool:
    """True when ``candidate`` is more than ``threshold`` similar to ``reference``."""
    matcher = difflib.SequenceMatcher(None, reference, candidate)
    # Cheap upper bounds first; ratio() is quadratic.
    if matcher.real_quick_ratio() <= threshold:
        return False
    if matcher.quick_ratio() <= threshold:
        return False
    return matcher.ratio() > threshold


def split_blocks(lines: list[str]) -> list[list[str]]:
    """Group lines into maximal runs of non-blank lines."""
    blocks: list[list[str]] = []
    current: list[str] = []
    for line in lines:
        if line.strip():
            current.append(line)
        elif current:
            blocks.append(current)
            current = []
    if current:
        blocks.append(current)
    return blocks


def deduplicate_blocks(lines: list[str], threshold: float) -> list[list[str]]:
    """Drop blocks that repeat the previously kept block.

    Each block is compared only with the last block that was kept, so a run
    of repeats collapses onto its first occurrence.
    """
    kept: list[list[str]] = []
    reference: str | None = None

    for block in split_blocks(lines):
        text = "\n".join(block)
        if reference is not None and is_repeat(reference, text, threshold):
            logger.debug("duplicate_block_dropped", lines=len(block))
            continue
        kept.append(block)
        reference = text

    return kept
