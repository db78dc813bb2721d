"""Text cleanup stages for raw model replies.

Every stage is a pure ``str -> str`` (or ``str -> list[str]``) transform.
Comment stripping is regex substitution, not lexing: comment-like text
inside string literals is stripped too.
"""

import re

REASONING_BLOCK = re.compile(
    r"<(think|thinking|reasoning)>.*?</\1>", re.DOTALL | re.IGNORECASE
)
DANGLING_REASONING_END = re.compile(
    r"^.*?</(?:think|thinking|reasoning)>", re.DOTALL | re.IGNORECASE
)

FENCED_BLOCK = re.compile(r"```[^\n`]*\n(.*?)```", re.DOTALL)
FENCE_LINE = re.compile(r"^\s*```")
PROSE_LEAD_IN = re.compile(
    r"^(?:here(?:['’]s|\s+is|\s+are)|explanation|note|summary|solution"
    r"|answer|improved|fixed)\b"
    # Not when the word is used as a name: call, attribute, index, comparison
    # or (augmented) assignment.
    r"(?!\s*(?:[=(.\[,<>!]|[-+*/%@&|^]=|//=|\*\*=|<<=|>>=))"
    # Nor as an annotated name, e.g. `note: str = ""` or `answer: int`.
    r"(?!\s*:\s*[\w.\[\]]+(?:\s*[|,]\s*[\w.\[\]]+)*\s*(?:=.*)?$)",
    re.IGNORECASE,
)

BLOCK_COMMENT = re.compile(r"/\*.*?\*/", re.DOTALL)
MARKUP_COMMENT = re.compile(r"<!--.*?-->", re.DOTALL)
HASH_LINE_COMMENT = re.compile(
    r"^\s*#(?![!\[]|(?:include|define|undef|ifn?def|if|elif|else|endif"
    r"|pragma|import|region|endregion|error|warning)\b).*$"
)
# `//` starts a comment only at line start or after a statement end, so
# Python floor division and URLs survive.
LINE_COMMENT = re.compile(r"(?:^|(?<=[;{},]))\s*//.*$")
HASH_TRAILING_COMMENT = re.compile(r"\s+#\s.*$")
SQL_COMMENT = re.compile(r"(?:^|(?<=\s))--(?:\s.*)?$")

LINE_COMMENT_PATTERNS = (
    HASH_LINE_COMMENT,
    LINE_COMMENT,
    HASH_TRAILING_COMMENT,
    SQL_COMMENT,
)

# Placeholder for removed comment text; lines left holding only this are dropped.
_REMOVED = "\x00"


def strip_reasoning(text: str) -> str:
    text = REASONING_BLOCK.sub("", text)
    return DANGLING_REASONING_END.sub("", text)


def fenced_bodies(text: str) -> list[str]:
    """Trimmed, non-empty fenced code bodies in their original order."""
    bodies = (body.strip() for body in FENCED_BLOCK.findall(text))
    return [body for body in bodies if body]


def cut_at_prose(text: str) -> str:
    """Keep lines up to the first prose lead-in, dropping stray fence lines."""
    kept = []
    for line in text.split("\n"):
        if PROSE_LEAD_IN.match(line.strip()):
            break
        if FENCE_LINE.match(line):
            continue
        kept.append(line)
    return "\n".join(kept)


def strip_comments(code: str) -> str:
    code = code.replace(_REMOVED, "")
    code = BLOCK_COMMENT.sub(_REMOVED, code)
    code = MARKUP_COMMENT.sub(_REMOVED, code)

    lines = []
    for line in code.split("\n"):
        for pattern in LINE_COMMENT_PATTERNS:
            line = pattern.sub(_REMOVED, line)
        if _REMOVED in line:
            line = line.replace(_REMOVED, "")
            if not line.strip():
                continue
        lines.append(line)
    return "\n".join(lines)


def normalize_lines(code: str) -> list[str]:
    """Right-trim lines and collapse blank-line runs to a single blank."""
    lines: list[str] = []
    for line in code.split("\n"):
        line = line.rstrip()
        if line == "" and lines and lines[-1] == "":
            continue
        lines.append(line)
    return lines
