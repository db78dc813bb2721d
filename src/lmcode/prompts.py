"""Prompt builders for generation and inline completion."""

from pathlib import Path

SYSTEM_PROMPT = """You are a silent code generator.
Output ONLY the final code.
No explanations, no thoughts, no tags, no markdown, no triple backticks.
No reasoning of any kind. Never use <think> or any XML tags.
Never add comments explaining changes."""

GENERATION_INSTRUCTIONS = """INSTRUCTIONS:
- Output ONLY the raw code, no explanations, no markdown fences, no comments in code, no extra text.
- Match the exact coding style and formatting of the surrounding code.
- Make it syntactically correct and ready to run.
- Do not output the file name or the language name.
- If the solution needs context that is missing from PROJECT CONTEXT, make reasonable assumptions.
- Never say "I think", "here is", "updated version", etc."""

COMPLETION_STOP_SEQUENCES = ["\n\n", "```", "\n", "\n#", "\n// TODO", "\n<!--"]


def current_file_snippet(
    path: str | Path,
    text: str,
    cursor_line: int,
    context_lines: int = 50,
) -> str:
    """Window of ``context_lines`` around the cursor, cursor line marked ``>>>``.

    ``cursor_line`` is zero-based.
    """
    lines = text.split("\n")
    half = context_lines // 2
    start = max(0, cursor_line - half)
    end = min(len(lines) - 1, cursor_line + half)

    out = [f"CURRENT FILE: {Path(path).name}"]
    for i in range(start, end + 1):
        prefix = ">>> " if i == cursor_line else "    "
        out.append(f"{prefix}{lines[i]}")
    return "\n".join(out) + "\n"


def build_generation_prompt(
    project_context: str,
    current_file_context: str,
    selected_code: str,
) -> str:
    return (
        "You are an expert developer. Replace the selected code with better, "
        "cleaner, or fixed code that perfectly fits this project.\n\n"
        f"PROJECT CONTEXT:\n{project_context}\n\n"
        f"CURRENT FILE SNIPPET:\n{current_file_context}\n\n"
        f"SELECTED CODE TO REPLACE:\n{selected_code}\n\n"
        f"{GENERATION_INSTRUCTIONS}"
    )

