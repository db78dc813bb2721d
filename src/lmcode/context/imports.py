"""Pattern-based import extraction and relative import resolution.

Extraction is plain regex matching, not parsing: an import-like string inside
a string literal or comment is reported as an import too.
"""

import re
from pathlib import Path

from .reader import CONFIG_EXTENSIONS, SOURCE_EXTENSIONS, normalize_path

JS_LIKE_EXTENSIONS: frozenset[str] = frozenset({
    ".js", ".jsx", ".mjs", ".cjs", ".ts", ".tsx", ".mts", ".cts", ".vue", ".svelte",
})
PY_LIKE_EXTENSIONS: frozenset[str] = frozenset({".py", ".pyi"})

# Lookup order for extensionless relative specifiers.
RESOLVE_EXTENSIONS: tuple[str, ...] = (
    ".ts", ".tsx", ".js", ".jsx", ".mjs", ".cjs", ".vue", ".svelte", ".py",
)

JS_IMPORT_PATTERN = re.compile(
    r"""(?:\bimport\s*\(?|\brequire\s*\(|\bfrom)\s*['"]([^'"\n]+)['"]"""
)
PY_IMPORT_PATTERN = re.compile(
    r"^[ \t]*(?:"
    r"from[ \t]+(?P<module>\.+[\w.]*|[\w.]+)[ \t]+import\b"
    r"(?:[ \t]*\(?[ \t]*(?P<imported>[\w*]+(?:[ \t]+as[ \t]+\w+)?"
    r"(?:[ \t]*,[ \t]*\w+(?:[ \t]+as[ \t]+\w+)?)*))?"
    r"|import[ \t]+(?P<names>[\w.]+(?:[ \t]+as[ \t]+\w+)?"
    r"(?:[ \t]*,[ \t]*[\w.]+(?:[ \t]+as[ \t]+\w+)?)*)"
    r")",
    re.MULTILINE,
)

PATH_RELATIVE_PREFIXES = ("./", "../")


def extract_imports(text: str, file_path: str | Path) -> list[str]:
    """Extract import specifiers in first-occurrence order, deduplicated."""
    suffix = Path(file_path).suffix.lower()
    found: list[str] = []

    if suffix in JS_LIKE_EXTENSIONS:
        found = [m.group(1).strip() for m in JS_IMPORT_PATTERN.finditer(text)]
    elif suffix in PY_LIKE_EXTENSIONS:
        for match in PY_IMPORT_PATTERN.finditer(text):
            module = match.group("module")
            if module:
                found.extend(_from_import_targets(module, match.group("imported")))
                continue
            for name in match.group("names").split(","):
                parts = name.split()
                if parts:
                    found.append(parts[0])

    return list(dict.fromkeys(spec for spec in found if spec))


def _from_import_targets(module: str, imported: str | None) -> list[str]:
    """``from . import util`` names modules, so ``.util`` is the target."""
    if module.strip(".") or not imported:
        return [module]
    targets = []
    for name in imported.split(","):
        parts = name.split()
        if parts and parts[0] != "*":
            targets.append(module + parts[0])
    return targets or [module]


def resolve_import_path(
    specifier: str,
    from_file: str | Path,
    root: str | Path,
) -> Path | None:
    """Map a relative specifier to an existing file inside ``root``.

    Bare package specifiers are never resolved so dependency trees stay out
    of the context.
    """
    base_dir = normalize_path(from_file).parent
    root_path = normalize_path(root)

    if specifier.startswith(PATH_RELATIVE_PREFIXES):
        resolved = _resolve_path_specifier(base_dir / specifier)
    elif specifier.startswith(".") and "/" not in specifier:
        resolved = _resolve_python_relative(specifier, base_dir)
    else:
        return None

    if resolved is None or not resolved.is_relative_to(root_path):
        return None
    return resolved


def _resolve_path_specifier(raw: Path) -> Path | None:
    candidate = normalize_path(raw)
    if not candidate.name:
        return None

    if candidate.suffix:
        if candidate.is_file():
            return candidate
        if candidate.suffix.lower() in SOURCE_EXTENSIONS | CONFIG_EXTENSIONS:
            return None

    for ext in RESOLVE_EXTENSIONS:
        with_ext = candidate.with_name(candidate.name + ext)
        if with_ext.is_file():
            return with_ext

    for ext in RESOLVE_EXTENSIONS:
        index = candidate / f"index{ext}"
        if index.is_file():
            return index

    return candidate if candidate.is_file() else None


def _resolve_python_relative(specifier: str, base_dir: Path) -> Path | None:
    module = specifier.lstrip(".")
    levels = len(specifier) - len(module)

    package_dir = base_dir
    for _ in range(levels - 1):
        package_dir = package_dir.parent

    target = package_dir.joinpath(*module.split(".")) if module else package_dir

    if module:
        as_module = target.with_name(target.name + ".py")
        if as_module.is_file():
            return normalize_path(as_module)

    init = target / "__init__.py"
    if init.is_file():
        return normalize_path(init)
    return None
