"""Collecting Unity YAML files from command-line paths."""

from __future__ import annotations

from pathlib import Path

# Searched for in directories. Scenes and ScriptableObject assets hold
# objects without an owning GameObject, so they are only checked when named
# explicitly.
PREFAB_EXTENSIONS = {
    ".prefab",
}


def collect_files(
    paths: list[Path] | tuple[Path, ...],
    extensions: set[str] | None = None,
) -> list[Path]:
    """Expand paths into a sorted, de-duplicated list of files.

    Explicit files are always kept; directories are searched recursively
    for files with one of ``extensions`` (default: PREFAB_EXTENSIONS).
    """
    if extensions is None:
        extensions = PREFAB_EXTENSIONS

    files: list[Path] = []
    for path in paths:
        if path.is_file():
            files.append(path)
        elif path.is_dir():
            for ext in extensions:
                files.extend(path.rglob(f"*{ext}"))

    return sorted(set(files))
