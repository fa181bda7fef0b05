"""YAML sanity check for repaired documents using rapidyaml.

The repair itself never needs a YAML parser, but a repaired document
should still load as Unity YAML. Each object body is parsed on its own,
the same way the Unity YAML loader splits multi-document files.
"""

from __future__ import annotations

import ryml

from prefab_doctor.errors import StructuralFault
from prefab_doctor.parser import ANCHOR_PATTERN, split_lines, strip_line_ending


def iter_object_bodies(content: str):
    """Yield (anchor_index, body_text) for every document in ``content``."""
    lines = split_lines(content)
    starts = [i for i, line in enumerate(lines) if ANCHOR_PATTERN.match(line)]

    for idx, start in enumerate(starts):
        end = starts[idx + 1] if idx + 1 < len(starts) else len(lines)
        yield start, "\n".join(strip_line_ending(line) for line in lines[start + 1 : end])


def verify_object_bodies(content: str) -> int:
    """Parse every object body with rapidyaml.

    Returns:
        Number of bodies parsed

    Raises:
        StructuralFault: a body is not valid YAML
    """
    count = 0
    for start, body in iter_object_bodies(content):
        if body.strip():
            try:
                ryml.parse_in_arena(body.encode("utf-8"))
            except Exception as e:
                raise StructuralFault(f"Object body is not valid YAML: {e}", start + 1) from e
        count += 1
    return count
