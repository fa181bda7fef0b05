"""Repair engine: turns one anomaly into an edited copy of the document lines.

Only one anomaly is applied per call. Edits shift line indices, and every
index held by the parsed records refers to the unedited document, so callers
re-parse the result before looking for further problems.
"""

from __future__ import annotations

import logging

from prefab_doctor.allocator import allocate_file_id
from prefab_doctor.errors import StructuralFault
from prefab_doctor.parser import GameObjectRecord, format_component_ref, line_ending
from prefab_doctor.validator import (
    Anomaly,
    AssignFreshId,
    RepairPairing,
    RewriteCompRefBlock,
)

logger = logging.getLogger(__name__)

ANCHOR_MARKER = "&"


def insert_file_id(lines: list[str], index: int, file_id: str) -> None:
    """Write ``file_id`` right after the anchor marker on ``lines[index]``."""
    line = lines[index]
    pos = line.find(ANCHOR_MARKER)
    if pos < 0:
        raise StructuralFault(f"Expected '{ANCHOR_MARKER}' in anchor line", index + 1)
    lines[index] = line[: pos + 1] + file_id + line[pos + 1 :]


def replace_component_refs(
    lines: list[str], owner: GameObjectRecord, component_ids: list[str]
) -> None:
    """Replace the owner's "- component:" block with one line per id, in order."""
    refs = owner.component_refs
    if refs is None:
        raise StructuralFault(
            f"GameObject '{owner.name}' has no component list", owner.anchor_line + 1
        )
    expected = list(range(owner.block_start, owner.block_start + owner.block_length))
    if [ref.line for ref in refs] != expected:
        raise StructuralFault(
            f"Component list of '{owner.name}' is not contiguous", owner.block_start + 1
        )

    block = slice(owner.block_start, owner.block_start + owner.block_length)
    endings = [line_ending(line) for line in lines[block]]
    # Kept positions keep their ending and added entries copy the first one.
    # The last entry takes the old last ending, which is empty at EOF.
    new_lines = []
    for index, file_id in enumerate(component_ids):
        if index == len(component_ids) - 1:
            ending = endings[-1]
        elif index < len(endings) - 1:
            ending = endings[index]
        else:
            ending = endings[0] or "\n"
        new_lines.append(format_component_ref(file_id, ending))
    lines[block] = new_lines


def apply_anomaly(lines: list[str], anomaly: Anomaly) -> list[str]:
    """Apply a single fix.

    Args:
        lines: Original document lines (left untouched)
        anomaly: The anomaly reported by the validator for these lines

    Returns:
        A new list of lines with the fix applied
    """
    fixed = list(lines)

    if isinstance(anomaly, AssignFreshId):
        new_id = allocate_file_id(anomaly.known_ids)
        insert_file_id(fixed, anomaly.component.anchor_line, new_id)
        replace_component_refs(
            fixed, anomaly.owner, anomaly.owner.component_ids + [new_id]
        )
        logger.info(
            "Assigned fileID %s to component on line %d",
            new_id,
            anomaly.component.anchor_line + 1,
        )
    elif isinstance(anomaly, RepairPairing):
        insert_file_id(fixed, anomaly.component.anchor_line, anomaly.dangling_id)
        logger.info(
            "Restored fileID %s on line %d",
            anomaly.dangling_id,
            anomaly.component.anchor_line + 1,
        )
    elif isinstance(anomaly, RewriteCompRefBlock):
        replace_component_refs(fixed, anomaly.owner, anomaly.component_ids)
        logger.info(
            "Rewrote component list of '%s' (%d entries)",
            anomaly.owner.name,
            len(anomaly.component_ids),
        )
    else:
        raise TypeError(f"Unknown anomaly: {anomaly!r}")

    return fixed
