"""Unity YAML Document Parser.

Line-oriented parser for Unity's serialized scene/prefab text. It does not
build a YAML tree: it only recognises document anchors and the handful of
reference lines needed to check the GameObject/component graph, so it keeps
working on documents a YAML parser would reject (e.g. an empty ``&`` anchor).
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Union

from prefab_doctor.errors import DocumentSkipped, SkipReason

logger = logging.getLogger(__name__)

# Smallest realistic document (GameObject + Transform) is around 20 lines
MIN_DOCUMENT_LINES = 15

# Class IDs the parser and validator care about
GAME_OBJECT_CLASS_ID = 1
TRANSFORM_CLASS_ID = 4
RECT_TRANSFORM_CLASS_ID = 224
PREFAB_INSTANCE_CLASS_ID = 1001

CLASS_IDS = {
    GAME_OBJECT_CLASS_ID: "GameObject",
    TRANSFORM_CLASS_ID: "Transform",
    20: "Camera",
    23: "MeshRenderer",
    33: "MeshFilter",
    54: "Rigidbody",
    65: "BoxCollider",
    82: "AudioSource",
    114: "MonoBehaviour",
    212: "SpriteRenderer",
    222: "CanvasRenderer",
    223: "Canvas",
    RECT_TRANSFORM_CLASS_ID: "RectTransform",
    225: "CanvasGroup",
    PREFAB_INSTANCE_CLASS_ID: "PrefabInstance",
}

# Document anchor: --- !u!{ClassID} &{fileID}[ stripped]
# The fileID may be missing entirely, which is the corruption we look for.
ANCHOR_PATTERN = re.compile(r"^--- !u!(\d+) &(-?\d+)?( stripped)?")

COMPONENT_REF_PATTERN = re.compile(r"^  - component: \{fileID: (-?\d+)?\}")
GAME_OBJECT_REF_PATTERN = re.compile(r"^  m_GameObject: \{fileID: (-?\d+)?\}")
TRANSFORM_PARENT_PATTERN = re.compile(r"^    m_TransformParent: \{fileID: (-?\d+)?\}")
NAME_PATTERN = re.compile(r"^  m_Name: (\w+)")

# Pre-2018 component list entries: "  - 4: {fileID: 400000}"
LEGACY_COMPONENT_REF_PATTERN = re.compile(
    r"^  - (-?\d+): \{fileID: (-?\d+)?\}", re.MULTILINE
)

COMPONENT_REF_LINE = "  - component: {{fileID: {file_id}}}"


@dataclass
class FileIdRef:
    """A fileID value together with the 0-based line it was read from.

    ``value`` is the raw digits; an empty string means the line carried
    ``{fileID: }`` or ``&`` with nothing after it.
    """

    line: int
    value: str

    @property
    def is_empty(self) -> bool:
        return not self.value


@dataclass
class ObjectRecord:
    """Fields shared by every parsed document."""

    class_id: int
    file_id: FileIdRef

    @property
    def class_name(self) -> str:
        return CLASS_IDS.get(self.class_id, f"Unknown({self.class_id})")

    @property
    def anchor_line(self) -> int:
        return self.file_id.line


@dataclass
class GameObjectRecord(ObjectRecord):
    name: str = ""
    # None until the first "- component:" line is seen
    component_refs: list[FileIdRef] | None = None
    block_start: int = 0
    block_length: int = 0

    @property
    def component_ids(self) -> list[str]:
        return [ref.value for ref in self.component_refs or []]


@dataclass
class ComponentRecord(ObjectRecord):
    owner: FileIdRef | None = None


@dataclass
class PrefabInstanceRecord(ObjectRecord):
    transform_parents: list[FileIdRef] = field(default_factory=list)


@dataclass
class StrippedRecord(ObjectRecord):
    pass


Record = Union[GameObjectRecord, ComponentRecord, PrefabInstanceRecord, StrippedRecord]


def split_lines(content: str) -> list[str]:
    """Split document text into lines, each keeping its own LF or CRLF ending.

    Only the last line can lack an ending. Patterns are matched with
    ``re.match`` and never anchor at ``$``, so the ending does not get in
    the way of parsing.
    """
    lines = [line + "\n" for line in content.split("\n")]
    lines[-1] = lines[-1][:-1]
    if not lines[-1]:
        lines.pop()
    return lines


def line_ending(line: str) -> str:
    if line.endswith("\r\n"):
        return "\r\n"
    if line.endswith("\n"):
        return "\n"
    return ""


def strip_line_ending(line: str) -> str:
    return line[: len(line) - len(line_ending(line))]


def join_lines(lines: list[str]) -> str:
    """Inverse of split_lines."""
    return "".join(lines)


def format_component_ref(file_id: str, ending: str = "") -> str:
    return COMPONENT_REF_LINE.format(file_id=file_id) + ending


def has_legacy_syntax(content: str) -> bool:
    """Check for the pre-2018 component list layout."""
    return LEGACY_COMPONENT_REF_PATTERN.search(content) is not None


def check_supported(content: str, lines: list[str], label: str = "<content>") -> None:
    """Raise DocumentSkipped if the document is out of supported scope."""
    if has_legacy_syntax(content):
        raise DocumentSkipped(
            SkipReason.LEGACY_FORMAT,
            f"{label}: legacy prefab syntax. Toggle a GameObject and save it in "
            "the editor to upgrade the file.",
        )
    if len(lines) < MIN_DOCUMENT_LINES:
        raise DocumentSkipped(
            SkipReason.TOO_SHORT,
            f"{label}: only {len(lines)} lines, the file looks truncated.",
        )


def _new_record(class_id: int, file_id: FileIdRef, stripped: bool) -> Record:
    if stripped:
        return StrippedRecord(class_id=class_id, file_id=file_id)
    if class_id == GAME_OBJECT_CLASS_ID:
        return GameObjectRecord(class_id=class_id, file_id=file_id)
    if class_id == PREFAB_INSTANCE_CLASS_ID:
        return PrefabInstanceRecord(class_id=class_id, file_id=file_id)
    return ComponentRecord(class_id=class_id, file_id=file_id)


def parse_records(lines: list[str]) -> list[Record]:
    """Parse document lines into records, in document order.

    Args:
        lines: Document lines as returned by split_lines

    Returns:
        One record per anchor line. Lines before the first anchor
        (the %YAML/%TAG header) belong to no record.
    """
    records: list[Record] = []
    current: Record | None = None

    for index, line in enumerate(lines):
        anchor = ANCHOR_PATTERN.match(line)
        if anchor:
            if current is not None:
                records.append(current)
            current = _new_record(
                class_id=int(anchor.group(1)),
                file_id=FileIdRef(index, anchor.group(2) or ""),
                stripped=anchor.group(3) is not None,
            )
            continue

        if isinstance(current, GameObjectRecord):
            match = COMPONENT_REF_PATTERN.match(line)
            if match:
                if current.component_refs is None:
                    current.component_refs = []
                    current.block_start = index
                current.component_refs.append(FileIdRef(index, match.group(1) or ""))
                current.block_length += 1
                continue
            match = NAME_PATTERN.match(line)
            if match:
                current.name = match.group(1)
        elif isinstance(current, ComponentRecord):
            match = GAME_OBJECT_REF_PATTERN.match(line)
            if match:
                current.owner = FileIdRef(index, match.group(1) or "")
        elif isinstance(current, PrefabInstanceRecord):
            match = TRANSFORM_PARENT_PATTERN.match(line)
            if match:
                current.transform_parents.append(FileIdRef(index, match.group(1) or ""))

    if current is not None:
        records.append(current)

    logger.debug("Parsed %d records from %d lines", len(records), len(lines))
    return records


def parse_document(content: str, label: str = "<content>") -> tuple[list[str], list[Record]]:
    """Split, scope-check and parse document text.

    Args:
        content: Full document text
        label: Name used in messages (usually the file path)

    Returns:
        Tuple of (lines, records)

    Raises:
        DocumentSkipped: legacy syntax or a truncated document
    """
    lines = split_lines(content)
    check_supported(content, lines, label)
    return lines, parse_records(lines)
