"""GameObject/component reference graph validator.

Checks that every GameObject's component list and every component's
m_GameObject back-reference agree, and classifies the first disagreement
found into one of the repairable anomalies below. Anything that cannot be
fixed without guessing raises UnsupportedCorruption instead.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Union

from prefab_doctor.errors import StructuralFault, UnsupportedCorruption
from prefab_doctor.parser import (
    RECT_TRANSFORM_CLASS_ID,
    TRANSFORM_CLASS_ID,
    ComponentRecord,
    GameObjectRecord,
    PrefabInstanceRecord,
    Record,
    StrippedRecord,
)

logger = logging.getLogger(__name__)

# m_TransformParent of a root prefab instance
NULL_FILE_ID = "0"

UNFIXABLE_CLASS_IDS = {TRANSFORM_CLASS_ID, RECT_TRANSFORM_CLASS_ID}


@dataclass
class AssignFreshId:
    """A component lost its fileID and its GameObject does not list it."""

    component: ComponentRecord
    owner: GameObjectRecord
    known_ids: frozenset[str]

    kind = "assign-fresh-id"

    def describe(self) -> str:
        return (
            f"Component on line {self.component.anchor_line + 1} has no fileID; "
            f"assigning a new one and adding it to '{self.owner.name}'"
        )


@dataclass
class RepairPairing:
    """A component lost its fileID and its GameObject lists exactly one unknown id."""

    component: ComponentRecord
    owner: GameObjectRecord
    dangling_id: str

    kind = "repair-pairing"

    def describe(self) -> str:
        return (
            f"Component on line {self.component.anchor_line + 1} has no fileID; "
            f"restoring {self.dangling_id} listed by '{self.owner.name}'"
        )


@dataclass
class RewriteCompRefBlock:
    """A GameObject's component list disagrees with the components pointing at it."""

    owner: GameObjectRecord
    component_ids: list[str]

    kind = "rewrite-component-list"

    def describe(self) -> str:
        return (
            f"Component list of '{self.owner.name}' (line {self.owner.block_start + 1}) "
            f"rewritten to {', '.join(self.component_ids)}"
        )


Anomaly = Union[AssignFreshId, RepairPairing, RewriteCompRefBlock]


@dataclass
class ValidationReport:
    """Derived reference information for one document.

    Attributes:
        known_ids: Every non-empty fileID declared by an anchor
        game_objects: GameObjects by fileID, document order
        referencing_components: GameObject fileID -> ids of the components
            whose m_GameObject points at it, in document order
        broken: GameObject fileIDs whose component list has an empty entry
        dangling: GameObject fileID -> listed component ids that no anchor declares
    """

    known_ids: set[str] = field(default_factory=set)
    game_objects: dict[str, GameObjectRecord] = field(default_factory=dict)
    referencing_components: dict[str, list[str]] = field(default_factory=dict)
    broken: set[str] = field(default_factory=set)
    dangling: dict[str, list[str]] = field(default_factory=dict)

    def dangling_for(self, game_object_id: str) -> list[str]:
        return self.dangling.get(game_object_id, [])


class ReferenceGraphValidator:
    """Finds at most one anomaly per pass, in a fixed priority order."""

    def __init__(self, records: list[Record]):
        self.records = records
        self.report = ValidationReport()

    def _of_type(self, record_type: type) -> list:
        return [r for r in self.records if isinstance(r, record_type)]

    def find_anomaly(self) -> Anomaly | None:
        """Run every check and return the first repairable anomaly.

        Returns:
            The anomaly to repair, or None if the document is consistent

        Raises:
            UnsupportedCorruption: corruption with no unambiguous fix
            StructuralFault: an invariant of well-formed documents is violated
        """
        self.report = ValidationReport()
        self._check_anchor_ids()
        self._index_ids()
        self._classify_component_lists()
        self._check_prefab_transform_parents()
        self._check_component_owners()

        anomaly = self._check_missing_component_ids()
        if anomaly is None:
            anomaly = self._check_component_lists()

        if anomaly is not None:
            logger.debug("Found %s: %s", anomaly.kind, anomaly.describe())
        return anomaly

    def _check_anchor_ids(self) -> None:
        for record in self.records:
            if isinstance(record, PrefabInstanceRecord) and record.file_id.is_empty:
                raise UnsupportedCorruption(
                    "The fileID of a prefab instance is broken", record.anchor_line + 1
                )
            if isinstance(record, StrippedRecord) and record.file_id.is_empty:
                raise UnsupportedCorruption(
                    "The fileID of a stripped object is broken", record.anchor_line + 1
                )

        game_objects = self._of_type(GameObjectRecord)
        for go in game_objects:
            if go.file_id.is_empty:
                raise UnsupportedCorruption(
                    "The fileID of a GameObject is broken, fix not supported yet",
                    go.anchor_line + 1,
                )
        for go in game_objects:
            # Every GameObject lists at least its own Transform
            if go.component_refs is None:
                raise StructuralFault(
                    f"GameObject '{go.name}' has no component list. Legacy prefab? "
                    "Toggle a GameObject and save to upgrade the file.",
                    go.anchor_line + 1,
                )

    def _index_ids(self) -> None:
        report = self.report
        for record in self.records:
            file_id = record.file_id.value
            if not file_id:
                continue
            if file_id in report.known_ids:
                raise UnsupportedCorruption(
                    f"Duplicate fileID {file_id}", record.anchor_line + 1
                )
            report.known_ids.add(file_id)
            if isinstance(record, GameObjectRecord):
                report.game_objects[file_id] = record

    def _classify_component_lists(self) -> None:
        report = self.report
        for go_id, go in report.game_objects.items():
            for ref in go.component_refs:
                if ref.is_empty:
                    report.broken.add(go_id)
                elif ref.value not in report.known_ids:
                    dangling = report.dangling.setdefault(go_id, [])
                    if ref.value not in dangling:
                        dangling.append(ref.value)

    def _check_prefab_transform_parents(self) -> None:
        for instance in self._of_type(PrefabInstanceRecord):
            for ref in instance.transform_parents:
                if ref.value != NULL_FILE_ID and ref.value not in self.report.known_ids:
                    raise UnsupportedCorruption(
                        "Broken m_TransformParent of a prefab instance; find the "
                        "transform it belongs to and restore its fileID",
                        ref.line + 1,
                    )

    def _check_component_owners(self) -> None:
        report = self.report
        for comp in self._of_type(ComponentRecord):
            owner = comp.owner
            if owner is None or owner.is_empty or owner.value not in report.known_ids:
                raise UnsupportedCorruption(
                    "Component has a broken m_GameObject reference", comp.anchor_line + 1
                )
            if not comp.file_id.is_empty:
                report.referencing_components.setdefault(owner.value, []).append(
                    comp.file_id.value
                )

    def _check_missing_component_ids(self) -> Anomaly | None:
        report = self.report
        for comp in self._of_type(ComponentRecord):
            if not comp.file_id.is_empty:
                continue
            line = comp.anchor_line + 1
            if comp.class_id in UNFIXABLE_CLASS_IDS:
                raise UnsupportedCorruption(
                    f"Broken fileID on a {comp.class_name}; fix would be too risky", line
                )

            owner = report.game_objects.get(comp.owner.value)
            if owner is None:
                raise UnsupportedCorruption(
                    "Broken fileID and no GameObject to repair it against", line
                )

            dangling = report.dangling_for(comp.owner.value)
            if not dangling:
                return AssignFreshId(comp, owner, frozenset(report.known_ids))
            if len(dangling) == 1:
                return RepairPairing(comp, owner, dangling[0])
            raise UnsupportedCorruption(
                f"Broken fileID, but GameObject on line {owner.anchor_line + 1} "
                f"lists {len(dangling)} unknown components",
                line,
            )
        return None

    def _check_component_lists(self) -> Anomaly | None:
        report = self.report
        for go_id, go in report.game_objects.items():
            referencing = report.referencing_components.get(go_id)
            if referencing is None:
                raise UnsupportedCorruption(
                    f"Orphan game object: no component references '{go.name}'",
                    go.anchor_line + 1,
                )
            if len(referencing) != len(go.component_refs) or go_id in report.broken:
                return RewriteCompRefBlock(go, list(referencing))
        return None


def find_anomaly(records: list[Record]) -> tuple[Anomaly | None, ValidationReport]:
    """Convenience wrapper around ReferenceGraphValidator.

    Returns:
        Tuple of (anomaly or None, the validation report)
    """
    validator = ReferenceGraphValidator(records)
    anomaly = validator.find_anomaly()
    return anomaly, validator.report
