"""Analysis and repair entry points.

``analyze`` looks at one document and proposes at most one fix; ``repair``
re-runs ``analyze`` on its own output until the document is consistent or
the pass limit is reached. Both are pure functions of the text they are
given; the ``*_file`` helpers are thin wrappers that do the file I/O.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from prefab_doctor.parser import join_lines, parse_document
from prefab_doctor.repair import apply_anomaly
from prefab_doctor.validator import Anomaly, find_anomaly

logger = logging.getLogger(__name__)


@dataclass
class AnalysisResult:
    """Outcome of a single analysis pass.

    ``fixed_content`` is None when no issue was found.
    """

    path: str
    fixed_content: str | None = None
    anomaly: Anomaly | None = None

    @property
    def has_fix(self) -> bool:
        return self.fixed_content is not None


@dataclass
class RepairResult:
    """Outcome of repeated analysis passes over one document."""

    path: str
    content: str
    applied: list[Anomaly] = field(default_factory=list)
    consistent: bool = True

    @property
    def changed(self) -> bool:
        return bool(self.applied)


def analyze(path: str | Path, content: str) -> AnalysisResult:
    """Analyze one document and propose a fix for the first anomaly.

    Args:
        path: Name of the document, used in messages only
        content: Document text

    Returns:
        AnalysisResult with ``fixed_content`` set if a fix was found

    Raises:
        DocumentSkipped: legacy syntax or truncated document
        UnsupportedCorruption: corruption that cannot be fixed unambiguously
        StructuralFault: the document violates a parser invariant
    """
    label = str(path)
    lines, records = parse_document(content, label)
    anomaly, _ = find_anomaly(records)

    if anomaly is None:
        logger.debug("%s: no issues found", label)
        return AnalysisResult(path=label)

    fixed = apply_anomaly(lines, anomaly)
    logger.info("%s: %s", label, anomaly.describe())
    return AnalysisResult(
        path=label,
        fixed_content=join_lines(fixed),
        anomaly=anomaly,
    )


def repair(path: str | Path, content: str, max_passes: int = 1) -> RepairResult:
    """Apply up to ``max_passes`` fixes, one anomaly per pass.

    Returns:
        RepairResult; ``consistent`` is only True once a pass found
        nothing left to fix, so it stays False when the pass limit is hit
    """
    if max_passes < 1:
        raise ValueError(f"max_passes must be at least 1, got {max_passes}")

    result = RepairResult(path=str(path), content=content, consistent=False)
    for _ in range(max_passes):
        analysis = analyze(path, result.content)
        if not analysis.has_fix:
            result.consistent = True
            return result
        result.content = analysis.fixed_content
        result.applied.append(analysis.anomaly)

    return result


def check_file(path: str | Path) -> AnalysisResult:
    """Analyze a file without modifying it."""
    path = Path(path)
    return analyze(path, _read(path))


def fix_file(path: str | Path, max_passes: int = 1, write: bool = True) -> RepairResult:
    """Repair a file, writing it back if anything changed and ``write`` is set."""
    path = Path(path)
    result = repair(path, _read(path), max_passes=max_passes)
    if write and result.changed:
        write_document(path, result.content)
    return result


def write_document(path: str | Path, content: str) -> None:
    # newline="" keeps the document's own line endings
    Path(path).write_text(content, encoding="utf-8", newline="")


def _read(path: Path) -> str:
    # newline="" so CRLF documents are seen (and written back) as CRLF
    with open(path, encoding="utf-8", newline="") as f:
        return f.read()
