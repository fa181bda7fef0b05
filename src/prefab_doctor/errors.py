"""Failure kinds raised while analyzing a document.

Three kinds, reported separately:
- DocumentSkipped: out of supported scope, not an error
- UnsupportedCorruption: a known problem with no unambiguous fix
- StructuralFault: an invariant that well-formed input never violates
"""

from __future__ import annotations

from enum import Enum


class SkipReason(Enum):
    """Why a document was not analyzed."""

    LEGACY_FORMAT = "legacy-format"
    TOO_SHORT = "too-short"


class PrefabDoctorError(Exception):
    """Base class for all analysis failures."""

    def __init__(self, message: str, line: int | None = None):
        super().__init__(message)
        self.message = message
        self.line = line

    def __str__(self) -> str:
        if self.line is not None:
            return f"{self.message} (line {self.line})"
        return self.message


class DocumentSkipped(PrefabDoctorError):
    def __init__(self, reason: SkipReason, message: str):
        super().__init__(message)
        self.reason = reason


class UnsupportedCorruption(PrefabDoctorError):
    pass


class StructuralFault(PrefabDoctorError):
    pass
