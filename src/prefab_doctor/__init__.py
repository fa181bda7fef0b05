"""Unity Prefab Doctor.

Detects broken fileID pairings between GameObjects and their components in
Unity YAML files (prefabs, scenes, assets) and repairs them one fix at a time.
"""

from importlib.metadata import version

__version__ = version("prefab-doctor")

from prefab_doctor.doctor import (
    AnalysisResult,
    RepairResult,
    analyze,
    check_file,
    fix_file,
    repair,
)
from prefab_doctor.errors import (
    DocumentSkipped,
    PrefabDoctorError,
    SkipReason,
    StructuralFault,
    UnsupportedCorruption,
)
from prefab_doctor.files import PREFAB_EXTENSIONS, collect_files
from prefab_doctor.parser import parse_document, parse_records
from prefab_doctor.validator import (
    AssignFreshId,
    ReferenceGraphValidator,
    RepairPairing,
    RewriteCompRefBlock,
    ValidationReport,
    find_anomaly,
)

__all__ = [
    # Results
    "AnalysisResult",
    "RepairResult",
    # Anomalies
    "AssignFreshId",
    "RepairPairing",
    "RewriteCompRefBlock",
    # Validation
    "ReferenceGraphValidator",
    "ValidationReport",
    "find_anomaly",
    # Errors
    "PrefabDoctorError",
    "DocumentSkipped",
    "SkipReason",
    "StructuralFault",
    "UnsupportedCorruption",
    # Functions
    "analyze",
    "repair",
    "check_file",
    "fix_file",
    "parse_document",
    "parse_records",
    "collect_files",
    # Extension sets
    "PREFAB_EXTENSIONS",
]
