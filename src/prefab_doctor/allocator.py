"""Fresh fileID allocation."""

from __future__ import annotations

from collections.abc import Container

from prefab_doctor.errors import StructuralFault

# Unity never generates small negative fileIDs, so this range is free in practice
SEED_FILE_ID = -1337
MAX_ATTEMPTS = 100_000


def allocate_file_id(
    known_ids: Container[str],
    seed: int = SEED_FILE_ID,
    max_attempts: int = MAX_ATTEMPTS,
) -> str:
    """Return the first fileID at or after ``seed`` not in ``known_ids``.

    Raises:
        StructuralFault: no free id within ``max_attempts`` candidates
    """
    for offset in range(max_attempts):
        candidate = str(seed + offset)
        if candidate not in known_ids:
            return candidate
    raise StructuralFault(
        f"Failed to allocate a unique fileID after {max_attempts} attempts"
    )
