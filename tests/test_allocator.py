"""Tests for fresh fileID allocation."""

import pytest

from prefab_doctor.allocator import MAX_ATTEMPTS, SEED_FILE_ID, allocate_file_id
from prefab_doctor.errors import StructuralFault


class TestAllocateFileId:
    """Tests for allocate_file_id."""

    def test_seed_when_free(self):
        assert allocate_file_id({"100", "200"}) == str(SEED_FILE_ID)

    def test_skips_taken_ids(self):
        assert allocate_file_id({"-1337", "-1336"}) == "-1335"

    def test_result_not_in_known_ids(self):
        known = {str(SEED_FILE_ID + i) for i in range(50)}

        assert allocate_file_id(known) not in known

    def test_exhaustion_is_fatal(self):
        known = {"-1337", "-1336", "-1335"}

        with pytest.raises(StructuralFault):
            allocate_file_id(known, max_attempts=3)

    def test_default_bound(self):
        assert MAX_ATTEMPTS == 100_000
