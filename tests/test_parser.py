"""Tests for the line-oriented Unity YAML parser."""

from pathlib import Path

import pytest

from prefab_doctor.errors import DocumentSkipped, SkipReason
from prefab_doctor.parser import (
    ComponentRecord,
    FileIdRef,
    GameObjectRecord,
    PrefabInstanceRecord,
    StrippedRecord,
    format_component_ref,
    has_legacy_syntax,
    join_lines,
    line_ending,
    parse_document,
    parse_records,
    split_lines,
    strip_line_ending,
)

FIXTURES_DIR = Path(__file__).parent / "fixtures"


def load_fixture(name: str) -> str:
    return (FIXTURES_DIR / name).read_text(encoding="utf-8")


class TestParseRecords:
    """Tests for parse_records."""

    def test_record_variants(self):
        """Test that anchors select the right record type."""
        _, records = parse_document(load_fixture("basic_prefab.prefab"))

        assert [type(r) for r in records] == [
            GameObjectRecord,
            ComponentRecord,
            ComponentRecord,
            PrefabInstanceRecord,
            StrippedRecord,
        ]
        assert [r.file_id.value for r in records] == ["100", "200", "300", "700", "800"]
        assert [r.class_id for r in records] == [1, 4, 114, 1001, 4]

    def test_game_object_fields(self):
        """Test component list, block position and name of a GameObject."""
        _, records = parse_document(load_fixture("basic_prefab.prefab"))
        go = records[0]

        assert go.name == "Player"
        assert go.anchor_line == 2
        assert go.component_ids == ["200", "300"]
        assert go.block_start == 7
        assert go.block_length == 2
        assert [ref.line for ref in go.component_refs] == [7, 8]

    def test_component_owner(self):
        """Test m_GameObject back-references of components."""
        _, records = parse_document(load_fixture("basic_prefab.prefab"))

        assert records[1].owner == FileIdRef(15, "100")
        assert records[2].owner == FileIdRef(22, "100")

    def test_prefab_instance_transform_parent(self):
        """Test m_TransformParent is collected for prefab instances."""
        _, records = parse_document(load_fixture("basic_prefab.prefab"))

        assert records[3].transform_parents == [FileIdRef(29, "200")]

    def test_class_name(self):
        """Test human-readable class names."""
        _, records = parse_document(load_fixture("basic_prefab.prefab"))

        assert records[0].class_name == "GameObject"
        assert records[2].class_name == "MonoBehaviour"
        assert "Unknown" in ComponentRecord(99999, FileIdRef(0, "1")).class_name

    def test_empty_anchor_id(self):
        """Test that an anchor without fileID parses with an empty id."""
        records = parse_records(["--- !u!114 &", "MonoBehaviour:", "  m_GameObject: {fileID: }"])

        assert len(records) == 1
        assert records[0].file_id.is_empty
        assert records[0].owner.is_empty

    def test_empty_stripped_anchor_id(self):
        """Test stripped anchors without fileID."""
        records = parse_records(["--- !u!4 & stripped", "Transform:"])

        assert isinstance(records[0], StrippedRecord)
        assert records[0].file_id.value == ""

    def test_negative_file_id(self):
        """Test negative fileIDs, as written by the allocator."""
        records = parse_records(["--- !u!114 &-1337", "MonoBehaviour:"])

        assert records[0].file_id.value == "-1337"

    def test_empty_component_ref(self):
        """Test that an empty component reference is kept, not dropped."""
        records = parse_records(
            [
                "--- !u!1 &100",
                "GameObject:",
                "  m_Component:",
                "  - component: {fileID: 200}",
                "  - component: {fileID: }",
            ]
        )

        assert records[0].component_ids == ["200", ""]
        assert records[0].block_length == 2

    def test_game_object_without_component_list(self):
        """Test that a missing component list is distinguished from an empty one."""
        records = parse_records(["--- !u!1 &100", "GameObject:", "  m_Name: Empty"])

        assert records[0].component_refs is None
        assert records[0].component_ids == []

    def test_header_lines_ignored(self):
        """Test that lines before the first anchor belong to no record."""
        records = parse_records(["%YAML 1.1", "  m_GameObject: {fileID: 1}"])

        assert records == []

    def test_component_name_not_taken_as_game_object_name(self):
        """Test that m_Name is only read inside GameObject bodies."""
        records = parse_records(
            ["--- !u!114 &300", "MonoBehaviour:", "  m_Name: Script", "  m_GameObject: {fileID: 1}"]
        )

        assert isinstance(records[0], ComponentRecord)
        assert records[0].owner.value == "1"


class TestDocumentScope:
    """Tests for legacy and truncation detection."""

    def test_legacy_syntax_detected(self):
        """Test detection of the pre-2018 component list layout."""
        assert has_legacy_syntax(load_fixture("legacy_prefab.prefab"))
        assert has_legacy_syntax("  - 1: {fileID: 2}\n")
        assert not has_legacy_syntax(load_fixture("basic_prefab.prefab"))

    def test_legacy_document_skipped(self):
        """Test that legacy documents are skipped before parsing."""
        with pytest.raises(DocumentSkipped) as exc_info:
            parse_document(load_fixture("legacy_prefab.prefab"))

        assert exc_info.value.reason == SkipReason.LEGACY_FORMAT

    def test_short_document_skipped(self):
        """Test that truncated documents are skipped."""
        content = "".join(f"line {i}\n" for i in range(10))

        with pytest.raises(DocumentSkipped) as exc_info:
            parse_document(content, "short.prefab")

        assert exc_info.value.reason == SkipReason.TOO_SHORT
        assert "short.prefab" in str(exc_info.value)

    def test_legacy_checked_before_length(self):
        """Test that a short legacy document reports the legacy reason."""
        with pytest.raises(DocumentSkipped) as exc_info:
            parse_document("  - 1: {fileID: 2}\n")

        assert exc_info.value.reason == SkipReason.LEGACY_FORMAT


class TestLineHelpers:
    """Tests for line splitting and joining."""

    def test_split_keeps_line_endings(self):
        assert split_lines("a\nb\n") == ["a\n", "b\n"]
        assert split_lines("a\nb") == ["a\n", "b"]
        assert split_lines("a\n\n") == ["a\n", "\n"]
        assert split_lines("") == []

    def test_split_mixed_endings(self):
        """Test that every line keeps its own LF or CRLF ending."""
        assert split_lines("a\r\nb\nc\r\n") == ["a\r\n", "b\n", "c\r\n"]

    def test_line_ending(self):
        assert line_ending("a\r\n") == "\r\n"
        assert line_ending("a\n") == "\n"
        assert line_ending("a") == ""
        assert strip_line_ending("a\r\n") == "a"

    @pytest.mark.parametrize(
        "content",
        [
            load_fixture("basic_prefab.prefab"),
            "a\r\nb\nc",
            "a\n\r\n\n",
        ],
    )
    def test_join_restores_content(self, content):
        assert join_lines(split_lines(content)) == content

    def test_format_component_ref(self):
        assert format_component_ref("-1337") == "  - component: {fileID: -1337}"
        assert format_component_ref("200", "\r\n") == "  - component: {fileID: 200}\r\n"
