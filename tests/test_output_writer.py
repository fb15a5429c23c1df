"""
Test suite for output writer functions.

Tests cover:
- _rows_to_dicts helper function
- write_json function
"""

import json
from unittest.mock import MagicMock, patch

import pytest

from housekeeping.models.identity import ResolvedDirectoryObject
from housekeeping.output.writer import _rows_to_dicts, write_json


@pytest.fixture
def sample_rows():
    return [
        {"identity": "S-1-5-18", "kind": "wellKnownPrincipal", "handle": "S-1-5-18", "name": "SYSTEM"},
        {"identity": "ghost", "kind": "notFound", "handle": None, "reason": "no match"},
    ]


class TestRowsToDicts:
    """Tests for _rows_to_dicts"""

    def test_plain_dicts_pass_through(self, sample_rows):
        assert _rows_to_dicts(sample_rows) == sample_rows

    def test_to_dict_used(self):
        row = MagicMock()
        row.to_dict.return_value = {"kind": "user"}
        assert _rows_to_dicts([row]) == [{"kind": "user"}]

    def test_resolved_object(self):
        result = ResolvedDirectoryObject.not_found("ghost", reason="nothing matched")
        assert _rows_to_dicts([result]) == [result.to_dict()]

    def test_empty(self):
        assert _rows_to_dicts([]) == []


class TestWriteJson:
    """Tests for write_json"""

    def test_writes_rows(self, tmp_path, sample_rows):
        path = tmp_path / "out.json"
        write_json(str(path), sample_rows, silent=True)

        assert json.loads(path.read_text(encoding="utf-8")) == sample_rows

    def test_non_serializable_values_stringified(self, tmp_path):
        path = tmp_path / "out.json"
        marker = object()
        write_json(str(path), [{"value": marker}], silent=True)

        assert json.loads(path.read_text(encoding="utf-8")) == [{"value": str(marker)}]

    @patch("housekeeping.output.writer.good")
    def test_reports_path(self, mock_good, tmp_path, sample_rows):
        path = tmp_path / "out.json"
        write_json(str(path), sample_rows)

        mock_good.assert_called_once()
        assert str(path) in mock_good.call_args[0][0]

    @patch("housekeeping.output.writer.good")
    def test_silent(self, mock_good, tmp_path, sample_rows):
        write_json(str(tmp_path / "out.json"), sample_rows, silent=True)
        mock_good.assert_not_called()
