"""Tests for the shared lookup-table initialization barrier."""

import threading
from unittest.mock import patch

import pytest

from housekeeping.identity.exceptions import LookupTablesNotInitializedError
from housekeeping.identity.schema import ExtendedRightsMap, SchemaGuidMap
from housekeeping.identity.tables import (
    LookupTables,
    get_lookup_tables,
    initialize_lookup_tables,
    reset_lookup_tables,
)
from housekeeping.identity.well_known import DEFAULT_WELL_KNOWN_PRINCIPALS, WellKnownPrincipalTable


class TestLookupTables:
    """Tests for initialize/get/reset"""

    def test_get_before_init_raises(self):
        with pytest.raises(LookupTablesNotInitializedError):
            get_lookup_tables()

    def test_not_initialized_is_runtime_error(self):
        with pytest.raises(RuntimeError):
            get_lookup_tables()

    def test_offline_init(self):
        tables = initialize_lookup_tables()
        assert tables.well_known is DEFAULT_WELL_KNOWN_PRINCIPALS
        assert tables.schema_guids is None
        assert tables.extended_rights is None
        assert get_lookup_tables() is tables

    def test_second_init_returns_same(self):
        first = initialize_lookup_tables()
        second = initialize_lookup_tables(well_known=WellKnownPrincipalTable([]))
        assert second is first

    def test_force_rebuilds(self):
        first = initialize_lookup_tables()
        custom = WellKnownPrincipalTable([("S-1-5-18", "SYSTEM")])
        second = initialize_lookup_tables(well_known=custom, force=True)
        assert second is not first
        assert second.well_known is custom

    def test_reset(self):
        initialize_lookup_tables()
        reset_lookup_tables()
        with pytest.raises(LookupTablesNotInitializedError):
            get_lookup_tables()

    def test_frozen(self):
        tables = initialize_lookup_tables()
        with pytest.raises(AttributeError):
            tables.well_known = WellKnownPrincipalTable([])

    def test_with_directory_loads_maps(self):
        directory = object()
        schema = SchemaGuidMap([])
        rights = ExtendedRightsMap([])
        with patch("housekeeping.identity.tables.load_schema_guid_map", return_value=schema) as load_schema, patch(
            "housekeeping.identity.tables.load_extended_rights_map", return_value=rights
        ) as load_rights:
            tables = initialize_lookup_tables(directory)

        load_schema.assert_called_once_with(directory)
        load_rights.assert_called_once_with(directory)
        assert tables.schema_guids is schema
        assert tables.extended_rights is rights

    def test_concurrent_init_builds_once(self):
        """Racing initializers all observe the same tables"""
        results = []
        barrier = threading.Barrier(8)

        def worker():
            barrier.wait()
            results.append(initialize_lookup_tables())

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(results) == 8
        assert all(r is results[0] for r in results)
        assert isinstance(results[0], LookupTables)
