# Process-wide lookup tables with an explicit initialization barrier.
#
# initialize_lookup_tables() builds the tables once; everything after that
# only reads them. Re-initializing (force=True) while resolutions are in
# flight is not supported: callers must quiesce first.

import threading
from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional

from ..utils.logging import debug
from .exceptions import LookupTablesNotInitializedError
from .schema import ExtendedRightsMap, SchemaGuidMap, load_extended_rights_map, load_schema_guid_map
from .well_known import DEFAULT_WELL_KNOWN_PRINCIPALS, WellKnownPrincipalTable

if TYPE_CHECKING:
    from ..directory.ldap_directory import LdapDirectory


@dataclass(frozen=True)
class LookupTables:
    """Read-only tables shared by validators and the resolver."""

    well_known: WellKnownPrincipalTable
    schema_guids: Optional[SchemaGuidMap] = None
    extended_rights: Optional[ExtendedRightsMap] = None


_tables: Optional[LookupTables] = None
_init_lock = threading.Lock()


def initialize_lookup_tables(
    directory: Optional["LdapDirectory"] = None,
    well_known: Optional[WellKnownPrincipalTable] = None,
    force: bool = False,
) -> LookupTables:
    """
    Build the shared lookup tables.

    The well-known table is always present. Schema and extended-rights maps
    are only loaded when a directory is given.

    Args:
        directory: Connected LdapDirectory for the schema maps (optional)
        well_known: Replacement well-known table (defaults to the built-in one)
        force: Rebuild even if the tables already exist

    Returns:
        The initialized LookupTables
    """
    global _tables

    with _init_lock:
        if _tables is not None and not force:
            debug("Lookup tables already initialized")
            return _tables

        schema_guids = None
        extended_rights = None
        if directory is not None:
            schema_guids = load_schema_guid_map(directory)
            extended_rights = load_extended_rights_map(directory)

        _tables = LookupTables(
            well_known=well_known if well_known is not None else DEFAULT_WELL_KNOWN_PRINCIPALS,
            schema_guids=schema_guids,
            extended_rights=extended_rights,
        )
        debug(f"Lookup tables initialized ({len(_tables.well_known)} well-known principals)")
        return _tables


def get_lookup_tables() -> LookupTables:
    """
    Return the shared lookup tables.

    Raises:
        LookupTablesNotInitializedError: If initialize_lookup_tables() has not run
    """
    if _tables is None:
        raise LookupTablesNotInitializedError(
            "Lookup tables not initialized - call initialize_lookup_tables() first"
        )
    return _tables


def reset_lookup_tables() -> None:
    """Drop the shared tables (used by tests and before a forced rebuild)."""
    global _tables
    with _init_lock:
        _tables = None
