# Identity validation and resolution.
#
# Format validators, the well-known principal table, schema GUID maps and
# the resolver that turns a raw identity string into a typed directory
# object. Nothing in this package imports the LDAP stack, so the offline
# checks work without a directory connection.

from .exceptions import (
    IDENTITY_ERRORS,
    DirectoryUnavailableError,
    IdentityError,
    InvalidArgumentError,
    LookupTablesNotInitializedError,
    UnsupportedIdentityTypeError,
    UnsupportedObjectClassError,
)
from .resolver import DirectoryService, IdentityResolver, resolve_identity
from .schema import ExtendedRightsMap, SchemaGuidMap, load_extended_rights_map, load_schema_guid_map
from .tables import LookupTables, get_lookup_tables, initialize_lookup_tables, reset_lookup_tables
from .validators import classify_identity, is_valid_dn, is_valid_guid, is_valid_sid, split_dn
from .well_known import (
    DEFAULT_WELL_KNOWN_PRINCIPALS,
    WellKnownPrincipalTable,
    lookup_name_by_sid,
    lookup_well_known_sid_by_name,
)

__all__ = [
    "IDENTITY_ERRORS",
    "DEFAULT_WELL_KNOWN_PRINCIPALS",
    "DirectoryService",
    "DirectoryUnavailableError",
    "ExtendedRightsMap",
    "IdentityError",
    "IdentityResolver",
    "InvalidArgumentError",
    "LookupTables",
    "LookupTablesNotInitializedError",
    "SchemaGuidMap",
    "UnsupportedIdentityTypeError",
    "UnsupportedObjectClassError",
    "WellKnownPrincipalTable",
    "classify_identity",
    "get_lookup_tables",
    "initialize_lookup_tables",
    "is_valid_dn",
    "is_valid_guid",
    "is_valid_sid",
    "load_extended_rights_map",
    "load_schema_guid_map",
    "lookup_name_by_sid",
    "lookup_well_known_sid_by_name",
    "reset_lookup_tables",
    "resolve_identity",
    "split_dn",
]
