# Schema GUID and extended-rights maps.
#
# Name -> GUID tables used when building or reading ACEs against AD
# objects. Built once from the schema and extended-rights containers and
# read-only afterwards. Both maps carry an "All" entry mapped to the null
# GUID, which stands for "every property / every right" in an ACE.

import uuid
from types import MappingProxyType
from typing import TYPE_CHECKING, Dict, Iterable, Iterator, Optional, Tuple, Union

from ..utils.helpers import binary_to_guid
from ..utils.logging import debug, info

if TYPE_CHECKING:
    from ..directory.ldap_directory import LdapDirectory

ALL_GUID = uuid.UUID(int=0)
ALL_NAME = "All"


class GuidMap:
    """
    Immutable, case-insensitive name <-> GUID mapping.

    Names keep their original spelling for display; lookups ignore case.
    """

    def __init__(self, entries: Iterable[Tuple[str, Union[str, uuid.UUID]]]):
        by_name: Dict[str, Tuple[str, uuid.UUID]] = {ALL_NAME.lower(): (ALL_NAME, ALL_GUID)}
        by_guid: Dict[uuid.UUID, str] = {ALL_GUID: ALL_NAME}

        for name, guid in entries:
            if not name:
                continue
            guid = guid if isinstance(guid, uuid.UUID) else uuid.UUID(str(guid).strip("{}"))
            key = name.lower()
            if key == ALL_NAME.lower():
                continue
            by_name[key] = (name, guid)
            # First name wins for the reverse direction
            by_guid.setdefault(guid, name)

        self._by_name = MappingProxyType(by_name)
        self._by_guid = MappingProxyType(by_guid)

    def guid_for(self, name: str) -> Optional[uuid.UUID]:
        """GUID for a name (case-insensitive), or None."""
        hit = self._by_name.get(name.strip().lower())
        return hit[1] if hit else None

    def name_for(self, guid: Union[str, uuid.UUID]) -> Optional[str]:
        """Name for a GUID (string with or without braces, or UUID), or None."""
        try:
            key = guid if isinstance(guid, uuid.UUID) else uuid.UUID(str(guid).strip("{}"))
        except ValueError:
            return None
        return self._by_guid.get(key)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and name.strip().lower() in self._by_name

    def __len__(self) -> int:
        return len(self._by_name)

    def __iter__(self) -> Iterator[str]:
        return (name for name, _ in self._by_name.values())

    def __repr__(self) -> str:
        return f"{type(self).__name__}({len(self)} entries)"


class SchemaGuidMap(GuidMap):
    """lDAPDisplayName of schema classes/attributes -> schemaIDGUID."""


class ExtendedRightsMap(GuidMap):
    """displayName of controlAccessRight objects -> rightsGuid."""


def load_schema_guid_map(directory: "LdapDirectory") -> SchemaGuidMap:
    """
    Read every schema object's lDAPDisplayName and schemaIDGUID.

    Args:
        directory: Connected LdapDirectory

    Returns:
        SchemaGuidMap including the "All" sentinel
    """
    base = f"CN=Schema,{directory.configuration_dn}"
    info(f"Loading schema GUIDs from {base}")

    entries = []
    for entry in directory.search_paged(
        base,
        "(schemaIDGUID=*)",
        ["lDAPDisplayName", "schemaIDGUID"],
    ):
        name = entry.attributes.get("lDAPDisplayName")
        raw_guid = entry.attributes.get("schemaIDGUID")
        guid = binary_to_guid(raw_guid) if isinstance(raw_guid, bytes) else raw_guid
        if name and guid:
            entries.append((name, guid))

    debug(f"Schema GUID map: {len(entries)} entries")
    return SchemaGuidMap(entries)


def load_extended_rights_map(directory: "LdapDirectory") -> ExtendedRightsMap:
    """
    Read every extended right's displayName and rightsGuid.

    Args:
        directory: Connected LdapDirectory

    Returns:
        ExtendedRightsMap including the "All" sentinel
    """
    base = f"CN=Extended-Rights,{directory.configuration_dn}"
    info(f"Loading extended rights from {base}")

    entries = []
    for entry in directory.search_paged(
        base,
        "(objectClass=controlAccessRight)",
        ["displayName", "rightsGuid"],
    ):
        name = entry.attributes.get("displayName")
        guid = entry.attributes.get("rightsGuid")
        if name and guid:
            try:
                entries.append((name, uuid.UUID(guid.strip("{}"))))
            except ValueError:
                debug(f"Skipping extended right {name}: bad rightsGuid {guid!r}")

    debug(f"Extended rights map: {len(entries)} entries")
    return ExtendedRightsMap(entries)
