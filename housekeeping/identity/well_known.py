# Well-known principal lookup.
#
# Well-known SIDs resolve instantly without any directory round trip. The
# table is built once at import time and never mutated afterwards, so
# concurrent readers need no locking.
# Reference: https://learn.microsoft.com/en-us/windows/win32/secauthz/well-known-sids

from types import MappingProxyType
from typing import Dict, Iterable, Iterator, Optional, Tuple

from .validators import _require_text, sid_matches_grammar

# Authority prefixes stripped before a name lookup (compared case-insensitively)
AUTHORITY_PREFIXES = (
    "nt authority\\",
    "ntauthority\\",
    "builtin\\",
    "built-in\\",
)

# SID -> display name. Names are bare (no authority prefix) and unique.
_WELL_KNOWN_ENTRIES: Tuple[Tuple[str, str], ...] = (
    # Null, World, Local and Creator authorities
    ("S-1-0-0", "NULL SID"),
    ("S-1-1-0", "Everyone"),
    ("S-1-2-0", "LOCAL"),
    ("S-1-2-1", "CONSOLE LOGON"),
    ("S-1-3-0", "CREATOR OWNER"),
    ("S-1-3-1", "CREATOR GROUP"),
    ("S-1-3-2", "CREATOR OWNER SERVER"),
    ("S-1-3-3", "CREATOR GROUP SERVER"),
    ("S-1-3-4", "OWNER RIGHTS"),
    # NT AUTHORITY
    ("S-1-5-1", "DIALUP"),
    ("S-1-5-2", "NETWORK"),
    ("S-1-5-3", "BATCH"),
    ("S-1-5-4", "INTERACTIVE"),
    ("S-1-5-6", "SERVICE"),
    ("S-1-5-7", "ANONYMOUS LOGON"),
    ("S-1-5-8", "PROXY"),
    ("S-1-5-9", "ENTERPRISE DOMAIN CONTROLLERS"),
    ("S-1-5-10", "SELF"),
    ("S-1-5-11", "Authenticated Users"),
    ("S-1-5-12", "RESTRICTED"),
    ("S-1-5-13", "TERMINAL SERVER USER"),
    ("S-1-5-14", "REMOTE INTERACTIVE LOGON"),
    ("S-1-5-15", "This Organization"),
    ("S-1-5-17", "IUSR"),
    ("S-1-5-18", "SYSTEM"),
    ("S-1-5-19", "LOCAL SERVICE"),
    ("S-1-5-20", "NETWORK SERVICE"),
    # BUILTIN (S-1-5-32-*)
    ("S-1-5-32-544", "Administrators"),
    ("S-1-5-32-545", "Users"),
    ("S-1-5-32-546", "Guests"),
    ("S-1-5-32-547", "Power Users"),
    ("S-1-5-32-548", "Account Operators"),
    ("S-1-5-32-549", "Server Operators"),
    ("S-1-5-32-550", "Print Operators"),
    ("S-1-5-32-551", "Backup Operators"),
    ("S-1-5-32-552", "Replicators"),
    ("S-1-5-32-554", "Pre-Windows 2000 Compatible Access"),
    ("S-1-5-32-555", "Remote Desktop Users"),
    ("S-1-5-32-556", "Network Configuration Operators"),
    ("S-1-5-32-557", "Incoming Forest Trust Builders"),
    ("S-1-5-32-558", "Performance Monitor Users"),
    ("S-1-5-32-559", "Performance Log Users"),
    ("S-1-5-32-560", "Windows Authorization Access Group"),
    ("S-1-5-32-561", "Terminal Server License Servers"),
    ("S-1-5-32-562", "Distributed COM Users"),
    ("S-1-5-32-568", "IIS_IUSRS"),
    ("S-1-5-32-569", "Cryptographic Operators"),
    ("S-1-5-32-573", "Event Log Readers"),
    ("S-1-5-32-574", "Certificate Service DCOM Access"),
    ("S-1-5-32-575", "RDS Remote Access Servers"),
    ("S-1-5-32-576", "RDS Endpoint Servers"),
    ("S-1-5-32-577", "RDS Management Servers"),
    ("S-1-5-32-578", "Hyper-V Administrators"),
    ("S-1-5-32-579", "Access Control Assistance Operators"),
    ("S-1-5-32-580", "Remote Management Users"),
    ("S-1-5-32-582", "Storage Replica Administrators"),
    # Service and virtual machine authorities
    ("S-1-5-80-0", "ALL SERVICES"),
    ("S-1-5-83-0", "Virtual Machines"),
)


def has_authority_prefix(name: str) -> bool:
    """True for names qualified by NT AUTHORITY\\ or BUILTIN\\ (any case)."""
    return name.strip().lower().startswith(AUTHORITY_PREFIXES)


def normalize_principal_name(name: str) -> str:
    """
    Strip a recognized authority prefix and lower-case the remainder.

    "NT AUTHORITY\\SYSTEM", "BUILTIN\\Administrators" -> "system", "administrators"
    """
    normalized = name.strip()
    lowered = normalized.lower()
    for prefix in AUTHORITY_PREFIXES:
        if lowered.startswith(prefix):
            normalized = normalized[len(prefix):]
            break
    return normalized.strip().lower()


class WellKnownPrincipalTable:
    """
    Immutable, ordered SID -> display name mapping with reverse lookup by name.

    Invariants checked at construction:
    - every key is a syntactically valid SID
    - every value is non-empty and unique (case-insensitive)
    """

    def __init__(self, entries: Iterable[Tuple[str, str]]):
        by_sid: Dict[str, str] = {}
        by_name: Dict[str, str] = {}

        for sid, name in entries:
            if not sid or not sid_matches_grammar(sid):
                raise ValueError(f"Well-known table key is not a valid SID: {sid!r}")
            if not name or not name.strip():
                raise ValueError(f"Well-known table entry {sid} has an empty name")

            sid = sid.strip().upper()
            key = name.strip().lower()
            if sid in by_sid:
                raise ValueError(f"Duplicate well-known SID: {sid}")
            if key in by_name:
                raise ValueError(f"Duplicate well-known name: {name!r} ({by_name[key]} and {sid})")

            by_sid[sid] = name.strip()
            by_name[key] = sid

        self._by_sid = MappingProxyType(by_sid)
        self._by_name = MappingProxyType(by_name)

    def __contains__(self, sid: object) -> bool:
        return isinstance(sid, str) and sid.strip().upper() in self._by_sid

    def __len__(self) -> int:
        return len(self._by_sid)

    def __iter__(self) -> Iterator[str]:
        return iter(self._by_sid)

    def items(self):
        return self._by_sid.items()

    def name_for_sid(self, sid: str) -> Optional[str]:
        """Display name for a SID, or None if it is not well-known."""
        return self._by_sid.get(sid.strip().upper())

    def sid_for_name(self, name: str) -> Optional[str]:
        """SID for a (possibly prefixed, any-case) principal name, or None."""
        return self._by_name.get(normalize_principal_name(name))

    def __repr__(self) -> str:
        return f"WellKnownPrincipalTable({len(self)} principals)"


DEFAULT_WELL_KNOWN_PRINCIPALS = WellKnownPrincipalTable(_WELL_KNOWN_ENTRIES)


def lookup_well_known_sid_by_name(
    name: str, table: Optional[WellKnownPrincipalTable] = None
) -> Optional[str]:
    """
    Resolve a well-known principal name to its SID.

    Accepts "SYSTEM", "system" and "NT AUTHORITY\\SYSTEM" alike. Returns None
    when the name is not well-known, which is the common case.

    Raises:
        InvalidArgumentError: If name is None or empty
    """
    name = _require_text(name, "name")
    if table is None:
        table = DEFAULT_WELL_KNOWN_PRINCIPALS
    return table.sid_for_name(name)


def lookup_name_by_sid(
    sid: str, table: Optional[WellKnownPrincipalTable] = None
) -> Optional[str]:
    """
    Resolve a well-known SID to its display name, or None.

    Raises:
        InvalidArgumentError: If sid is None or empty
    """
    sid = _require_text(sid, "sid").strip()
    if table is None:
        table = DEFAULT_WELL_KNOWN_PRINCIPALS
    return table.name_for_sid(sid)
