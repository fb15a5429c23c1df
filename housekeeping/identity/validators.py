# Format validators for directory identity strings.
#
# Pure predicates over a single string: no directory I/O. Malformed input
# returns False; only a missing/empty argument is an error, because the
# identity is a mandatory, non-empty parameter everywhere it is accepted.

import re
from typing import TYPE_CHECKING, List, Optional

from ..models.identity import IdentityClassification
from ..utils.helpers import strip_domain_prefix
from .exceptions import InvalidArgumentError, UnsupportedIdentityTypeError

if TYPE_CHECKING:
    from .well_known import WellKnownPrincipalTable

# Upper bound on SID sub-authorities accepted by is_valid_sid
MAX_SUB_AUTHORITIES = 14

# RDN value: any run of non-comma characters, where a backslash escapes the next one
_RDN_VALUE = r"(?:\\.|[^,\\])+"

# Optional CN / OU (and container CN) components followed by one or more DC components
_DN_PATTERN = re.compile(
    rf"^(?:CN={_RDN_VALUE},)?(?:(?:OU|CN)={_RDN_VALUE},)*DC={_RDN_VALUE}(?:,DC={_RDN_VALUE})*$",
    re.IGNORECASE,
)

_SID_PATTERN = re.compile(
    rf"^S-[0-9]+-[0-9]+(?:-[0-9]+){{1,{MAX_SUB_AUTHORITIES}}}$",
    re.IGNORECASE | re.ASCII,
)

_HEX_GUID = r"[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}"
_GUID_PATTERN = re.compile(rf"^(?:\{{{_HEX_GUID}\}}|{_HEX_GUID})$", re.IGNORECASE)

# Characters that can never appear in a sAMAccountName
_ILLEGAL_ACCOUNT_CHARS = frozenset('"/[]:;|=,+*?<>')


def _require_text(value, argument: str = "value") -> str:
    """Enforce the mandatory non-empty string contract; the value is returned unchanged."""
    if value is None:
        raise InvalidArgumentError(f"{argument} must not be None")
    if not isinstance(value, str):
        raise UnsupportedIdentityTypeError(
            f"{argument} must be a string, got {type(value).__name__}"
        )
    if not value.strip():
        raise InvalidArgumentError(f"{argument} must not be empty")
    return value


def is_valid_dn(value: str) -> bool:
    """
    Check if a string is a distinguished name of the form
    [CN=name,][OU=name,...]DC=name[,DC=name...].

    Names may contain backslash-escaped characters (e.g. "CN=Doe\\, John").

    Raises:
        InvalidArgumentError: If value is None or empty
    """
    value = _require_text(value, "dn")
    if value != value.strip():
        return False
    return bool(_DN_PATTERN.fullmatch(value))


def is_valid_sid(value: str, table: Optional["WellKnownPrincipalTable"] = None) -> bool:
    """
    Check if a string is a security identifier.

    Well-known SIDs are accepted by literal table lookup first (an optional
    DOMAIN\\ prefix is ignored); anything else must match
    S-<revision>-<authority>-<subauthority> with 1 to MAX_SUB_AUTHORITIES
    sub-authorities.

    Args:
        value: Candidate SID string
        table: Well-known principal table (defaults to the built-in table)

    Raises:
        InvalidArgumentError: If value is None or empty
    """
    candidate = strip_domain_prefix(_require_text(value, "sid"))
    if table is None:
        from .well_known import DEFAULT_WELL_KNOWN_PRINCIPALS

        table = DEFAULT_WELL_KNOWN_PRINCIPALS

    if candidate.upper() in table:
        return True
    return bool(_SID_PATTERN.fullmatch(candidate))


def sid_matches_grammar(value: str) -> bool:
    """Grammar-only SID check with no well-known table lookup."""
    return bool(_SID_PATTERN.fullmatch(_require_text(value, "sid")))


def is_valid_guid(value: str) -> bool:
    """
    Check if a string is a GUID in 8-4-4-4-12 hex form, optionally wrapped in braces.

    Raises:
        InvalidArgumentError: If value is None or empty
    """
    return bool(_GUID_PATTERN.fullmatch(_require_text(value, "guid")))


def split_dn(dn: str) -> List[str]:
    """
    Split a distinguished name into its RDN components on unescaped commas.

    Components are returned verbatim, so ",".join(split_dn(dn)) == dn.
    """
    dn = _require_text(dn, "dn")
    components = []
    current = []
    escaped = False
    for char in dn:
        if escaped:
            current.append(char)
            escaped = False
        elif char == "\\":
            current.append(char)
            escaped = True
        elif char == ",":
            components.append("".join(current))
            current = []
        else:
            current.append(char)
    components.append("".join(current))
    return components


def classify_identity(
    value: str, table: Optional["WellKnownPrincipalTable"] = None
) -> IdentityClassification:
    """
    Classify a raw identity string by shape, cheapest and most specific first.

    Raises:
        InvalidArgumentError: If value is None or empty
        UnsupportedIdentityTypeError: If value is not a string
    """
    value = _require_text(value, "identity").strip()

    if is_valid_dn(value):
        return IdentityClassification.DISTINGUISHED_NAME
    if is_valid_sid(value, table):
        return IdentityClassification.SECURITY_IDENTIFIER
    if is_valid_guid(value):
        return IdentityClassification.GUID

    account = strip_domain_prefix(value)
    if not account or any(char in _ILLEGAL_ACCOUNT_CHARS for char in account):
        return IdentityClassification.UNRECOGNIZED
    return IdentityClassification.ACCOUNT_NAME
