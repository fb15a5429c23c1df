# LDAP-backed directory service.
#
# LdapDirectory answers the resolver's generic and class-specific queries
# over an impacket LDAPConnection. Attribute values come back decoded:
# binary attributes stay bytes, everything else is str, and multi-valued
# attributes are lists.

from typing import Dict, Iterator, List, Optional

from impacket.ldap import ldap as ldap_impacket
from impacket.ldap import ldapasn1 as ldapasn1_impacket

from ..auth import AuthContext
from ..identity.exceptions import DirectoryUnavailableError
from ..models.identity import DirectoryEntry, DirectoryObject, ObjectKind
from ..utils.helpers import (
    binary_to_guid,
    binary_to_sid,
    domain_to_base_dn,
    escape_filter_bytes,
    escape_filter_value,
    guid_to_binary,
    sid_to_binary,
)
from ..utils.ldap import LDAPConnectionError, get_ldap_connection
from ..utils.logging import debug

# LDAP result codes handled specially
LDAP_SIZE_LIMIT_EXCEEDED = 4
LDAP_NO_SUCH_OBJECT = 32

PAGE_SIZE = 1000

# Attributes returned as raw bytes instead of text
BINARY_ATTRIBUTES = frozenset(
    {
        "objectsid",
        "objectguid",
        "schemaidguid",
        "ntsecuritydescriptor",
        "msds-managedpassword",
    }
)

# Attributes that are always returned as lists
MULTI_VALUED_ATTRIBUTES = frozenset({"objectclass", "memberof", "member", "serviceprincipalname"})

GENERIC_ATTRIBUTES = ["distinguishedName", "objectClass", "objectSid", "objectGUID", "sAMAccountName", "name"]

_COMMON = ["distinguishedName", "objectClass", "objectSid", "objectGUID", "name"]

# Kind -> (base-scope filter, attributes). Filters exclude subclasses that
# have their own kind (a computer is also a user, a gMSA is also a computer).
KIND_QUERIES: Dict[ObjectKind, tuple] = {
    ObjectKind.USER: (
        "(&(objectClass=user)(!(objectClass=computer)))",
        _COMMON + ["sAMAccountName", "userPrincipalName", "userAccountControl", "memberOf"],
    ),
    ObjectKind.GROUP: (
        "(objectClass=group)",
        _COMMON + ["sAMAccountName", "groupType", "description", "memberOf"],
    ),
    ObjectKind.COMPUTER: (
        "(&(objectClass=computer)(!(objectClass=msDS-GroupManagedServiceAccount)))",
        _COMMON + ["sAMAccountName", "dNSHostName", "operatingSystem", "userAccountControl"],
    ),
    ObjectKind.ORGANIZATIONAL_UNIT: (
        "(objectClass=organizationalUnit)",
        _COMMON + ["ou", "description", "gPLink"],
    ),
    ObjectKind.SERVICE_ACCOUNT: (
        "(objectClass=msDS-GroupManagedServiceAccount)",
        _COMMON + ["sAMAccountName", "dNSHostName", "servicePrincipalName", "msDS-ManagedPasswordInterval"],
    ),
}


def _value_bytes(value) -> bytes:
    """Raw octets of an impacket AttributeValue (or plain bytes/str)."""
    if hasattr(value, "asOctets"):
        return value.asOctets()
    if isinstance(value, (bytes, bytearray)):
        return bytes(value)
    return str(value).encode("utf-8")


def parse_entry(entry) -> Optional[DirectoryEntry]:
    """
    Convert an impacket SearchResultEntry into a DirectoryEntry.

    Returns None for anything that is not a SearchResultEntry (search
    references, result-done messages).
    """
    if not isinstance(entry, ldapasn1_impacket.SearchResultEntry):
        return None

    attributes = {}
    object_classes: List[str] = []
    for attr in entry["attributes"]:
        attr_name = str(attr["type"])
        key = attr_name.lower()
        if key in BINARY_ATTRIBUTES:
            values = [_value_bytes(v) for v in attr["vals"]]
        else:
            values = [_value_bytes(v).decode("utf-8", errors="replace") for v in attr["vals"]]

        if key == "objectclass":
            object_classes = values
        elif key in MULTI_VALUED_ATTRIBUTES or len(values) > 1:
            attributes[attr_name] = values
        else:
            attributes[attr_name] = values[0] if values else None

    return DirectoryEntry(
        distinguished_name=str(entry["objectName"]),
        object_classes=object_classes,
        attributes=attributes,
    )


def _get_attribute(attributes: Dict, name: str):
    """Case-insensitive attribute lookup."""
    for key, value in attributes.items():
        if key.lower() == name.lower():
            return value
    return None


class LdapDirectory:
    """
    Directory service backed by an authenticated LDAP connection.

    Usage:
        with LdapDirectory.connect(auth) as directory:
            resolver = IdentityResolver(directory)
    """

    def __init__(self, connection: ldap_impacket.LDAPConnection, base_dn: str):
        self.connection = connection
        self.base_dn = base_dn
        self._configuration_dn: Optional[str] = None

    @property
    def configuration_dn(self) -> str:
        """Configuration partition DN, read from the rootDSE (cached)."""
        if self._configuration_dn is None:
            root_dse = self._first("", "(objectClass=*)", ["configurationNamingContext"], scope="baseObject")
            value = _get_attribute(root_dse.attributes, "configurationNamingContext") if root_dse else None
            # Single-domain forests: the configuration partition hangs off the domain NC
            self._configuration_dn = value or f"CN=Configuration,{self.base_dn}"
            debug(f"LDAP: configuration partition {self._configuration_dn}")
        return self._configuration_dn

    @classmethod
    def connect(cls, auth: AuthContext) -> "LdapDirectory":
        """
        Open an LDAP connection for the given credentials.

        Raises:
            DirectoryUnavailableError: If the domain controller cannot be reached or the bind fails
        """
        try:
            connection = get_ldap_connection(
                dc_ip=auth.dc_ip,
                domain=auth.domain,
                username=auth.username,
                password=auth.password,
                hashes=auth.hashes,
                kerberos=auth.kerberos,
                aes_key=auth.aes_key,
                dc_host=auth.dc_host,
                use_tcp=auth.dns_tcp,
            )
        except LDAPConnectionError as e:
            raise DirectoryUnavailableError(str(e)) from e
        return cls(connection, domain_to_base_dn(auth.domain))

    def close(self):
        try:
            self.connection.close()
        except OSError as e:
            debug(f"LDAP: error closing connection: {e}")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False

    # ------------------------------------------------------------------
    # Raw search
    # ------------------------------------------------------------------

    def _search(
        self,
        base: str,
        search_filter: str,
        attributes: List[str],
        scope: str = "wholeSubtree",
        size_limit: int = 0,
        controls: Optional[list] = None,
    ) -> List[DirectoryEntry]:
        """
        Run one search and return parsed entries.

        A missing base object yields an empty list; a size-limit hit yields
        whatever was returned before the limit.
        """
        debug(f"LDAP: search base={base} scope={scope} filter={search_filter}")
        try:
            results = self.connection.search(
                searchBase=base,
                scope=ldapasn1_impacket.Scope(scope),
                searchFilter=search_filter,
                attributes=attributes,
                sizeLimit=size_limit,
                searchControls=controls,
            )
        except ldap_impacket.LDAPSearchError as e:
            code = e.getErrorCode()
            if code == LDAP_NO_SUCH_OBJECT:
                debug(f"LDAP: no such object {base}")
                return []
            if code == LDAP_SIZE_LIMIT_EXCEEDED:
                debug("LDAP: size limit exceeded, using partial results")
                results = e.getAnswers()
            else:
                raise
        except OSError as e:
            raise DirectoryUnavailableError(f"LDAP search failed: {e}") from e

        entries = []
        for result in results:
            parsed = parse_entry(result)
            if parsed is not None:
                entries.append(parsed)
        return entries

    def search_paged(self, base: str, search_filter: str, attributes: List[str]) -> Iterator[DirectoryEntry]:
        """Subtree search with the simple paged results control."""
        paged = ldapasn1_impacket.SimplePagedResultsControl(criticality=True, size=PAGE_SIZE)
        yield from self._search(base, search_filter, attributes, controls=[paged])

    def _first(self, base: str, search_filter: str, attributes: List[str], scope: str) -> Optional[DirectoryEntry]:
        entries = self._search(base, search_filter, attributes, scope=scope, size_limit=1)
        return entries[0] if entries else None

    # ------------------------------------------------------------------
    # Generic queries
    # ------------------------------------------------------------------

    def query_by_distinguished_name(self, dn: str) -> Optional[DirectoryEntry]:
        return self._first(dn, "(objectClass=*)", GENERIC_ATTRIBUTES, scope="baseObject")

    def query_by_sid(self, sid: str) -> Optional[DirectoryEntry]:
        binary = sid_to_binary(sid)
        if binary is None:
            return None
        return self._first(
            self.base_dn, f"(objectSid={escape_filter_bytes(binary)})", GENERIC_ATTRIBUTES, scope="wholeSubtree"
        )

    def query_by_guid(self, guid: str) -> Optional[DirectoryEntry]:
        binary = guid_to_binary(guid)
        if binary is None:
            return None
        return self._first(
            self.base_dn, f"(objectGUID={escape_filter_bytes(binary)})", GENERIC_ATTRIBUTES, scope="wholeSubtree"
        )

    def query_by_account_name(self, name: str) -> Optional[DirectoryEntry]:
        return self._first(
            self.base_dn, f"(sAMAccountName={escape_filter_value(name)})", GENERIC_ATTRIBUTES, scope="wholeSubtree"
        )

    # ------------------------------------------------------------------
    # Class-specific fetches
    # ------------------------------------------------------------------

    def _fetch(self, kind: ObjectKind, dn: str) -> Optional[DirectoryObject]:
        search_filter, attributes = KIND_QUERIES[kind]
        entry = self._first(dn, search_filter, attributes, scope="baseObject")
        if entry is None:
            return None

        raw_sid = _get_attribute(entry.attributes, "objectSid")
        raw_guid = _get_attribute(entry.attributes, "objectGUID")
        return DirectoryObject(
            kind=kind,
            distinguished_name=entry.distinguished_name,
            sid=binary_to_sid(raw_sid) if raw_sid else None,
            guid=binary_to_guid(raw_guid) if raw_guid else None,
            sam_account_name=_get_attribute(entry.attributes, "sAMAccountName"),
            name=_get_attribute(entry.attributes, "name"),
            attributes=entry.attributes,
        )

    def fetch_user(self, dn: str) -> Optional[DirectoryObject]:
        return self._fetch(ObjectKind.USER, dn)

    def fetch_group(self, dn: str) -> Optional[DirectoryObject]:
        return self._fetch(ObjectKind.GROUP, dn)

    def fetch_computer(self, dn: str) -> Optional[DirectoryObject]:
        return self._fetch(ObjectKind.COMPUTER, dn)

    def fetch_organizational_unit(self, dn: str) -> Optional[DirectoryObject]:
        return self._fetch(ObjectKind.ORGANIZATIONAL_UNIT, dn)

    def fetch_service_account(self, dn: str) -> Optional[DirectoryObject]:
        return self._fetch(ObjectKind.SERVICE_ACCOUNT, dn)
