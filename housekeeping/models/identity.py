# Identity data models.
#
# A raw identity string carries no type until it is classified. The
# resolver turns it (or an already-typed DirectoryObject) into a
# ResolvedDirectoryObject whose kind tells the caller what it got back.

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Union


class IdentityClassification(str, Enum):
    """Textual shape of a raw identity string."""

    DISTINGUISHED_NAME = "DistinguishedName"
    SECURITY_IDENTIFIER = "SecurityIdentifier"
    GUID = "Guid"
    ACCOUNT_NAME = "AccountName"
    UNRECOGNIZED = "Unrecognized"


class ObjectKind(str, Enum):
    """Concrete kind of a resolved identity."""

    USER = "user"
    GROUP = "group"
    COMPUTER = "computer"
    ORGANIZATIONAL_UNIT = "organizationalUnit"
    SERVICE_ACCOUNT = "msDS-GroupManagedServiceAccount"
    WELL_KNOWN_PRINCIPAL = "wellKnownPrincipal"
    NOT_FOUND = "notFound"
    UNSUPPORTED = "unsupported"


# Kinds a DirectoryObject may carry (a live, strongly-kinded directory handle)
DIRECTORY_KINDS = frozenset(
    {
        ObjectKind.USER,
        ObjectKind.GROUP,
        ObjectKind.COMPUTER,
        ObjectKind.ORGANIZATIONAL_UNIT,
        ObjectKind.SERVICE_ACCOUNT,
    }
)


@dataclass
class DirectoryEntry:
    """
    Untyped hit returned by a generic directory query.

    Attributes:
        distinguished_name: DN of the entry
        object_classes: objectClass values as returned by AD (most specific last)
        attributes: Remaining attributes, keyed by LDAP display name
    """

    distinguished_name: str
    object_classes: List[str] = field(default_factory=list)
    attributes: Dict[str, Any] = field(default_factory=dict)

    @property
    def object_class(self) -> Optional[str]:
        """Most specific (structural) object class, or None if unknown."""
        return self.object_classes[-1] if self.object_classes else None


@dataclass(frozen=True)
class DirectoryObject:
    """
    Strongly-kinded handle to a directory object.

    Produced by the class-specific fetch operations. Passing one of these to
    the resolver returns it unchanged.
    """

    kind: ObjectKind
    distinguished_name: str
    sid: Optional[str] = None
    guid: Optional[str] = None
    sam_account_name: Optional[str] = None
    name: Optional[str] = None
    attributes: Dict[str, Any] = field(default_factory=dict, compare=False, hash=False)

    def __post_init__(self):
        if self.kind not in DIRECTORY_KINDS:
            raise ValueError(f"DirectoryObject cannot carry kind {self.kind!r}")
        if not self.distinguished_name:
            raise ValueError("DirectoryObject requires a distinguished name")


# Input accepted by the resolver
IdentityReference = Union[str, DirectoryObject]


@dataclass(frozen=True)
class ResolvedDirectoryObject:
    """
    Outcome of resolving one identity reference.

    Attributes:
        kind: Concrete kind (including NOT_FOUND / UNSUPPORTED outcomes)
        handle: Distinguished name for directory objects, SID for well-known
            principals, the raw input string for failures
        obj: The strongly-kinded object when one was resolved
        name: Display name (well-known principals) or sAMAccountName
        classification: How the raw input string was classified (None for typed input)
        reason: Human-readable explanation for NOT_FOUND / UNSUPPORTED outcomes
    """

    kind: ObjectKind
    handle: str
    obj: Optional[DirectoryObject] = None
    name: Optional[str] = None
    classification: Optional[IdentityClassification] = None
    reason: Optional[str] = None

    @property
    def found(self) -> bool:
        """True when the identity resolved to a directory object or well-known principal."""
        return self.kind not in (ObjectKind.NOT_FOUND, ObjectKind.UNSUPPORTED)

    @property
    def is_well_known(self) -> bool:
        return self.kind is ObjectKind.WELL_KNOWN_PRINCIPAL

    @classmethod
    def from_object(
        cls,
        obj: DirectoryObject,
        classification: Optional[IdentityClassification] = None,
    ) -> "ResolvedDirectoryObject":
        """Wrap a strongly-kinded object without copying it."""
        return cls(
            kind=obj.kind,
            handle=obj.distinguished_name,
            obj=obj,
            name=obj.sam_account_name or obj.name,
            classification=classification,
        )

    @classmethod
    def not_found(
        cls,
        identity: str,
        classification: Optional[IdentityClassification] = None,
        reason: Optional[str] = None,
    ) -> "ResolvedDirectoryObject":
        return cls(
            kind=ObjectKind.NOT_FOUND,
            handle=identity,
            classification=classification,
            reason=reason or f"No directory object matches '{identity}'",
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a flat dictionary for JSON export."""
        return {
            "kind": self.kind.value,
            "handle": self.handle,
            "name": self.name,
            "classification": self.classification.value if self.classification else None,
            "reason": self.reason,
            "distinguished_name": self.obj.distinguished_name if self.obj else None,
            "sid": self.obj.sid if self.obj else None,
            "guid": self.obj.guid if self.obj else None,
        }
