# Identity type resolver.
#
# Turns a raw identity string (DN, SID, GUID or account name) or an
# already-typed DirectoryObject into a strongly-kinded result while keeping
# directory round trips to a minimum:
#
#   typed object      -> returned as-is, no query
#   well-known SID    -> table lookup, no query
#   NT AUTHORITY\ or BUILTIN\ name -> table lookup, no query
#   DN / SID / GUID / account name -> one generic query
#   known object class             -> one class-specific fetch
#
# "Not found" and "unsupported class" are ordinary results. A directory
# that cannot be reached raises DirectoryUnavailableError, and any other
# exception from the directory layer propagates unchanged.

from typing import Callable, Iterable, List, Optional, Protocol

from ..models.identity import (
    DirectoryEntry,
    DirectoryObject,
    IdentityClassification,
    IdentityReference,
    ObjectKind,
    ResolvedDirectoryObject,
)
from ..utils.helpers import strip_domain_prefix
from ..utils.logging import debug, info, warn
from .exceptions import (
    DirectoryUnavailableError,
    InvalidArgumentError,
    UnsupportedIdentityTypeError,
    UnsupportedObjectClassError,
)
from .validators import _require_text, classify_identity
from .well_known import DEFAULT_WELL_KNOWN_PRINCIPALS, WellKnownPrincipalTable, has_authority_prefix


class DirectoryService(Protocol):
    """Directory-service queries the resolver depends on."""

    def query_by_distinguished_name(self, dn: str) -> Optional[DirectoryEntry]: ...

    def query_by_sid(self, sid: str) -> Optional[DirectoryEntry]: ...

    def query_by_guid(self, guid: str) -> Optional[DirectoryEntry]: ...

    def query_by_account_name(self, name: str) -> Optional[DirectoryEntry]: ...

    def fetch_user(self, dn: str) -> Optional[DirectoryObject]: ...

    def fetch_group(self, dn: str) -> Optional[DirectoryObject]: ...

    def fetch_computer(self, dn: str) -> Optional[DirectoryObject]: ...

    def fetch_organizational_unit(self, dn: str) -> Optional[DirectoryObject]: ...

    def fetch_service_account(self, dn: str) -> Optional[DirectoryObject]: ...


# Structural object class -> name of the class-specific fetch on DirectoryService
CLASS_FETCHERS = {
    "user": "fetch_user",
    "group": "fetch_group",
    "computer": "fetch_computer",
    "organizationalunit": "fetch_organizational_unit",
    "msds-groupmanagedserviceaccount": "fetch_service_account",
}


class IdentityResolver:
    """
    Resolves identity references against a directory service.

    The well-known principal table is injected (defaults to the built-in
    table) so callers and tests control which table is consulted.
    """

    def __init__(
        self,
        directory: DirectoryService,
        well_known: Optional[WellKnownPrincipalTable] = None,
    ):
        self.directory = directory
        self.well_known = well_known if well_known is not None else DEFAULT_WELL_KNOWN_PRINCIPALS

    def resolve(self, identity: IdentityReference) -> ResolvedDirectoryObject:
        """
        Resolve a single identity reference.

        Args:
            identity: DN, SID, GUID or account name string, or a DirectoryObject

        Returns:
            ResolvedDirectoryObject (kind NOT_FOUND / UNSUPPORTED for the
            non-exceptional failures)

        Raises:
            InvalidArgumentError: identity is None or empty
            UnsupportedIdentityTypeError: identity is neither a string nor a DirectoryObject
            DirectoryUnavailableError: the directory service could not be reached
        """
        if isinstance(identity, DirectoryObject):
            debug(f"Identity already typed ({identity.kind.value}): {identity.distinguished_name}")
            return ResolvedDirectoryObject.from_object(identity)

        if identity is None:
            raise InvalidArgumentError("identity must not be None")
        if not isinstance(identity, str):
            raise UnsupportedIdentityTypeError(
                f"Cannot resolve identity of type {type(identity).__name__}"
            )

        value = _require_text(identity, "identity").strip()
        classification = classify_identity(value, self.well_known)
        debug(f"Identity '{value}' classified as {classification.value}")

        if classification is IdentityClassification.DISTINGUISHED_NAME:
            entry = self.directory.query_by_distinguished_name(value)

        elif classification is IdentityClassification.SECURITY_IDENTIFIER:
            sid = strip_domain_prefix(value).upper()
            name = self.well_known.name_for_sid(sid)
            if name:
                return ResolvedDirectoryObject(
                    kind=ObjectKind.WELL_KNOWN_PRINCIPAL,
                    handle=sid,
                    name=name,
                    classification=classification,
                )
            entry = self.directory.query_by_sid(sid)

        elif classification is IdentityClassification.GUID:
            entry = self.directory.query_by_guid(value.strip("{}"))

        elif classification is IdentityClassification.ACCOUNT_NAME:
            # only authority-qualified names skip the directory
            sid = self.well_known.sid_for_name(value) if has_authority_prefix(value) else None
            if sid:
                return ResolvedDirectoryObject(
                    kind=ObjectKind.WELL_KNOWN_PRINCIPAL,
                    handle=sid,
                    name=self.well_known.name_for_sid(sid),
                    classification=classification,
                )
            entry = self.directory.query_by_account_name(strip_domain_prefix(value))

        else:
            return ResolvedDirectoryObject.not_found(
                value,
                classification,
                reason=f"'{value}' is not a DN, SID, GUID or valid account name",
            )

        if entry is None:
            return ResolvedDirectoryObject.not_found(value, classification)

        return self._fetch_typed(value, entry, classification)

    def _fetch_typed(
        self,
        identity: str,
        entry: DirectoryEntry,
        classification: IdentityClassification,
    ) -> ResolvedDirectoryObject:
        """Re-fetch a generic entry through its class-specific accessor."""
        object_class = entry.object_class
        fetcher_name = CLASS_FETCHERS.get((object_class or "").lower())

        if fetcher_name is None:
            err = UnsupportedObjectClassError(object_class, entry.distinguished_name)
            warn(str(err), verbose_only=True)
            return ResolvedDirectoryObject(
                kind=ObjectKind.UNSUPPORTED,
                handle=entry.distinguished_name,
                classification=classification,
                reason=str(err),
            )

        obj = getattr(self.directory, fetcher_name)(entry.distinguished_name)
        if obj is None:
            # Deleted or moved between the generic query and the fetch
            return ResolvedDirectoryObject.not_found(
                identity,
                classification,
                reason=f"{entry.distinguished_name} disappeared before it could be fetched",
            )

        return ResolvedDirectoryObject.from_object(obj, classification)

    def resolve_many(
        self,
        identities: Iterable[IdentityReference],
        on_result: Optional[Callable[[IdentityReference, ResolvedDirectoryObject], None]] = None,
    ) -> List[ResolvedDirectoryObject]:
        """
        Resolve identities one after another.

        NOT_FOUND and UNSUPPORTED outcomes are logged and the batch continues.
        Empty or wrongly-typed identities are reported as NOT_FOUND. A
        DirectoryUnavailableError aborts the batch and is re-raised.

        Args:
            identities: Identity references to resolve, in order
            on_result: Optional callback invoked after each identity (progress reporting)

        Returns:
            Results in input order
        """
        results = []
        for identity in identities:
            try:
                result = self.resolve(identity)
            except DirectoryUnavailableError:
                warn(f"Directory unavailable - aborting after {len(results)} identities")
                raise
            except (InvalidArgumentError, UnsupportedIdentityTypeError) as e:
                warn(f"Skipping identity {identity!r}: {e}")
                result = ResolvedDirectoryObject.not_found(
                    str(identity) if identity is not None else "",
                    reason=str(e),
                )

            if result.found:
                info(f"Resolved {identity} -> {result.kind.value} {result.handle}")
            else:
                debug(f"Unresolved {identity}: {result.reason}")

            results.append(result)
            if on_result:
                on_result(identity, result)

        return results


def resolve_identity(
    identity: IdentityReference,
    directory: DirectoryService,
    well_known: Optional[WellKnownPrincipalTable] = None,
) -> ResolvedDirectoryObject:
    """Resolve one identity with a throwaway IdentityResolver."""
    return IdentityResolver(directory, well_known).resolve(identity)

