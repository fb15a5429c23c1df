# Identity Exceptions and Error Messages

from typing import Optional

# =============================================================================
# Exceptions
# =============================================================================


class IdentityError(Exception):
    """Base exception for identity validation and resolution"""

    pass


class InvalidArgumentError(IdentityError, ValueError):
    """A mandatory identity argument was None or empty"""

    pass


class UnsupportedIdentityTypeError(IdentityError, TypeError):
    """Identity is neither a string nor a typed directory object"""

    pass


class UnsupportedObjectClassError(IdentityError):
    """Directory object resolved but its class is not one we can fetch"""

    def __init__(self, object_class: Optional[str], distinguished_name: str):
        self.object_class = object_class
        self.distinguished_name = distinguished_name
        super().__init__(
            f"Unsupported object class '{object_class}' for {distinguished_name}"
        )


class DirectoryUnavailableError(IdentityError):
    """The directory service could not be reached"""

    pass


class LookupTablesNotInitializedError(IdentityError, RuntimeError):
    """Lookup tables were read before initialize_lookup_tables() ran"""

    pass


# =============================================================================
# Error Messages
# =============================================================================

IDENTITY_ERRORS = {
    "directory_unavailable": (
        "[!] Directory service unavailable\n"
        "[!] Check: --dc-ip is correct, DC is reachable, credentials are valid\n"
        "[!] Remaining identities were not resolved"
    ),
    "no_credentials": (
        "[!] Online resolution requires credentials\n"
        "[!] Provide -u/--username with -p, --hashes, --aes-key or -k, and -d/--domain"
    ),
}
