# Authentication context.
#
# AuthContext bundles the credential and target parameters needed to open
# an LDAP connection to a domain controller.

from .context import AuthContext

__all__ = ["AuthContext"]
