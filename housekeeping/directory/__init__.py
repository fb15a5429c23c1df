# Directory service adapters.

from .ldap_directory import LdapDirectory

__all__ = ["LdapDirectory"]
