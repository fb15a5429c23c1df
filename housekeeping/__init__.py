"""
adhousekeeping - Active Directory identity validation and resolution.

Classifies raw identity strings (DN, SID, GUID, account name), answers
well-known principal lookups offline, and resolves everything else to a
typed directory object over LDAP.
"""

__version__ = "0.1.0"
