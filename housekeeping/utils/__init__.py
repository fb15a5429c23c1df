"""Utility modules for housekeeping.

Modules:
    console: Rich console output
    helpers: Credential, DN and SID/GUID codec helpers
    ldap: LDAP connection utilities
    logging: Logging helpers used by library modules
"""
