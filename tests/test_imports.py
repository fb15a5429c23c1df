"""
Test that all modules can be imported without errors.
"""

import pytest


def test_import_cli():
    """Test CLI module imports."""
    from housekeeping import cli

    assert hasattr(cli, "main")


def test_import_identity():
    """Test identity package imports."""
    from housekeeping import identity

    assert hasattr(identity, "IdentityResolver")
    assert hasattr(identity, "classify_identity")
    assert hasattr(identity, "initialize_lookup_tables")


def test_identity_does_not_pull_ldap_stack():
    """The offline core stays importable without the LDAP adapter."""
    import housekeeping.identity.resolver as resolver

    assert not hasattr(resolver, "LdapDirectory")


def test_import_models():
    from housekeeping.models import DirectoryObject, ObjectKind, ResolvedDirectoryObject

    assert ObjectKind.USER.value == "user"
    assert DirectoryObject and ResolvedDirectoryObject


def test_import_directory():
    """Test LDAP directory adapter imports."""
    pytest.importorskip("impacket")
    from housekeeping.directory import LdapDirectory

    assert hasattr(LdapDirectory, "connect")


def test_import_utils():
    """Test utility modules."""
    from housekeeping.utils import console, helpers, logging

    assert hasattr(console, "resolve_progress")
    assert hasattr(helpers, "sid_to_binary")
    assert hasattr(logging, "set_verbosity")


def test_import_output():
    from housekeeping.output import writer

    assert hasattr(writer, "write_json")


def test_version():
    import housekeeping

    assert housekeeping.__version__
