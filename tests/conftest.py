"""
Pytest configuration and shared fixtures for housekeeping tests.
"""

import pytest

from housekeeping.models.identity import DirectoryEntry, DirectoryObject, ObjectKind

TEST_USER_DN = "CN=TestUser,OU=Users,DC=contoso,DC=com"
TEST_USER_SID = "S-1-5-21-1004336348-1177238915-682003330-1105"
TEST_USER_GUID = "6f9619ff-8b86-d011-b42d-00c04fc964ff"


@pytest.fixture(autouse=True)
def reset_tables():
    """Drop the shared lookup tables between tests."""
    from housekeeping.identity.tables import reset_lookup_tables

    reset_lookup_tables()
    yield
    reset_lookup_tables()


@pytest.fixture(autouse=True)
def quiet_output(monkeypatch):
    """Reset console verbosity so one test's --debug does not leak into another."""
    from housekeeping.utils.logging import set_verbosity

    monkeypatch.setenv("HOUSEKEEPING_DEBUG", "")
    monkeypatch.delenv("HOUSEKEEPING_DEBUG")
    set_verbosity(False, False)
    yield
    set_verbosity(False, False)


@pytest.fixture
def test_user():
    """A fetched user object."""
    return DirectoryObject(
        kind=ObjectKind.USER,
        distinguished_name=TEST_USER_DN,
        sid=TEST_USER_SID,
        guid=TEST_USER_GUID,
        sam_account_name="testuser",
        name="TestUser",
    )


@pytest.fixture
def test_user_entry():
    """Generic query hit for the test user."""
    return DirectoryEntry(
        distinguished_name=TEST_USER_DN,
        object_classes=["top", "person", "organizationalPerson", "user"],
    )


@pytest.fixture
def mock_directory(mocker, test_user, test_user_entry):
    """
    Directory service double that knows exactly one user.

    Every query method is a MagicMock so tests can assert on call counts.
    """
    directory = mocker.MagicMock()
    directory.query_by_distinguished_name.return_value = None
    directory.query_by_sid.return_value = None
    directory.query_by_guid.return_value = None
    directory.query_by_account_name.side_effect = lambda name: test_user_entry if name.lower() == "testuser" else None
    directory.fetch_user.side_effect = lambda dn: test_user if dn == TEST_USER_DN else None
    directory.fetch_group.return_value = None
    directory.fetch_computer.return_value = None
    directory.fetch_organizational_unit.return_value = None
    directory.fetch_service_account.return_value = None
    return directory
