"""
Test suite for the LDAP connection helpers.

Tests cover:
- resolve_dc_hostname fallbacks
- get_ldap_connection protocol fallback, auth methods and errors
"""

import socket
from unittest.mock import MagicMock, patch

import pytest

pytest.importorskip("impacket")

from housekeeping.utils.ldap import (  # noqa: E402
    LDAPConnectionError,
    get_ldap_connection,
    resolve_dc_hostname,
)


# ============================================================================
# Test: resolve_dc_hostname
# ============================================================================


class TestResolveDcHostname:
    """Tests for resolve_dc_hostname function"""

    @pytest.fixture(autouse=True)
    def no_ptr(self):
        """Make the PTR lookup fail so the socket fallbacks are exercised"""
        with patch("housekeeping.utils.ldap.dns.resolver.Resolver") as mock_resolver_class:
            mock_resolver_class.return_value.resolve.side_effect = OSError("no route")
            yield mock_resolver_class

    @patch("housekeeping.utils.ldap.socket.gethostbyaddr")
    def test_socket_reverse_dns_success(self, mock_gethostbyaddr):
        """Should use socket reverse DNS lookup"""
        mock_gethostbyaddr.return_value = ("dc01.contoso.com", [], [])

        assert resolve_dc_hostname("10.0.0.1", "contoso.com") == "dc01.contoso.com"

    @patch("housekeeping.utils.ldap.socket.getfqdn")
    @patch("housekeeping.utils.ldap.socket.gethostbyaddr")
    def test_domain_name_skipped(self, mock_gethostbyaddr, mock_getfqdn):
        """A reverse lookup that only returns the domain name is not a DC hostname"""
        mock_gethostbyaddr.return_value = ("contoso.com", [], [])
        mock_getfqdn.return_value = "dc01.contoso.com"

        assert resolve_dc_hostname("10.0.0.1", "contoso.com") == "dc01.contoso.com"

    @patch("housekeeping.utils.ldap.socket.getfqdn")
    @patch("housekeeping.utils.ldap.socket.gethostbyaddr")
    def test_all_methods_fail_returns_none(self, mock_gethostbyaddr, mock_getfqdn):
        """Should return None when every method fails"""
        mock_gethostbyaddr.side_effect = socket.herror()
        mock_getfqdn.return_value = "10.0.0.1"

        assert resolve_dc_hostname("10.0.0.1", "contoso.com") is None

    def test_ptr_lookup_used_first(self, no_ptr):
        """PTR answer from the DC wins and is passed tcp=use_tcp"""
        answer = MagicMock()
        answer.__str__ = MagicMock(return_value="dc01.contoso.com.")
        no_ptr.return_value.resolve.side_effect = None
        no_ptr.return_value.resolve.return_value = [answer]

        with patch("housekeeping.utils.ldap.dns.reversename.from_address", return_value="1.0.0.10.in-addr.arpa"):
            result = resolve_dc_hostname("10.0.0.1", "contoso.com", use_tcp=True)

        assert result == "dc01.contoso.com"
        assert no_ptr.return_value.resolve.call_args.kwargs["tcp"] is True

    def test_short_ptr_name_qualified(self, no_ptr):
        answer = MagicMock()
        answer.__str__ = MagicMock(return_value="DC01")
        no_ptr.return_value.resolve.side_effect = None
        no_ptr.return_value.resolve.return_value = [answer]

        with patch("housekeeping.utils.ldap.dns.reversename.from_address", return_value="1.0.0.10.in-addr.arpa"):
            assert resolve_dc_hostname("10.0.0.1", "contoso.com") == "DC01.contoso.com"


# ============================================================================
# Test: get_ldap_connection
# ============================================================================


class TestGetLdapConnection:
    """Tests for get_ldap_connection function"""

    @patch("housekeeping.utils.ldap.ldap_impacket.LDAPConnection")
    def test_ldaps_connection_success(self, mock_ldap_class):
        """Should connect via LDAPS successfully"""
        mock_conn = MagicMock()
        mock_ldap_class.return_value = mock_conn

        result = get_ldap_connection(dc_ip="10.0.0.1", domain="contoso.com", username="svc", password="pw")

        assert result == mock_conn
        assert mock_ldap_class.call_args.args[0] == "ldaps://10.0.0.1:636"
        call_kwargs = mock_conn.login.call_args.kwargs
        assert call_kwargs["user"] == "svc"
        assert call_kwargs["password"] == "pw"
        assert call_kwargs["domain"] == "contoso.com"

    @patch("housekeeping.utils.ldap.ldap_impacket.LDAPConnection")
    def test_domain_used_when_no_dc_ip(self, mock_ldap_class):
        """Without --dc-ip the domain name itself is the target"""
        get_ldap_connection(dc_ip=None, domain="contoso.com", username="svc", password="pw")
        assert mock_ldap_class.call_args.args[0] == "ldaps://contoso.com:636"

    @patch("housekeeping.utils.ldap.ldap_impacket.LDAPConnection")
    def test_ldaps_fails_falls_back_to_ldap(self, mock_ldap_class):
        """Should fall back to LDAP if LDAPS fails"""
        mock_conn = MagicMock()
        urls = []

        def ldap_side_effect(url, **kwargs):
            urls.append(url)
            if url.startswith("ldaps"):
                raise OSError("SSL certificate error")
            return mock_conn

        mock_ldap_class.side_effect = ldap_side_effect

        assert get_ldap_connection(dc_ip="10.0.0.1", domain="contoso.com", username="svc", password="pw") == mock_conn
        assert urls == ["ldaps://10.0.0.1:636", "ldap://10.0.0.1:389"]

    @patch("housekeeping.utils.ldap.ldap_impacket.LDAPConnection")
    def test_both_protocols_fail_raises_error(self, mock_ldap_class):
        """Should raise LDAPConnectionError when both protocols fail"""
        mock_ldap_class.side_effect = OSError("Connection refused")

        with pytest.raises(LDAPConnectionError) as exc_info:
            get_ldap_connection(dc_ip="10.0.0.1", domain="contoso.com", username="svc", password="pw")

        assert "Connection refused" in str(exc_info.value)

    def test_non_fqdn_domain_rejected(self):
        with pytest.raises(LDAPConnectionError):
            get_ldap_connection(dc_ip="10.0.0.1", domain="CONTOSO", username="svc", password="pw")

    @patch("housekeeping.utils.ldap.ldap_impacket.LDAPConnection")
    def test_ntlm_hash_authentication(self, mock_ldap_class):
        """Should authenticate with NTLM hashes"""
        mock_conn = MagicMock()
        mock_ldap_class.return_value = mock_conn

        get_ldap_connection(
            dc_ip="10.0.0.1",
            domain="contoso.com",
            username="svc",
            hashes="aad3b435b51404eeaad3b435b51404ee:31d6cfe0d16ae931b73c59d7e0c089c0",
        )

        call_kwargs = mock_conn.login.call_args.kwargs
        assert call_kwargs["lmhash"] == "aad3b435b51404eeaad3b435b51404ee"
        assert call_kwargs["nthash"] == "31d6cfe0d16ae931b73c59d7e0c089c0"
        assert call_kwargs["password"] == ""

    @patch("housekeeping.utils.ldap.resolve_dc_hostname")
    @patch("housekeeping.utils.ldap.ldap_impacket.LDAPConnection")
    def test_kerberos_authentication(self, mock_ldap_class, mock_resolve):
        """Should use Kerberos with the resolved DC hostname as SPN target"""
        mock_conn = MagicMock()
        mock_ldap_class.return_value = mock_conn
        mock_resolve.return_value = "dc01.contoso.com"

        get_ldap_connection(dc_ip="10.0.0.1", domain="contoso.com", username="svc", kerberos=True)

        mock_conn.kerberosLogin.assert_called_once()
        assert mock_conn.kerberosLogin.call_args.kwargs["kdcHost"] == "dc01.contoso.com"
        assert mock_ldap_class.call_args.args[0] == "ldaps://dc01.contoso.com"

    @patch("housekeeping.utils.ldap.ldap_impacket.LDAPConnection")
    def test_aes_key_implies_kerberos(self, mock_ldap_class):
        mock_conn = MagicMock()
        mock_ldap_class.return_value = mock_conn

        get_ldap_connection(
            dc_ip="10.0.0.1",
            domain="contoso.com",
            username="svc",
            aes_key="00" * 32,
            dc_host="dc01.contoso.com",
        )

        mock_conn.kerberosLogin.assert_called_once()
        assert mock_conn.kerberosLogin.call_args.kwargs["aesKey"] == "00" * 32
        mock_conn.login.assert_not_called()

    @patch("housekeeping.utils.ldap.ldap_impacket.LDAPConnection")
    def test_base_dn_constructed_from_domain(self, mock_ldap_class):
        """Should construct correct base DN from domain"""
        get_ldap_connection(dc_ip="10.0.0.1", domain="sub.contoso.com", username="svc", password="pw")
        assert mock_ldap_class.call_args.kwargs["baseDN"] == "DC=sub,DC=contoso,DC=com"

    @patch("housekeeping.utils.ldap.ldap_impacket.LDAPConnection")
    def test_stronger_auth_required_stops(self, mock_ldap_class):
        """strongerAuthRequired on plain LDAP ends the attempts"""
        mock_conn = MagicMock()

        def ldap_side_effect(url, **kwargs):
            if url.startswith("ldaps"):
                raise OSError("SSL error")
            mock_conn.login.side_effect = Exception("strongerAuthRequired")
            return mock_conn

        mock_ldap_class.side_effect = ldap_side_effect

        with pytest.raises(LDAPConnectionError):
            get_ldap_connection(dc_ip="10.0.0.1", domain="contoso.com", username="svc", password="pw")
