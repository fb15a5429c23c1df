# LDAP connection setup for the directory adapter.
#
# Binds to a domain controller with password, NTLM hash or Kerberos
# credentials. LDAPS is tried before plain LDAP.

import socket
from typing import Callable, Iterator, List, Optional, Tuple

import dns.exception
import dns.resolver
import dns.reversename
from impacket.ldap import ldap as ldap_impacket

from .helpers import domain_to_base_dn, parse_ntlm_hashes
from .logging import debug

LDAPS_PORT = 636
LDAP_PORT = 389
DNS_TIMEOUT = 3


class LDAPConnectionError(Exception):
    """Failed to connect to domain controller via LDAP"""


def _qualify(hostname: Optional[str], domain: str) -> Optional[str]:
    """Append the domain to a short name; reject answers that are just the domain."""
    if not hostname:
        return None
    hostname = hostname.rstrip(".")
    if "." not in hostname:
        hostname = f"{hostname}.{domain}"
    if hostname.lower() == domain.lower():
        return None
    return hostname


def _ptr_via_dc(dc_ip: str, use_tcp: bool) -> Optional[str]:
    resolver = dns.resolver.Resolver(configure=False)
    resolver.nameservers = [dc_ip]
    resolver.timeout = DNS_TIMEOUT
    resolver.lifetime = DNS_TIMEOUT
    answers = resolver.resolve(dns.reversename.from_address(dc_ip), "PTR", tcp=use_tcp)
    return str(answers[0]) if answers else None


def _ptr_via_system(dc_ip: str, use_tcp: bool) -> Optional[str]:
    return socket.gethostbyaddr(dc_ip)[0]


def _fqdn_via_system(dc_ip: str, use_tcp: bool) -> Optional[str]:
    hostname = socket.getfqdn(dc_ip)
    return None if hostname == dc_ip else hostname


_HOSTNAME_LOOKUPS: List[Tuple[str, Callable[[str, bool], Optional[str]]]] = [
    ("PTR via DC", _ptr_via_dc),
    ("reverse DNS", _ptr_via_system),
    ("getfqdn", _fqdn_via_system),
]


def resolve_dc_hostname(dc_ip: str, domain: str, use_tcp: bool = False) -> Optional[str]:
    """
    Find the DC's FQDN so a Kerberos SPN (ldap/<host>) can be built.

    Asks the DC itself for a PTR record first, then the system resolver.
    use_tcp forces the DC query over TCP, which SOCKS proxies need.

    Returns:
        DC hostname (FQDN) or None if every lookup fails
    """
    for label, lookup in _HOSTNAME_LOOKUPS:
        try:
            hostname = _qualify(lookup(dc_ip, use_tcp), domain)
        except (dns.exception.DNSException, OSError, ValueError) as e:
            debug(f"LDAP: {label} lookup for {dc_ip} failed: {e}")
            continue
        if hostname:
            return hostname
    return None


def _endpoints(target: str, kerberos_host: Optional[str]) -> Iterator[Tuple[str, bool]]:
    """Yield (url, is_tls) in preference order."""
    for scheme, port, is_tls in (("ldaps", LDAPS_PORT, True), ("ldap", LDAP_PORT, False)):
        # no port in Kerberos URLs: the SPN is ldap/<host>
        if kerberos_host:
            yield f"{scheme}://{kerberos_host}", is_tls
        else:
            yield f"{scheme}://{target}:{port}", is_tls


def get_ldap_connection(
    dc_ip: Optional[str],
    domain: str,
    username: str,
    password: Optional[str] = None,
    hashes: Optional[str] = None,
    kerberos: bool = False,
    aes_key: Optional[str] = None,
    dc_host: Optional[str] = None,
    use_tcp: bool = False,
) -> ldap_impacket.LDAPConnection:
    """
    Bind to a domain controller.

    Without dc_ip the domain name is the target and AD DNS picks a DC.
    A TLS failure on LDAPS falls through to LDAP on 389; a
    strongerAuthRequired answer on LDAP ends the attempts.

    Args:
        dc_ip: Domain controller IP address (optional)
        domain: Domain FQDN, e.g. "contoso.com"
        username: Account to bind as
        password: Plaintext password
        hashes: NTLM hashes in LM:NT or NT format
        kerberos: Use Kerberos authentication (implied by aes_key)
        aes_key: AES key for Kerberos (128-bit or 256-bit hex string)
        dc_host: DC hostname for the Kerberos SPN, resolved from dc_ip if absent
        use_tcp: Force DNS queries over TCP

    Raises:
        LDAPConnectionError: on an invalid domain or when every attempt fails
    """
    if not domain or "." not in domain:
        raise LDAPConnectionError(f"Invalid domain '{domain}' - must be an FQDN")

    use_kerberos = kerberos or bool(aes_key)
    target = dc_ip or domain
    lmhash, nthash = parse_ntlm_hashes(hashes)
    credentials = {
        "user": username,
        "password": password or "",
        "domain": domain,
        "lmhash": lmhash,
        "nthash": nthash,
    }

    kerberos_host = None
    if use_kerberos:
        kerberos_host = dc_host or (resolve_dc_hostname(dc_ip, domain, use_tcp=use_tcp) if dc_ip else None)
        if kerberos_host:
            debug(f"LDAP: Kerberos SPN host is {kerberos_host}")
        else:
            debug("LDAP: DC hostname unknown, Kerberos may fail")
            kerberos_host = target

    last_error = None
    for url, is_tls in _endpoints(target, kerberos_host):
        debug(f"LDAP: Connecting to {url}")
        try:
            conn = ldap_impacket.LDAPConnection(url, baseDN=domain_to_base_dn(domain), dstIp=dc_ip)
            if use_kerberos:
                conn.kerberosLogin(aesKey=aes_key or "", kdcHost=kerberos_host, **credentials)
            else:
                conn.login(**credentials)
        except Exception as e:
            last_error = e
            reason = str(e)
            debug(f"LDAP: {url} failed: {reason}")
            if not is_tls and "strongerAuthRequired" in reason:
                debug("LDAP: DC requires signing/encryption and LDAPS already failed")
                break
            continue

        debug(f"LDAP: Bound via {url.split(':', 1)[0].upper()}")
        return conn

    raise LDAPConnectionError(f"LDAP connection failed: {last_error}")
