# Authentication context dataclass.
#
# Usage:
#     auth = AuthContext(
#         username="svc_audit",
#         password="secret",
#         domain="corp.example.com",
#         dc_ip="10.0.0.10",
#     )
#     with LdapDirectory.connect(auth) as directory:
#         ...

from dataclasses import dataclass
from typing import Optional


@dataclass
class AuthContext:
    """
    Credentials and target for an LDAP bind against a domain controller.

    Attributes:
        username: Account used for the bind
        password: Plaintext password (alternative to hashes / aes_key)
        domain: Domain FQDN, also used to derive the base DN
        hashes: NTLM hashes in LMHASH:NTHASH or NTHASH format
        aes_key: AES key for Kerberos (128-bit or 256-bit hex)
        kerberos: Use Kerberos authentication instead of NTLM
        dc_ip: Domain controller IP (defaults to the domain name via DNS)
        dc_host: Domain controller hostname for the Kerberos SPN
        dns_tcp: Force DNS queries over TCP (for SOCKS proxies)
    """

    username: str = ""
    password: Optional[str] = None
    domain: str = ""
    hashes: Optional[str] = None
    aes_key: Optional[str] = None
    kerberos: bool = False
    dc_ip: Optional[str] = None
    dc_host: Optional[str] = None
    dns_tcp: bool = False

    @property
    def has_credentials(self) -> bool:
        """Check if valid credentials are configured."""
        return bool(self.username and (self.password or self.hashes or self.aes_key or self.kerberos))

    @classmethod
    def from_args(cls, args) -> "AuthContext":
        """Build from an argparse namespace (config file values already merged in as defaults)."""
        return cls(
            username=getattr(args, "username", None) or "",
            password=getattr(args, "password", None),
            domain=getattr(args, "domain", None) or "",
            hashes=getattr(args, "hashes", None),
            aes_key=getattr(args, "aes_key", None),
            kerberos=bool(getattr(args, "kerberos", False)),
            dc_ip=getattr(args, "dc_ip", None),
            dc_host=getattr(args, "dc_host", None),
            dns_tcp=bool(getattr(args, "dns_tcp", False)),
        )

    def __repr__(self) -> str:
        """Safe repr that doesn't expose credentials."""
        return (
            f"AuthContext(username={self.username!r}, domain={self.domain!r}, "
            f"kerberos={self.kerberos}, dc_ip={self.dc_ip!r}, "
            f"has_password={self.password is not None}, "
            f"has_hashes={self.hashes is not None}, "
            f"has_aes_key={self.aes_key is not None})"
        )
