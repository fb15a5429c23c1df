# Small helpers used across the codebase.
#
# This module contains credential parsing, domain/DN helpers and the binary
# SID/GUID codecs needed to build LDAP filters against objectSid and
# objectGUID.

import struct
import uuid
from typing import Optional, Tuple

from .logging import debug


def parse_ntlm_hashes(hashes: Optional[str]) -> Tuple[str, str]:
    """
    Parse NTLM hashes from string format.

    Args:
        hashes: Hash string in "LM:NT" or "NT" format, or None/empty

    Returns:
        Tuple of (lmhash, nthash) - empty strings if not provided
    """
    if not hashes:
        return "", ""

    if ":" in hashes:
        lmhash, nthash = hashes.split(":", 1)
        return lmhash, nthash
    else:
        return "", hashes


def domain_to_base_dn(domain: str) -> str:
    """Convert an FQDN (corp.example.com) to its naming context (DC=corp,DC=example,DC=com)."""
    return ",".join([f"DC={part}" for part in domain.split(".") if part])


def strip_domain_prefix(value: str) -> str:
    """Return the part after the last backslash (DOMAIN\\name -> name)."""
    if "\\" in value:
        return value.rsplit("\\", 1)[1]
    return value


def sid_to_binary(sid_string: str) -> Optional[bytes]:
    """
    Convert a SID string (S-1-5-21-...) to binary format for LDAP queries.

    Args:
        sid_string: String representation of SID

    Returns:
        Binary representation of SID for LDAP queries, None if invalid
    """
    try:
        if not sid_string or not sid_string.upper().startswith("S-"):
            return None

        parts = sid_string[2:].split("-")
        if len(parts) < 3 or not all(p.isascii() and p.isdigit() for p in parts):
            return None

        revision = int(parts[0])
        authority = int(parts[1])
        subauthorities = [int(x) for x in parts[2:]]
        # identifier authority is a 48-bit field
        if authority >= 1 << 48:
            return None

        # Revision (1 byte) + SubAuthorityCount (1 byte) + Authority (6 bytes, big-endian)
        # + SubAuthorities (4 bytes each, little-endian)
        binary_sid = struct.pack("B", revision)
        binary_sid += struct.pack("B", len(subauthorities))
        binary_sid += struct.pack(">Q", authority)[2:]

        for subauth in subauthorities:
            binary_sid += struct.pack("<I", subauth)

        return binary_sid

    except (ValueError, struct.error) as e:
        debug(f"Error converting SID {sid_string} to binary: {e}")
        return None


def binary_to_sid(binary_sid: bytes) -> Optional[str]:
    """
    Convert a binary SID (from LDAP objectSid attribute) to string format.

    Args:
        binary_sid: Binary representation of SID from LDAP

    Returns:
        String representation like "S-1-5-21-...", None if invalid
    """
    try:
        if not binary_sid or len(binary_sid) < 8:
            return None

        revision = struct.unpack("B", binary_sid[0:1])[0]
        subauth_count = struct.unpack("B", binary_sid[1:2])[0]

        # Authority is 6 bytes big-endian, padded to 8 for unpacking
        authority = struct.unpack(">Q", b"\x00\x00" + binary_sid[2:8])[0]

        sid_parts = [f"S-{revision}-{authority}"]

        offset = 8
        for _ in range(subauth_count):
            if offset + 4 > len(binary_sid):
                debug("Binary SID too short for claimed sub-authority count")
                return None
            subauth = struct.unpack("<I", binary_sid[offset : offset + 4])[0]
            sid_parts.append(str(subauth))
            offset += 4

        return "-".join(sid_parts)

    except (ValueError, struct.error) as e:
        debug(f"Error converting binary SID to string: {e}")
        return None


def guid_to_binary(guid_string: str) -> Optional[bytes]:
    """
    Convert a GUID string (with or without braces) to the little-endian
    byte layout AD stores in objectGUID and schemaIDGUID.
    """
    try:
        return uuid.UUID(guid_string.strip().strip("{}")).bytes_le
    except (ValueError, AttributeError) as e:
        debug(f"Error converting GUID {guid_string} to binary: {e}")
        return None


def binary_to_guid(binary_guid: bytes) -> Optional[str]:
    """Convert a 16-byte little-endian GUID to its canonical lower-case string."""
    if not binary_guid or len(binary_guid) != 16:
        return None
    return str(uuid.UUID(bytes_le=bytes(binary_guid)))


def escape_filter_value(value: str) -> str:
    """
    Escape a string for use as an assertion value in an LDAP filter (RFC 4515).
    """
    escaped = []
    for char in value:
        if char in ("\\", "*", "(", ")", "\x00"):
            escaped.append(f"\\{ord(char):02x}")
        else:
            escaped.append(char)
    return "".join(escaped)


def escape_filter_bytes(data: bytes) -> str:
    """Hex-escape every byte of a binary value for an LDAP filter."""
    return "".join([f"\\{b:02x}" for b in data])
