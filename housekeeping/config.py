import argparse
import os
import sys
import tomllib
from typing import Any, Dict

from rich_argparse import RichHelpFormatter

from .auth import AuthContext
from .identity.exceptions import IDENTITY_ERRORS

CONFIG_PATHS = [
    "housekeeping.toml",
    "config/housekeeping.toml",
    os.path.expanduser("~/.config/housekeeping/housekeeping.toml"),
]

# TOML section -> {key: argparse dest}
CONFIG_KEYS = {
    "authentication": {
        "username": "username",
        "password": "password",
        "domain": "domain",
        "hashes": "hashes",
        "kerberos": "kerberos",
        "aes_key": "aes_key",
    },
    "target": {
        "dc_ip": "dc_ip",
        "dc_host": "dc_host",
        "dns_tcp": "dns_tcp",
    },
    "output": {
        "json": "json",
        "verbose": "verbose",
        "debug": "debug",
        "no_progress": "no_progress",
    },
}


class HousekeepingHelpFormatter(RichHelpFormatter):
    """
    Help formatter with uppercase group names and the housekeeping colour scheme.
    """

    styles = {
        **RichHelpFormatter.styles,
        "argparse.groups": "bold cyan",
        "argparse.args": "green",
        "argparse.metavar": "yellow",
        "argparse.help": "white",
    }

    group_name_formatter = str.upper


class OnceOnly(argparse.Action):
    """
    Reject an option given more than once (e.g. two -d values).
    """

    def __call__(self, parser, namespace, values, option_string=None):
        if getattr(namespace, self.dest, None) is not None:
            raise argparse.ArgumentError(self, f"Argument {option_string} can only be specified once.")
        setattr(namespace, self.dest, values)


def load_config() -> Dict[str, Any]:
    """
    Load configuration from the first TOML file found.

    Priority:
    1. ./housekeeping.toml
    2. ./config/housekeeping.toml
    3. ~/.config/housekeeping/housekeeping.toml

    Returns:
        Flat dict of argparse defaults (empty when no file exists)
    """
    config_data = {}
    loaded_path = None

    for path in CONFIG_PATHS:
        if os.path.exists(path):
            try:
                with open(path, "rb") as f:
                    config_data = tomllib.load(f)
                loaded_path = path
                break
            except (OSError, tomllib.TOMLDecodeError) as e:
                print(f"[!] Error loading config file {path}: {e}")

    if not config_data:
        return {}

    if loaded_path == "housekeeping.toml":
        print("[!] WARNING: Using housekeeping.toml from current directory")
        print("[!] This can be a security risk - consider moving to config/housekeeping.toml")

    defaults = {}
    for section, keys in CONFIG_KEYS.items():
        values = config_data.get(section, {})
        for key, dest in keys.items():
            if key in values:
                defaults[dest] = values[key]

    return defaults


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="adhousekeeping",
        description="Active Directory identity validation and resolution.",
        formatter_class=HousekeepingHelpFormatter,
    )

    # Modes
    mode = ap.add_argument_group("Modes", description="Exactly one mode is required.")
    mode.add_argument(
        "--check",
        nargs="+",
        metavar="VALUE",
        help="Offline: classify values and run the DN / SID / GUID validators",
    )
    mode.add_argument("--lookup-name", metavar="NAME", help="Offline: well-known principal name -> SID")
    mode.add_argument("--lookup-sid", metavar="SID", help="Offline: well-known SID -> principal name")
    mode.add_argument(
        "-i",
        "--identity",
        nargs="+",
        metavar="VALUE",
        help="Resolve identities (DN, SID, GUID or account name) against the directory",
    )
    mode.add_argument("--identities-file", help="File with identities to resolve, one per line")
    mode.add_argument(
        "--schema-guid",
        nargs="+",
        metavar="NAME",
        help="Look up schema attribute/class or extended right names -> GUID",
    )

    # Authentication options
    auth = ap.add_argument_group("Authentication options")
    auth.add_argument("-u", "--username", action=OnceOnly, help="Username for the LDAP bind")
    auth.add_argument("-p", "--password", action=OnceOnly, help="Password (omit with -k if using Kerberos/ccache)")
    auth.add_argument("-d", "--domain", action=OnceOnly, help="Domain FQDN (e.g. corp.example.com)")
    auth.add_argument("--hashes", help="NTLM hashes in LM:NT format (or NT-only 32-hex) to use instead of password")
    auth.add_argument("-k", "--kerberos", action="store_true", help="Use Kerberos authentication (supports ccache)")
    auth.add_argument(
        "--aes-key",
        dest="aes_key",
        help="AES key for Kerberos authentication (AES-128: 32 hex chars, AES-256: 64 hex chars). Implies -k.",
    )

    # Target
    target = ap.add_argument_group("Target options")
    target.add_argument("--dc-ip", help="Domain controller IP (default: resolve the domain name)")
    target.add_argument("--dc-host", help="Domain controller hostname for the Kerberos SPN")
    target.add_argument(
        "--dns-tcp",
        action="store_true",
        help="Force DNS queries over TCP instead of UDP (needed through SOCKS proxies)",
    )

    # Output
    out = ap.add_argument_group("Output options")
    out.add_argument("--json", help="Write results to a JSON file")
    out.add_argument("--no-progress", action="store_true", help="Disable the progress bar")

    # Misc
    misc = ap.add_argument_group("Misc")
    misc.add_argument("--verbose", action="store_true", help="Enable verbose output")
    misc.add_argument("--debug", action="store_true", help="Enable debug output (print full stack traces)")

    defaults = load_config()
    if defaults:
        ap.set_defaults(**defaults)

    return ap


ONLINE_MODES = ("identity", "identities_file", "schema_guid")
OFFLINE_MODES = ("check", "lookup_name", "lookup_sid")


def selected_modes(args):
    return [m for m in OFFLINE_MODES + ONLINE_MODES if getattr(args, m, None)]


def validate_args(args):
    modes = selected_modes(args)
    if not modes:
        print("[!] ERROR: No mode selected")
        print("[!] Use one of --check, --lookup-name, --lookup-sid, -i/--identity, --identities-file, --schema-guid")
        sys.exit(1)
    if len(modes) > 1:
        flags = ", ".join("--" + m.replace("_", "-") for m in modes)
        print(f"[!] ERROR: Modes are mutually exclusive (got {flags})")
        sys.exit(1)

    if args.aes_key:
        args.kerberos = True

    if modes[0] in ONLINE_MODES:
        if not args.domain or not AuthContext.from_args(args).has_credentials:
            print(IDENTITY_ERRORS["no_credentials"])
            sys.exit(1)
        if "." not in args.domain:
            print(f"[!] ERROR: --domain must be an FQDN (got '{args.domain}')")
            sys.exit(1)

    if args.identities_file and not os.path.isfile(args.identities_file):
        print(f"[!] ERROR: Identities file not found: {args.identities_file}")
        sys.exit(1)
