import sys
import time
from typing import Dict, List

from .auth import AuthContext
from .config import build_parser, selected_modes, validate_args
from .identity import (
    IDENTITY_ERRORS,
    DirectoryUnavailableError,
    IdentityError,
    IdentityResolver,
    classify_identity,
    get_lookup_tables,
    initialize_lookup_tables,
    is_valid_dn,
    is_valid_guid,
    is_valid_sid,
    lookup_name_by_sid,
    lookup_well_known_sid_by_name,
)
from .identity.exceptions import InvalidArgumentError
from .output.writer import write_json
from .utils.console import (
    print_check_table,
    print_guid_table,
    print_resolution_complete,
    print_resolution_table,
    resolve_progress,
)
from .utils.logging import debug, error, good, info, set_verbosity, status, warn

EXIT_OK = 0
EXIT_USAGE = 1
EXIT_UNAVAILABLE = 2


def _read_identities_file(path: str) -> List[str]:
    """One identity per line; blank lines and # comments are skipped."""
    identities = []
    with open(path, encoding="utf-8") as f:
        for line in f:
            line = line.strip()
            if line and not line.startswith("#"):
                identities.append(line)
    return identities


def _run_check(values: List[str]) -> List[Dict]:
    rows = []
    for value in values:
        try:
            rows.append(
                {
                    "value": value,
                    "classification": classify_identity(value).value,
                    "dn": is_valid_dn(value),
                    "sid": is_valid_sid(value),
                    "guid": is_valid_guid(value),
                }
            )
        except InvalidArgumentError as e:
            warn(f"Skipping {value!r}: {e}")
    print_check_table(rows)
    return rows


def _run_lookup_name(name: str) -> List[Dict]:
    sid = lookup_well_known_sid_by_name(name, get_lookup_tables().well_known)
    if sid:
        status(f"[green][+][/] {name} -> {sid}")
    else:
        status(f"[yellow][-][/] {name} is not a well-known principal")
    return [{"name": name, "sid": sid}]


def _run_lookup_sid(sid: str) -> List[Dict]:
    name = lookup_name_by_sid(sid, get_lookup_tables().well_known)
    if name:
        status(f"[green][+][/] {sid} -> {name}")
    else:
        status(f"[yellow][-][/] {sid} is not a well-known SID")
    return [{"sid": sid, "name": name}]


def _run_resolve(directory, identities: List[str], show_progress: bool) -> List[Dict]:
    resolver = IdentityResolver(directory, get_lookup_tables().well_known)
    start = time.perf_counter()

    with resolve_progress(len(identities), enabled=show_progress) as update:
        results = resolver.resolve_many(
            identities,
            on_result=lambda identity, result: update(str(identity), success=result.found, error_msg=result.reason),
        )

    rows = []
    for identity, result in zip(identities, results):
        row = result.to_dict()
        row["identity"] = identity
        rows.append(row)

    resolved = sum(1 for r in results if r.found)
    print_resolution_table(rows)
    print_resolution_complete(resolved, len(results) - resolved, time.perf_counter() - start)
    return rows


def _run_schema_guid(names: List[str]) -> List[Dict]:
    tables = get_lookup_tables()
    rows = []
    for name in names:
        guid = None
        source = None
        if tables.schema_guids is not None and name in tables.schema_guids:
            guid, source = tables.schema_guids.guid_for(name), "schema"
        elif tables.extended_rights is not None and name in tables.extended_rights:
            guid, source = tables.extended_rights.guid_for(name), "extended-right"
        rows.append({"name": name, "source": source, "guid": str(guid) if guid else None})
    print_guid_table(rows)
    return rows


def main():
    ap = build_parser()
    args = ap.parse_args()

    set_verbosity(args.verbose, args.debug)

    validate_args(args)
    mode = selected_modes(args)[0]
    debug(f"Mode: {mode}")

    rows: List[Dict] = []
    try:
        if mode == "check":
            rows = _run_check(args.check)
        elif mode in ("lookup_name", "lookup_sid"):
            initialize_lookup_tables()
            if mode == "lookup_name":
                rows = _run_lookup_name(args.lookup_name)
            else:
                rows = _run_lookup_sid(args.lookup_sid)
        else:
            # Online modes import the LDAP stack lazily so offline checks work without it
            from .directory import LdapDirectory

            auth = AuthContext.from_args(args)
            debug(f"Auth: {auth!r}")

            if mode == "identities_file":
                identities = _read_identities_file(args.identities_file)
                if not identities:
                    warn(f"No identities found in {args.identities_file}")
                    sys.exit(EXIT_USAGE)
            else:
                identities = args.identity

            with LdapDirectory.connect(auth) as directory:
                good(f"Connected to {auth.dc_ip or auth.domain}")
                if mode == "schema_guid":
                    info("Loading schema and extended-rights GUID maps...")
                    initialize_lookup_tables(directory, force=True)
                    rows = _run_schema_guid(args.schema_guid)
                else:
                    initialize_lookup_tables()
                    rows = _run_resolve(directory, identities, show_progress=not args.no_progress)

    except DirectoryUnavailableError as e:
        error(str(e))
        print(IDENTITY_ERRORS["directory_unavailable"])
        if args.debug:
            import traceback

            traceback.print_exc()
        sys.exit(EXIT_UNAVAILABLE)
    except IdentityError as e:
        error(str(e))
        sys.exit(EXIT_USAGE)
    except KeyboardInterrupt:
        warn("Interrupted")
        sys.exit(EXIT_USAGE)
    except Exception as e:
        error(f"Unexpected error: {e}")
        if args.debug:
            import traceback

            traceback.print_exc()
        sys.exit(EXIT_USAGE)

    if args.json:
        write_json(args.json, rows, silent=True)
        status(f"[green][+][/] Results written to {args.json}")

    sys.exit(EXIT_OK)
