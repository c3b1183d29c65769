#!/usr/bin/env python3
"""
Calldata Guard CLI

Command-line interface for querying the calldata guard daemon and for
working with condition packs locally.
"""

import argparse
import json
import os
import sys

import httpx

from .core.abi import method_selector
from .core.errors import AllowlistError
from .service.packs import load_condition_pack

GUARD_URL = os.getenv("CALLDATA_GUARD_URL", "http://127.0.0.1:8766")


def get_client():
    """Get HTTP client."""
    return httpx.Client(base_url=GUARD_URL, timeout=10)


def _daemon_not_running():
    print("❌ Calldata guard daemon not running")
    print("Start with: calldata-guard-daemon")
    sys.exit(1)


def cmd_health(args):
    """Show daemon health."""
    try:
        health = get_client().get("/health").json()
    except httpx.ConnectError:
        _daemon_not_running()

    print("🛡️  Calldata Guard Status")
    print("=" * 40)
    print(f"Status: {health['status']}")
    print(f"Version: {health['version']}")
    print(f"Registered protocols: {health['protocols']}")


def cmd_protocols(args):
    """List registered protocols."""
    try:
        client = get_client()
        protocols = client.get("/api/v1/allowlists/protocols").json()["protocols"]

        if not protocols:
            print("No registered protocols")
            return

        print(f"📋 Registered protocols ({len(protocols)}):")
        for origin in protocols:
            if args.verbose:
                entry = client.get(f"/api/v1/allowlists/protocols/{origin}").json()
                valid = "✅" if entry["conditions_valid"] else "⚠️"
                print(
                    f"  - {origin}: owner {entry['owner_address']}, "
                    f"{entry['conditions_length']} conditions {valid}"
                )
            else:
                print(f"  - {origin}")
    except httpx.ConnectError:
        _daemon_not_running()


def cmd_conditions(args):
    """Show the conditions of one origin."""
    try:
        response = get_client().get(f"/api/v1/allowlists/protocols/{args.origin}/conditions")
    except httpx.ConnectError:
        _daemon_not_running()

    if response.status_code == 404:
        print(f"❌ Origin not registered: {args.origin}")
        sys.exit(1)

    conditions = response.json()["conditions"]
    if args.json:
        print(json.dumps(conditions, indent=2))
        return

    print(f"📋 {args.origin}: {len(conditions)} conditions")
    for c in conditions:
        signature = f"{c['method_name']}({','.join(c['param_types'])})"
        print(f"  - {c['id']}: {signature} [{c['selector']}] via {c['implementation_id']}")
        for rule in c["validations"]:
            print(f"      {' '.join(rule)}")


def cmd_validate(args):
    """Validate calldata against an origin's allowlist."""
    try:
        response = get_client().post(
            "/api/v1/allowlists/validate",
            json={"origin": args.origin, "target": args.target, "calldata": args.calldata},
        )
    except httpx.ConnectError:
        _daemon_not_running()

    if response.status_code == 404:
        print(f"❌ Origin not registered: {args.origin}")
        sys.exit(1)

    if response.json()["allowed"]:
        print(f"✅ ALLOWED: call to {args.target} for {args.origin}")
    else:
        print(f"❌ DENIED: call to {args.target} for {args.origin}")
        sys.exit(2)


def cmd_selector(args):
    """Print the selector of a canonical signature."""
    print("0x" + method_selector(args.signature).hex())


def cmd_pack(args):
    """Lint a condition pack and list its selectors."""
    try:
        conditions = load_condition_pack(args.path)
    except (OSError, ValueError, AllowlistError) as e:
        print(f"❌ Invalid pack {args.path}: {e}")
        sys.exit(1)

    ids = [c.id for c in conditions]
    duplicates = sorted({cid for cid in ids if ids.count(cid) > 1})
    if duplicates:
        print(f"❌ Duplicate condition ids: {', '.join(duplicates)}")
        sys.exit(1)

    print(f"📦 {args.path}: {len(conditions)} conditions")
    for c in conditions:
        print(f"  - {c.id}: {c.signature} [{c.selector_hex}]")


def main():
    parser = argparse.ArgumentParser(
        description="Calldata Guard CLI - Query calldata allowlists",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  calldata-guard health                        Show daemon status
  calldata-guard protocols -v                  List registered protocols
  calldata-guard conditions yearn.finance      Show an origin's conditions
  calldata-guard validate yearn.finance 0x0bc5... 0x095ea7b3...
  calldata-guard selector "approve(address,uint256)"
  calldata-guard pack conditions.yaml          Lint a condition pack
        """,
    )

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # health
    health_parser = subparsers.add_parser("health", help="Show daemon status")
    health_parser.set_defaults(func=cmd_health)

    # protocols
    protocols_parser = subparsers.add_parser("protocols", help="List registered protocols")
    protocols_parser.add_argument("-v", "--verbose", action="store_true")
    protocols_parser.set_defaults(func=cmd_protocols)

    # conditions
    conditions_parser = subparsers.add_parser("conditions", help="Show conditions")
    conditions_parser.add_argument("origin", help="Origin name")
    conditions_parser.add_argument("--json", action="store_true", help="Raw JSON output")
    conditions_parser.set_defaults(func=cmd_conditions)

    # validate
    validate_parser = subparsers.add_parser("validate", help="Validate calldata")
    validate_parser.add_argument("origin", help="Origin name")
    validate_parser.add_argument("target", help="Call target address")
    validate_parser.add_argument("calldata", help="0x-prefixed calldata")
    validate_parser.set_defaults(func=cmd_validate)

    # selector
    selector_parser = subparsers.add_parser("selector", help="Compute a selector")
    selector_parser.add_argument("signature", help="e.g. approve(address,uint256)")
    selector_parser.set_defaults(func=cmd_selector)

    # pack
    pack_parser = subparsers.add_parser("pack", help="Lint a condition pack")
    pack_parser.add_argument("path", help="YAML or JSON pack file")
    pack_parser.set_defaults(func=cmd_pack)

    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(1)

    args.func(args)


if __name__ == "__main__":
    main()
