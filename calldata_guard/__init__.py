"""
Calldata Guard - Calldata Allowlist Policy Engine

Decides whether a call (target + calldata) conforms to the allowlist a
protocol registered for its origin.

Architecture:
- Core: conditions, allowlists, the validation algorithm
- Providers: pluggable predicates (Python callables or on-chain contracts)
- Registry: per-origin directory with two-phase registration
- Daemon: read-only HTTP surface for wallets and front-ends

Key Properties:
- Owner-gated: only the origin's controlling identity mutates its rules
- Atomic: a failed mutation changes nothing
- Fail-closed: undecodable calldata and failing predicates deny
"""

__version__ = "0.1.0"
