"""
Confidential Accumulator

One encrypted uint32 running total per principal, updated by encrypted
deltas without the service ever seeing a cleartext value.

DESIGN PRINCIPLES:
1. Verify input proofs before any arithmetic
2. Handles in, handles out - cleartext never crosses the service
3. All-or-nothing: store write and access grants commit together
4. Every committed change is auditable
5. Collaborators (engine, verifier, ledger, store) are swappable
"""

__version__ = "1.0.0"
__author__ = "Confidential Accumulator Team"
