"""
Provenance tracking for harvested lots.

Every custody handoff is appended to an append-only chain so the history of
a lot can be traced from its producer to its current custodian.
"""

from .chain import ProvenanceChain

__all__ = [
    "ProvenanceChain",
]
