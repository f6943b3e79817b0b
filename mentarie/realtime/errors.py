"""Domain exceptions raised by the realtime core.

These never carry HTTP semantics; the API layer translates them.
"""

from __future__ import annotations


class RealtimeConnectionError(RuntimeError):
    """Establishing the realtime transport failed.  Fatal to the attempt."""


class CredentialError(RealtimeConnectionError):
    """The credential endpoint did not yield a usable ephemeral key."""


class NegotiationError(RealtimeConnectionError):
    """Transport negotiation (SDP exchange, socket handshake, capture) failed."""
