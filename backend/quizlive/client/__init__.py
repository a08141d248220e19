"""Polling clients for hosts and players."""
from .loops import HostSyncLoop, PlayerSyncLoop, SyncLoop
from .projection import SessionProjection
from .transport import HttpTransport, RequestRejected, SessionNotFound, TransportError

__all__ = [
    'HostSyncLoop',
    'HttpTransport',
    'PlayerSyncLoop',
    'RequestRejected',
    'SessionNotFound',
    'SessionProjection',
    'SyncLoop',
    'TransportError',
]
