"""
Client for a LIT node's JSON-RPC websocket endpoint.

Submodules:
- connection.py: ConnectionManager, the single websocket and its state
- dispatcher.py: RequestDispatcher, request ids and response correlation
- status.py: StatusCache, cached listening status
- commands.py / validators.py: the command catalog and reply rules
- client.py: LitClient, which ties them together
"""

from .client import LitClient
from .commands import COMMAND_REGISTRY, Command, RpcMethod
from .connection import ConnectionManager
from .dispatcher import PendingCall, RequestDispatcher
from .state import ChannelState, ConnectionState, DlcContractStatus, ListeningStatus
from .status import StatusCache

__version__ = "0.1.0"

__all__ = [
    "LitClient",
    "ConnectionManager",
    "RequestDispatcher",
    "PendingCall",
    "StatusCache",
    "Command",
    "RpcMethod",
    "COMMAND_REGISTRY",
    "ConnectionState",
    "ListeningStatus",
    "ChannelState",
    "DlcContractStatus",
]
