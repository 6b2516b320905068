from __future__ import annotations
from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Any, Dict

from shared.utils import to_hex


class ConnectionState(str, Enum):
    """Lifecycle of the single RPC websocket owned by a client."""
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    OPEN = "open"
    CLOSING = "closing"
    CLOSED = "closed"


class ListeningStatus(Enum):
    """Cached answer to "is the node accepting inbound peer connections"."""
    UNKNOWN = 0
    LISTENING = 1
    NOT_LISTENING = 2


class DlcContractStatus(IntEnum):
    """Contract status codes as reported by the node."""
    DRAFT = 0
    OFFERED_BY_ME = 1
    OFFERED_TO_ME = 2
    DECLINED = 3
    ACCEPTED = 4
    ACKNOWLEDGED = 5
    ACTIVE = 6
    SETTLING = 7
    CLOSED = 8


@dataclass
class ChannelState:
    """One stored channel state (justice transaction) with byte fields hex encoded."""
    signature_hex: str
    txid_hex: str
    amount: int
    data_hex: str
    pkh_hex: str
    index: int

    @classmethod
    def from_justice_tx(cls, tx: Dict[str, Any]) -> 'ChannelState':
        return cls(
            signature_hex=to_hex(tx.get("Sig")),
            txid_hex=to_hex(tx.get("Txid")),
            amount=tx.get("Amt"),
            data_hex=to_hex(tx.get("Data")),
            pkh_hex=to_hex(tx.get("Pkh")),
            index=tx.get("Idx"),
        )
