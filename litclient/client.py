#!/usr/bin/env python3
"""
LIT node RPC client

One LitClient owns one websocket to the node, the pending-call registry and
the listening-status cache. Independent instances never share state.

    async with LitClient(ClientConfig(host="localhost", rpc_port=8001)) as lit:
        await lit.listen()
        peers = await lit.list_connections()
"""

from __future__ import annotations
from typing import Any, Dict, List, Optional, Sequence

from litclient.commands import COMMAND_REGISTRY, RpcMethod
from litclient.connection import ConnectionManager
from litclient.dispatcher import RequestDispatcher
from litclient.state import ChannelState, ConnectionState
from litclient.status import StatusCache
from litclient.validators import field_or_empty
from shared.config import DEFAULT_PEER_PORT, ClientConfig
from shared.errors import UnexpectedReplyError
from shared.log import get_logger
from shared.utils import pad_bytes

logger = get_logger(__name__)

# channel payload data is a fixed 32 byte array on the node
CHANNEL_DATA_SIZE = 32


class LitClient:
    def __init__(self, config: Optional[ClientConfig] = None) -> None:
        self.config = config or ClientConfig()
        self.connection = ConnectionManager(self.config)
        self.dispatcher = RequestDispatcher(self.connection, default_timeout=self.config.request_timeout)
        self.status_cache = StatusCache(self.dispatcher, peer_port=self.config.peer_port)

    async def __aenter__(self) -> 'LitClient':
        await self.open()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        if self.connection.is_open:
            await self.close()

    @property
    def state(self) -> ConnectionState:
        return self.connection.state

    async def open(self) -> None:
        """Connect to the node"""
        await self.connection.open()

    async def close(self) -> None:
        """Disconnect from the node"""
        await self.connection.close()

    async def call(self, method: str, payload: Any = None, *, timeout: Optional[float] = None) -> Any:
        """Raw RPC call without any reply validation"""
        return await self.dispatcher.call(method, payload, timeout=timeout)

    async def _invoke(self, method: RpcMethod, payload: Optional[Dict[str, Any]] = None) -> Any:
        return await COMMAND_REGISTRY[method].invoke(self.dispatcher, payload)

    # ========================================
    #           NODE & PEERS
    # ========================================

    async def listen(self, port: Optional[int] = None) -> None:
        """Make the node accept inbound peer connections (default peer port)"""
        await self.status_cache.listen(port)

    async def is_listening(self) -> bool:
        return await self.status_cache.is_listening()

    async def get_ln_address(self) -> str:
        reply = await self._invoke(RpcMethod.GET_LISTENING_PORTS)
        return (reply or {}).get("Adr")

    async def connect(self, address: str, host: str = "", port: int = DEFAULT_PEER_PORT) -> None:
        """
        Connect the node to a peer.

        `address` is the peer's LN address; `host` (and `port`, when it is not
        the default peer port) are appended as address@host:port.
        """
        ln_addr = address
        if host:
            ln_addr += "@" + host
            if port != DEFAULT_PEER_PORT:
                ln_addr += f":{port}"
        await self._invoke(RpcMethod.CONNECT, {"LNAddr": ln_addr})

    async def list_connections(self) -> List[Dict[str, Any]]:
        reply = await self._invoke(RpcMethod.LIST_CONNECTIONS)
        return field_or_empty(reply or {}, "Connections")

    async def assign_nickname(self, peer_index: int, nickname: str) -> None:
        await self._invoke(RpcMethod.ASSIGN_NICKNAME, {"Peer": peer_index, "Nickname": nickname})

    async def stop(self) -> None:
        """Shut the node down"""
        await self._invoke(RpcMethod.STOP)

    # ========================================
    #           WALLET
    # ========================================

    async def list_balances(self) -> List[Dict[str, Any]]:
        reply = await self._invoke(RpcMethod.BALANCE)
        return field_or_empty(reply, "Balances")

    async def list_utxos(self) -> List[Dict[str, Any]]:
        reply = await self._invoke(RpcMethod.TXO_LIST)
        return field_or_empty(reply, "Txos")

    async def send(self, address: str, amount: int) -> str:
        """Send `amount` satoshi to `address`; returns the txid"""
        reply = await self._invoke(RpcMethod.SEND, {"DestAddrs": [address], "Amts": [amount]})
        txids = reply["Txids"]
        if not txids:
            raise UnexpectedReplyError("Server returned no txid", reply)
        return txids[0]

    async def set_fee(self, coin_type: int, fee_per_byte: int) -> None:
        reply = await self._invoke(RpcMethod.SET_FEE, {"CoinType": coin_type, "Fee": fee_per_byte})
        if reply["CurrentFee"] != fee_per_byte:
            raise UnexpectedReplyError("Fee was not set", reply)

    async def get_fee(self, coin_type: int) -> int:
        reply = await self._invoke(RpcMethod.GET_FEE, {"CoinType": coin_type})
        return reply["CurrentFee"]

    async def get_addresses(self, coin_type: int, number_to_make: int, legacy: bool = False) -> List[str]:
        """Make `number_to_make` new addresses (0 lists the existing ones)"""
        reply = await self._invoke(RpcMethod.ADDRESS, {"CoinType": coin_type, "NumToMake": number_to_make})
        return field_or_empty(reply, "LegacyAddresses" if legacy else "WitAddresses")

    # ========================================
    #           CHANNELS
    # ========================================

    async def list_channels(self) -> List[Dict[str, Any]]:
        reply = await self._invoke(RpcMethod.CHANNEL_LIST)
        return field_or_empty(reply, "Channels")

    async def fund_channel(self, peer_index: int, coin_type: int, amount: int, initial_send: int,
                           data: bytes = b"") -> None:
        await self._invoke(RpcMethod.FUND_CHANNEL, {
            "Peer": peer_index,
            "CoinType": coin_type,
            "Capacity": amount,
            "InitialSend": initial_send,
            "Data": pad_bytes(data, CHANNEL_DATA_SIZE),
        })

    async def state_dump(self) -> List[ChannelState]:
        reply = await self._invoke(RpcMethod.STATE_DUMP)
        return [ChannelState.from_justice_tx(tx) for tx in field_or_empty(reply, "Txs")]

    async def push(self, channel_index: int, amount: int, data: bytes = b"") -> int:
        """Push `amount` to the other side of a channel; returns the new state index"""
        reply = await self._invoke(RpcMethod.PUSH, {
            "ChanIdx": channel_index,
            "Amt": amount,
            "Data": pad_bytes(data, CHANNEL_DATA_SIZE),
        })
        return reply["StateIndex"]

    async def close_channel(self, channel_index: int) -> None:
        await self._invoke(RpcMethod.CLOSE_CHANNEL, {"ChanIdx": channel_index})

    async def break_channel(self, channel_index: int) -> None:
        await self._invoke(RpcMethod.BREAK_CHANNEL, {"ChanIdx": channel_index})

    # ========================================
    #           ORACLES
    # ========================================

    async def import_oracle(self, url: str, name: str) -> Dict[str, Any]:
        reply = await self._invoke(RpcMethod.IMPORT_ORACLE, {"Url": url, "Name": name})
        return reply["Oracle"]

    async def add_oracle(self, pubkey_hex: str, name: str) -> Dict[str, Any]:
        reply = await self._invoke(RpcMethod.ADD_ORACLE, {"Key": pubkey_hex, "Name": name})
        return reply["Oracle"]

    async def list_oracles(self) -> List[Dict[str, Any]]:
        reply = await self._invoke(RpcMethod.LIST_ORACLES)
        return field_or_empty(reply, "Oracles")

    # ========================================
    #           FORWARD OFFERS
    # ========================================

    async def new_forward_offer(self, offer: Dict[str, Any]) -> Dict[str, Any]:
        reply = await self._invoke(RpcMethod.NEW_FORWARD_OFFER, {"Offer": offer})
        return reply["Offer"]

    async def list_offers(self) -> List[Dict[str, Any]]:
        reply = await self._invoke(RpcMethod.LIST_OFFERS)
        return field_or_empty(reply, "Offers")

    async def accept_offer(self, offer_index: int) -> None:
        await self._invoke(RpcMethod.ACCEPT_OFFER, {"OIdx": offer_index})

    async def decline_offer(self, offer_index: int) -> None:
        await self._invoke(RpcMethod.DECLINE_OFFER, {"OIdx": offer_index})

    # ========================================
    #           CONTRACTS
    # ========================================

    async def new_contract(self) -> Dict[str, Any]:
        reply = await self._invoke(RpcMethod.NEW_CONTRACT)
        return reply["Contract"]

    async def get_contract(self, contract_index: int) -> Dict[str, Any]:
        reply = await self._invoke(RpcMethod.GET_CONTRACT, {"Idx": contract_index})
        return reply["Contract"]

    async def list_contracts(self) -> List[Dict[str, Any]]:
        reply = await self._invoke(RpcMethod.LIST_CONTRACTS)
        return field_or_empty(reply, "Contracts")

    async def offer_contract(self, contract_index: int, peer_index: int) -> None:
        await self._invoke(RpcMethod.OFFER_CONTRACT, {"CIdx": contract_index, "PeerIdx": peer_index})

    async def accept_contract(self, contract_index: int) -> None:
        await self._invoke(RpcMethod.ACCEPT_CONTRACT, {"CIdx": contract_index})

    async def decline_contract(self, contract_index: int) -> None:
        await self._invoke(RpcMethod.DECLINE_CONTRACT, {"CIdx": contract_index})

    async def settle_contract(self, contract_index: int, oracle_value: int,
                              oracle_signature: Sequence[int]) -> Dict[str, Any]:
        """Settle with the oracle's signed value; returns the reply with the settle/claim tx hashes"""
        return await self._invoke(RpcMethod.SETTLE_CONTRACT, {
            "CIdx": contract_index,
            "OracleValue": oracle_value,
            "OracleSig": list(oracle_signature),
        })

    async def set_contract_division(self, contract_index: int, value_fully_ours: int, value_fully_theirs: int) -> None:
        await self._invoke(RpcMethod.SET_CONTRACT_DIVISION, {
            "CIdx": contract_index,
            "ValueFullyOurs": value_fully_ours,
            "ValueFullyTheirs": value_fully_theirs,
        })

    async def set_contract_coin_type(self, contract_index: int, coin_type: int) -> None:
        await self._invoke(RpcMethod.SET_CONTRACT_COIN_TYPE, {"CIdx": contract_index, "CoinType": coin_type})

    async def set_contract_funding(self, contract_index: int, our_amount: int, their_amount: int) -> None:
        await self._invoke(RpcMethod.SET_CONTRACT_FUNDING, {
            "CIdx": contract_index,
            "OurAmount": our_amount,
            "TheirAmount": their_amount,
        })

    async def set_contract_settlement_time(self, contract_index: int, settlement_time: int) -> None:
        await self._invoke(RpcMethod.SET_CONTRACT_SETTLEMENT_TIME, {"CIdx": contract_index, "Time": settlement_time})

    async def set_contract_r_point(self, contract_index: int, r_point: Sequence[int]) -> None:
        await self._invoke(RpcMethod.SET_CONTRACT_R_POINT, {"CIdx": contract_index, "RPoint": list(r_point)})

    async def set_contract_oracle(self, contract_index: int, oracle_index: int) -> None:
        await self._invoke(RpcMethod.SET_CONTRACT_ORACLE, {"CIdx": contract_index, "OIdx": oracle_index})
