from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, Dict, Optional

from litclient.validators import (
    ReplyValidator,
    has_field,
    status_equals,
    status_prefix,
    success_flag,
)
from shared.log import get_logger

if TYPE_CHECKING:
    from litclient.dispatcher import RequestDispatcher

logger = get_logger(__name__)


class RpcMethod(str, Enum):
    """Remote procedures exposed by the node's RPC endpoint."""

    # Peers & node
    LISTEN = "LitRPC.Listen"
    GET_LISTENING_PORTS = "LitRPC.GetListeningPorts"
    CONNECT = "LitRPC.Connect"
    LIST_CONNECTIONS = "LitRPC.ListConnections"
    ASSIGN_NICKNAME = "LitRPC.AssignNickname"
    STOP = "LitRPC.Stop"

    # Wallet
    BALANCE = "LitRPC.Balance"
    TXO_LIST = "LitRPC.TxoList"
    SEND = "LitRPC.Send"
    SET_FEE = "LitRPC.SetFee"
    GET_FEE = "LitRPC.GetFee"
    ADDRESS = "LitRPC.Address"

    # Channels
    CHANNEL_LIST = "LitRPC.ChannelList"
    FUND_CHANNEL = "LitRPC.FundChannel"
    STATE_DUMP = "LitRPC.StateDump"
    PUSH = "LitRPC.Push"
    CLOSE_CHANNEL = "LitRPC.CloseChannel"
    BREAK_CHANNEL = "LitRPC.BreakChannel"

    # Oracles
    IMPORT_ORACLE = "LitRPC.ImportOracle"
    ADD_ORACLE = "LitRPC.AddOracle"
    LIST_ORACLES = "LitRPC.ListOracles"

    # Forward offers
    NEW_FORWARD_OFFER = "LitRPC.NewForwardOffer"
    LIST_OFFERS = "LitRPC.ListOffers"
    ACCEPT_OFFER = "LitRPC.AcceptOffer"
    DECLINE_OFFER = "LitRPC.DeclineOffer"

    # Contracts
    NEW_CONTRACT = "LitRPC.NewContract"
    GET_CONTRACT = "LitRPC.GetContract"
    LIST_CONTRACTS = "LitRPC.ListContracts"
    OFFER_CONTRACT = "LitRPC.OfferContract"
    ACCEPT_CONTRACT = "LitRPC.AcceptContract"
    DECLINE_CONTRACT = "LitRPC.DeclineContract"
    SETTLE_CONTRACT = "LitRPC.SettleContract"
    SET_CONTRACT_DIVISION = "LitRPC.SetContractDivision"
    SET_CONTRACT_COIN_TYPE = "LitRPC.SetContractCoinType"
    SET_CONTRACT_FUNDING = "LitRPC.SetContractFunding"
    SET_CONTRACT_SETTLEMENT_TIME = "LitRPC.SetContractSettlementTime"
    SET_CONTRACT_R_POINT = "LitRPC.SetContractRPoint"
    SET_CONTRACT_ORACLE = "LitRPC.SetContractOracle"


@dataclass(frozen=True)
class Command:
    """A remote procedure plus the rule deciding whether its reply is a success."""
    method: RpcMethod
    validator: Optional[ReplyValidator] = None

    async def invoke(self, dispatcher: "RequestDispatcher", payload: Optional[Dict[str, Any]] = None,
                     *, timeout: Optional[float] = None) -> Any:
        reply = await dispatcher.call(self.method.value, payload or {}, timeout=timeout)
        if self.validator is not None:
            try:
                self.validator(reply)
            except Exception:
                logger.warning("Rejected reply %r (%r)", reply, self.validator, extra={"method": self.method.value})
                raise
        return reply


def _success(method: RpcMethod) -> Command:
    return Command(method, success_flag())


COMMAND_REGISTRY: Dict[RpcMethod, Command] = {
    # GetListeningPorts and Listen are interpreted by StatusCache
    RpcMethod.LISTEN: Command(RpcMethod.LISTEN),
    RpcMethod.GET_LISTENING_PORTS: Command(RpcMethod.GET_LISTENING_PORTS),
    RpcMethod.CONNECT: Command(RpcMethod.CONNECT, status_prefix("connected to peer")),
    RpcMethod.LIST_CONNECTIONS: Command(RpcMethod.LIST_CONNECTIONS),
    RpcMethod.ASSIGN_NICKNAME: Command(RpcMethod.ASSIGN_NICKNAME, status_prefix("changed nickname")),
    RpcMethod.STOP: Command(RpcMethod.STOP, status_prefix("Stopping lit node")),

    RpcMethod.BALANCE: Command(RpcMethod.BALANCE, has_field("Balances")),
    RpcMethod.TXO_LIST: Command(RpcMethod.TXO_LIST, has_field("Txos")),
    RpcMethod.SEND: Command(RpcMethod.SEND, has_field("Txids")),
    RpcMethod.SET_FEE: Command(RpcMethod.SET_FEE, has_field("CurrentFee")),
    RpcMethod.GET_FEE: Command(RpcMethod.GET_FEE, has_field("CurrentFee")),
    RpcMethod.ADDRESS: Command(RpcMethod.ADDRESS, has_field("WitAddresses", "LegacyAddresses")),

    RpcMethod.CHANNEL_LIST: Command(RpcMethod.CHANNEL_LIST, has_field("Channels")),
    RpcMethod.FUND_CHANNEL: Command(RpcMethod.FUND_CHANNEL, status_prefix("funded channel")),
    RpcMethod.STATE_DUMP: Command(RpcMethod.STATE_DUMP, has_field("Txs")),
    RpcMethod.PUSH: Command(RpcMethod.PUSH, has_field("StateIndex")),
    RpcMethod.CLOSE_CHANNEL: Command(RpcMethod.CLOSE_CHANNEL, status_prefix("OK closed")),
    # break replies with an empty status on success
    RpcMethod.BREAK_CHANNEL: Command(RpcMethod.BREAK_CHANNEL, status_equals("")),

    RpcMethod.IMPORT_ORACLE: Command(RpcMethod.IMPORT_ORACLE, has_field("Oracle")),
    RpcMethod.ADD_ORACLE: Command(RpcMethod.ADD_ORACLE, has_field("Oracle")),
    RpcMethod.LIST_ORACLES: Command(RpcMethod.LIST_ORACLES, has_field("Oracles")),

    RpcMethod.NEW_FORWARD_OFFER: Command(RpcMethod.NEW_FORWARD_OFFER, has_field("Offer")),
    RpcMethod.LIST_OFFERS: Command(RpcMethod.LIST_OFFERS, has_field("Offers")),
    RpcMethod.ACCEPT_OFFER: _success(RpcMethod.ACCEPT_OFFER),
    RpcMethod.DECLINE_OFFER: _success(RpcMethod.DECLINE_OFFER),

    RpcMethod.NEW_CONTRACT: Command(RpcMethod.NEW_CONTRACT, has_field("Contract")),
    RpcMethod.GET_CONTRACT: Command(RpcMethod.GET_CONTRACT, has_field("Contract")),
    RpcMethod.LIST_CONTRACTS: Command(RpcMethod.LIST_CONTRACTS, has_field("Contracts")),
    RpcMethod.OFFER_CONTRACT: _success(RpcMethod.OFFER_CONTRACT),
    RpcMethod.ACCEPT_CONTRACT: _success(RpcMethod.ACCEPT_CONTRACT),
    RpcMethod.DECLINE_CONTRACT: _success(RpcMethod.DECLINE_CONTRACT),
    RpcMethod.SETTLE_CONTRACT: _success(RpcMethod.SETTLE_CONTRACT),
    RpcMethod.SET_CONTRACT_DIVISION: _success(RpcMethod.SET_CONTRACT_DIVISION),
    RpcMethod.SET_CONTRACT_COIN_TYPE: _success(RpcMethod.SET_CONTRACT_COIN_TYPE),
    RpcMethod.SET_CONTRACT_FUNDING: _success(RpcMethod.SET_CONTRACT_FUNDING),
    RpcMethod.SET_CONTRACT_SETTLEMENT_TIME: _success(RpcMethod.SET_CONTRACT_SETTLEMENT_TIME),
    RpcMethod.SET_CONTRACT_R_POINT: _success(RpcMethod.SET_CONTRACT_R_POINT),
    RpcMethod.SET_CONTRACT_ORACLE: _success(RpcMethod.SET_CONTRACT_ORACLE),
}
