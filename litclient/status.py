from __future__ import annotations

from typing import TYPE_CHECKING, Optional

from litclient.commands import COMMAND_REGISTRY, RpcMethod
from litclient.state import ListeningStatus
from shared.config import DEFAULT_PEER_PORT
from shared.errors import RemoteError
from shared.log import get_logger

if TYPE_CHECKING:
    from litclient.dispatcher import RequestDispatcher

logger = get_logger(__name__)

# error text the node returns when its peer port is already bound
ADDRESS_IN_USE = "bind: address already in use"


class StatusCache:
    """
    Remembers whether the node listens for inbound peer connections.

    Once determined the value is kept for the life of the client, including
    across reconnects. It is a cache, not a live status.
    """

    def __init__(self, dispatcher: "RequestDispatcher", peer_port: int = DEFAULT_PEER_PORT) -> None:
        self.dispatcher = dispatcher
        self.peer_port = peer_port
        self.status = ListeningStatus.UNKNOWN

    async def is_listening(self) -> bool:
        if self.status is not ListeningStatus.UNKNOWN:
            return self.status is ListeningStatus.LISTENING

        reply = await COMMAND_REGISTRY[RpcMethod.GET_LISTENING_PORTS].invoke(self.dispatcher)
        ports = reply.get("LisIpPorts") if isinstance(reply, dict) else None
        self.status = ListeningStatus.LISTENING if ports else ListeningStatus.NOT_LISTENING
        logger.debug("Listening status resolved to %s", self.status.name)
        return self.status is ListeningStatus.LISTENING

    async def listen(self, port: Optional[int] = None) -> None:
        """Ask the node to accept peers on `port`; already listening there counts as success"""
        port = self.peer_port if port is None else port
        try:
            await COMMAND_REGISTRY[RpcMethod.LISTEN].invoke(self.dispatcher, {"Port": f":{port}"})
        except RemoteError as e:
            if ADDRESS_IN_USE not in str(e.error):
                raise
            logger.info("Node already listening on port %d", port)
        self.status = ListeningStatus.LISTENING
