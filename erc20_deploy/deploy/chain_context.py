import logging
from dataclasses import dataclass

from ..utils.exceptions import RpcError

LOG = logging.getLogger(__name__)


@dataclass(frozen=True)
class ChainContext:
    """Network identifier and the account's next sequence number"""
    network_id: int
    account_sequence: int


async def fetch_chain_context(client, address: str) -> ChainContext:
    """
    Query the pending nonce for ``address`` and the chain ID.

    Both values are required; any failure propagates as NetworkUnavailable
    or RpcError from the client and no partial context is returned.
    """
    nonce = await client.get_transaction_count(address, "pending")
    chain_id = await client.get_chain_id()

    if not isinstance(nonce, int) or nonce < 0:
        raise RpcError(f"Unusable nonce for {address}: {nonce!r}")
    if not isinstance(chain_id, int) or chain_id <= 0:
        raise RpcError(f"Unusable chain ID: {chain_id!r}")

    LOG.info(f"Chain ID {chain_id}, next nonce {nonce} for {address}")
    return ChainContext(network_id=chain_id, account_sequence=nonce)
