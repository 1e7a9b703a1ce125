"""
Deployment submission

Builds the contract-creation transaction, signs it with the in-memory
credential and broadcasts it with eth_sendRawTransaction. Deployment uses
a legacy (type 0) transaction with an explicit gasPrice.
"""

import logging
from dataclasses import dataclass

from web3 import Web3
from web3.utils.address import get_create_address

from .authorizer import TransactionAuthorization
from .supply import SupplyAmount
from .template import TokenTemplate
from ..utils.exceptions import BroadcastError, ConfigurationError, RpcError

LOG = logging.getLogger(__name__)


@dataclass(frozen=True)
class DeploymentRequest:
    """One token deployment, fixed at construction"""
    name: str
    symbol: str
    decimals: int
    supply: SupplyAmount
    authorization: TransactionAuthorization

    def __post_init__(self):
        if not self.name:
            raise ConfigurationError("Token name must not be empty")
        if not self.symbol:
            raise ConfigurationError("Token symbol must not be empty")
        if self.supply.decimals != self.decimals:
            raise ConfigurationError(
                f"Supply scaled with {self.supply.decimals} decimals, token declares {self.decimals}"
            )


@dataclass(frozen=True)
class Submission:
    """Broadcast deployment transaction"""
    contract_address: str
    transaction_hash: str
    sender: str
    nonce: int


def build_deployment_transaction(request: DeploymentRequest, template: TokenTemplate) -> dict:
    """Consume the authorization and assemble the unsigned transaction"""
    init_code = template.encode_constructor(
        request.name,
        request.symbol,
        request.decimals,
        request.supply.scaled_integer
    )
    tx = request.authorization.consume()
    # Contract creation: no recipient
    tx.pop("from")
    tx["data"] = init_code
    return tx


async def submit_deployment(client, request: DeploymentRequest, template: TokenTemplate) -> Submission:
    """
    Sign and broadcast the deployment transaction.

    Returns:
        Submission with the CREATE address (sender, nonce) and tx hash

    Raises:
        BroadcastError: The node rejected the transaction
        NetworkUnavailable: The node could not be reached
    """
    authorization = request.authorization
    tx = build_deployment_transaction(request, template)

    signed_tx = authorization.credential.account.sign_transaction(tx)
    # Support both old and new eth-account attribute names
    raw_tx = getattr(signed_tx, 'raw_transaction', None) or getattr(signed_tx, 'rawTransaction', None)
    local_hash = Web3.to_hex(signed_tx.hash)

    contract_address = get_create_address(authorization.sender, authorization.nonce)

    try:
        node_hash = await client.send_raw_transaction(Web3.to_hex(raw_tx))
    except RpcError as e:
        raise BroadcastError(
            f"Failed to deploy contract: {e.message}",
            cause=e,
            tx_hash=local_hash,
            from_address=authorization.sender,
            nonce=authorization.nonce
        )

    tx_hash = local_hash
    if isinstance(node_hash, str) and node_hash.lower() != local_hash.lower():
        LOG.warning(f"Node returned tx hash {node_hash}, computed {local_hash}; using node's")
        tx_hash = node_hash

    LOG.debug(f"Broadcast {tx_hash} from {authorization.sender} nonce {authorization.nonce}")
    return Submission(
        contract_address=contract_address,
        transaction_hash=tx_hash,
        sender=authorization.sender,
        nonce=authorization.nonce
    )
