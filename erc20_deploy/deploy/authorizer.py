import logging
from typing import Any, Dict

from .chain_context import ChainContext
from .credentials import Credential
from .gas import GasPolicy
from ..utils.exceptions import BroadcastError, ConfigurationError

LOG = logging.getLogger(__name__)


class TransactionAuthorization:
    """
    Everything needed to sign one deployment transaction.

    Single use: the nonce inside goes stale once a transaction carrying it
    has been broadcast, so consume() hands out the fields only once.
    """

    def __init__(self, credential: Credential, context: ChainContext, gas: GasPolicy):
        self.credential = credential
        self.context = context
        self.gas = gas
        self._consumed = False

    @property
    def sender(self) -> str:
        return self.credential.address

    @property
    def nonce(self) -> int:
        return self.context.account_sequence

    @property
    def consumed(self) -> bool:
        return self._consumed

    def consume(self) -> Dict[str, Any]:
        """
        Return the transaction fields and mark the authorization used.

        Raises:
            BroadcastError: The authorization was already consumed
        """
        if self._consumed:
            raise BroadcastError(
                f"Authorization for nonce {self.nonce} already used",
                from_address=self.sender,
                nonce=self.nonce
            )
        self._consumed = True
        return {
            "from": self.sender,
            "nonce": self.context.account_sequence,
            "chainId": self.context.network_id,
            "value": 0,
            "gas": self.gas.gas_limit,
            "gasPrice": self.gas.gas_price,
        }

    def __repr__(self) -> str:
        return (
            f"TransactionAuthorization(sender={self.sender}, nonce={self.nonce}, "
            f"chain_id={self.context.network_id}, gas_limit={self.gas.gas_limit}, "
            f"gas_price={self.gas.gas_price}, consumed={self._consumed})"
        )


def authorize(credential: Credential, context: ChainContext, gas: GasPolicy) -> TransactionAuthorization:
    """Combine credential, chain context and gas policy"""
    if gas.gas_limit <= 0 or gas.gas_price <= 0:
        raise ConfigurationError(
            f"Gas limit and price must be positive (limit={gas.gas_limit}, price={gas.gas_price})"
        )
    LOG.debug(f"Authorized {credential.address} at nonce {context.account_sequence}")
    return TransactionAuthorization(credential, context, gas)
