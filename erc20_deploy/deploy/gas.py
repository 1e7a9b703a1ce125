"""
Gas policy

Gas limit always comes from the caller. Gas price is either the caller's
price in gwei, converted to wei, or the node's eth_gasPrice suggestion.

Conversion rule for caller prices: the value is taken as an exact decimal
(floats go through their shortest repr, so 0.29 means 0.29 and not the
nearest binary fraction) and converted with Web3.to_wei. Whatever remains
below one wei is truncated toward zero and a warning is logged. A price
that truncates to zero wei, or exceeds uint256, is rejected.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from fractions import Fraction
from typing import Optional, Union

from web3 import Web3

from ..utils.exceptions import (
    ConfigurationError,
    GasPriceUnavailable,
    NetworkUnavailable,
    RpcError
)

LOG = logging.getLogger(__name__)

WEI_PER_GWEI = 10 ** 9
DEFAULT_GAS_LIMIT = 3_000_000

GweiValue = Union[int, float, str, Decimal]


@dataclass(frozen=True)
class GasPolicy:
    """Gas limit and legacy gas price (wei)"""
    gas_limit: int
    gas_price: int


def _to_decimal(value: GweiValue) -> Decimal:
    if isinstance(value, bool):
        raise ConfigurationError(f"Invalid gas price: {value!r}")
    if isinstance(value, float):
        value = repr(value)
    try:
        result = Decimal(value)
    except (InvalidOperation, TypeError, ValueError) as e:
        raise ConfigurationError(f"Invalid gas price: {value!r}", cause=e)
    if not result.is_finite():
        raise ConfigurationError(f"Invalid gas price: {value!r}")
    return result


def gwei_to_wei(value: GweiValue) -> int:
    """
    Convert a gwei price to wei.

    Raises:
        ConfigurationError: value is not a number, negative, below 1 wei, or above uint256
    """
    gwei = _to_decimal(value)
    if gwei < 0:
        raise ConfigurationError(f"Gas price must not be negative: {value}")

    try:
        wei = Web3.to_wei(gwei, "gwei")
    except ValueError as e:
        raise ConfigurationError(f"Gas price {gwei} gwei is out of range", cause=e)

    if Fraction(gwei) * WEI_PER_GWEI != wei:
        LOG.warning(f"Gas price {gwei} gwei truncated to {wei} wei")
    if wei <= 0:
        raise ConfigurationError(f"Gas price {gwei} gwei is below 1 wei")
    return wei


async def resolve_gas_policy(
    client,
    gas_limit: int = DEFAULT_GAS_LIMIT,
    gas_price_gwei: Optional[GweiValue] = None
) -> GasPolicy:
    """
    Determine gas limit and gas price.

    A positive caller price is converted locally; zero or None asks the node.
    The limit is not checked against estimated execution cost.
    """
    if isinstance(gas_limit, bool) or not isinstance(gas_limit, int) or gas_limit <= 0:
        raise ConfigurationError(f"Gas limit must be a positive integer, got {gas_limit!r}")

    if gas_price_gwei is not None and _to_decimal(gas_price_gwei) != 0:
        gas_price = gwei_to_wei(gas_price_gwei)
        LOG.info(f"Using gas price {gas_price} wei ({gas_price_gwei} gwei)")
        return GasPolicy(gas_limit=gas_limit, gas_price=gas_price)

    try:
        suggested = await client.get_gas_price()
    except (NetworkUnavailable, RpcError) as e:
        raise GasPriceUnavailable(f"Failed to suggest gas price: {e}", cause=e)

    if not isinstance(suggested, int) or suggested <= 0:
        raise GasPriceUnavailable(f"Node suggested unusable gas price: {suggested!r}")

    LOG.info(f"Using suggested gas price {suggested} wei")
    return GasPolicy(gas_limit=gas_limit, gas_price=suggested)
