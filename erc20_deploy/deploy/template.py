"""
Token contract template

The ERC-20 bytecode is an externally maintained, pre-compiled artifact.
This module only loads it and encodes constructor arguments against it.

Supported artifact layouts:
- flat: {"abi": [...], "bytecode": "0x..."}
- forge build output: {"abi": [...], "bytecode": {"object": "0x..."}}
"""

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Union

from eth_abi import encode
from eth_abi.exceptions import EncodingError
from web3 import Web3

from ..utils.common import add_hex_prefix
from ..utils.exceptions import ConfigurationError, InvalidAmount

LOG = logging.getLogger(__name__)

DEFAULT_ARTIFACT = Path("contracts_data") / "ERC20Token.json"

CONSTRUCTOR_ARITY = 4

ERC20_ABI: List[Dict[str, Any]] = [
    {
        "type": "constructor",
        "stateMutability": "nonpayable",
        "inputs": [
            {"name": "name_", "type": "string"},
            {"name": "symbol_", "type": "string"},
            {"name": "decimals_", "type": "uint8"},
            {"name": "initialSupply", "type": "uint256"},
        ],
    },
    {
        "type": "function",
        "name": "name",
        "stateMutability": "view",
        "inputs": [],
        "outputs": [{"name": "", "type": "string"}],
    },
    {
        "type": "function",
        "name": "symbol",
        "stateMutability": "view",
        "inputs": [],
        "outputs": [{"name": "", "type": "string"}],
    },
    {
        "type": "function",
        "name": "decimals",
        "stateMutability": "view",
        "inputs": [],
        "outputs": [{"name": "", "type": "uint8"}],
    },
]


@dataclass
class TokenTemplate:
    """Contract bytecode and ABI"""
    bytecode: str
    abi: List[Dict[str, Any]] = field(default_factory=lambda: list(ERC20_ABI))

    def _entry(self, entry_type: str, name: str = None) -> Dict[str, Any]:
        for item in self.abi:
            if item.get("type") != entry_type:
                continue
            if name is None or item.get("name") == name:
                return item
        for item in ERC20_ABI:
            if item["type"] == entry_type and (name is None or item.get("name") == name):
                return item
        raise ConfigurationError(f"Template has no {entry_type} {name or ''}".strip())

    def constructor_types(self) -> List[str]:
        """ABI types of the constructor inputs"""
        return [arg["type"] for arg in self._entry("constructor").get("inputs", [])]

    def output_types(self, function_name: str) -> List[str]:
        """ABI output types of a view function"""
        return [out["type"] for out in self._entry("function", function_name).get("outputs", [])]

    def check_constructor(self) -> List[str]:
        """
        Constructor types, which must be (name, symbol, decimals, supply).

        Raises:
            ConfigurationError: Constructor takes a different number of arguments
        """
        types = self.constructor_types()
        if len(types) != CONSTRUCTOR_ARITY:
            raise ConfigurationError(
                f"Template constructor takes {len(types)} arguments {types}, "
                f"expected {CONSTRUCTOR_ARITY} (name, symbol, decimals, supply)"
            )
        return types

    def encode_constructor(self, name: str, symbol: str, decimals: int, supply: int) -> str:
        """Return init code: bytecode followed by ABI-encoded constructor args"""
        args = [name, symbol, decimals, supply]
        types = self.check_constructor()
        try:
            encoded = encode(types, args)
        except EncodingError as e:
            raise InvalidAmount(f"Constructor arguments do not fit {types}: {e}", cause=e)
        return self.bytecode + encoded.hex()

    @staticmethod
    def selector(function_name: str) -> str:
        """4-byte selector for a no-argument function"""
        return Web3.to_hex(Web3.keccak(text=f"{function_name}()")[:4])


def load_template(path: Union[str, Path] = DEFAULT_ARTIFACT) -> TokenTemplate:
    """
    Load the token template artifact.

    Raises:
        ConfigurationError: File missing, invalid JSON, no bytecode, or a
            constructor that does not take (name, symbol, decimals, supply)
    """
    artifact = Path(path)
    if not artifact.exists():
        raise ConfigurationError(f"Contract artifact not found: {artifact}", artifact=str(artifact))

    try:
        with open(artifact, 'r') as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise ConfigurationError(
            f"Invalid JSON in contract artifact {artifact}: {e}",
            artifact=str(artifact),
            cause=e
        )

    if not isinstance(data, dict):
        raise ConfigurationError(f"Contract artifact {artifact} is not a JSON object")

    bytecode = data.get("bytecode")
    if isinstance(bytecode, dict):
        bytecode = bytecode.get("object")
    if not isinstance(bytecode, str) or not bytecode.strip() or bytecode.strip() == "0x":
        raise ConfigurationError(f"Missing 'bytecode' in contract artifact {artifact}")

    abi = data.get("abi") or list(ERC20_ABI)

    template = TokenTemplate(bytecode=add_hex_prefix(bytecode.strip()), abi=abi)
    template.check_constructor()

    LOG.info(f"Loaded token template from {artifact}")
    return template
