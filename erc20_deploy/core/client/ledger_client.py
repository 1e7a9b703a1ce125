import asyncio
import json
import logging
from typing import Any, Dict, List, Optional, Union

import aiohttp
from web3 import Web3

from ...utils.common import hex_to_int
from ...utils.exceptions import NetworkUnavailable, RpcError

LOG = logging.getLogger(__name__)


def to_checksum_address(address: str) -> str:
    """Convert address to EIP-55 checksum format"""
    if not address.startswith("0x"):
        address = "0x" + address
    return Web3.to_checksum_address(address)


class LedgerClient:
    """JSON-RPC client for an EVM ledger node"""

    def __init__(self, rpc_url: str, timeout: float = 30.0):
        self.rpc_url = rpc_url
        self.timeout = timeout
        self.session: Optional[aiohttp.ClientSession] = None
        self._request_id = 0

    async def __aenter__(self):
        self.session = aiohttp.ClientSession(
            timeout=aiohttp.ClientTimeout(total=self.timeout)
        )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        if self.session:
            await self.session.close()
            self.session = None

    async def send_request(self, method: str, params: Optional[List[Any]] = None) -> Any:
        """Send JSON-RPC request

        Args:
            method: RPC method name
            params: Parameter list

        Returns:
            RPC response result

        Raises:
            NetworkUnavailable: Endpoint could not be reached or timed out
            RpcError: Endpoint answered with an error or an unusable payload
        """
        if not self.session:
            raise RuntimeError("Client not initialized. Use async with statement.")

        self._request_id += 1
        payload = {
            "jsonrpc": "2.0",
            "method": method,
            "params": params or [],
            "id": self._request_id
        }

        LOG.debug(f"-> {method} {payload['params']}")

        try:
            async with self.session.post(self.rpc_url, json=payload) as response:
                text = await response.text()
                status = response.status
        except asyncio.TimeoutError as e:
            raise NetworkUnavailable(
                f"{method}: request timeout after {self.timeout}s",
                cause=e,
                rpc_url=self.rpc_url
            )
        except aiohttp.ClientError as e:
            raise NetworkUnavailable(
                f"{method}: connection error: {e}",
                cause=e,
                rpc_url=self.rpc_url
            )

        if status != 200:
            raise RpcError(f"{method}: HTTP {status}: {text[:200]}", http_status=status)

        try:
            result = json.loads(text)
        except json.JSONDecodeError as e:
            raise RpcError(f"{method}: invalid JSON response: {e}", cause=e)

        if not isinstance(result, dict):
            raise RpcError(f"{method}: unexpected response shape: {type(result).__name__}")

        if "error" in result:
            error = result["error"]
            if isinstance(error, dict):
                raise RpcError(
                    f"{method}: RPC Error: {error.get('message', str(error))}",
                    rpc_code=error.get("code")
                )
            raise RpcError(f"{method}: RPC Error: {error}")

        if "result" not in result:
            raise RpcError(f"{method}: response has no result")

        return result["result"]

    async def _request_quantity(self, method: str, params: Optional[List[Any]] = None) -> int:
        value = await self.send_request(method, params)
        try:
            return hex_to_int(value)
        except (TypeError, ValueError) as e:
            raise RpcError(f"{method}: malformed quantity {value!r}", cause=e)

    async def get_chain_id(self) -> int:
        """Get chain ID"""
        return await self._request_quantity("eth_chainId")

    async def get_transaction_count(self, address: str, block: str = "pending") -> int:
        """Get account transaction count (nonce)"""
        address = to_checksum_address(address)
        return await self._request_quantity("eth_getTransactionCount", [address, block])

    async def get_gas_price(self) -> int:
        """Get suggested gas price (wei)"""
        return await self._request_quantity("eth_gasPrice")

    async def send_raw_transaction(self, raw_tx: Union[str, bytes]) -> str:
        """Send raw transaction"""
        if isinstance(raw_tx, (bytes, bytearray)):
            raw_tx = Web3.to_hex(raw_tx)
        return await self.send_request("eth_sendRawTransaction", [raw_tx])

    async def get_transaction_receipt(self, tx_hash: str) -> Optional[Dict]:
        """Get transaction receipt, None while the transaction is pending"""
        receipt = await self.send_request("eth_getTransactionReceipt", [tx_hash])
        return receipt if receipt else None

    async def call(self, to: str, data: str = "0x", block: str = "latest") -> str:
        """Execute contract call (read-only)"""
        params = {
            "to": to_checksum_address(to),
            "data": data
        }
        return await self.send_request("eth_call", [params, block])
