"""
Lightweight JSON-RPC node stand-in for deployment tests.

Stands in for a real node when only the calls made by the deploy pipeline
are needed. Signed transactions are decoded for real (sender recovery,
CREATE address, constructor arguments) so the client, signer and encoder
are exercised end to end, but there is no EVM: receipts and view calls
are synthesized from the decoded constructor arguments.
"""

import json
import logging
import socket
import threading
import time
from http.server import BaseHTTPRequestHandler, HTTPServer
from typing import Any, Dict, List, Optional

import rlp
from eth_abi import decode, encode
from eth_account import Account
from web3 import Web3
from web3.utils.address import get_create_address

from .common import int_to_hex

LOG = logging.getLogger(__name__)

# Default chain ID for Anvil-style local networks
DEFAULT_CHAIN_ID = 31337

DEFAULT_GAS_PRICE = 1_000_000_000

CONSTRUCTOR_TYPES = ["string", "string", "uint8", "uint256"]


def _selector(signature: str) -> str:
    return Web3.to_hex(Web3.keccak(text=signature)[:4])


class MockLedger:
    """
    JSON-RPC server simulating the node side of a token deployment.

    Implements:
      - eth_chainId, eth_gasPrice, eth_getTransactionCount
      - eth_sendRawTransaction
      - eth_getTransactionReceipt (null for `pending_polls` calls, then mined)
      - eth_call for name(), symbol(), decimals()

    Set `fail_methods` to make selected methods answer with a JSON-RPC error.
    """

    def __init__(
        self,
        port: int = 0,
        chain_id: int = DEFAULT_CHAIN_ID,
        bytecode: str = "0x",
        gas_price: int = DEFAULT_GAS_PRICE,
        pending_polls: int = 0,
        receipt_status: int = 1,
        gas_used: int = 1_234_567,
    ):
        self.port = port
        self.chain_id = chain_id
        self.bytecode = bytecode.lower()
        self.gas_price = gas_price
        self.pending_polls = pending_polls
        self.receipt_status = receipt_status
        self.gas_used = gas_used
        self.fail_methods: Dict[str, str] = {}

        self.current_block: int = 0
        self.nonces: Dict[str, int] = {}
        self.transactions: List[Dict[str, Any]] = []
        self.calls: List[Dict[str, Any]] = []
        self._receipt_polls: Dict[str, int] = {}
        self._contracts: Dict[str, Dict[str, Any]] = {}
        self._lock = threading.Lock()
        self._server: Optional[HTTPServer] = None
        self._thread: Optional[threading.Thread] = None

    @property
    def rpc_url(self) -> str:
        return f"http://127.0.0.1:{self.port}"

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    # ------------------------------------------------------------------
    # JSON-RPC handlers
    # ------------------------------------------------------------------

    def handle_request(self, body: dict) -> dict:
        """Route a JSON-RPC request to the appropriate handler."""
        method = body.get("method", "")
        params = body.get("params", [])
        req_id = body.get("id", 1)

        if method in self.fail_methods:
            return {
                "jsonrpc": "2.0",
                "id": req_id,
                "error": {"code": -32000, "message": self.fail_methods[method]},
            }

        try:
            with self._lock:
                if method == "eth_chainId":
                    result = int_to_hex(self.chain_id)
                elif method == "eth_gasPrice":
                    result = int_to_hex(self.gas_price)
                elif method == "eth_getTransactionCount":
                    address = Web3.to_checksum_address(params[0])
                    result = int_to_hex(self.nonces.get(address, 0))
                elif method == "eth_sendRawTransaction":
                    result = self._handle_send_raw_transaction(params[0])
                elif method == "eth_getTransactionReceipt":
                    result = self._handle_get_receipt(params[0])
                elif method == "eth_call":
                    result = self._handle_call(params[0])
                elif method == "eth_blockNumber":
                    result = int_to_hex(self.current_block)
                else:
                    LOG.debug(f"MockLedger: unsupported method '{method}'")
                    return {
                        "jsonrpc": "2.0",
                        "id": req_id,
                        "error": {"code": -32601, "message": f"Method not found: {method}"},
                    }

            return {"jsonrpc": "2.0", "id": req_id, "result": result}

        except Exception as e:
            LOG.error(f"MockLedger: error handling {method}: {e}")
            return {
                "jsonrpc": "2.0",
                "id": req_id,
                "error": {"code": -32603, "message": str(e)},
            }

    def _handle_send_raw_transaction(self, raw_tx: str) -> str:
        raw_bytes = Web3.to_bytes(hexstr=raw_tx)
        sender = Account.recover_transaction(raw_bytes)
        tx_hash = Web3.to_hex(Web3.keccak(raw_bytes))

        expected_nonce = self.nonces.get(sender, 0)
        tx = self._decode_legacy(raw_bytes)
        if tx["nonce"] != expected_nonce:
            raise ValueError(f"nonce too low: expected {expected_nonce}, got {tx['nonce']}")

        contract_address = get_create_address(sender, tx["nonce"])
        init_code = Web3.to_hex(tx["data"])
        args_hex = init_code[len(self.bytecode):] if init_code.startswith(self.bytecode) else ""
        name, symbol, decimals, supply = decode(CONSTRUCTOR_TYPES, Web3.to_bytes(hexstr=args_hex))

        self.nonces[sender] = expected_nonce + 1
        self._contracts[contract_address.lower()] = {
            "name": name,
            "symbol": symbol,
            "decimals": decimals,
            "supply": supply,
        }
        self.transactions.append({
            "hash": tx_hash,
            "from": sender,
            "contract_address": contract_address,
            "name": name,
            "symbol": symbol,
            "decimals": decimals,
            "supply": supply,
            **tx,
        })
        self._receipt_polls[tx_hash] = 0
        return tx_hash

    @staticmethod
    def _decode_legacy(raw_bytes: bytes) -> Dict[str, Any]:
        """Pull nonce, gas fields, value and data out of an RLP legacy transaction"""
        nonce, gas_price, gas, to, value, data, v, r, s = rlp.decode(raw_bytes)
        return {
            "nonce": int.from_bytes(nonce, "big"),
            "gasPrice": int.from_bytes(gas_price, "big"),
            "gas": int.from_bytes(gas, "big"),
            "to": Web3.to_hex(to) if to else None,
            "value": int.from_bytes(value, "big"),
            "data": data,
            "v": int.from_bytes(v, "big"),
        }

    def _find_transaction(self, tx_hash: str) -> Optional[Dict[str, Any]]:
        for tx in self.transactions:
            if tx["hash"].lower() == tx_hash.lower():
                return tx
        return None

    def _handle_get_receipt(self, tx_hash: str) -> Optional[dict]:
        tx = self._find_transaction(tx_hash)
        if tx is None:
            return None

        polls = self._receipt_polls.get(tx["hash"], 0)
        self._receipt_polls[tx["hash"]] = polls + 1
        if polls < self.pending_polls:
            return None

        if "block_number" not in tx:
            self.current_block += 1
            tx["block_number"] = self.current_block

        return {
            "transactionHash": tx["hash"],
            "transactionIndex": "0x0",
            "blockNumber": int_to_hex(tx["block_number"]),
            "blockHash": "0x" + tx["block_number"].to_bytes(32, "big").hex(),
            "from": tx["from"].lower(),
            "to": None,
            "contractAddress": tx["contract_address"].lower() if self.receipt_status == 1 else None,
            "gasUsed": int_to_hex(self.gas_used),
            "cumulativeGasUsed": int_to_hex(self.gas_used),
            "status": int_to_hex(self.receipt_status),
            "logs": [],
        }

    def _handle_call(self, call: dict) -> str:
        self.calls.append(call)
        contract = self._contracts.get(call.get("to", "").lower())
        if contract is None:
            return "0x"

        data = call.get("data", "0x")
        if data == _selector("name()"):
            return Web3.to_hex(encode(["string"], [contract["name"]]))
        if data == _selector("symbol()"):
            return Web3.to_hex(encode(["string"], [contract["symbol"]]))
        if data == _selector("decimals()"):
            return Web3.to_hex(encode(["uint8"], [contract["decimals"]]))
        raise ValueError(f"execution reverted: unknown selector {data[:10]}")

    # ------------------------------------------------------------------
    # HTTP Server lifecycle
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Start the MockLedger HTTP server in a background thread."""
        if self.is_running:
            LOG.warning("MockLedger already running, stopping first...")
            self.stop()

        mock = self  # capture for inner class

        class Handler(BaseHTTPRequestHandler):
            def do_POST(self):
                content_len = int(self.headers.get("Content-Length", 0))
                body_bytes = self.rfile.read(content_len)

                try:
                    body = json.loads(body_bytes)
                except json.JSONDecodeError:
                    self.send_error(400, "Invalid JSON")
                    return

                if isinstance(body, list):
                    response_body = json.dumps([mock.handle_request(req) for req in body])
                else:
                    response_body = json.dumps(mock.handle_request(body))

                payload = response_body.encode()
                self.send_response(200)
                self.send_header("Content-Type", "application/json")
                self.send_header("Content-Length", str(len(payload)))
                self.end_headers()
                self.wfile.write(payload)

            def log_message(self, format, *args):
                # Suppress default access logging to avoid noise
                pass

        self._server = HTTPServer(("127.0.0.1", self.port), Handler)
        self.port = self._server.server_address[1]
        self._thread = threading.Thread(target=self._server.serve_forever, daemon=True)
        self._thread.start()

        # Wait for server to be ready
        deadline = time.time() + 5
        while time.time() < deadline:
            try:
                with socket.create_connection(("127.0.0.1", self.port), timeout=1):
                    break
            except OSError:
                time.sleep(0.1)

        LOG.info(f"MockLedger running at {self.rpc_url}")

    def stop(self) -> None:
        """Stop the MockLedger server."""
        if self._server is not None:
            LOG.info("MockLedger: shutting down...")
            self._server.shutdown()
            self._server.server_close()
            self._server = None
            self._thread = None
