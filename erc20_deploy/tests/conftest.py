"""
Pytest configuration and fixtures for erc20-deploy tests.

Usage:
    # Fixtures are injected by name:

    @pytest.mark.asyncio
    async def test_something(fake_client, credential, fake_clock):
        context = await fetch_chain_context(fake_client, credential.address)
"""

import json
import logging
from typing import List
from unittest.mock import AsyncMock, Mock

import pytest
from web3 import Web3

from erc20_deploy.deploy.credentials import resolve_credential
from erc20_deploy.deploy.template import TokenTemplate, load_template
from erc20_deploy.deploy.watcher import Clock
from erc20_deploy.utils.logging import SECRET_FILTER
from erc20_deploy.utils.mock_ledger import MockLedger

LOG = logging.getLogger(__name__)

# Well-known local development key (Anvil/Hardhat account #0)
TEST_PRIVATE_KEY = "ac0974bec39a17e36ba4a6b4d238ff944bacb478cbed5efcae784d7bf4f2ff80"
TEST_ADDRESS = "0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266"

# Stand-in init code; the mock ledger never executes it
TEST_BYTECODE = "0x6080604052348015600f57600080fd5b50"


class FakeClock(Clock):
    """Clock that only advances when slept on"""

    def __init__(self, start: float = 0.0):
        self.now = start
        self.sleeps: List[float] = []

    def monotonic(self) -> float:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def credential():
    """Credential for the well-known test key"""
    return resolve_credential(TEST_PRIVATE_KEY)


@pytest.fixture
def template():
    return TokenTemplate(bytecode=TEST_BYTECODE)


@pytest.fixture
def artifact_file(tmp_path):
    """Token artifact in the flat {"abi", "bytecode"} layout"""
    path = tmp_path / "contracts_data" / "ERC20Token.json"
    path.parent.mkdir(parents=True)
    with open(path, 'w') as f:
        json.dump({"abi": TokenTemplate(bytecode=TEST_BYTECODE).abi, "bytecode": TEST_BYTECODE}, f)
    return path


@pytest.fixture
def loaded_template(artifact_file):
    return load_template(artifact_file)


@pytest.fixture
def fake_client():
    """
    Ledger client double.

    Receipts stay pending (None) unless a test sets
    ``get_transaction_receipt.return_value`` or ``side_effect``.
    """
    client = Mock()
    client.get_transaction_count = AsyncMock(return_value=0)
    client.get_chain_id = AsyncMock(return_value=31337)
    client.get_gas_price = AsyncMock(return_value=2_000_000_000)
    client.send_raw_transaction = AsyncMock(
        side_effect=lambda raw: Web3.to_hex(Web3.keccak(hexstr=raw))
    )
    client.get_transaction_receipt = AsyncMock(return_value=None)
    client.call = AsyncMock(return_value="0x")
    return client


@pytest.fixture
def mock_ledger():
    """Start/stop a MockLedger on a free port"""
    ledger = MockLedger(port=0, bytecode=TEST_BYTECODE)
    ledger.start()
    yield ledger
    ledger.stop()


@pytest.fixture
def restore_logging():
    """Undo setup_logging() and forget registered secrets"""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)
    SECRET_FILTER.clear()
