"""
Confirmation watcher

Polls eth_getTransactionReceipt until the deployment is included in a
block, the deadline passes, the watch is cancelled, or the receipt query
keeps failing.

State machine:
    SUBMITTED -> PENDING -> MINED
    SUBMITTED -> PENDING -> FAILED (timeout, cancellation, repeated errors)

MINED says nothing about execution success; the receipt status does.
Both terminal states are sticky: calling wait() again returns the same
receipt or re-raises the same error without touching the network.
"""

import asyncio
import enum
import logging
import time
from dataclasses import dataclass
from typing import Any, Dict, Optional

from web3 import Web3

from .submitter import Submission
from ..utils.common import hex_to_int
from ..utils.exceptions import (
    ConfirmationTimeout,
    DeployError,
    NetworkUnavailable,
    RpcError
)

LOG = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 300.0
DEFAULT_POLL_INTERVAL = 1.0
DEFAULT_MAX_CONSECUTIVE_ERRORS = 5


class WatchState(enum.Enum):
    SUBMITTED = "submitted"
    PENDING = "pending"
    MINED = "mined"
    FAILED = "failed"


class ReceiptStatus(enum.Enum):
    SUCCESS = "success"
    FAILURE = "failure"


@dataclass(frozen=True)
class DeploymentReceipt:
    """Outcome of a mined deployment transaction"""
    contract_address: str
    transaction_hash: str
    status: ReceiptStatus
    gas_used: int
    block_number: Optional[int] = None

    @property
    def succeeded(self) -> bool:
        return self.status is ReceiptStatus.SUCCESS

    def to_dict(self) -> Dict[str, Any]:
        return {
            "contract_address": self.contract_address,
            "transaction_hash": self.transaction_hash,
            "status": self.status.value,
            "gas_used": self.gas_used,
            "block_number": self.block_number,
        }


def parse_receipt(raw: Dict[str, Any], submission: Submission) -> DeploymentReceipt:
    """
    Convert a JSON-RPC receipt into a DeploymentReceipt.

    Falls back to the submission's derived address when the receipt has no
    contractAddress (reverted creations on some nodes).

    Raises:
        RpcError: Receipt is missing fields or has malformed quantities
    """
    try:
        status_value = hex_to_int(raw["status"])
        gas_used = hex_to_int(raw["gasUsed"])
        block_number = raw.get("blockNumber")
        block_number = hex_to_int(block_number) if block_number is not None else None
    except (KeyError, TypeError, ValueError) as e:
        raise RpcError(f"Malformed receipt for {submission.transaction_hash}: {e}", cause=e)

    contract_address = raw.get("contractAddress") or submission.contract_address
    try:
        contract_address = Web3.to_checksum_address(contract_address)
    except (TypeError, ValueError) as e:
        raise RpcError(f"Malformed contract address in receipt: {contract_address!r}", cause=e)

    if contract_address != submission.contract_address:
        LOG.warning(
            f"Receipt contract address {contract_address} differs from "
            f"derived {submission.contract_address}"
        )

    return DeploymentReceipt(
        contract_address=contract_address,
        transaction_hash=raw.get("transactionHash") or submission.transaction_hash,
        status=ReceiptStatus.SUCCESS if status_value == 1 else ReceiptStatus.FAILURE,
        gas_used=gas_used,
        block_number=block_number
    )


class Clock:
    """Wall clock used by the watcher; tests substitute a fake"""

    def monotonic(self) -> float:
        return time.monotonic()

    async def sleep(self, seconds: float) -> None:
        await asyncio.sleep(seconds)


class ConfirmationWatcher:
    """Wait for one submitted transaction to be mined"""

    def __init__(
        self,
        client,
        submission: Submission,
        timeout: float = DEFAULT_TIMEOUT,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        max_consecutive_errors: int = DEFAULT_MAX_CONSECUTIVE_ERRORS,
        clock: Optional[Clock] = None
    ):
        if timeout <= 0:
            raise ValueError("timeout must be positive")
        if poll_interval <= 0:
            raise ValueError("poll_interval must be positive")
        if max_consecutive_errors < 1:
            raise ValueError("max_consecutive_errors must be at least 1")

        self.client = client
        self.submission = submission
        self.timeout = timeout
        self.poll_interval = poll_interval
        self.max_consecutive_errors = max_consecutive_errors
        self.clock = clock or Clock()

        self.state = WatchState.SUBMITTED
        self.polls = 0
        self._receipt: Optional[DeploymentReceipt] = None
        self._error: Optional[DeployError] = None
        self._cancelled = False

    @property
    def is_terminal(self) -> bool:
        return self.state in (WatchState.MINED, WatchState.FAILED)

    def cancel(self) -> None:
        """Request the watch to stop at its next check"""
        self._cancelled = True

    def _fail(self, error: DeployError) -> DeployError:
        self.state = WatchState.FAILED
        self._error = error
        LOG.error(f"Stopped waiting for {self.submission.transaction_hash}: {error}")
        return error

    async def wait(self) -> DeploymentReceipt:
        """
        Poll until the transaction is mined.

        Returns:
            DeploymentReceipt, whatever its execution status

        Raises:
            ConfirmationTimeout: Deadline passed or watch cancelled
            NetworkUnavailable: Receipt query failed max_consecutive_errors times in a row
            RpcError: Node returned a malformed receipt
        """
        if self.state is WatchState.MINED:
            return self._receipt
        if self.state is WatchState.FAILED:
            raise self._error

        tx_hash = self.submission.transaction_hash
        self.state = WatchState.PENDING
        deadline = self.clock.monotonic() + self.timeout
        consecutive_errors = 0

        LOG.info(f"Waiting for transaction receipt: {tx_hash}")

        try:
            while True:
                if self._cancelled:
                    raise self._fail(ConfirmationTimeout(
                        f"Watching {tx_hash} was cancelled", tx_hash=tx_hash
                    ))

                self.polls += 1
                try:
                    raw = await self.client.get_transaction_receipt(tx_hash)
                except (NetworkUnavailable, RpcError) as e:
                    consecutive_errors += 1
                    LOG.warning(
                        f"Receipt query failed ({consecutive_errors}/"
                        f"{self.max_consecutive_errors}): {e}"
                    )
                    if consecutive_errors >= self.max_consecutive_errors:
                        raise self._fail(NetworkUnavailable(
                            f"Receipt query for {tx_hash} failed "
                            f"{consecutive_errors} times in a row: {e.message}",
                            cause=e,
                            tx_hash=tx_hash
                        ))
                    raw = None
                else:
                    consecutive_errors = 0

                if raw is not None:
                    try:
                        receipt = parse_receipt(raw, self.submission)
                    except RpcError as e:
                        raise self._fail(e)
                    self._receipt = receipt
                    self.state = WatchState.MINED
                    LOG.info(
                        f"Transaction {tx_hash} mined in block {receipt.block_number} "
                        f"with status {receipt.status.value}"
                    )
                    return receipt

                remaining = deadline - self.clock.monotonic()
                if remaining <= 0:
                    raise self._fail(ConfirmationTimeout(
                        f"Transaction receipt timeout after {self.timeout}s",
                        tx_hash=tx_hash
                    ))

                await self.clock.sleep(min(self.poll_interval, remaining))

        except asyncio.CancelledError:
            if not self.is_terminal:
                self._fail(ConfirmationTimeout(
                    f"Watching {tx_hash} was cancelled", tx_hash=tx_hash
                ))
            raise
