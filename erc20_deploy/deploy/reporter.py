import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from eth_abi import decode
from eth_abi.exceptions import DecodingError
from web3 import Web3

from .template import TokenTemplate
from .watcher import DeploymentReceipt
from ..utils.common import format_timestamp
from ..utils.exceptions import DeployError, ExecutionFailure

LOG = logging.getLogger(__name__)

VERIFIED_FIELDS = ("name", "symbol", "decimals")


@dataclass(frozen=True)
class VerificationResult:
    """One read-only check against the deployed token"""
    name: str
    expected: Any
    actual: Any = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def matches(self) -> bool:
        return self.ok and self.actual == self.expected

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "expected": self.expected,
            "actual": self.actual,
            "error": self.error,
            "matches": self.matches,
        }


@dataclass
class DeploymentReport:
    """Final outcome of one deployment run"""
    receipt: DeploymentReceipt
    verifications: List[VerificationResult] = field(default_factory=list)
    generated_at: str = field(default_factory=format_timestamp)

    @property
    def succeeded(self) -> bool:
        return self.receipt.succeeded

    def verification(self, name: str) -> Optional[VerificationResult]:
        for result in self.verifications:
            if result.name == name:
                return result
        return None

    def raise_for_status(self) -> None:
        """Raise ExecutionFailure if the deployment was mined but reverted"""
        if not self.succeeded:
            raise ExecutionFailure(
                "Deployment transaction was mined but execution failed",
                tx_hash=self.receipt.transaction_hash,
                contract_address=self.receipt.contract_address,
                gas_used=self.receipt.gas_used
            )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.succeeded,
            "generated_at": self.generated_at,
            "receipt": self.receipt.to_dict(),
            "verifications": [v.to_dict() for v in self.verifications],
        }


class ResultReporter:
    """Interpret a mined receipt and read back the token metadata"""

    def __init__(self, client, template: TokenTemplate):
        self.client = client
        self.template = template

    async def _read(self, address: str, function_name: str) -> Any:
        data = await self.client.call(address, self.template.selector(function_name))
        types = self.template.output_types(function_name)
        return decode(types, Web3.to_bytes(hexstr=data))[0]

    async def verify(self, address: str, expected: Dict[str, Any]) -> List[VerificationResult]:
        """Issue one best-effort eth_call per field; failures are recorded, not raised"""
        results = []
        for name in VERIFIED_FIELDS:
            try:
                actual = await self._read(address, name)
            except (DeployError, DecodingError, ValueError, TypeError, IndexError) as e:
                LOG.warning(f"Could not read {name}() from {address}: {e}")
                results.append(VerificationResult(name=name, expected=expected.get(name), error=str(e)))
                continue

            result = VerificationResult(name=name, expected=expected.get(name), actual=actual)
            if not result.matches:
                LOG.warning(f"On-chain {name} {actual!r} does not match requested {expected.get(name)!r}")
            results.append(result)
        return results

    async def report(self, receipt: DeploymentReceipt, expected: Dict[str, Any]) -> DeploymentReport:
        """
        Build the final report.

        A successful receipt triggers exactly three verification calls; a
        failed one triggers none.
        """
        if not receipt.succeeded:
            LOG.error(f"Deployment transaction {receipt.transaction_hash} reverted")
            return DeploymentReport(receipt=receipt)

        verifications = await self.verify(receipt.contract_address, expected)
        return DeploymentReport(receipt=receipt, verifications=verifications)
