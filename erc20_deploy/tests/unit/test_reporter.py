from unittest.mock import AsyncMock

import pytest
from eth_abi import encode
from web3 import Web3

from erc20_deploy.deploy.reporter import DeploymentReport, ResultReporter, VerificationResult
from erc20_deploy.deploy.template import TokenTemplate
from erc20_deploy.deploy.watcher import DeploymentReceipt, ReceiptStatus
from erc20_deploy.utils.exceptions import ErrorCodes, ExecutionFailure, RpcError

CONTRACT = "0x5FbDB2315678afecb367f032d93F642f64180aa3"
EXPECTED = {"name": "TestCoin", "symbol": "TST", "decimals": 18}


def make_receipt(status=ReceiptStatus.SUCCESS):
    return DeploymentReceipt(
        contract_address=CONTRACT,
        transaction_hash="0x" + "22" * 32,
        status=status,
        gas_used=1_234_567,
        block_number=1
    )


def token_responses(name="TestCoin", symbol="TST", decimals=18):
    return {
        "0x06fdde03": Web3.to_hex(encode(["string"], [name])),
        "0x95d89b41": Web3.to_hex(encode(["string"], [symbol])),
        "0x313ce567": Web3.to_hex(encode(["uint8"], [decimals])),
    }


class TestResultReporter:
    """Receipt interpretation and metadata read-back"""

    @pytest.mark.asyncio
    async def test_success_reads_three_fields(self, fake_client, template):
        responses = token_responses()
        fake_client.call = AsyncMock(side_effect=lambda to, data: responses[data])

        report = await ResultReporter(fake_client, template).report(make_receipt(), EXPECTED)

        assert report.succeeded
        assert fake_client.call.await_count == 3
        assert [v.name for v in report.verifications] == ["name", "symbol", "decimals"]
        assert all(v.matches for v in report.verifications)
        assert report.verification("decimals").actual == 18

    @pytest.mark.asyncio
    async def test_failed_receipt_makes_no_calls(self, fake_client, template):
        report = await ResultReporter(fake_client, template).report(
            make_receipt(ReceiptStatus.FAILURE), EXPECTED
        )

        assert not report.succeeded
        assert report.verifications == []
        fake_client.call.assert_not_called()

    @pytest.mark.asyncio
    async def test_read_failures_are_recorded(self, fake_client, template):
        responses = token_responses()

        async def flaky(to, data):
            if data == "0x95d89b41":
                raise RpcError("execution reverted", rpc_code=3)
            if data == "0x313ce567":
                return "0x"
            return responses[data]

        fake_client.call = AsyncMock(side_effect=flaky)

        report = await ResultReporter(fake_client, template).report(make_receipt(), EXPECTED)

        assert report.succeeded
        assert report.verification("name").matches
        assert not report.verification("symbol").ok
        assert "execution reverted" in report.verification("symbol").error
        assert not report.verification("decimals").ok

    @pytest.mark.asyncio
    async def test_view_without_outputs_is_recorded(self, fake_client):
        abi = [{"type": "function", "name": "decimals", "inputs": [], "outputs": []}]
        template = TokenTemplate(bytecode="0x60", abi=abi)
        responses = token_responses()
        fake_client.call = AsyncMock(side_effect=lambda to, data: responses[data])

        report = await ResultReporter(fake_client, template).report(make_receipt(), EXPECTED)

        assert fake_client.call.await_count == 3
        assert report.verification("name").matches
        assert report.verification("symbol").matches
        assert not report.verification("decimals").ok

    @pytest.mark.asyncio
    async def test_mismatch_is_reported(self, fake_client, template):
        responses = token_responses(decimals=6)
        fake_client.call = AsyncMock(side_effect=lambda to, data: responses[data])

        report = await ResultReporter(fake_client, template).report(make_receipt(), EXPECTED)

        decimals = report.verification("decimals")
        assert decimals.ok
        assert not decimals.matches


class TestDeploymentReport:
    """Report helpers"""

    def test_raise_for_status(self):
        DeploymentReport(receipt=make_receipt()).raise_for_status()

        report = DeploymentReport(receipt=make_receipt(ReceiptStatus.FAILURE))
        with pytest.raises(ExecutionFailure) as exc_info:
            report.raise_for_status()
        assert exc_info.value.code == ErrorCodes.EXECUTION_FAILED
        assert exc_info.value.details["gas_used"] == 1_234_567

    def test_to_dict(self):
        report = DeploymentReport(
            receipt=make_receipt(),
            verifications=[VerificationResult(name="name", expected="TestCoin", actual="TestCoin")]
        )
        data = report.to_dict()
        assert data["success"] is True
        assert data["receipt"]["status"] == "success"
        assert data["receipt"]["contract_address"] == CONTRACT
        assert data["verifications"][0]["matches"] is True
        assert "generated_at" in data
