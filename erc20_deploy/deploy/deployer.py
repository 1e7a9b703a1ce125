"""
Token deployment orchestration

Runs the deployment as a strictly sequential pipeline:

    credential -> supply -> chain context -> gas policy -> authorization
    -> submission -> confirmation -> report

Each step consumes the previous step's output. The first DeployError
aborts the run; its ``details["step"]`` names the step that failed.
Nothing is retried.
"""

import logging
from contextlib import contextmanager
from typing import Optional

from .authorizer import authorize
from .chain_context import fetch_chain_context
from .credentials import CredentialProvider, resolve_credential
from .gas import resolve_gas_policy
from .reporter import DeploymentReport, ResultReporter
from .submitter import DeploymentRequest, submit_deployment
from .supply import scale_supply
from .template import TokenTemplate
from .watcher import Clock, ConfirmationWatcher
from ..utils.config import DeployConfig
from ..utils.exceptions import DeployError

LOG = logging.getLogger(__name__)


@contextmanager
def pipeline_step(name: str):
    """Tag any DeployError escaping the block with the step name"""
    LOG.debug(f"Step: {name}")
    try:
        yield
    except DeployError as e:
        e.details.setdefault("step", name)
        raise


class TokenDeployer:
    """
    Deploys one token per call to deploy().

    Args:
        client: Connected ledger client (LedgerClient or a test double)
        credential_provider: Consulted when the config carries no private key
        clock: Clock for the confirmation watcher
    """

    def __init__(
        self,
        client,
        credential_provider: Optional[CredentialProvider] = None,
        clock: Optional[Clock] = None
    ):
        self.client = client
        self.credential_provider = credential_provider
        self.clock = clock
        self.watcher: Optional[ConfirmationWatcher] = None

    async def deploy(self, config: DeployConfig, template: TokenTemplate) -> DeploymentReport:
        """
        Deploy the token described by ``config``.

        Returns:
            DeploymentReport; a reverted deployment is a report with
            succeeded == False, not an exception

        Raises:
            DeployError: The first failure in the pipeline
        """
        with pipeline_step("credential"):
            credential = resolve_credential(config.private_key, self.credential_provider)

        # Before any network call, so a bad supply never touches the node
        with pipeline_step("supply"):
            supply = scale_supply(config.supply, config.decimals)
            LOG.info(f"Total supply {supply.raw_whole_units} -> {supply.scaled_integer} base units")

        with pipeline_step("chain_context"):
            context = await fetch_chain_context(self.client, credential.address)

        with pipeline_step("gas_policy"):
            gas = await resolve_gas_policy(self.client, config.gas_limit, config.gas_price_gwei)

        with pipeline_step("authorization"):
            authorization = authorize(credential, context, gas)
            request = DeploymentRequest(
                name=config.name,
                symbol=config.symbol,
                decimals=config.decimals,
                supply=supply,
                authorization=authorization
            )

        with pipeline_step("submission"):
            submission = await submit_deployment(self.client, request, template)

        LOG.info("Token deployment initiated!")
        LOG.info(f"Contract address: {submission.contract_address}")
        LOG.info(f"Transaction hash: {submission.transaction_hash}")
        LOG.info("Waiting for transaction to be mined...")

        with pipeline_step("confirmation"):
            self.watcher = ConfirmationWatcher(
                self.client,
                submission,
                timeout=config.confirmation_timeout,
                poll_interval=config.poll_interval,
                max_consecutive_errors=config.max_poll_errors,
                clock=self.clock
            )
            receipt = await self.watcher.wait()

        with pipeline_step("report"):
            reporter = ResultReporter(self.client, template)
            return await reporter.report(receipt, {
                "name": request.name,
                "symbol": request.symbol,
                "decimals": request.decimals,
            })
