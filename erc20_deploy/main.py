#!/usr/bin/env python3
import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from .core.client.ledger_client import LedgerClient
from .deploy.credentials import PromptCredentialProvider
from .deploy.deployer import TokenDeployer
from .deploy.reporter import DeploymentReport
from .deploy.template import load_template
from .utils.config import DeployConfig, build_config
from .utils.exceptions import DeployError
from .utils.logging import setup_logging

LOG = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_EXECUTION_FAILED = 3


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Deploy an ERC-20 token contract")
    parser.add_argument("--rpc", dest="rpc_url", default=None,
                        help="RPC URL of the Ethereum network")
    parser.add_argument("--key", dest="private_key", default=None,
                        help="Private key for deployment (prompted for if omitted)")
    parser.add_argument("--name", default=None,
                        help="Name of the token")
    parser.add_argument("--symbol", default=None,
                        help="Symbol of the token")
    parser.add_argument("--decimals", type=int, default=None,
                        help="Number of decimals for the token (default: 18)")
    parser.add_argument("--supply", default=None,
                        help="Total supply of tokens (in whole units)")
    parser.add_argument("--gas", dest="gas_limit", type=int, default=None,
                        help="Gas limit for deployment (default: 3000000)")
    parser.add_argument("--gasprice", dest="gas_price_gwei", default=None,
                        help="Gas price in gwei (default: node suggestion)")
    parser.add_argument("--artifact", default=None,
                        help="Path to the compiled token artifact JSON")
    parser.add_argument("--config", default=None,
                        help="Path to a JSON or YAML configuration file")
    parser.add_argument("--timeout", dest="confirmation_timeout", type=float, default=None,
                        help="Seconds to wait for the deployment to be mined (default: 300)")
    parser.add_argument("--poll-interval", dest="poll_interval", type=float, default=None,
                        help="Seconds between receipt polls (default: 1)")
    parser.add_argument("--output-file", default=None,
                        help="Write the deployment report as JSON to this path")
    parser.add_argument("--log-level", default="INFO",
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
                        help="Logging level")
    parser.add_argument("--log-file", default=None,
                        help="Path to log file")
    return parser


def log_report(report: DeploymentReport) -> None:
    """Human-readable outcome"""
    receipt = report.receipt
    if not report.succeeded:
        LOG.error("Deployment failed! Check the transaction on a block explorer.")
        LOG.error(f"Transaction hash: {receipt.transaction_hash}")
        return

    LOG.info("=" * 60)
    LOG.info("Deployment successful!")
    LOG.info("=" * 60)
    LOG.info(f"Contract address: {receipt.contract_address}")
    LOG.info(f"Gas used: {receipt.gas_used}")
    for label, name in (("Token name", "name"), ("Token symbol", "symbol"), ("Token decimals", "decimals")):
        result = report.verification(name)
        if result is None or not result.ok:
            LOG.warning(f"{label}: unavailable")
        elif result.matches:
            LOG.info(f"{label}: {result.actual}")
        else:
            LOG.warning(f"{label}: {result.actual} (expected {result.expected})")


def save_report(report: DeploymentReport, output_file: str) -> None:
    path = Path(output_file)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, 'w') as f:
            json.dump(report.to_dict(), f, indent=2)
        LOG.info(f"Deployment report saved to: {path}")
    except OSError as e:
        LOG.error(f"Failed to save deployment report: {e}")


async def run(config: DeployConfig, credential_provider=None) -> DeploymentReport:
    """Load the template, connect, and run one deployment"""
    template = load_template(config.artifact)
    async with LedgerClient(config.rpc_url, timeout=config.request_timeout) as client:
        deployer = TokenDeployer(client, credential_provider=credential_provider)
        return await deployer.deploy(config, template)


def main(argv: Optional[List[str]] = None) -> int:
    """CLI entry point; returns the process exit code"""
    args = build_parser().parse_args(argv)

    setup_logging(args.log_level, args.log_file)

    cli_values = {
        key: getattr(args, key)
        for key in (
            "rpc_url", "private_key", "name", "symbol", "decimals", "supply",
            "gas_limit", "gas_price_gwei", "artifact", "confirmation_timeout",
            "poll_interval", "output_file",
        )
    }

    try:
        config = build_config(cli_values, config_file=args.config)
        report = asyncio.run(run(config, credential_provider=PromptCredentialProvider()))
    except DeployError as e:
        step = f" during {e.step}" if e.step else ""
        LOG.error(f"Deployment aborted{step}: {e}")
        return EXIT_ERROR
    except KeyboardInterrupt:
        LOG.error("Interrupted")
        return EXIT_ERROR

    log_report(report)
    if config.output_file:
        save_report(report, config.output_file)

    return EXIT_OK if report.succeeded else EXIT_EXECUTION_FAILED


if __name__ == "__main__":
    sys.exit(main())
