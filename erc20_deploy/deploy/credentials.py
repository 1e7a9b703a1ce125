"""
Credential resolution

The signing key lives only in memory for the duration of one run. It is
either handed in directly or read once from an interactive prompt, and is
never written anywhere or included in reprs or logs.
"""

import getpass
import logging
from dataclasses import dataclass, field
from typing import Callable, Optional

from eth_account import Account
from eth_account.signers.local import LocalAccount
from eth_keys.exceptions import ValidationError as KeyValidationError

from ..utils.common import strip_hex_prefix
from ..utils.exceptions import InvalidCredential, MissingCredential
from ..utils.logging import register_secret

LOG = logging.getLogger(__name__)

PROMPT_TEXT = "Enter your private key (without 0x prefix): "


@dataclass(frozen=True)
class Credential:
    """Signing account and its derived address"""
    address: str
    account: LocalAccount = field(repr=False, compare=False)


class CredentialProvider:
    """Source of the signing secret"""

    def obtain_secret(self) -> Optional[str]:
        raise NotImplementedError


class StaticCredentialProvider(CredentialProvider):
    """Provider returning a fixed secret (CLI flag, env var, tests)"""

    def __init__(self, secret: Optional[str]):
        self._secret = secret

    def obtain_secret(self) -> Optional[str]:
        return self._secret


class PromptCredentialProvider(CredentialProvider):
    """Provider performing a single blocking interactive read"""

    def __init__(
        self,
        prompt_func: Callable[[str], str] = getpass.getpass,
        prompt: str = PROMPT_TEXT
    ):
        self._prompt_func = prompt_func
        self._prompt = prompt

    def obtain_secret(self) -> Optional[str]:
        try:
            return self._prompt_func(self._prompt)
        except EOFError:
            return None


def normalize_secret(secret: str) -> str:
    """Trim whitespace and drop the optional 0x marker"""
    return strip_hex_prefix(secret.strip())


def resolve_credential(
    secret: Optional[str],
    provider: Optional[CredentialProvider] = None
) -> Credential:
    """
    Derive the signing credential.

    Args:
        secret: Secret key supplied directly; takes precedence when non-empty
        provider: Fallback source consulted once when secret is absent

    Returns:
        Credential with the derived checksum address

    Raises:
        MissingCredential: No secret from either source
        InvalidCredential: Secret is not a valid private key
    """
    if not secret or not secret.strip():
        if provider is None:
            raise MissingCredential("No private key supplied")
        secret = provider.obtain_secret()

    if not secret or not secret.strip():
        raise MissingCredential("Private key is required")

    key_hex = normalize_secret(secret)

    try:
        key_bytes = bytes.fromhex(key_hex)
    except ValueError as e:
        raise InvalidCredential("Invalid private key: not a hex string", cause=e)

    if len(key_bytes) != 32:
        raise InvalidCredential(
            f"Invalid private key: expected 32 bytes, got {len(key_bytes)}"
        )
    register_secret(key_hex)

    try:
        account = Account.from_key(key_bytes)
    except (ValueError, TypeError, KeyValidationError) as e:
        # Zero or >= curve order
        raise InvalidCredential(f"Invalid private key: {e}", cause=e)

    LOG.info(f"Deploying from account {account.address}")
    return Credential(address=account.address, account=account)
