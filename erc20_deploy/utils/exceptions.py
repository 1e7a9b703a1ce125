"""
Exception hierarchy for the token deployment pipeline

Every failure in the deployment sequence is raised as a subclass of
DeployError. The pipeline attaches the name of the failing step to
``details["step"]`` before the error leaves the orchestrator, so callers
can tell which stage aborted the run.
"""

from typing import Any, Dict, Optional


class ErrorCodes:
    """Numeric error codes, grouped by stage"""
    # Configuration (1xxx)
    CONFIG_INVALID = 1001
    CONFIG_FILE_NOT_FOUND = 1002
    CONFIG_VALIDATION_FAILED = 1003
    CREDENTIAL_MISSING = 1101
    CREDENTIAL_INVALID = 1102

    # Network (2xxx)
    NETWORK_UNAVAILABLE = 2001
    RPC_ERROR = 2002

    # Amounts and pricing (3xxx)
    INVALID_AMOUNT = 3001
    GAS_PRICE_UNAVAILABLE = 3101

    # Transaction lifecycle (4xxx)
    BROADCAST_FAILED = 4001
    CONFIRMATION_TIMEOUT = 4101
    EXECUTION_FAILED = 4201


class DeployError(Exception):
    """Base exception class for erc20-deploy"""

    default_code: Optional[int] = None

    def __init__(
        self,
        message: str,
        code: Optional[int] = None,
        cause: Optional[BaseException] = None,
        **details: Any
    ):
        self.message = message
        self.code = code if code is not None else self.default_code
        self.cause = cause
        self.details: Dict[str, Any] = dict(details)
        super().__init__(message)

    def __str__(self) -> str:
        if self.code is not None:
            return f"[{self.code}] {self.message}"
        return self.message

    @property
    def step(self) -> Optional[str]:
        """Pipeline step that raised this error, if known"""
        return self.details.get("step")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error": type(self).__name__,
            "message": self.message,
            "code": self.code,
            "details": self.details,
        }


class ConfigurationError(DeployError):
    """Missing or invalid invocation parameter"""
    default_code = ErrorCodes.CONFIG_INVALID


class MissingCredential(ConfigurationError):
    """No signing secret supplied and none entered interactively"""
    default_code = ErrorCodes.CREDENTIAL_MISSING


class InvalidCredential(ConfigurationError):
    """Signing secret is not a valid secp256k1 private key"""
    default_code = ErrorCodes.CREDENTIAL_INVALID


class NetworkUnavailable(DeployError):
    """Ledger endpoint cannot be reached"""
    default_code = ErrorCodes.NETWORK_UNAVAILABLE


class RpcError(DeployError):
    """Endpoint was reached but the response was an error or malformed"""
    default_code = ErrorCodes.RPC_ERROR

    def __init__(self, message: str, rpc_code: Optional[int] = None, **kwargs: Any):
        super().__init__(message, **kwargs)
        self.rpc_code = rpc_code
        if rpc_code is not None:
            self.details.setdefault("rpc_code", rpc_code)


class InvalidAmount(DeployError):
    """Supply value could not be parsed or scaled"""
    default_code = ErrorCodes.INVALID_AMOUNT


class GasPriceUnavailable(DeployError):
    """Network did not provide a usable gas price suggestion"""
    default_code = ErrorCodes.GAS_PRICE_UNAVAILABLE


class BroadcastError(DeployError):
    """Deployment transaction was rejected by the network"""
    default_code = ErrorCodes.BROADCAST_FAILED


class ConfirmationTimeout(DeployError):
    """No receipt arrived before the deadline, or watching was cancelled"""
    default_code = ErrorCodes.CONFIRMATION_TIMEOUT


class ExecutionFailure(DeployError):
    """Transaction was mined but contract execution did not succeed"""
    default_code = ErrorCodes.EXECUTION_FAILED
