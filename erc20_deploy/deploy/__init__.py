from .deployer import TokenDeployer
from .reporter import DeploymentReport, VerificationResult
from .template import TokenTemplate, load_template
from .watcher import ConfirmationWatcher, DeploymentReceipt, ReceiptStatus, WatchState

__all__ = [
    "TokenDeployer",
    "DeploymentReport",
    "VerificationResult",
    "TokenTemplate",
    "load_template",
    "ConfirmationWatcher",
    "DeploymentReceipt",
    "ReceiptStatus",
    "WatchState",
]
