"""
Deployment Errors
Error taxonomy raised by artifact resolution and contract deployment
"""

from typing import Optional


class DeployError(Exception):
    """Base class for every deployment failure"""

    def __init__(self, message: str, contract_name: Optional[str] = None):
        super().__init__(message)
        self.contract_name = contract_name


class ArtifactNotFound(DeployError):
    """No usable compiled artifact for the requested contract"""


class DeploymentFailed(DeployError):
    """
    Creation transaction could not be submitted or confirmed

    Covers reverts, confirmation timeouts, insufficient funds and
    RPC rejections without distinguishing between them.
    """

    def __init__(
        self,
        message: str,
        contract_name: Optional[str] = None,
        tx_hash: Optional[str] = None,
        reason: Optional[str] = None
    ):
        super().__init__(message, contract_name)
        self.tx_hash = tx_hash
        self.reason = reason
