"""
Deployer Package
Deployment orchestration, configuration and signing
"""

from .config import DeployConfig
from .signer import Signer
from .deployer import Deployer

__all__ = ['DeployConfig', 'Signer', 'Deployer']
