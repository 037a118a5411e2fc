"""
Blockchain Interaction Package
Handles artifact resolution, contract creation and confirmation
"""

from .errors import DeployError, ArtifactNotFound, DeploymentFailed
from .artifacts import ArtifactStore, ContractArtifact
from .contract_factory import ContractFactory, DeploymentHandle, DeployedContract

__all__ = [
    'DeployError',
    'ArtifactNotFound',
    'DeploymentFailed',
    'ArtifactStore',
    'ContractArtifact',
    'ContractFactory',
    'DeploymentHandle',
    'DeployedContract'
]
