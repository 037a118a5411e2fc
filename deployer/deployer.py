"""
Deployer
Orchestrates a single contract deployment
"""

from typing import Dict, Optional
from web3 import Web3
from loguru import logger

from blockchain.artifacts import ArtifactStore
from blockchain.contract_factory import ContractFactory, DeployedContract
from utils.gas_calculator import GasCalculator


class Deployer:
    """
    Resolve artifact -> submit creation tx -> await confirmation -> address

    Network, signer and confirmation policy are passed in explicitly,
    so any of them can be swapped for a test double.
    """

    def __init__(
        self,
        w3: Web3,
        signer,
        config,
        artifact_store: Optional[ArtifactStore] = None,
        gas_calculator: Optional[GasCalculator] = None
    ):
        """
        Initialize Deployer

        Args:
            w3: Connected Web3 instance
            signer: Signer authorizing transactions
            config: DeployConfig
            artifact_store: Build output reader (defaults to config.artifacts_dir)
            gas_calculator: Gas policy (defaults from config)
        """
        self.w3 = w3
        self.signer = signer
        self.config = config
        self.artifact_store = artifact_store or ArtifactStore(config.artifacts_dir)
        self.gas_calculator = gas_calculator or GasCalculator(w3, config)

    def get_contract_factory(
        self,
        contract_name: str,
        libraries: Optional[Dict[str, str]] = None
    ) -> ContractFactory:
        """
        Get a factory for a compiled contract

        Raises:
            ArtifactNotFound: Contract is not in the build output
            DeploymentFailed: Contract is abstract or cannot be linked
        """
        artifact = self.artifact_store.resolve(contract_name)

        if libraries is None:
            libraries = self.config.libraries

        return ContractFactory(
            self.w3,
            artifact,
            self.signer,
            self.gas_calculator,
            libraries=libraries
        )

    async def deploy_contract(self, contract_name: str, *constructor_args, value: int = 0) -> DeployedContract:
        """Deploy and return the confirmed contract with its receipt details"""
        factory = self.get_contract_factory(contract_name)

        handle = await factory.deploy(*constructor_args, value=value)

        deployed = await handle.wait_for_deployment(
            timeout=self.config.confirmation_timeout,
            poll_interval=self.config.poll_interval,
            confirmations=self.config.confirmations
        )

        logger.success(f"{contract_name} deployed at {deployed.address} (tx {deployed.tx_hash})")
        return deployed

    async def deploy(self, contract_name: str, *constructor_args, value: int = 0) -> str:
        """
        Deploy a contract

        Args:
            contract_name: Bare or fully qualified contract name
            constructor_args: Constructor arguments
            value: Wei sent to a payable constructor

        Returns:
            Checksummed address of the new contract

        Raises:
            ArtifactNotFound: Contract is not in the build output
            DeploymentFailed: Transaction rejected, reverted or timed out
        """
        deployed = await self.deploy_contract(contract_name, *constructor_args, value=value)
        return deployed.address
