"""
Contract Factory
Builds, submits and confirms contract creation transactions
"""

import time
import asyncio
from typing import Dict, List, Optional
from web3 import Web3
from web3.exceptions import TransactionNotFound, Web3Exception
from loguru import logger

from .artifacts import ContractArtifact
from .errors import DeploymentFailed

# Errors raised by web3 providers and middleware for rejected or failed requests
RPC_ERRORS = (Web3Exception, ValueError, OSError)


def link_libraries(artifact: ContractArtifact, libraries: Optional[Dict[str, str]] = None) -> str:
    """
    Substitute deployed library addresses into creation bytecode

    Args:
        artifact: Compiled contract
        libraries: Library name (bare or fully qualified) -> address

    Returns:
        Linked 0x-prefixed bytecode

    Raises:
        DeploymentFailed: Missing, unknown or malformed library addresses
    """
    libraries = libraries or {}
    bytecode = artifact.bytecode
    needed = {}

    for source_name, libs in artifact.link_references.items():
        for lib_name, offsets in libs.items():
            needed[f"{source_name}:{lib_name}"] = offsets

    used = set()
    linked = bytecode

    for fqn, offsets in needed.items():
        lib_name = fqn.rpartition(':')[2]

        if fqn in libraries:
            key = fqn
        elif lib_name in libraries:
            candidates = [name for name in needed if name.rpartition(':')[2] == lib_name]
            if len(candidates) > 1:
                raise DeploymentFailed(
                    f"Library name \"{lib_name}\" is ambiguous for contract {artifact.contract_name}, "
                    f"use a fully qualified name: {', '.join(sorted(candidates))}",
                    contract_name=artifact.contract_name
                )
            key = lib_name
        else:
            raise DeploymentFailed(
                f"Contract {artifact.contract_name} needs library {fqn} to be linked",
                contract_name=artifact.contract_name
            )

        address = libraries[key]
        if not Web3.is_address(address):
            raise DeploymentFailed(
                f"Invalid address {address!r} for library {fqn}",
                contract_name=artifact.contract_name
            )

        used.add(key)
        address_hex = Web3.to_checksum_address(address)[2:].lower()

        for offset in offsets:
            start = 2 + offset['start'] * 2
            end = start + offset['length'] * 2
            if end > len(linked):
                raise DeploymentFailed(
                    f"Link reference for {fqn} at byte {offset['start']} is outside the bytecode",
                    contract_name=artifact.contract_name
                )
            linked = linked[:start] + address_hex + linked[end:]

    unknown = set(libraries) - used
    if unknown:
        raise DeploymentFailed(
            f"Contract {artifact.contract_name} does not use libraries: {', '.join(sorted(unknown))}",
            contract_name=artifact.contract_name
        )

    return linked


class DeployedContract:
    """Confirmed contract instance on the network"""

    def __init__(
        self,
        contract_name: str,
        address: str,
        tx_hash: str,
        block_number: int,
        gas_used: int,
        contract
    ):
        self.contract_name = contract_name
        self.address = address
        self.tx_hash = tx_hash
        self.block_number = block_number
        self.gas_used = gas_used
        self.contract = contract

    def __repr__(self):
        return f"DeployedContract({self.contract_name!r}, {self.address})"


class DeploymentHandle:
    """
    Submitted but unconfirmed creation transaction
    """

    def __init__(
        self,
        w3: Web3,
        contract_name: str,
        tx_hash,
        sender: str,
        nonce: int,
        abi: List[Dict]
    ):
        self.w3 = w3
        self.contract_name = contract_name
        self.tx_hash = Web3.to_hex(tx_hash)
        self.sender = sender
        self.nonce = nonce
        self.abi = abi

    async def wait_for_deployment(
        self,
        timeout: float = 120,
        poll_interval: float = 1.0,
        confirmations: int = 1
    ) -> DeployedContract:
        """
        Wait until the creation transaction is mined

        Args:
            timeout: Seconds before giving up
            poll_interval: Seconds between receipt polls
            confirmations: Blocks required, including the inclusion block

        Returns:
            DeployedContract

        Raises:
            DeploymentFailed: Reverted, timed out, or no code at the address
        """
        deadline = time.monotonic() + timeout

        logger.info(f"Waiting for confirmation of {self.tx_hash}...")

        receipt = await self._wait_for_receipt(deadline, timeout, poll_interval)

        if receipt['status'] != 1:
            raise self._failed(
                f"Deployment of {self.contract_name} reverted (tx {self.tx_hash})",
                reason='reverted'
            )

        contract_address = receipt.get('contractAddress')
        if not contract_address:
            raise self._failed(
                f"Receipt for {self.tx_hash} has no contract address",
                reason='no contract address'
            )

        address = Web3.to_checksum_address(contract_address)
        block_number = receipt['blockNumber']

        if confirmations > 1:
            await self._wait_for_confirmations(block_number, confirmations, deadline, timeout, poll_interval)

        try:
            code = self.w3.eth.get_code(address)
        except RPC_ERRORS as e:
            raise self._failed(f"Could not read code at {address}: {e}", reason=str(e)) from e

        if not code:
            raise self._failed(
                f"No contract code at {address} after deployment",
                reason='no code'
            )

        logger.success(f"{self.contract_name} confirmed in block {block_number}")
        logger.debug(f"Gas used: {receipt['gasUsed']}")

        return DeployedContract(
            contract_name=self.contract_name,
            address=address,
            tx_hash=self.tx_hash,
            block_number=block_number,
            gas_used=receipt['gasUsed'],
            contract=self.w3.eth.contract(address=address, abi=self.abi)
        )

    async def _wait_for_receipt(self, deadline: float, timeout: float, poll_interval: float):
        while True:
            try:
                return self.w3.eth.get_transaction_receipt(self.tx_hash)
            except TransactionNotFound:
                pass
            except RPC_ERRORS as e:
                raise self._failed(
                    f"Error waiting for {self.tx_hash}: {e}",
                    reason=str(e)
                ) from e

            if time.monotonic() >= deadline:
                raise self._failed(
                    f"Transaction {self.tx_hash} not mined after {timeout} seconds",
                    reason='timeout'
                )

            await asyncio.sleep(poll_interval)

    async def _wait_for_confirmations(
        self,
        block_number: int,
        confirmations: int,
        deadline: float,
        timeout: float,
        poll_interval: float
    ):
        target = block_number + confirmations - 1

        while True:
            try:
                current = self.w3.eth.block_number
            except RPC_ERRORS as e:
                raise self._failed(f"Error reading block number: {e}", reason=str(e)) from e

            if current >= target:
                return

            if time.monotonic() >= deadline:
                raise self._failed(
                    f"Transaction {self.tx_hash} did not reach {confirmations} "
                    f"confirmations after {timeout} seconds",
                    reason='timeout'
                )

            logger.debug(f"Confirmations: {current - block_number + 1}/{confirmations}")
            await asyncio.sleep(poll_interval)

    def _failed(self, message: str, reason: str) -> DeploymentFailed:
        return DeploymentFailed(
            message,
            contract_name=self.contract_name,
            tx_hash=self.tx_hash,
            reason=reason
        )


class ContractFactory:
    """
    Deploys instances of one compiled contract
    """

    def __init__(
        self,
        w3: Web3,
        artifact: ContractArtifact,
        signer,
        gas_calculator,
        libraries: Optional[Dict[str, str]] = None
    ):
        """
        Initialize Contract Factory

        Args:
            w3: Web3 instance
            artifact: Compiled contract
            signer: Signer authorizing the creation transaction
            gas_calculator: GasCalculator for limit and fees
            libraries: Library addresses to link

        Raises:
            DeploymentFailed: Abstract contract or unlinked bytecode
        """
        self.w3 = w3
        self.artifact = artifact
        self.signer = signer
        self.gas_calculator = gas_calculator

        if artifact.is_abstract:
            raise DeploymentFailed(
                f"Contract {artifact.contract_name} is abstract and can't be deployed",
                contract_name=artifact.contract_name
            )

        self.bytecode = link_libraries(artifact, libraries)

        if '_' in self.bytecode:
            raise DeploymentFailed(
                f"Contract {artifact.contract_name} has unresolved library placeholders",
                contract_name=artifact.contract_name
            )

    @property
    def contract_name(self) -> str:
        return self.artifact.contract_name

    async def deploy(self, *constructor_args, value: int = 0) -> DeploymentHandle:
        """
        Submit a creation transaction

        Args:
            constructor_args: Constructor arguments
            value: Wei sent to a payable constructor

        Returns:
            DeploymentHandle for the submitted transaction
        """
        sender = self.signer.address
        Contract = self.w3.eth.contract(abi=self.artifact.abi, bytecode=self.bytecode)

        try:
            constructor = Contract.constructor(*constructor_args)
        except (Web3Exception, TypeError, ValueError) as e:
            raise DeploymentFailed(
                f"Invalid constructor arguments for {self.contract_name}: {e}",
                contract_name=self.contract_name,
                reason=str(e)
            ) from e

        logger.info(f"Building deployment transaction for {self.contract_name}...")

        try:
            nonce = self.w3.eth.get_transaction_count(sender, 'pending')
            chain_id = self.w3.eth.chain_id
            gas_limit = self.gas_calculator.estimate_deployment_gas(
                constructor, sender, self.contract_name, value=value
            )
            fee_params = self.gas_calculator.get_fee_params()

            tx_params = {
                'from': sender,
                'nonce': nonce,
                'chainId': chain_id,
                'gas': gas_limit,
                'value': value,
                **fee_params
            }
            transaction = constructor.build_transaction(tx_params)
            balance = self.signer.get_balance(self.w3)
        except DeploymentFailed:
            raise
        except RPC_ERRORS as e:
            raise DeploymentFailed(
                f"Error building deployment transaction for {self.contract_name}: {e}",
                contract_name=self.contract_name,
                reason=str(e)
            ) from e

        cost = self.gas_calculator.max_cost(transaction)

        logger.info(f"Gas limit: {transaction['gas']}")
        logger.info(f"Estimated max deployment cost: {Web3.from_wei(cost, 'ether')} ETH")

        if balance < cost:
            raise DeploymentFailed(
                f"Insufficient funds for deployment: balance {balance} wei, need {cost} wei",
                contract_name=self.contract_name,
                reason='insufficient funds'
            )

        logger.info("Sending deployment transaction...")

        try:
            tx_hash = self.signer.send_transaction(self.w3, transaction)
        except RPC_ERRORS as e:
            raise DeploymentFailed(
                f"Deployment transaction for {self.contract_name} rejected: {e}",
                contract_name=self.contract_name,
                reason=str(e)
            ) from e

        handle = DeploymentHandle(
            self.w3,
            self.contract_name,
            tx_hash,
            sender,
            nonce,
            self.artifact.abi
        )

        logger.info(f"Transaction sent: {handle.tx_hash}")
        return handle
