"""
Gas Calculator
Gas limit and fee parameters for contract creation transactions
"""

from typing import Dict, Optional
from web3 import Web3
from web3.exceptions import ContractLogicError
from loguru import logger

from blockchain.errors import DeploymentFailed


class GasCalculator:
    """
    Calculates gas limit and fee parameters for deployments

    Uses EIP-1559 fees when the latest block has a base fee,
    legacy gasPrice otherwise.
    """

    def __init__(self, w3: Web3, config):
        """
        Initialize Gas Calculator

        Args:
            w3: Web3 instance
            config: DeployConfig
        """
        self.w3 = w3
        self.gas_buffer = config.gas_buffer
        self.default_gas_limit = config.default_gas_limit
        self.max_fee_gwei = config.max_fee_gwei

    def estimate_deployment_gas(
        self,
        constructor,
        sender: str,
        contract_name: Optional[str] = None,
        value: int = 0
    ) -> int:
        """
        Estimate gas for a constructor call with buffer

        Args:
            constructor: web3 ContractConstructor
            sender: Deploying address
            contract_name: Used in error messages
            value: Wei sent to a payable constructor

        Returns:
            Gas limit
        """
        try:
            gas_estimate = constructor.estimate_gas({'from': sender, 'value': value})
        except ContractLogicError as e:
            raise DeploymentFailed(
                f"Deployment of {contract_name} would revert: {e}",
                contract_name=contract_name,
                reason=str(e)
            ) from e
        except Exception as e:
            logger.warning(f"Gas estimation failed: {e}, using default {self.default_gas_limit}")
            return self.default_gas_limit

        gas_limit = int(gas_estimate * self.gas_buffer)

        logger.debug(f"Gas estimate: {gas_estimate} -> {gas_limit} (buffered)")
        return gas_limit

    def get_fee_params(self) -> Dict[str, int]:
        """
        Get fee fields for the transaction

        Returns:
            {'maxFeePerGas', 'maxPriorityFeePerGas'} or {'gasPrice'}
        """
        latest_block = self.w3.eth.get_block('latest')
        base_fee_wei = latest_block.get('baseFeePerGas')

        cap_wei = None
        if self.max_fee_gwei is not None:
            cap_wei = Web3.to_wei(self.max_fee_gwei, 'gwei')

        if base_fee_wei is None:
            gas_price = self.w3.eth.gas_price
            if cap_wei is not None:
                gas_price = min(gas_price, cap_wei)

            logger.debug(f"Gas price: {Web3.from_wei(gas_price, 'gwei')} gwei")
            return {'gasPrice': int(gas_price)}

        try:
            priority_fee_wei = self.w3.eth.max_priority_fee
        except Exception as e:
            logger.warning(f"eth_maxPriorityFeePerGas unavailable: {e}, using 1 gwei")
            priority_fee_wei = Web3.to_wei(1, 'gwei')

        # Room for two full base fee increases
        max_fee_wei = (base_fee_wei * 2) + priority_fee_wei

        if cap_wei is not None:
            max_fee_wei = min(max_fee_wei, cap_wei)
            priority_fee_wei = min(priority_fee_wei, max_fee_wei)

        logger.debug(
            f"EIP-1559 fees: max {Web3.from_wei(max_fee_wei, 'gwei')} gwei, "
            f"tip {Web3.from_wei(priority_fee_wei, 'gwei')} gwei"
        )

        return {
            'maxFeePerGas': int(max_fee_wei),
            'maxPriorityFeePerGas': int(priority_fee_wei)
        }

    @staticmethod
    def max_cost(tx: Dict) -> int:
        """Worst-case wei spent by a transaction"""
        fee_per_gas = tx.get('maxFeePerGas', tx.get('gasPrice', 0))
        return tx['gas'] * fee_per_gas + tx.get('value', 0)
