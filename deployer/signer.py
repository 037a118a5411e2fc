"""
Signer
Authorizes deployment transactions with a local key or a node account
"""

from typing import Dict, Optional
from web3 import Web3
from eth_account import Account
from loguru import logger


class Signer:
    """
    Deploying account

    - Private key: signs locally, sends raw transaction
    - No key: first unlocked account of the node (Hardhat / Anvil)
    """

    def __init__(self, w3: Web3, private_key: Optional[str] = None):
        """
        Initialize Signer

        Args:
            w3: Web3 instance
            private_key: Hex private key (None = node-managed account)
        """
        if private_key:
            try:
                self.account = Account.from_key(private_key)
            except Exception as e:
                raise ValueError(f"Invalid deployer private key: {e}") from e

            self.address = self.account.address
            logger.info(f"Deploying from: {self.address}")
        else:
            accounts = w3.eth.accounts

            if not accounts:
                raise ValueError(
                    "DEPLOYER_PRIVATE_KEY not set and node has no unlocked accounts"
                )

            self.account = None
            self.address = Web3.to_checksum_address(accounts[0])
            logger.info(f"Deploying from node account: {self.address}")

    @property
    def is_local(self) -> bool:
        return self.account is not None

    def sign_transaction(self, transaction: Dict):
        """Sign a transaction with the local key"""
        if not self.is_local:
            raise ValueError("Node-managed account cannot sign locally")

        try:
            return self.account.sign_transaction(transaction)
        except Exception as e:
            logger.error(f"Error signing transaction: {e}")
            raise

    def send_transaction(self, w3: Web3, transaction: Dict) -> bytes:
        """
        Sign (if local) and submit a transaction

        Args:
            w3: Web3 instance
            transaction: Transaction dict

        Returns:
            Transaction hash
        """
        if self.is_local:
            signed_tx = self.sign_transaction(transaction)
            return w3.eth.send_raw_transaction(signed_tx.raw_transaction)

        return w3.eth.send_transaction(transaction)

    def get_balance(self, w3: Web3) -> int:
        """Get deployer balance in wei"""
        return w3.eth.get_balance(self.address)
