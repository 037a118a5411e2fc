"""
Deployment Configuration
Network endpoint, signer credentials and confirmation policy
"""

import os
import json
from typing import Dict, List, Optional
from loguru import logger
from dotenv import load_dotenv

DEFAULT_CONFIG_PATH = "config/deploy_config.json"


class DeployConfig:
    """
    Explicit settings for one deployment run

    Values come from the JSON config file, then environment
    variables (.env included) override them.
    """

    def __init__(
        self,
        contract_name: str = "TrustX",
        rpc_url: str = "http://127.0.0.1:8545",
        fallback_rpc_urls: Optional[List[str]] = None,
        private_key: Optional[str] = None,
        artifacts_dir: str = "artifacts",
        chain_id: Optional[int] = None,
        poa: bool = False,
        confirmation_timeout: float = 120,
        poll_interval: float = 1.0,
        confirmations: int = 1,
        gas_buffer: float = 1.2,
        default_gas_limit: int = 3000000,
        max_fee_gwei: Optional[float] = None,
        constructor_args: Optional[List] = None,
        libraries: Optional[Dict[str, str]] = None
    ):
        if confirmation_timeout <= 0:
            raise ValueError("confirmation_timeout must be positive")
        if poll_interval <= 0:
            raise ValueError("poll_interval must be positive")
        if confirmations < 1:
            raise ValueError("confirmations must be at least 1")
        if gas_buffer < 1:
            raise ValueError("gas_buffer must be >= 1")

        self.contract_name = contract_name
        self.rpc_url = rpc_url
        self.fallback_rpc_urls = fallback_rpc_urls or []
        self.private_key = private_key
        self.artifacts_dir = artifacts_dir
        self.chain_id = chain_id
        self.poa = poa
        self.confirmation_timeout = confirmation_timeout
        self.poll_interval = poll_interval
        self.confirmations = confirmations
        self.gas_buffer = gas_buffer
        self.default_gas_limit = default_gas_limit
        self.max_fee_gwei = max_fee_gwei
        self.constructor_args = constructor_args or []
        self.libraries = libraries or {}

    @property
    def rpc_urls(self) -> List[str]:
        """Primary endpoint followed by fallbacks"""
        return [self.rpc_url] + [url for url in self.fallback_rpc_urls if url != self.rpc_url]

    @classmethod
    def load(cls, config_path: Optional[str] = None) -> 'DeployConfig':
        """
        Build config from JSON file and environment

        Args:
            config_path: JSON config file (DEPLOY_CONFIG_PATH or default if None)

        Returns:
            DeployConfig
        """
        load_dotenv()

        config_path = config_path or os.getenv('DEPLOY_CONFIG_PATH', DEFAULT_CONFIG_PATH)
        settings = {}

        if os.path.exists(config_path):
            with open(config_path, 'r') as f:
                settings = json.load(f)
            logger.debug(f"Loaded config from {config_path}")

        # Keys are never read from the config file
        settings.pop('private_key', None)

        env_overrides = {
            'contract_name': os.getenv('CONTRACT_NAME'),
            'rpc_url': os.getenv('DEPLOY_RPC_URL'),
            'fallback_rpc_urls': _parse_list(os.getenv('DEPLOY_FALLBACK_RPC_URLS')),
            'private_key': os.getenv('DEPLOYER_PRIVATE_KEY') or None,
            'artifacts_dir': os.getenv('ARTIFACTS_DIR'),
            'chain_id': _parse_number(os.getenv('DEPLOY_CHAIN_ID'), int, 'DEPLOY_CHAIN_ID'),
            'poa': _parse_bool(os.getenv('DEPLOY_POA')),
            'confirmation_timeout': _parse_number(os.getenv('DEPLOY_TIMEOUT'), float, 'DEPLOY_TIMEOUT'),
            'confirmations': _parse_number(os.getenv('DEPLOY_CONFIRMATIONS'), int, 'DEPLOY_CONFIRMATIONS'),
            'max_fee_gwei': _parse_number(os.getenv('DEPLOY_MAX_FEE_GWEI'), float, 'DEPLOY_MAX_FEE_GWEI'),
        }

        for key, value in env_overrides.items():
            if value is not None:
                settings[key] = value

        try:
            return cls(**settings)
        except TypeError as e:
            raise ValueError(f"Invalid deployment config in {config_path}: {e}") from e

    def __repr__(self):
        signer = 'private key' if self.private_key else 'node account'
        return (
            f"DeployConfig(contract={self.contract_name!r}, rpc={self.rpc_url!r}, "
            f"signer={signer}, timeout={self.confirmation_timeout}s)"
        )


def _parse_list(value: Optional[str]) -> Optional[List[str]]:
    if not value:
        return None
    return [item.strip() for item in value.split(',') if item.strip()]


def _parse_bool(value: Optional[str]) -> Optional[bool]:
    if value is None or value == '':
        return None
    return value.strip().lower() in ('1', 'true', 'yes', 'on')


def _parse_number(value: Optional[str], kind, name: str):
    if value is None or value == '':
        return None
    try:
        return kind(value)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {value!r}")
