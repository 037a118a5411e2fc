"""
RPC Manager
Connects to the deployment network with ordered endpoint fallback
"""

from typing import List, Optional
from web3 import Web3
from web3.middleware import ExtraDataToPOAMiddleware
from loguru import logger

from blockchain.errors import DeploymentFailed


class RPCManager:
    """
    Endpoint fallback for a single deployment

    Endpoints are tried in configured order; the first one that
    answers is used for the whole run.
    """

    def __init__(
        self,
        rpc_urls: List[str],
        chain_id: Optional[int] = None,
        poa: bool = False
    ):
        """
        Initialize RPC Manager

        Args:
            rpc_urls: Endpoints in priority order
            chain_id: Expected chain id (None = accept any)
            poa: Inject extraData middleware for POA chains
        """
        if not rpc_urls:
            raise ValueError("At least one RPC URL is required")

        self.rpc_urls = rpc_urls
        self.chain_id = chain_id
        self.poa = poa
        self.w3 = None
        self.connected_url = None

    def _create_web3(self, url: str) -> Web3:
        if url.endswith('.ipc'):
            provider = Web3.IPCProvider(url)
        else:
            provider = Web3.HTTPProvider(url)

        w3 = Web3(provider)

        if self.poa:
            w3.middleware_onion.inject(ExtraDataToPOAMiddleware, layer=0)

        return w3

    def connect(self) -> Web3:
        """
        Get a connected Web3 instance

        Returns:
            Web3 instance

        Raises:
            DeploymentFailed: No endpoint reachable or wrong chain
        """
        if self.w3 is not None:
            return self.w3

        for url in self.rpc_urls:
            try:
                w3 = self._create_web3(url)

                if not w3.is_connected():
                    logger.warning(f"Failed to connect to {url}")
                    continue

                self._check_chain_id(w3, url)

            except DeploymentFailed:
                raise
            except Exception as e:
                logger.warning(f"Error connecting to {url}: {e}")
                continue

            self.w3 = w3
            self.connected_url = url
            logger.success(f"Connected to {url}")
            return w3

        raise DeploymentFailed(f"Failed to connect to network ({len(self.rpc_urls)} endpoints tried)")

    def _check_chain_id(self, w3: Web3, url: str):
        if self.chain_id is None:
            return

        actual = w3.eth.chain_id
        if actual != self.chain_id:
            raise DeploymentFailed(
                f"Endpoint {url} is on chain {actual}, expected {self.chain_id}"
            )
