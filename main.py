"""
Contract Deployer - Main Entry Point
Deploys the configured contract and reports its address
"""

import os
import sys
import asyncio
from typing import Optional
from loguru import logger
from dotenv import load_dotenv

from blockchain.errors import DeployError
from deployer.config import DeployConfig
from deployer.deployer import Deployer
from deployer.signer import Signer
from utils.rpc_manager import RPCManager


def configure_logging(level: str = "INFO", log_file: Optional[str] = None):
    """Configure loguru sinks (stderr + optional rotated file)"""
    logger.remove()
    logger.add(
        sys.stderr,
        format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan> - <level>{message}</level>",
        level=level
    )

    if log_file:
        logger.add(
            log_file,
            rotation="1 day",
            retention="7 days",
            format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function} - {message}",
            level="DEBUG"
        )


async def run(config: Optional[DeployConfig] = None) -> int:
    """
    Run one deployment

    Args:
        config: DeployConfig (loaded from file + environment if None)

    Returns:
        Process exit code
    """
    try:
        if config is None:
            config = DeployConfig.load()

        logger.info(f"Deploying {config.contract_name} with {config!r}")

        w3 = RPCManager(config.rpc_urls, chain_id=config.chain_id, poa=config.poa).connect()
        signer = Signer(w3, config.private_key)
        deployer = Deployer(w3, signer, config)

        address = await deployer.deploy(config.contract_name, *config.constructor_args)

    except DeployError as e:
        logger.error(f"{type(e).__name__}: {e}")
        return 1
    except Exception as e:
        logger.opt(exception=e).error(f"Fatal error: {e}")
        return 1

    print(f"{config.contract_name} deployed to: {address}")
    return 0


def cli():
    """Console entry point"""
    load_dotenv()

    log_level = os.getenv('LOG_LEVEL', 'INFO')
    log_file = os.getenv('DEPLOY_LOG_FILE', 'data/logs/deploy.log')

    configure_logging(level=log_level, log_file=log_file or None)

    try:
        exit_code = asyncio.run(run())
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        exit_code = 1

    sys.exit(exit_code)


if __name__ == "__main__":
    cli()
