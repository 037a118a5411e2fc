"""
Tests for the command-line shell (stdout line, stderr errors, exit codes)
"""

import sys
import pytest
from unittest.mock import patch
from loguru import logger
from web3 import Web3

import main
from blockchain.errors import DeploymentFailed

from conftest import FIRST_CONTRACT


@pytest.fixture
def capture_logs(capsys):
    """Route loguru to the captured stderr"""
    main.configure_logging(level="DEBUG")
    yield capsys
    logger.remove()
    logger.add(sys.__stderr__)


@pytest.fixture
def network(w3, signer):
    """Patch connection and signer construction in the shell"""
    with patch('main.RPCManager') as rpc_manager, patch('main.Signer', return_value=signer):
        rpc_manager.return_value.connect.return_value = w3
        yield rpc_manager


class TestRun:

    @pytest.mark.asyncio
    async def test_success(self, config, network, capture_logs):
        exit_code = await main.run(config)

        captured = capture_logs.readouterr()
        address = Web3.to_checksum_address(FIRST_CONTRACT)

        assert exit_code == 0
        assert captured.out == f"TrustX deployed to: {address}\n"

    @pytest.mark.asyncio
    async def test_connects_with_config(self, config, network):
        config.chain_id = 31337

        await main.run(config)

        network.assert_called_once_with(config.rpc_urls, chain_id=31337, poa=False)

    @pytest.mark.asyncio
    async def test_missing_artifact(self, config, network, capture_logs):
        config.contract_name = "Missing"

        exit_code = await main.run(config)

        captured = capture_logs.readouterr()
        assert exit_code == 1
        assert "deployed to" not in captured.out
        assert "ArtifactNotFound" in captured.err

    @pytest.mark.asyncio
    async def test_reverted_logs_no_address(self, config, network, w3, capture_logs):
        w3.eth.get_transaction_receipt.return_value = {
            'status': 0,
            'contractAddress': FIRST_CONTRACT,
            'blockNumber': 1,
            'gasUsed': 120000
        }

        exit_code = await main.run(config)

        captured = capture_logs.readouterr()
        assert exit_code == 1
        assert captured.out == ""
        assert "DeploymentFailed" in captured.err
        assert Web3.to_checksum_address(FIRST_CONTRACT) not in captured.err

    @pytest.mark.asyncio
    async def test_network_timeout(self, config, network, w3, capture_logs):
        w3.eth.get_transaction_receipt.side_effect = TimeoutError("request timed out")

        exit_code = await main.run(config)

        captured = capture_logs.readouterr()
        assert exit_code == 1
        assert "request timed out" in captured.err

    @pytest.mark.asyncio
    async def test_connection_failure(self, config, network, capture_logs):
        network.return_value.connect.side_effect = DeploymentFailed("Failed to connect to network")

        exit_code = await main.run(config)

        assert exit_code == 1
        assert "Failed to connect" in capture_logs.readouterr().err

    @pytest.mark.asyncio
    async def test_unexpected_error(self, config, capture_logs):
        with patch('main.RPCManager', side_effect=RuntimeError("boom")):
            exit_code = await main.run(config)

        assert exit_code == 1
        assert "boom" in capture_logs.readouterr().err


def test_cli_exit_code(monkeypatch):
    monkeypatch.setenv('DEPLOY_LOG_FILE', '')

    async def fake_run():
        return 1

    with patch('main.run', fake_run), patch('main.configure_logging') as configure:
        with pytest.raises(SystemExit) as exc_info:
            main.cli()

    assert exc_info.value.code == 1
    assert configure.call_args.kwargs['log_file'] is None
