"""
Shared test fixtures: artifact trees and mock Web3 network
"""

import json
import pytest
from unittest.mock import MagicMock, Mock

from deployer.config import DeployConfig


DEPLOYER_ADDRESS = '0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266'
FIRST_CONTRACT = '0x5fbdb2315678afecb367f032d93f642f64180aa3'
SECOND_CONTRACT = '0xe7f1725e7734ce288f8367e1bb143e90bb3f0512'

TRUSTX_ABI = [
    {
        "inputs": [],
        "stateMutability": "nonpayable",
        "type": "constructor"
    },
    {
        "inputs": [],
        "name": "owner",
        "outputs": [{"name": "", "type": "address"}],
        "stateMutability": "view",
        "type": "function"
    }
]


def write_artifact(root, source_name, contract_name, bytecode='0x6080604052', abi=None, **extra):
    """Write a Hardhat-style artifact under root and return its path"""
    directory = root.joinpath(*source_name.split('/'))
    directory.mkdir(parents=True, exist_ok=True)

    artifact = {
        "_format": "hh-sol-artifact-1",
        "contractName": contract_name,
        "sourceName": source_name,
        "abi": TRUSTX_ABI if abi is None else abi,
        "bytecode": bytecode,
        "deployedBytecode": bytecode,
        "linkReferences": {},
        "deployedLinkReferences": {}
    }
    artifact.update(extra)

    path = directory / f"{contract_name}.json"
    path.write_text(json.dumps(artifact))
    return path


def make_receipt(address=FIRST_CONTRACT, status=1, block_number=1):
    return {
        'status': status,
        'contractAddress': address,
        'blockNumber': block_number,
        'gasUsed': 120000,
        'transactionHash': b'\x11' * 32
    }


@pytest.fixture
def artifacts_dir(tmp_path):
    """Build output containing TrustX"""
    root = tmp_path / "artifacts"
    write_artifact(root, "contracts/TrustX.sol", "TrustX")
    return root


@pytest.fixture
def config(artifacts_dir):
    """Config with fast polling"""
    return DeployConfig(
        artifacts_dir=str(artifacts_dir),
        confirmation_timeout=1,
        poll_interval=0.01
    )


@pytest.fixture
def constructor():
    """web3 ContractConstructor double"""
    constructor = MagicMock()
    constructor.estimate_gas.return_value = 100000
    constructor.build_transaction.side_effect = lambda params: {**params, 'data': '0x6080604052'}
    return constructor


@pytest.fixture
def w3(constructor):
    """Network that confirms every creation transaction"""
    w3 = MagicMock()
    w3.eth.chain_id = 31337
    w3.eth.get_transaction_count.return_value = 0
    w3.eth.get_block.return_value = {'baseFeePerGas': 10**9}
    w3.eth.max_priority_fee = 10**9
    w3.eth.get_balance.return_value = 10**20
    w3.eth.get_code.return_value = b'\x60\x80\x60\x40'
    w3.eth.get_transaction_receipt.return_value = make_receipt()
    w3.eth.contract.return_value.constructor.return_value = constructor
    return w3


@pytest.fixture
def signer(w3):
    """Signer double that submits through the mock network"""
    signer = Mock()
    signer.address = DEPLOYER_ADDRESS
    signer.send_transaction.return_value = b'\xab' * 32
    signer.get_balance.side_effect = lambda _w3: _w3.eth.get_balance(DEPLOYER_ADDRESS)
    return signer
