"""
Utilities Package
Network connection and gas policy
"""

from .gas_calculator import GasCalculator
from .rpc_manager import RPCManager

__all__ = [
    'GasCalculator',
    'RPCManager'
]
