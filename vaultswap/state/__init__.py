"""
State records and canonical encodings for the vault exchange
"""

from .addresses import Address, SortedPair, StateInit, sort_addresses
from .deposits import DepositState, deposit_state_init
from .holders import HolderState, MinterState, holder_address, minter_state_init
from .pools import PoolState, pool_address, pool_state_init
from .state_root import compute_state_root
from .vaults import VaultState, vault_address, vault_state_init

__all__ = [
    "Address",
    "SortedPair",
    "StateInit",
    "sort_addresses",
    "DepositState",
    "deposit_state_init",
    "HolderState",
    "MinterState",
    "holder_address",
    "minter_state_init",
    "PoolState",
    "pool_address",
    "pool_state_init",
    "compute_state_root",
    "VaultState",
    "vault_address",
    "vault_state_init",
]
