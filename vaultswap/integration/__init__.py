"""
Actor runtime, token collaborator, configuration and logging
"""

from .config import ExchangeConfig, config_from_mapping, load_config
from .contracts import CONTRACTS, Contract, contract_for, treasury_state_init
from .ledger import Ledger, LedgerSnapshot, Trace, Transaction
from .log import configure_logging

__all__ = [
    "ExchangeConfig",
    "config_from_mapping",
    "load_config",
    "CONTRACTS",
    "Contract",
    "contract_for",
    "treasury_state_init",
    "Ledger",
    "LedgerSnapshot",
    "Trace",
    "Transaction",
    "configure_logging",
]
