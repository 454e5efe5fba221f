"""
Client-side agents for the vault exchange
"""

from .client import FORWARD_VALUE, ExchangeClient

__all__ = [
    "FORWARD_VALUE",
    "ExchangeClient",
]
