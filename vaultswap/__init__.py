"""
vaultswap: a two-asset automated market maker built from message-passing actors.
"""

__version__ = "0.1.0"
