"""
Exchange actors: pure message handlers and pricing math
"""

from .cpmm import burn_liquidity, expected_out, mint_liquidity, swap_exact_in
from .errors import (
    DoubleReceiptError,
    EconomicPolicyError,
    ErrorCode,
    LedgerError,
    PayloadError,
    ProtocolError,
    SlippageError,
    ValidationError,
)
from .messages import Opcode
from .types import HandlerContext, OutboundMessage, ProtocolConfig, StepResult
from .deposit import step as deposit_step
from .pool import step as pool_step
from .vault import step as vault_step

__all__ = [
    "burn_liquidity",
    "expected_out",
    "mint_liquidity",
    "swap_exact_in",
    "DoubleReceiptError",
    "EconomicPolicyError",
    "ErrorCode",
    "LedgerError",
    "PayloadError",
    "ProtocolError",
    "SlippageError",
    "ValidationError",
    "Opcode",
    "HandlerContext",
    "OutboundMessage",
    "ProtocolConfig",
    "StepResult",
    "deposit_step",
    "pool_step",
    "vault_step",
]
