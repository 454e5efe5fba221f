"""Error codes and exception types for the exchange actors.

Handlers raise these internally; each ``step()`` converts a raised
``ProtocolError`` into a rejected ``StepResult`` carrying ``code``.
``step_or_raise()`` lets callers that prefer exceptions see them directly.
"""

from __future__ import annotations

from enum import IntEnum, unique


@unique
class ErrorCode(IntEnum):
    # Validation failures: the message itself is garbage.
    MALFORMED_PAYLOAD = 100
    UNKNOWN_OPCODE = 101
    PROOF_MISMATCH = 102
    SENDER_MISMATCH = 103
    UNKNOWN_DESTINATION = 104
    VAULT_NOT_INITIALIZED = 105
    DEPOSITOR_MISMATCH = 106
    AMOUNT_MISMATCH = 107

    # Economic policy failures: well-formed, but the trade cannot execute.
    SLIPPAGE = 200
    INSUFFICIENT_RESERVES = 201
    ZERO_AMOUNT = 202
    INSUFFICIENT_LIQUIDITY = 203
    INSUFFICIENT_BALANCE = 204

    DOUBLE_RECEIPT = 300

    # Runtime failures raised by the ledger, not by an actor.
    ACCOUNT_NOT_FOUND = 400
    INVALID_INIT = 401

    @property
    def category(self) -> str:
        if self.value < 200:
            return "validation"
        if self.value < 300:
            return "economic"
        if self.value < 400:
            return "double_receipt"
        return "runtime"


class ProtocolError(Exception):
    """Base class for every rejection an actor can signal."""

    default_code = ErrorCode.MALFORMED_PAYLOAD

    def __init__(self, detail: str, code: ErrorCode | None = None) -> None:
        self.code = self.default_code if code is None else code
        self.detail = detail
        super().__init__(f"{self.code.name}: {detail}")


class ValidationError(ProtocolError):
    """Raised when a message is malformed, unauthenticated or misrouted."""


class PayloadError(ValidationError):
    """Raised when a forward payload cannot be decoded."""


class EconomicPolicyError(ProtocolError):
    """Raised when a well-formed request fails an economic guard."""

    default_code = ErrorCode.INSUFFICIENT_RESERVES


class SlippageError(EconomicPolicyError):
    """Raised when a swap would pay out less than the caller's minimum."""

    default_code = ErrorCode.SLIPPAGE

    def __init__(self, amount_out: int, min_amount_out: int) -> None:
        self.amount_out = amount_out
        self.min_amount_out = min_amount_out
        super().__init__("Amount out is less than minAmountOut")


class DoubleReceiptError(ProtocolError):
    """Raised when a coordinator receives the same side twice."""

    default_code = ErrorCode.DOUBLE_RECEIPT


class LedgerError(Exception):
    """Raised on misuse of the runtime itself (not a message rejection)."""
