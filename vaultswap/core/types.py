"""Shared handler plumbing for the exchange actors.

Every actor handler has the shape ``step(state, ctx, message) -> StepResult``.
Handlers are pure: they never mutate ``state`` and describe every side effect
as an ``OutboundMessage``. The runtime commits ``StepResult.state`` and sends
``StepResult.outbound`` only when ``accepted`` is true.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Mapping, Optional, Tuple, Type

from ..state.addresses import Address, StateInit
from .errors import ErrorCode, ProtocolError, ValidationError
from .messages import Message


@dataclass(frozen=True)
class ProtocolConfig:
    """Pricing constants shared by every pool."""

    fee_numerator: int = 997
    fee_denominator: int = 1000
    minimum_liquidity: int = 10

    def __post_init__(self) -> None:
        for name in ("fee_numerator", "fee_denominator", "minimum_liquidity"):
            value = getattr(self, name)
            if not isinstance(value, int) or isinstance(value, bool):
                raise TypeError(f"{name} must be an int")
        if not (0 < self.fee_numerator < self.fee_denominator):
            raise ValueError("fee must satisfy 0 < fee_numerator < fee_denominator")
        if self.minimum_liquidity < 0:
            raise ValueError("minimum_liquidity must be non-negative")


DEFAULT_PROTOCOL_CONFIG = ProtocolConfig()


@dataclass(frozen=True)
class HandlerContext:
    self_address: Address
    sender: Address
    config: ProtocolConfig = DEFAULT_PROTOCOL_CONFIG


@dataclass(frozen=True)
class OutboundMessage:
    destination: Address
    body: Message
    bounce: bool = True
    init: Optional[StateInit] = None


@dataclass(frozen=True)
class StepResult:
    """Result of delivering one message to one actor."""

    accepted: bool
    state: Any = None
    outbound: Tuple[OutboundMessage, ...] = ()
    destroy: bool = False
    error: Optional[ProtocolError] = None
    detail: Optional[str] = None

    @property
    def rejection(self) -> Optional[ErrorCode]:
        return None if self.error is None else self.error.code


def accept(state: Any, *outbound: OutboundMessage, destroy: bool = False, detail: Optional[str] = None) -> StepResult:
    return StepResult(accepted=True, state=state, outbound=tuple(outbound), destroy=destroy, detail=detail)


def reject(error: ProtocolError) -> StepResult:
    return StepResult(accepted=False, error=error, detail=error.detail)


Handler = Callable[[Any, HandlerContext, Any], StepResult]


def dispatch(
    handlers: Mapping[Type[Message], Handler],
    state: Any,
    ctx: HandlerContext,
    message: Message,
) -> StepResult:
    """Route ``message`` by type; turn any ``ProtocolError`` into a rejection."""
    handler = handlers.get(type(message))
    if handler is None:
        opcode = getattr(message, "opcode", None)
        return reject(
            ValidationError(f"unexpected message {type(message).__name__} (opcode {opcode!r})", ErrorCode.UNKNOWN_OPCODE)
        )
    try:
        return handler(state, ctx, message)
    except ProtocolError as exc:
        return reject(exc)


def raise_on_reject(result: StepResult) -> StepResult:
    if not result.accepted:
        assert result.error is not None
        raise result.error
    return result
