"""
In-memory actor runtime.

The ledger owns every account (``address -> (code, state)``) and delivers
queued messages one at a time. Each delivery is atomic: the actor's handler
is pure, so the ledger either commits the returned state and enqueues the
returned messages, or commits nothing and, for a bounceable message, sends a
``Bounced`` copy back to the source. Only the ledger creates ``Bounced``
messages; ``enqueue`` and ``send`` refuse one from a caller.

Delivery order:
- Messages between the same (source, destination) pair are delivered in
  send order.
- ``fifo`` delivers everything in global send order.
- ``shuffle`` picks a random non-empty channel each time (seeded), which
  models arbitrary interleaving of independent causal chains.
"""

from __future__ import annotations

import random
from collections import deque
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Deque, Dict, Iterator, List, Mapping, Optional, Tuple

import structlog

from ..core.errors import ErrorCode, LedgerError
from ..core.messages import Bounced, Message
from ..core.types import HandlerContext
from ..state.addresses import Address, StateInit
from ..state.state_root import compute_state_root
from .config import ExchangeConfig
from .contracts import contract_for, treasury_state_init


logger = structlog.get_logger()


@dataclass(frozen=True)
class Account:
    code: bytes
    state: Any


@dataclass(frozen=True)
class Envelope:
    seq: int
    source: Address
    destination: Address
    body: Message
    bounce: bool = True
    init: Optional[StateInit] = None


@dataclass(frozen=True)
class Transaction:
    """Outcome of delivering one envelope."""

    seq: int
    source: Address
    destination: Address
    body: Message
    success: bool
    exit_code: Optional[ErrorCode] = None
    deployed: bool = False
    destroyed: bool = False
    detail: Optional[str] = None

    @property
    def opcode(self) -> int:
        return int(self.body.opcode)

    @property
    def bounced(self) -> bool:
        return isinstance(self.body, Bounced)

    def matches(self, **criteria: Any) -> bool:
        """
        True if every criterion holds.

        Keys are attribute names (``source``, ``destination``, ``opcode``,
        ``success``, ``exit_code``, ``deployed``, ``destroyed``, ``bounced``)
        plus ``body_type``, matched with isinstance.
        """
        for key, expected in criteria.items():
            if key == "body_type":
                if not isinstance(self.body, expected):
                    return False
                continue
            if not hasattr(self, key):
                raise TypeError(f"unknown transaction criterion: {key!r}")
            if getattr(self, key) != expected:
                return False
        return True


@dataclass(frozen=True)
class Trace:
    transactions: Tuple[Transaction, ...] = ()

    def __iter__(self) -> Iterator[Transaction]:
        return iter(self.transactions)

    def __len__(self) -> int:
        return len(self.transactions)

    def __getitem__(self, index: int) -> Transaction:
        return self.transactions[index]

    def find(self, **criteria: Any) -> List[Transaction]:
        return [tx for tx in self.transactions if tx.matches(**criteria)]

    def has_transaction(self, **criteria: Any) -> bool:
        return any(tx.matches(**criteria) for tx in self.transactions)

    @property
    def failed(self) -> List[Transaction]:
        return [tx for tx in self.transactions if not tx.success]

    def __add__(self, other: "Trace") -> "Trace":
        return Trace(self.transactions + other.transactions)


@dataclass(frozen=True)
class LedgerSnapshot:
    accounts: Mapping[Address, Account]
    seq: int
    rng_state: Any


class Ledger:
    def __init__(self, config: Optional[ExchangeConfig] = None) -> None:
        self.config = config or ExchangeConfig()
        self._accounts: Dict[Address, Account] = {}
        self._channels: Dict[Tuple[Address, Address], Deque[Envelope]] = {}
        self._seq = 0
        self._rng = random.Random(self.config.seed)

    # Accounts

    @property
    def accounts(self) -> Mapping[Address, Account]:
        return MappingProxyType(self._accounts)

    def is_deployed(self, address: Address) -> bool:
        return address in self._accounts

    def state_of(self, address: Address) -> Any:
        account = self._accounts.get(address)
        if account is None:
            raise LedgerError(f"no account at {address}")
        return account.state

    def deploy(self, init: StateInit) -> Address:
        """Create the account for ``init`` directly (no message); idempotent."""
        address = init.address
        if address in self._accounts:
            return address
        contract = contract_for(init.code)
        self._accounts[address] = Account(code=init.code, state=contract.from_init(init.data))
        logger.debug("account_deployed", address=address.short(), contract=contract.name)
        return address

    def treasury(self, name: str) -> Address:
        return self.deploy(treasury_state_init(name))

    def get(self, address: Address, getter: str, *args: Any) -> Any:
        account = self._accounts.get(address)
        if account is None:
            raise LedgerError(f"no account at {address}")
        contract = contract_for(account.code)
        fn = contract.getters.get(getter)
        if fn is None:
            raise LedgerError(f"{contract.name} has no getter {getter!r}")
        ctx = HandlerContext(self_address=address, sender=address, config=self.config.protocol)
        return fn(account.state, ctx, *args)

    # Messages

    @property
    def pending(self) -> int:
        return sum(len(q) for q in self._channels.values())

    def enqueue(
        self,
        source: Address,
        destination: Address,
        body: Message,
        *,
        bounce: bool = True,
        init: Optional[StateInit] = None,
    ) -> None:
        if isinstance(body, Bounced):
            raise LedgerError("bounced messages are created by the runtime only")
        self._push(source, destination, body, bounce=bounce, init=init)

    def _push(
        self,
        source: Address,
        destination: Address,
        body: Message,
        *,
        bounce: bool,
        init: Optional[StateInit] = None,
    ) -> None:
        self._seq += 1
        envelope = Envelope(
            seq=self._seq,
            source=source,
            destination=destination,
            body=body,
            bounce=bounce,
            init=init,
        )
        self._channels.setdefault((source, destination), deque()).append(envelope)

    def send(
        self,
        source: Address,
        destination: Address,
        body: Message,
        *,
        bounce: bool = True,
        init: Optional[StateInit] = None,
    ) -> Trace:
        """Enqueue one external message and run until the ledger is quiet."""
        self.enqueue(source, destination, body, bounce=bounce, init=init)
        return self.run()

    def run(self) -> Trace:
        transactions: List[Transaction] = []
        while self._channels:
            if len(transactions) >= self.config.max_messages_per_run:
                raise LedgerError(f"run exceeded {self.config.max_messages_per_run} messages")
            transactions.append(self._deliver(self._next_envelope()))
        return Trace(tuple(transactions))

    def _next_envelope(self) -> Envelope:
        if self.config.delivery == "shuffle":
            key = self._rng.choice(list(self._channels))
        else:
            key = min(self._channels, key=lambda k: self._channels[k][0].seq)
        channel = self._channels[key]
        envelope = channel.popleft()
        if not channel:
            del self._channels[key]
        return envelope

    def _deliver(self, env: Envelope) -> Transaction:
        account = self._accounts.get(env.destination)
        deployed = False
        if account is None:
            if env.init is None:
                return self._fail(env, ErrorCode.ACCOUNT_NOT_FOUND, "destination is not deployed")
            try:
                account = self._account_from_init(env.init, env.destination)
            except (KeyError, ValueError, TypeError) as exc:
                return self._fail(env, ErrorCode.INVALID_INIT, str(exc))
            deployed = True

        contract = contract_for(account.code)
        ctx = HandlerContext(self_address=env.destination, sender=env.source, config=self.config.protocol)
        result = contract.step(account.state, ctx, env.body)
        if not result.accepted:
            assert result.rejection is not None
            return self._fail(env, result.rejection, result.detail)

        if result.destroy:
            self._accounts.pop(env.destination, None)
            logger.debug("account_destroyed", address=env.destination.short(), contract=contract.name)
        else:
            self._accounts[env.destination] = Account(code=account.code, state=result.state)
        if deployed:
            logger.debug("account_deployed", address=env.destination.short(), contract=contract.name)
        for out in result.outbound:
            self.enqueue(env.destination, out.destination, out.body, bounce=out.bounce, init=out.init)

        logger.debug(
            "message_delivered",
            seq=env.seq,
            message=type(env.body).__name__,
            source=env.source.short(),
            destination=env.destination.short(),
            contract=contract.name,
            outbound=len(result.outbound),
            detail=result.detail,
        )
        return Transaction(
            seq=env.seq,
            source=env.source,
            destination=env.destination,
            body=env.body,
            success=True,
            deployed=deployed,
            destroyed=result.destroy,
            detail=result.detail,
        )

    def _account_from_init(self, init: StateInit, destination: Address) -> Account:
        if init.address != destination:
            raise ValueError("state init does not hash to the destination address")
        contract = contract_for(init.code)
        return Account(code=init.code, state=contract.from_init(init.data))

    def _fail(self, env: Envelope, code: ErrorCode, detail: Optional[str]) -> Transaction:
        will_bounce = env.bounce and not isinstance(env.body, Bounced)
        if isinstance(env.body, Bounced) and code == ErrorCode.ACCOUNT_NOT_FOUND:
            logger.warning(
                "bounce_dropped",
                seq=env.seq,
                original=type(env.body.original).__name__,
                destination=env.destination.short(),
            )
        else:
            logger.info(
                "message_rejected",
                seq=env.seq,
                message=type(env.body).__name__,
                source=env.source.short(),
                destination=env.destination.short(),
                exit_code=code.name,
                detail=detail,
                bounce=will_bounce,
            )
        if will_bounce:
            self._push(env.destination, env.source, Bounced(original=env.body), bounce=False)
        return Transaction(
            seq=env.seq,
            source=env.source,
            destination=env.destination,
            body=env.body,
            success=False,
            exit_code=code,
            detail=detail,
        )

    # Whole-ledger views

    def snapshot(self) -> LedgerSnapshot:
        if self._channels:
            raise LedgerError("cannot snapshot with undelivered messages")
        return LedgerSnapshot(accounts=dict(self._accounts), seq=self._seq, rng_state=self._rng.getstate())

    def restore(self, snapshot: LedgerSnapshot) -> None:
        self._accounts = dict(snapshot.accounts)
        self._channels = {}
        self._seq = snapshot.seq
        self._rng.setstate(snapshot.rng_state)

    def state_root(self) -> str:
        return compute_state_root(
            {
                address: (account.code, contract_for(account.code).to_dict(account.state))
                for address, account in self._accounts.items()
            }
        )
