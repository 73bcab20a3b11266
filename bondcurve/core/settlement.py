"""
Settlement guard: mint/burn orchestration over the bonding curve.

Each mutating operation runs one pass of a small state machine:

    IDLE -> COMPUTING -> VALIDATING -> MUTATING -> TRANSFERRING -> COMMITTED

or ABORTED from any intermediate phase.

Ordering is checks-effects-interactions:
1. every monetary delta is computed and validated against a single supply
   snapshot,
2. ledger supply and balances are committed,
3. payment rail transfers run last; an overpayment refund is the very last
   transfer of a mint.

A failure before MUTATING leaves no trace. A failure while MUTATING or
TRANSFERRING undoes exactly the effects applied so far, newest first
(ledger writes and any collect) before re-raising, so every
operation is all-or-nothing from the caller's point of view.

The whole sequence runs under a non-reentrant lock: a callback triggered by a
rail transfer that tries to mint/burn again gets `ReentrantCallError`, and
other threads block until the in-flight operation finishes. Read-only quotes
never take the lock; each reads the supply exactly once.
"""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from dataclasses import dataclass
from enum import Enum, unique
from typing import Any, Callable, Iterator, List, Literal, Mapping, Optional, Union

from ..state.ledger import Account, Ledger
from ..state.payment_rail import PaymentRail
from .curve import CurveParameters, price_at
from .errors import (
    BondingCurveError,
    InsufficientBalanceError,
    InsufficientPaymentError,
    InsufficientReserveError,
    InvalidAmountError,
    ReentrantCallError,
    SlippageExceededError,
)
from .fixed_point import require_uint256
from .integrator import calculate_cost, calculate_refund
from .inverse import calculate_tokens_for_payment


logger = logging.getLogger(__name__)


@unique
class Phase(Enum):
    IDLE = "idle"
    COMPUTING = "computing"
    VALIDATING = "validating"
    MUTATING = "mutating"
    TRANSFERRING = "transferring"
    COMMITTED = "committed"
    ABORTED = "aborted"


@dataclass(frozen=True)
class MintReceipt:
    account: Account
    amount: int
    cost: int
    excess_refunded: int
    supply_after: int


@dataclass(frozen=True)
class BurnReceipt:
    account: Account
    amount: int
    refund: int
    supply_after: int


Receipt = Union[MintReceipt, BurnReceipt]


@dataclass(frozen=True)
class SettlementCommand:
    tag: Literal["mint", "burn", "mint_with_payment"]
    account: Account
    args: Mapping[str, Any]


@dataclass(frozen=True)
class SettlementResult:
    ok: bool
    receipt: Optional[Receipt] = None
    error: Optional[str] = None
    code: Optional[str] = None


def _require_positive(name: str, value: int) -> int:
    value = require_uint256(name, value)
    if value == 0:
        raise InvalidAmountError(f"{name} must be positive")
    return value


def _unwind(undo: List[Callable[[], None]]) -> None:
    """Run compensating actions for the effects applied so far, newest first."""
    for action in reversed(undo):
        action()


class SettlementGuard:
    """Engine instance owning immutable curve parameters and collaborator handles."""

    def __init__(
        self,
        params: CurveParameters,
        ledger: Ledger,
        rail: PaymentRail,
        *,
        max_supply: Optional[int] = None,
    ) -> None:
        if max_supply is not None:
            require_uint256("max_supply", max_supply)
        self._params = params
        self._ledger = ledger
        self._rail = rail
        self._max_supply = max_supply
        self._lock = threading.Lock()
        self._owner: Optional[int] = None
        self.last_phase = Phase.IDLE

    @property
    def params(self) -> CurveParameters:
        return self._params

    @property
    def ledger(self) -> Ledger:
        return self._ledger

    @property
    def rail(self) -> PaymentRail:
        return self._rail

    # -- Read-only quotes -----------------------------------------------------

    def get_current_price(self) -> int:
        return price_at(self._params, self._ledger.get_supply())

    def calculate_cost(self, amount: int) -> int:
        return calculate_cost(self._params, amount, self._ledger.get_supply())

    def calculate_refund(self, amount: int) -> int:
        return calculate_refund(self._params, amount, self._ledger.get_supply())

    def calculate_tokens_for_payment(self, payment: int) -> int:
        return calculate_tokens_for_payment(self._params, payment, self._ledger.get_supply())

    def quote_rate_for_one(self, payment: Optional[int] = None) -> int:
        """Tokens purchasable for one whole unit of payment (or *payment*)."""
        return self.calculate_tokens_for_payment(self._params.scale if payment is None else payment)

    # -- Mutual exclusion -----------------------------------------------------

    @contextmanager
    def _nonreentrant(self) -> Iterator[None]:
        me = threading.get_ident()
        if self._owner == me:
            raise ReentrantCallError("mutating call re-entered while another is in flight")
        with self._lock:
            self._owner = me
            try:
                yield
            finally:
                self._owner = None

    def _enter(self, phase: Phase) -> None:
        self.last_phase = phase

    def _abort(self, op: str, exc: Exception) -> None:
        failed_in = self.last_phase
        self.last_phase = Phase.ABORTED
        code = exc.code if isinstance(exc, BondingCurveError) else type(exc).__name__
        logger.info("%s aborted in %s: %s", op, failed_in.value, code)

    # -- Mutating operations --------------------------------------------------

    def mint(
        self,
        account: Account,
        amount: int,
        max_payment: int,
        *,
        payment: Optional[int] = None,
    ) -> MintReceipt:
        """
        Mint *amount* tokens to *account*.

        *payment* is the value offered (defaults to *max_payment*); any excess
        over the computed cost is refunded as the final transfer.

        Raises:
            InvalidAmountError: amount is zero or breaches the supply cap
            SlippageExceededError: cost > max_payment
            InsufficientPaymentError: payment < cost
            CurveOverflowError: pricing overflows
            ReentrantCallError: called from inside an in-flight operation
            InsufficientFundsError / TransferFailedError: rail failure (rolled back)
        """
        with self._nonreentrant():
            try:
                return self._mint_locked(account, amount, max_payment, payment)
            except Exception as exc:
                self._abort("mint", exc)
                raise

    def mint_with_payment(self, account: Account, payment: int, min_tokens: int = 0) -> MintReceipt:
        """
        Spend *payment* on as many tokens as it buys at the current supply.

        Raises SlippageExceededError if fewer than *min_tokens* are affordable
        and InsufficientPaymentError if not even one unit is.
        """
        with self._nonreentrant():
            try:
                self._enter(Phase.COMPUTING)
                payment = _require_positive("payment", payment)
                min_tokens = require_uint256("min_tokens", min_tokens)
                amount = calculate_tokens_for_payment(self._params, payment, self._ledger.get_supply())
                self._enter(Phase.VALIDATING)
                if amount < min_tokens:
                    raise SlippageExceededError(f"purchasable amount {amount} < min_tokens {min_tokens}")
                return self._mint_locked(account, amount, payment, payment)
            except Exception as exc:
                self._abort("mint_with_payment", exc)
                raise

    def _mint_locked(
        self,
        account: Account,
        amount: int,
        max_payment: int,
        payment: Optional[int],
    ) -> MintReceipt:
        self._enter(Phase.COMPUTING)
        amount = _require_positive("amount", amount)
        max_payment = require_uint256("max_payment", max_payment)
        payment = max_payment if payment is None else require_uint256("payment", payment)
        supply = self._ledger.get_supply()
        cost = calculate_cost(self._params, amount, supply)

        self._enter(Phase.VALIDATING)
        if self._max_supply is not None and supply + amount > self._max_supply:
            raise InvalidAmountError(f"mint would exceed max_supply {self._max_supply}")
        if cost > max_payment:
            raise SlippageExceededError(f"cost {cost} exceeds max_payment {max_payment}")
        if payment < cost:
            raise InsufficientPaymentError(f"payment {payment} below cost {cost}")
        excess = payment - cost

        undo: List[Callable[[], None]] = []
        try:
            self._enter(Phase.MUTATING)
            self._ledger.adjust_supply(amount)
            undo.append(lambda: self._ledger.adjust_supply(-amount))
            self._ledger.credit(account, amount)
            undo.append(lambda: self._ledger.debit(account, amount))

            self._enter(Phase.TRANSFERRING)
            self._rail.collect(account, payment)
            undo.append(lambda: self._rail.reverse_collect(account, payment))
            if excess > 0:
                self._rail.pay_out(account, excess)
        except Exception:
            _unwind(undo)
            logger.warning("mint of %d for %s rolled back in %s", amount, account, self.last_phase.value)
            raise

        self._enter(Phase.COMMITTED)
        supply_after = self._ledger.get_supply()
        logger.debug("mint committed: account=%s amount=%d cost=%d excess=%d", account, amount, cost, excess)
        return MintReceipt(
            account=account,
            amount=amount,
            cost=cost,
            excess_refunded=excess,
            supply_after=supply_after,
        )

    def burn(self, account: Account, amount: int, min_refund: int = 0) -> BurnReceipt:
        """
        Burn *amount* of *account*'s tokens and pay out the refund.

        Raises:
            InvalidAmountError: amount is zero or negative
            InsufficientBalanceError: amount exceeds the account's balance
            InsufficientReserveError: the reserve cannot cover the refund
            SlippageExceededError: refund < min_refund
            ReentrantCallError: called from inside an in-flight operation
            TransferFailedError: the payout failed (rolled back)
        """
        with self._nonreentrant():
            try:
                return self._burn_locked(account, amount, min_refund)
            except Exception as exc:
                self._abort("burn", exc)
                raise

    def _burn_locked(self, account: Account, amount: int, min_refund: int) -> BurnReceipt:
        self._enter(Phase.COMPUTING)
        amount = _require_positive("amount", amount)
        min_refund = require_uint256("min_refund", min_refund)
        balance = self._ledger.balance_of(account)
        if amount > balance:
            raise InsufficientBalanceError(f"burn amount {amount} exceeds balance {balance}")
        refund = calculate_refund(self._params, amount, self._ledger.get_supply())

        self._enter(Phase.VALIDATING)
        reserve = self._rail.reserve_balance()
        if reserve < refund:
            raise InsufficientReserveError(f"reserve {reserve} cannot cover refund {refund}")
        if refund < min_refund:
            raise SlippageExceededError(f"refund {refund} below min_refund {min_refund}")

        undo: List[Callable[[], None]] = []
        try:
            self._enter(Phase.MUTATING)
            self._ledger.adjust_supply(-amount)
            undo.append(lambda: self._ledger.adjust_supply(amount))
            self._ledger.debit(account, amount)
            undo.append(lambda: self._ledger.credit(account, amount))

            self._enter(Phase.TRANSFERRING)
            if refund > 0:
                self._rail.pay_out(account, refund)
        except Exception:
            _unwind(undo)
            logger.warning("burn of %d for %s rolled back in %s", amount, account, self.last_phase.value)
            raise

        self._enter(Phase.COMMITTED)
        supply_after = self._ledger.get_supply()
        logger.debug("burn committed: account=%s amount=%d refund=%d", account, amount, refund)
        return BurnReceipt(account=account, amount=amount, refund=refund, supply_after=supply_after)

    # -- Result-style entry point --------------------------------------------

    def execute(self, cmd: SettlementCommand) -> SettlementResult:
        """Like the raising methods, but returns a `SettlementResult` instead."""
        args = cmd.args
        try:
            if cmd.tag == "mint":
                receipt: Receipt = self.mint(
                    cmd.account,
                    _int_arg(args, "amount"),
                    _int_arg(args, "max_payment"),
                    payment=_int_arg(args, "payment", None),
                )
            elif cmd.tag == "burn":
                receipt = self.burn(cmd.account, _int_arg(args, "amount"), _int_arg(args, "min_refund", 0))
            elif cmd.tag == "mint_with_payment":
                receipt = self.mint_with_payment(
                    cmd.account, _int_arg(args, "payment"), _int_arg(args, "min_tokens", 0)
                )
            else:
                return SettlementResult(ok=False, error=f"unknown action: {cmd.tag}", code="unknown_action")
        except BondingCurveError as exc:
            return SettlementResult(ok=False, error=str(exc), code=exc.code)
        except TypeError as exc:
            return SettlementResult(ok=False, error=str(exc), code="invalid_param")
        return SettlementResult(ok=True, receipt=receipt)


_MISSING = object()


def _int_arg(args: Mapping[str, Any], name: str, default: Any = _MISSING) -> Any:
    value = args.get(name, default)
    if value is _MISSING:
        raise InvalidAmountError(f"missing param {name}")
    if value is not None and (not isinstance(value, int) or isinstance(value, bool)):
        raise InvalidAmountError(f"invalid param {name}")
    return value
