"""
Payment rail collaborator: collects payments into the reserve and disburses
refunds out of it.

`pay_out` is the engine's only untrusted interaction: the receiving side may
run arbitrary code (including re-entering the engine) or reject the transfer.
`InMemoryPaymentRail` models this with optional per-account receive hooks.
"""

from __future__ import annotations

from typing import Callable, Dict, Optional

from ..core.errors import BondingCurveError, InsufficientFundsError, TransferFailedError
from ..core.fixed_point import require_uint256
from .ledger import Account, Amount


ReceiveHook = Callable[[Account, Amount], None]


class PaymentRail:
    """Interface consumed by `SettlementGuard`."""

    def collect(self, from_: Account, amount: Amount) -> None:
        raise NotImplementedError

    def pay_out(self, to: Account, amount: Amount) -> None:
        raise NotImplementedError

    def reserve_balance(self) -> Amount:
        raise NotImplementedError

    def reverse_collect(self, from_: Account, amount: Amount) -> None:
        """Undo a `collect` made earlier in the same operation. Must not fail."""
        raise NotImplementedError


class InMemoryPaymentRail(PaymentRail):
    """Reserve plus external wallets, all held in memory."""

    def __init__(self, reserve: Amount = 0) -> None:
        self._reserve = require_uint256("reserve", reserve)
        self._wallets: Dict[Account, Amount] = {}
        self._hooks: Dict[Account, ReceiveHook] = {}

    def fund(self, account: Account, amount: Amount) -> None:
        """Give *account* external funds to pay with."""
        amount = require_uint256("amount", amount)
        self._wallets[account] = self.wallet_of(account) + amount

    def wallet_of(self, account: Account) -> Amount:
        return self._wallets.get(account, 0)

    def on_receive(self, account: Account, hook: Optional[ReceiveHook]) -> None:
        """Install (or clear, with None) a callback run whenever *account* is paid."""
        if hook is None:
            self._hooks.pop(account, None)
        else:
            self._hooks[account] = hook

    def reserve_balance(self) -> Amount:
        return self._reserve

    def collect(self, from_: Account, amount: Amount) -> None:
        amount = require_uint256("amount", amount)
        available = self.wallet_of(from_)
        if amount > available:
            raise InsufficientFundsError(f"insufficient funds: {available} < {amount}")
        self._wallets[from_] = available - amount
        self._reserve += amount

    def pay_out(self, to: Account, amount: Amount) -> None:
        amount = require_uint256("amount", amount)
        if amount > self._reserve:
            raise TransferFailedError(f"reserve cannot cover payout: {self._reserve} < {amount}")
        self._reserve -= amount
        self._wallets[to] = self.wallet_of(to) + amount

        hook = self._hooks.get(to)
        if hook is None:
            return
        try:
            hook(to, amount)
        except Exception as exc:
            # A rejecting receiver fails the transfer as a whole.
            self._wallets[to] -= amount
            self._reserve += amount
            if isinstance(exc, TransferFailedError):
                raise
            reason = exc.code if isinstance(exc, BondingCurveError) else type(exc).__name__
            raise TransferFailedError(f"receiver rejected payout: {reason}") from exc

    def reverse_collect(self, from_: Account, amount: Amount) -> None:
        self._reserve -= amount
        self._wallets[from_] = self.wallet_of(from_) + amount
