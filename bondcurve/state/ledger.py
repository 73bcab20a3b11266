"""
Token ledger collaborator: supply counter + per-account balances.

The engine only reads/writes the supply scalar and delegates balance credits
and debits here. `InMemoryLedger` is the reference implementation used by the
tests and by embedders that have no external token store.
"""

from __future__ import annotations

from typing import Dict

from ..core.errors import InsufficientBalanceError, InvalidAmountError
from ..core.fixed_point import require_uint256


# Type aliases
Account = str
Amount = int  # Non-negative scaled integer


class Ledger:
    """Interface consumed by `SettlementGuard`."""

    def get_supply(self) -> Amount:
        raise NotImplementedError

    def adjust_supply(self, delta: int) -> None:
        raise NotImplementedError

    def balance_of(self, account: Account) -> Amount:
        raise NotImplementedError

    def credit(self, account: Account, amount: Amount) -> None:
        raise NotImplementedError

    def debit(self, account: Account, amount: Amount) -> None:
        raise NotImplementedError


class InMemoryLedger(Ledger):
    """
    Sparse balance table plus a supply counter.

    Zero balances are removed to keep the table sparse. Do not rely on dict
    iteration order; sort at serialization boundaries.
    """

    def __init__(self, supply: Amount = 0) -> None:
        self._supply = require_uint256("supply", supply)
        self._balances: Dict[Account, Amount] = {}

    def get_supply(self) -> Amount:
        return self._supply

    def adjust_supply(self, delta: int) -> None:
        """
        Add *delta* (may be negative) to the supply.

        Raises:
            InvalidAmountError: if the supply would go negative
        """
        new_supply = self._supply + delta
        if new_supply < 0:
            raise InvalidAmountError(f"supply cannot go negative: {self._supply} + {delta}")
        self._supply = require_uint256("supply", new_supply)

    def balance_of(self, account: Account) -> Amount:
        return self._balances.get(account, 0)

    def _set(self, account: Account, amount: Amount) -> None:
        if amount == 0:
            self._balances.pop(account, None)
        else:
            self._balances[account] = amount

    def credit(self, account: Account, amount: Amount) -> None:
        amount = require_uint256("amount", amount)
        self._set(account, require_uint256("balance", self.balance_of(account) + amount))

    def debit(self, account: Account, amount: Amount) -> None:
        amount = require_uint256("amount", amount)
        current = self.balance_of(account)
        if amount > current:
            raise InsufficientBalanceError(f"insufficient balance: {current} < {amount}")
        self._set(account, current - amount)

    def get_all_balances(self) -> Dict[Account, Amount]:
        return dict(self._balances)

    def verify_supply_matches_balances(self) -> bool:
        """True iff the balances sum to the supply."""
        return sum(self._balances.values()) == self._supply

    def __repr__(self) -> str:
        return f"InMemoryLedger(supply={self._supply}, {len(self._balances)} holders)"
