"""
Collaborator state: token ledger and payment rail
"""

from .ledger import InMemoryLedger, Ledger
from .payment_rail import InMemoryPaymentRail, PaymentRail

__all__ = [
    "InMemoryLedger",
    "Ledger",
    "InMemoryPaymentRail",
    "PaymentRail",
]
