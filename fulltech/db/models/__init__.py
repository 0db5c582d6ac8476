from fulltech.db.models.activity import ACTIVITY_TYPES, CustomerActivity
from fulltech.db.models.admin import Admin
from fulltech.db.models.audit import AuditLog
from fulltech.db.models.customer import AuthProvider, Customer
from fulltech.db.models.notification import Notification
from fulltech.db.models.product import Product
from fulltech.db.models.purchase import MAX_AMOUNT, MAX_QUANTITY, CustomerPurchase
from fulltech.db.models.raffle import MonthlyRaffle, RaffleEntry
from fulltech.db.models.referral import (
    REFERRAL_PENDING,
    REFERRAL_QUALIFIED,
    REFERRAL_REWARDED,
    Referral,
)

__all__ = [
    "ACTIVITY_TYPES",
    "Admin",
    "AuditLog",
    "AuthProvider",
    "Customer",
    "CustomerActivity",
    "CustomerPurchase",
    "MAX_AMOUNT",
    "MAX_QUANTITY",
    "MonthlyRaffle",
    "Notification",
    "Product",
    "REFERRAL_PENDING",
    "REFERRAL_QUALIFIED",
    "REFERRAL_REWARDED",
    "RaffleEntry",
    "Referral",
]
