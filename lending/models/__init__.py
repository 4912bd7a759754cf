from lending.models.client import Client
from lending.models.loan import Loan
from lending.models.payment import Payment
from lending.models.user import User

__all__ = [
    "Client",
    "Loan",
    "Payment",
    "User",
]
