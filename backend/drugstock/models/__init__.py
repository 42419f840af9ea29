from drugstock.models.user import User, UserRole
from drugstock.models.drug import Drug
from drugstock.models.stock_transaction import StockTransaction, TransactionType
from drugstock.models.disbursement import Disbursement, DisbursementStatus

__all__ = [
    "User",
    "UserRole",
    "Drug",
    "StockTransaction",
    "TransactionType",
    "Disbursement",
    "DisbursementStatus",
]
