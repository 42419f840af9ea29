from pydantic import BaseModel

from drugstock.schemas.disbursement import DisbursementResponse
from drugstock.schemas.drug import DrugResponse
from drugstock.schemas.transaction import TransactionResponse


class StockStats(BaseModel):
    total_items: int
    low_stock_count: int
    expiring_soon_count: int
    expired_count: int
    out_of_stock_count: int


class DashboardResponse(BaseModel):
    stats: StockStats
    low_stock: list[DrugResponse]
    expiring: list[DrugResponse]
    recent_transactions: list[TransactionResponse]
    pending_requests: list[DisbursementResponse]
