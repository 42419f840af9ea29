"""AI assistant: stock analysis report and free-text questions."""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from assistant import answer_question, generate_stock_analysis
from assistant.stock_assistant import CHAT_TRANSACTION_LIMIT
from drugstock.api.deps import get_current_user, get_db
from drugstock.models.user import User
from drugstock.schemas.assistant import AssistantQuestion, AssistantReply
from drugstock.services import ledger_service
from drugstock.services.drug_repository import load_all

router = APIRouter()


@router.post("/analysis", response_model=AssistantReply)
def stock_analysis(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return AssistantReply(text=generate_stock_analysis(load_all(db)))


@router.post("/ask", response_model=AssistantReply)
def ask(data: AssistantQuestion, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    transactions = ledger_service.recent_transactions(db, CHAT_TRANSACTION_LIMIT)
    return AssistantReply(text=answer_question(data.question, load_all(db), transactions))
