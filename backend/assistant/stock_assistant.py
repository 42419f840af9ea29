"""Stock analysis and Q&A over an inventory snapshot."""
import json
import logging
from datetime import date
from typing import Iterable, Optional

from assistant.groq_client import GroqClient, get_groq_client
from assistant.prompts import ANALYSIS_PROMPT, CHAT_PROMPT, CHAT_SYSTEM_PROMPT
from drugstock.services.stock_status import get_stock_status

logger = logging.getLogger(__name__)

CHAT_TRANSACTION_LIMIT = 50

NOT_CONFIGURED_MESSAGE = (
    "The AI assistant is not configured. Set GROQ_API_KEY in the backend environment."
)
ANALYSIS_FAILED_MESSAGE = (
    "The AI analysis could not be generated. Check the server log and the API key, then try again."
)
CHAT_FAILED_MESSAGE = (
    "Sorry, the AI assistant could not be reached. Please try again in a moment."
)


def drug_snapshot(drugs: Iterable, today: Optional[date] = None) -> list[dict]:
    return [
        {
            "id": d.id,
            "name": d.name,
            "quantity": d.quantity,
            "unit": d.unit,
            "expiry_date": d.expiry_date.isoformat(),
            "location": d.location,
            "notes": d.notes,
            "status": get_stock_status(d, today).value,
        }
        for d in drugs
    ]


def transaction_snapshot(transactions: Iterable) -> list[dict]:
    return [
        {
            "drug_name": t.drug_name,
            "type": t.type.value,
            "quantity_change": t.quantity_change,
            "quantity_after": t.quantity_after,
            "reason": t.reason,
            "timestamp": t.timestamp.isoformat() if t.timestamp else None,
            "user": t.user,
        }
        for t in transactions
    ]


def _dump(data) -> str:
    return json.dumps(data, ensure_ascii=False, indent=2)


def generate_stock_analysis(drugs: Iterable, client: Optional[GroqClient] = None) -> str:
    """Markdown report on the whole inventory."""
    client = client or get_groq_client()
    if not client.is_available():
        return NOT_CONFIGURED_MESSAGE

    prompt = ANALYSIS_PROMPT.format(drugs=_dump(drug_snapshot(drugs)))
    result = client.complete(prompt)
    if result is None:
        logger.error("Stock analysis generation failed")
        return ANALYSIS_FAILED_MESSAGE
    return result


def answer_question(
    question: str,
    drugs: Iterable,
    transactions: Iterable,
    client: Optional[GroqClient] = None,
) -> str:
    """Answer a free-text question from the drug list and the latest transactions."""
    client = client or get_groq_client()
    if not client.is_available():
        return NOT_CONFIGURED_MESSAGE

    recent = list(transactions)[:CHAT_TRANSACTION_LIMIT]
    prompt = CHAT_PROMPT.format(
        drugs=_dump(drug_snapshot(drugs)),
        transactions=_dump(transaction_snapshot(recent)),
        question=question.strip(),
    )
    result = client.complete(prompt, system=CHAT_SYSTEM_PROMPT)
    if result is None:
        logger.error("Assistant chat response failed")
        return CHAT_FAILED_MESSAGE
    return result
