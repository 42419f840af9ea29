"""Stock assistant backed by the Groq LLM API.

Read-only: it summarises and answers questions about the inventory, it never
changes stock. Without GROQ_API_KEY every call returns an explanatory message.
"""

from .stock_assistant import answer_question, generate_stock_analysis

__all__ = ["answer_question", "generate_stock_analysis"]
