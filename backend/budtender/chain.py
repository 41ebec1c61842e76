"""
Budtender chat chain: retrieve strains, ground the prompt, call the LLM.

Message order sent to the model:
    system prompt -> history turns -> strain context (system) -> user message
"""
import logging
from typing import Dict, Iterator, List, Optional, Sequence

from openai import OpenAIError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from budtender.embeddings import EmbeddingUnavailableError
from budtender.groq_client import get_groq_client
from budtender.prompts import SYSTEM_PROMPT, CONTEXT_TEMPLATE, NO_CONTEXT_MESSAGE
from budtender.retriever import StrainResult, retrieve_similar_strains, format_strains_for_context
from greenleaf.core.config import settings

logger = logging.getLogger(__name__)

# Older turns are dropped to bound prompt size
MAX_HISTORY_TURNS = 20


def build_messages(
    message: str,
    history: Optional[Sequence[Dict[str, str]]] = None,
    strains: Optional[Sequence[StrainResult]] = None,
) -> List[Dict[str, str]]:
    messages = [{"role": "system", "content": SYSTEM_PROMPT}]

    for turn in list(history or [])[-MAX_HISTORY_TURNS:]:
        role = "user" if turn["role"] == "user" else "assistant"
        messages.append({"role": role, "content": turn["content"]})

    if strains:
        context = CONTEXT_TEMPLATE.format(strains=format_strains_for_context(strains))
    else:
        context = NO_CONTEXT_MESSAGE
    messages.append({"role": "system", "content": context})

    messages.append({"role": "user", "content": message})
    return messages


def retrieve_context(db: Session, message: str) -> List[StrainResult]:
    """Strains relevant to `message`; empty when vector search is unavailable."""
    try:
        return retrieve_similar_strains(db, message, limit=settings.CHAT_CONTEXT_STRAINS)
    except EmbeddingUnavailableError:
        logger.info("Embeddings not configured - answering without strain context")
    except (OpenAIError, SQLAlchemyError) as e:
        logger.warning(f"Strain retrieval failed, answering without context: {type(e).__name__}: {e}")
        db.rollback()
    return []


def generate_response(db: Session, message: str, history: Optional[Sequence[Dict[str, str]]] = None) -> str:
    messages = build_messages(message, history, retrieve_context(db, message))
    return get_groq_client().complete(messages)


def stream_response(db: Session, message: str, history: Optional[Sequence[Dict[str, str]]] = None) -> Iterator[str]:
    """
    Retrieve context now and return an iterator of reply chunks.

    The database is only touched before this returns, so the iterator can be
    consumed after the request session is closed.
    """
    messages = build_messages(message, history, retrieve_context(db, message))
    return get_groq_client().stream(messages)
