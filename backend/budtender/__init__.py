"""GreenLeaf budtender: strain embeddings, vector retrieval and the chat chain.

The LLM only writes the reply. Catalog facts come from retrieval over our own
strain table, and nothing here writes to the store except the embedding job.
"""

from .chain import generate_response, stream_response
from .retriever import (
    StrainResult,
    similar_to_strain,
    retrieve_similar_strains,
    retrieve_strains_by_effects,
    retrieve_strains_by_type,
    format_strains_for_context,
)
from .embeddings import create_strain_text, EmbeddingClient

__all__ = [
    "generate_response",
    "stream_response",
    "StrainResult",
    "similar_to_strain",
    "retrieve_similar_strains",
    "retrieve_strains_by_effects",
    "retrieve_strains_by_type",
    "format_strains_for_context",
    "create_strain_text",
    "EmbeddingClient",
]
