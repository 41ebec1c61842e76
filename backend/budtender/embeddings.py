"""
Strain embeddings via the OpenAI embeddings API.

Every strain is described by one short paragraph (`create_strain_text`) and
embedded with text-embedding-3-small at 1536 dimensions. User queries go
through the same model so they land in the same vector space.
"""
import logging
from typing import List, Optional, Sequence

from openai import OpenAI

from greenleaf.core.config import settings

logger = logging.getLogger(__name__)


class EmbeddingUnavailableError(RuntimeError):
    """Raised when no OpenAI API key is configured."""


def _format_number(value) -> str:
    return f"{float(value):g}"


def create_strain_text(strain) -> str:
    """
    Compose the text that represents a strain in embedding space.

    Works on ORM rows and on any object exposing the same attributes.
    """
    parts = [f"{strain.name} is a {str(strain.type).lower()} cannabis strain."]

    if strain.thc_percent:
        parts.append(f"It has approximately {_format_number(strain.thc_percent)}% THC.")

    # Trace CBD is noise for matching
    if strain.cbd_percent is not None and float(strain.cbd_percent) > 0.5:
        parts.append(f"It contains {_format_number(strain.cbd_percent)}% CBD.")

    if strain.effects:
        parts.append(f"Effects include: {', '.join(strain.effects)}.")

    if strain.flavors:
        parts.append(f"Flavors: {', '.join(strain.flavors)}.")

    if strain.description:
        parts.append(strain.description)

    return " ".join(parts)


class EmbeddingClient:
    """OpenAI embeddings with a fixed model and dimension count."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        dimensions: Optional[int] = None,
    ):
        api_key = api_key or settings.OPENAI_API_KEY
        self.model = model or settings.EMBEDDING_MODEL
        self.dimensions = dimensions or settings.EMBEDDING_DIMENSIONS

        if not api_key:
            logger.warning("OPENAI_API_KEY not configured. Vector search is disabled.")
            self.client = None
        else:
            self.client = OpenAI(api_key=api_key, max_retries=2)

    def is_available(self) -> bool:
        return self.client is not None

    def embed_documents(self, texts: Sequence[str]) -> List[List[float]]:
        if not self.is_available():
            raise EmbeddingUnavailableError("OpenAI client is not configured")
        if not texts:
            return []

        response = self.client.embeddings.create(
            model=self.model,
            input=list(texts),
            dimensions=self.dimensions,
        )
        # The API does not promise input order
        data = sorted(response.data, key=lambda item: item.index)
        return [item.embedding for item in data]

    def embed_query(self, text: str) -> List[float]:
        return self.embed_documents([text])[0]


_embedding_client: Optional[EmbeddingClient] = None


def get_embedding_client() -> EmbeddingClient:
    global _embedding_client
    if _embedding_client is None:
        _embedding_client = EmbeddingClient()
    return _embedding_client
