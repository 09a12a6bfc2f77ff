"""OpenAI-compatible embeddings service."""

from concurrent.futures import ThreadPoolExecutor

import numpy as np
from openai import OpenAI, OpenAIError

from .config import config

logger = config.get_logger(__name__)

EMPTY_EMBEDDING = np.empty(0, dtype=np.float32)


class EmbeddingService:
    """Turns text into embedding vectors; failures yield an empty vector."""

    def __init__(
        self,
        api_key: str | None = None,
        model: str | None = None,
        max_workers: int | None = None,
    ) -> None:
        """Initialize the EmbeddingService with API key, model and fan-out.

        Args:
            api_key: Provider API key. If None,
                reads from OPENAI_API_KEY environment variable.
            model: Embedding model name. If None, uses config.EMBEDDING_MODEL.
            max_workers: Concurrent embedding calls used by get_embeddings.
                If None, uses config.EMBEDDING_MAX_WORKERS.
        """
        self.api_key = api_key or config.get_openai_api_key()
        default_headers = config.get_api_headers()
        self.client = OpenAI(
            # The SDK refuses to construct without a key; calls are guarded below.
            api_key=self.api_key or "missing",
            base_url=config.OPENAI_BASE_URL,
            default_headers=default_headers or None,
        )
        self.model = model or config.EMBEDDING_MODEL
        self.max_workers = max(1, max_workers or config.EMBEDDING_MAX_WORKERS)

    def get_embedding(self, text: str) -> np.ndarray:
        """Get embedding for a single text.

        Args:
            text: The input text to generate an embedding for.

        Returns:
            np.ndarray: The embedding vector, or an empty array if the call failed.
        """
        if not self.api_key:
            logger.error("Embedding error: OPENAI_API_KEY is missing")
            return EMPTY_EMBEDDING
        if not text or not text.strip():
            logger.warning("Skipping embedding for empty text")
            return EMPTY_EMBEDDING

        try:
            response = self.client.embeddings.create(
                model=self.model,
                input=text,
            )
            embedding = np.asarray(response.data[0].embedding, dtype=np.float32)
        except (OpenAIError, IndexError, AttributeError, TypeError, ValueError):
            logger.exception("Embedding API call failed")
            return EMPTY_EMBEDDING
        else:
            return embedding

    def get_embeddings(self, texts: list[str]) -> list[np.ndarray]:
        """Embed many texts with bounded concurrency, one call per text.

        Args:
            texts: Input texts to generate embeddings for.

        Returns:
            list[np.ndarray]: One vector per input, in input order. Failed texts
                map to empty arrays.
        """
        if not texts:
            return []

        with ThreadPoolExecutor(
            max_workers=min(self.max_workers, len(texts)),
            thread_name_prefix="embed",
        ) as executor:
            embeddings = list(executor.map(self.get_embedding, texts))

        failed = sum(1 for embedding in embeddings if embedding.size == 0)
        if failed:
            logger.warning("Failed to embed %d of %d texts", failed, len(texts))
        logger.info("Generated embeddings for %d texts", len(texts) - failed)
        return embeddings
