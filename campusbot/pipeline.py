"""Knowledge pipeline orchestrating Load -> Describe -> Embed -> Publish."""

from __future__ import annotations

import datetime
import threading
from dataclasses import dataclass, field

import numpy as np

from .config import config
from .embeddings import EmbeddingService
from .knowledge import KnowledgeIndex
from .models import RecordCategory, TabularStore
from .sheets import SheetLoader

logger = config.get_logger(__name__)


def _utcnow() -> str:
    return datetime.datetime.now(tz=datetime.UTC).isoformat()


@dataclass(frozen=True)
class KnowledgeSnapshot:
    """Records and their index, published together on every reload."""

    store: TabularStore = field(default_factory=TabularStore)
    index: KnowledgeIndex = field(default_factory=KnowledgeIndex)
    loaded_at: str | None = None


class KnowledgePipeline:
    """Owns the shared snapshot that every request reads from.

    Readers take ``snapshot`` once and use it for the whole request. A reload
    builds a complete new snapshot off to the side and publishes it with a
    single assignment, so readers see either the old or the new data.
    """

    def __init__(
        self,
        openai_api_key: str | None = None,
        embedding_service: EmbeddingService | None = None,
        loader: SheetLoader | None = None,
    ) -> None:
        """Initialize the pipeline with an empty snapshot.

        Args:
            openai_api_key: Provider API key for the default embedding service.
            embedding_service: Embedder to use. If None, an EmbeddingService is
                created from configuration.
            loader: Source of records. If None, a SheetLoader is created from
                configuration.
        """
        self.embedding_service = embedding_service or EmbeddingService(
            api_key=openai_api_key
        )
        self.loader = loader or SheetLoader()
        self._snapshot = KnowledgeSnapshot()
        self._reload_lock = threading.Lock()

    @property
    def snapshot(self) -> KnowledgeSnapshot:
        return self._snapshot

    def reload(self) -> KnowledgeSnapshot:
        """Reload every sheet, rebuild the index and publish it.

        Concurrent reloads run one after another; readers never wait.

        Returns:
            The newly published snapshot.
        """
        with self._reload_lock:
            logger.info("Starting knowledge reload")
            store = self.loader.load_all()
            snapshot = self.build_snapshot(store)
            self._snapshot = snapshot
            logger.info("Knowledge reload completed at %s", snapshot.loaded_at)
            return snapshot

    def build_snapshot(self, store: TabularStore) -> KnowledgeSnapshot:
        """Embed a store into a fresh, unpublished snapshot."""
        index = KnowledgeIndex.build(store, self.embedding_service)
        return KnowledgeSnapshot(store=store, index=index, loaded_at=_utcnow())

    def publish(self, store: TabularStore) -> KnowledgeSnapshot:
        """Build and publish a snapshot from records already in memory.

        Returns:
            The newly published snapshot.
        """
        with self._reload_lock:
            snapshot = self.build_snapshot(store)
            self._snapshot = snapshot
            return snapshot

    def embed_query(self, question: str) -> np.ndarray:
        """Embed a question; an empty array means the embedding failed."""
        return self.embedding_service.get_embedding(question)

    def stats(self) -> dict[str, int]:
        """Record counts per category and the knowledge base size."""
        snapshot = self._snapshot
        counts = snapshot.store.counts()
        return {
            "students": counts[RecordCategory.STUDENT],
            "teachers": counts[RecordCategory.TEACHER],
            "guestTeachers": counts[RecordCategory.GUEST_TEACHER],
            "schedule": counts[RecordCategory.SCHEDULE],
            "subjects": counts[RecordCategory.SUBJECT],
            "faqs": counts[RecordCategory.FAQ],
            "rooms": counts[RecordCategory.ROOM],
            "knowledgeBase": len(snapshot.index),
        }
