"""Tests for KnowledgePipeline reload and snapshot publication."""

import threading

import numpy as np

from campusbot import KnowledgePipeline, KnowledgeSnapshot, TabularStore

from conftest import MockEmbeddingService


def test_starts_with_empty_snapshot(mock_embedding_service, mock_sheet_loader):
    pipeline = KnowledgePipeline(
        embedding_service=mock_embedding_service, loader=mock_sheet_loader
    )

    snapshot = pipeline.snapshot
    assert isinstance(snapshot, KnowledgeSnapshot)
    assert len(snapshot.store) == 0
    assert len(snapshot.index) == 0
    assert snapshot.loaded_at is None


def test_reload_loads_and_indexes_every_record(
    mock_embedding_service, mock_sheet_loader, sample_store
):
    pipeline = KnowledgePipeline(
        embedding_service=mock_embedding_service, loader=mock_sheet_loader
    )

    snapshot = pipeline.reload()

    mock_sheet_loader.load_all.assert_called_once_with()
    assert pipeline.snapshot is snapshot
    assert snapshot.store is sample_store
    assert len(snapshot.index) == len(sample_store)
    assert snapshot.loaded_at is not None


def test_reload_replaces_whole_snapshot(knowledge_pipeline, mock_sheet_loader):
    before = knowledge_pipeline.snapshot
    mock_sheet_loader.load_all.return_value = TabularStore()

    after = knowledge_pipeline.reload()

    assert after is not before
    assert len(after.index) == 0
    assert len(before.index) == 10


def test_stats(knowledge_pipeline):
    assert knowledge_pipeline.stats() == {
        "students": 3,
        "teachers": 2,
        "guestTeachers": 1,
        "schedule": 1,
        "subjects": 1,
        "faqs": 1,
        "rooms": 1,
        "knowledgeBase": 10,
    }


def test_embed_query_delegates(knowledge_pipeline, mock_embedding_service):
    vector = knowledge_pipeline.embed_query("สวัสดี")
    np.testing.assert_array_equal(vector, mock_embedding_service.get_embedding("สวัสดี"))


class _SlowEmbeddingService(MockEmbeddingService):
    """Blocks half-way through an index build until released."""

    def __init__(self) -> None:
        super().__init__()
        self.halfway = threading.Event()
        self.release = threading.Event()

    def get_embeddings(self, texts: list[str]) -> list[np.ndarray]:
        embeddings = []
        for i, text in enumerate(texts):
            if i == len(texts) // 2:
                self.halfway.set()
                self.release.wait(timeout=5)
            embeddings.append(self.get_embedding(text))
        return embeddings


def test_readers_never_see_partial_index(sample_store, mock_sheet_loader):
    service = _SlowEmbeddingService()
    pipeline = KnowledgePipeline(embedding_service=service, loader=mock_sheet_loader)
    query = service.get_embedding("query")

    reloader = threading.Thread(target=pipeline.reload)
    reloader.start()
    assert service.halfway.wait(timeout=5)

    # Mid-build: still the old, empty snapshot
    during = pipeline.snapshot
    assert len(during.index) == 0
    assert during.index.search(query, 10) == []

    service.release.set()
    reloader.join(timeout=5)

    after = pipeline.snapshot
    assert len(after.index) == len(sample_store)
    assert len(after.index.search(query, 10)) == len(sample_store)


def test_concurrent_reloads_are_serialised(mock_sheet_loader):
    service = MockEmbeddingService()
    pipeline = KnowledgePipeline(embedding_service=service, loader=mock_sheet_loader)

    threads = [threading.Thread(target=pipeline.reload) for _ in range(4)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert mock_sheet_loader.load_all.call_count == 4
    assert len(pipeline.snapshot.index) == 10
