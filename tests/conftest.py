"""Test configuration and fixtures for campusbot tests.

This module provides reusable test fixtures organized by functionality:
- Constants and test data
- Mock services and API responses
- EmbeddingService fixtures
- Sample record factories
- Pipeline and generator fixtures
"""

import hashlib
from contextlib import contextmanager
from unittest.mock import Mock, create_autospec, patch

import numpy as np
import pytest

from campusbot import (
    AnswerGenerator,
    ConversationMemory,
    EmbeddingService,
    KnowledgePipeline,
    RecordCategory,
    SheetLoader,
    TabularStore,
)


class TestConstants:
    """Centralized test constants shared across the test suite."""

    # API Configuration
    TEST_API_KEY = "test-key"
    DEFAULT_EMBEDDING_DIMENSION = 64


SAMPLE_ROWS = {
    RecordCategory.STUDENT: [
        {"number": "1", "name": "สมชาย ใจดี", "gender": "ชาย", "role": "หัวหน้าห้อง"},
        {"number": "2", "name": "สมหญิง รักเรียน", "gender": "หญิง", "role": ""},
        {"number": "3", "name": "ธนา มานะ", "gender": "ชาย", "role": ""},
    ],
    RecordCategory.TEACHER: [
        {
            "name": "อาจารย์ฐาปนันท์ ปัญญามี",
            "position": "หัวหน้าแผนก",
            "specialize": "ระบบเครือข่าย",
            "field": "",
        },
        {"name": "อาจารย์อนุชาติ รังสิยานนท์", "position": "", "specialize": "ฐานข้อมูล"},
    ],
    RecordCategory.GUEST_TEACHER: [
        {
            "name": "ดร.วัชรพงศ์ ฝั้นติ๊บ",
            "position": "ผู้อำนวยการ",
            "field": "ฝ่ายบริหาร",
            "teaches_subject": "การจัดการองค์กร",
        },
    ],
    RecordCategory.SCHEDULE: [
        {
            "subject_name": "การเขียนโปรแกรมเว็บ",
            "subject_code": "30204-2001",
            "teacher": "อาจารย์อนุชาติ รังสิยานนท์",
            "day": "จันทร์",
            "time_start": "18:00",
            "time_end": "21:00",
            "room": "IT-301",
            "building": "3",
            "type": "",
        },
    ],
    RecordCategory.SUBJECT: [
        {
            "name": "การเขียนโปรแกรมเว็บ",
            "code": "30204-2001",
            "credits": "3",
            "description": "พัฒนาเว็บแอปพลิเคชัน",
        },
    ],
    RecordCategory.FAQ: [
        {"question": "ฝึกงานเมื่อไหร่", "answer": "ภาคเรียนที่ 2", "category": "ฝึกงาน"},
    ],
    RecordCategory.ROOM: [
        {
            "room_number": "IT-301",
            "building": "3",
            "capacity": "40",
            "facilities": "คอมพิวเตอร์ 40 เครื่อง",
            "department": "IT",
        },
    ],
}


class MockEmbeddingService:
    """Mock embedding service for testing without API calls.

    Generates deterministic embeddings based on text content hash, and returns
    an empty vector for any text listed in ``fail_on``.
    """

    def __init__(
        self,
        dimension: int = TestConstants.DEFAULT_EMBEDDING_DIMENSION,
        fail_on: set[str] | None = None,
    ) -> None:
        self.dimension = dimension
        self.fail_on = fail_on or set()
        self.calls: list[str] = []

    def get_embedding(self, text: str) -> np.ndarray:
        """Generate deterministic mock embedding based on text hash."""
        self.calls.append(text)
        if text in self.fail_on:
            return np.empty(0, dtype=np.float32)
        seed = int.from_bytes(
            hashlib.sha256(text.encode("utf-8")).digest()[:8],
            byteorder="big",
            signed=False,
        )
        rng = np.random.default_rng(seed)
        embedding = rng.normal(0, 1, self.dimension)
        return (embedding / np.linalg.norm(embedding)).astype(np.float32)

    def get_embeddings(self, texts: list[str]) -> list[np.ndarray]:
        """Generate batch of mock embeddings."""
        return [self.get_embedding(text) for text in texts]


def create_mock_openai_response(embeddings: list[list[float]]) -> Mock:
    """Create a mock OpenAI embeddings API response.

    Args:
        embeddings: List of embedding vectors to return.

    Returns:
        Mock object representing OpenAI embeddings API response.
    """
    mock_response = Mock()
    mock_response.data = [Mock(embedding=emb) for emb in embeddings]
    return mock_response


def create_mock_chat_response(content: str | None) -> Mock:
    """Create a mock OpenAI chat completion response.

    Args:
        content: The content for the chat completion response.

    Returns:
        Mock object representing OpenAI chat completion response.
    """
    mock_response = Mock()
    mock_response.choices = [Mock(message=Mock(content=content))]
    return mock_response


@pytest.fixture
def openai_embeddings_api_mock():
    """Patch the OpenAI embeddings.create method and return the mock."""
    with patch("openai.resources.embeddings.Embeddings.create") as mock_create:
        yield mock_create


@pytest.fixture
def embedding_service_factory():
    """Factory for creating EmbeddingService instances with different configurations."""

    def _create_service(api_key=None, model=None, max_workers=2):  # noqa: ANN202
        api_key = api_key or TestConstants.TEST_API_KEY
        return EmbeddingService(api_key=api_key, model=model, max_workers=max_workers)

    return _create_service


@pytest.fixture
def embedding_service(embedding_service_factory):
    """Default EmbeddingService with test API key for most tests."""
    return embedding_service_factory()


@pytest.fixture
def mock_embedding_service():
    """Fresh MockEmbeddingService for each test."""
    return MockEmbeddingService()


@pytest.fixture
def sample_store_factory():
    """Factory building a TabularStore from the sample rows with overrides."""

    def _create_store(**overrides) -> TabularStore:  # noqa: ANN003
        rows = {category: list(values) for category, values in SAMPLE_ROWS.items()}
        for name, values in overrides.items():
            rows[RecordCategory(name)] = values
        return TabularStore.from_rows(rows)

    return _create_store


@pytest.fixture
def sample_store(sample_store_factory):
    """Store with 3 students (2 male, 1 female) and one row per other table."""
    return sample_store_factory()


@pytest.fixture
def mock_sheet_loader(sample_store):
    loader = create_autospec(SheetLoader, instance=True)
    loader.load_all.return_value = sample_store
    return loader


@pytest.fixture
def knowledge_pipeline(mock_embedding_service, mock_sheet_loader, sample_store):
    """Pipeline with the sample store already published."""
    pipeline = KnowledgePipeline(
        embedding_service=mock_embedding_service,
        loader=mock_sheet_loader,
    )
    pipeline.publish(sample_store)
    return pipeline


@pytest.fixture
def answer_generator(knowledge_pipeline):
    """AnswerGenerator over the sample pipeline with an empty memory."""
    return AnswerGenerator(
        knowledge_pipeline,
        memory=ConversationMemory(),
        openai_api_key=TestConstants.TEST_API_KEY,
    )


@pytest.fixture
def chat_mock_factory():
    """Factory mock fixture for AnswerGenerator's client.chat.completions.create."""

    @contextmanager
    def _mock_chat(  # noqa: ANN202
        generator, content: str | None = "Test response", side_effect=None
    ):
        with patch.object(generator.client.chat.completions, "create") as mock_create:
            if side_effect is not None:
                mock_create.side_effect = side_effect
                mock_create.return_value = None
            else:
                mock_create.side_effect = None
                mock_create.return_value = create_mock_chat_response(content)
            yield mock_create

    return _mock_chat
