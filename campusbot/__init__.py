"""campusbot - CMTC IT department chatbot backend."""

from .classifier import classify_query
from .context import ContextBuilder
from .conversation import AnswerGenerator
from .embeddings import EmbeddingService
from .knowledge import KnowledgeIndex, cosine_similarity, describe_record
from .memory import ConversationMemory
from .messaging import LineMessagingClient
from .models import (
    BuiltContext,
    ConversationTurn,
    KnowledgeEntry,
    QueryAnalysis,
    QueryType,
    RecordCategory,
    Role,
    TabularStore,
)
from .pipeline import KnowledgePipeline, KnowledgeSnapshot
from .sheets import SheetLoader

__all__ = [
    "AnswerGenerator",
    "BuiltContext",
    "ContextBuilder",
    "ConversationMemory",
    "ConversationTurn",
    "EmbeddingService",
    "KnowledgeEntry",
    "KnowledgeIndex",
    "KnowledgePipeline",
    "KnowledgeSnapshot",
    "LineMessagingClient",
    "QueryAnalysis",
    "QueryType",
    "RecordCategory",
    "Role",
    "SheetLoader",
    "TabularStore",
    "classify_query",
    "cosine_similarity",
    "describe_record",
]
