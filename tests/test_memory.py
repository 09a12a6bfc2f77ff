"""Tests for ConversationMemory."""

import threading

import pytest

from campusbot import ConversationMemory, ConversationTurn, Role


@pytest.fixture
def memory():
    return ConversationMemory()


def test_unknown_user_has_empty_history(memory):
    assert memory.get("nobody") == ()
    assert memory.active_conversations == 0


def test_append_and_get_in_order(memory):
    memory.append("u1", Role.USER, "hello")
    memory.append("u1", "assistant", "hi")

    assert memory.get("u1") == (
        ConversationTurn(role=Role.USER, content="hello"),
        ConversationTurn(role=Role.ASSISTANT, content="hi"),
    )


def test_invalid_role_rejected(memory):
    with pytest.raises(ValueError, match="system"):
        memory.append("u1", "system", "nope")


def test_eleventh_append_evicts_oldest(memory):
    for i in range(11):
        memory.append("u1", Role.USER, f"message {i}")

    history = memory.get("u1")
    assert len(history) == 10
    assert history[0].content == "message 1"
    assert history[-1].content == "message 10"


def test_histories_are_per_user(memory):
    memory.record_exchange("u1", "q1", "a1")
    memory.record_exchange("u2", "q2", "a2")

    assert [turn.content for turn in memory.get("u1")] == ["q1", "a1"]
    assert [turn.content for turn in memory.get("u2")] == ["q2", "a2"]
    assert memory.active_conversations == 2


def test_get_returns_snapshot(memory):
    memory.append("u1", Role.USER, "first")
    snapshot = memory.get("u1")
    memory.append("u1", Role.ASSISTANT, "second")

    assert len(snapshot) == 1
    assert len(memory.get("u1")) == 2


def test_clear(memory):
    memory.record_exchange("u1", "q", "a")
    memory.clear("u1")
    assert memory.get("u1") == ()


def test_concurrent_appends_same_user_never_exceed_cap(memory):
    threads_count = 8
    appends_per_thread = 50
    barrier = threading.Barrier(threads_count)
    oversized: list[int] = []

    def _worker(worker_id: int) -> None:
        barrier.wait()
        for i in range(appends_per_thread):
            memory.record_exchange("shared", f"q{worker_id}-{i}", f"a{worker_id}-{i}")
            if len(memory.get("shared")) > memory.max_turns:
                oversized.append(worker_id)

    threads = [
        threading.Thread(target=_worker, args=(n,)) for n in range(threads_count)
    ]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    history = memory.get("shared")
    assert oversized == []
    assert len(history) == 10
    # exchanges are appended atomically, so roles still alternate
    assert [turn.role for turn in history] == [Role.USER, Role.ASSISTANT] * 5
