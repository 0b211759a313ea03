"""Tests for the session store and history repositories."""

import threading

import pytest

from markup_agent.agent.history import (
    HistoryRow,
    InMemoryHistoryRepository,
    SqliteHistoryRepository,
)
from markup_agent.agent.message import Message, MessageKind, ToolCall
from markup_agent.agent.session import SessionStore
from markup_agent.agent.states import SessionStatus
from markup_agent.core.errors import SessionError


class TestSessionLifecycle:
    """세션 생성/조회 테스트."""

    def test_create(self):
        store = SessionStore()
        sid = store.create()
        assert store.exists(sid)
        assert store.get_status(sid) is SessionStatus.IDLE
        assert store.read_all(sid) == []
        assert store.list_sessions() == [sid]

    def test_ids_are_unique(self):
        store = SessionStore()
        assert store.create() != store.create()

    def test_unknown_session(self):
        store = SessionStore()
        with pytest.raises(SessionError, match="Unknown session"):
            store.get_status("missing")
        with pytest.raises(SessionError):
            store.append_message("missing", Message.user("hi"))


class TestMessageLog:
    """추가 전용 메시지 로그 테스트."""

    def test_append_returns_sequence(self):
        store = SessionStore()
        sid = store.create()
        assert store.append_message(sid, Message.system("rules")) == 0
        assert store.append_message(sid, Message.user("hi")) == 1
        assert store.message_count(sid) == 2

    def test_read_all_is_snapshot(self):
        store = SessionStore()
        sid = store.create()
        store.append_message(sid, Message.user("hi"))

        snapshot = store.read_all(sid)
        store.append_message(sid, Message.user("again"))

        assert len(snapshot) == 1
        assert len(store.read_all(sid)) == 2

    def test_rows_reach_repository(self):
        repository = InMemoryHistoryRepository()
        store = SessionStore(repository)
        sid = store.create()
        store.append_message(sid, Message.user("hi"))

        assert repository.query(sid) == [
            HistoryRow(sid, "user", "hi", 0, MessageKind.USER_INPUT.value, "[]")
        ]

    def test_concurrent_reads_see_complete_prefix(self):
        """동시 읽기는 항상 완전한 접두부를 본다."""
        store = SessionStore()
        sid = store.create()
        seen: list[list[str]] = []

        def writer():
            for i in range(200):
                store.append_message(sid, Message.user(str(i)))

        def reader():
            for _ in range(200):
                seen.append([m.content for m in store.read_all(sid)])

        threads = [threading.Thread(target=writer), threading.Thread(target=reader)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        for snapshot in seen:
            assert snapshot == [str(i) for i in range(len(snapshot))]


class TestStatus:
    """상태 전이 테스트."""

    def test_valid_transitions(self):
        store = SessionStore()
        sid = store.create()
        store.set_status(sid, SessionStatus.RUNNING)
        store.set_status(sid, SessionStatus.WAITING)
        store.set_status(sid, SessionStatus.RUNNING)
        store.set_status(sid, SessionStatus.CANCELLED)
        store.set_status(sid, SessionStatus.IDLE)
        assert store.get_status(sid) is SessionStatus.IDLE

    def test_same_status_is_noop(self):
        store = SessionStore()
        sid = store.create()
        store.set_status(sid, SessionStatus.IDLE)
        assert store.get_status(sid) is SessionStatus.IDLE

    def test_invalid_transition(self):
        store = SessionStore()
        sid = store.create()
        with pytest.raises(SessionError, match="Invalid status transition"):
            store.set_status(sid, SessionStatus.WAITING)
        assert store.get_status(sid) is SessionStatus.IDLE

    def test_turn_count(self):
        store = SessionStore()
        sid = store.create()
        assert store.increment_turn_count(sid) == 1
        assert store.increment_turn_count(sid) == 2
        assert store.get_turn_count(sid) == 2


class TestClaim:
    """단일 작성자 소유권 테스트."""

    def test_claim_and_release(self):
        store = SessionStore()
        sid = store.create()

        assert store.claim(sid, "a")
        assert store.claim(sid, "a")
        assert not store.claim(sid, "b")
        assert store.owner_of(sid) == "a"

        store.release(sid, "b")
        assert store.owner_of(sid) == "a"

        store.release(sid, "a")
        assert store.owner_of(sid) is None
        assert store.claim(sid, "b")


class TestSqlitePersistence:
    """SQLite 저장소 테스트."""

    def test_roundtrip_across_stores(self, tmp_path):
        db = tmp_path / "history.db"
        messages = [
            Message.system("rules"),
            Message.user("list the files"),
            Message(
                role="assistant",
                content="Looking.",
                tool_calls=(ToolCall("list_files", {"dir_path": "src", "extra": "x"}),),
            ),
            Message.tool_output("Tool Output [list_files]:\nmain.py"),
        ]

        store = SessionStore(SqliteHistoryRepository(db))
        sid = store.create()
        for message in messages:
            store.append_message(sid, message)
        store.close()

        reopened = SessionStore(SqliteHistoryRepository(db))
        assert reopened.load(sid) == sid
        assert reopened.read_all(sid) == messages
        assert reopened.get_status(sid) is SessionStatus.IDLE
        assert list(reopened.read_all(sid)[2].tool_calls[0].arguments) == ["dir_path", "extra"]
        reopened.close()

    def test_load_continues_sequence(self, tmp_path):
        db = tmp_path / "history.db"
        store = SessionStore(SqliteHistoryRepository(db))
        sid = store.create()
        store.append_message(sid, Message.user("one"))
        store.close()

        reopened = SessionStore(SqliteHistoryRepository(db))
        reopened.load(sid)
        assert reopened.append_message(sid, Message.user("two")) == 1
        reopened.close()

    def test_load_unknown_session(self, tmp_path):
        store = SessionStore(SqliteHistoryRepository(tmp_path / "history.db"))
        with pytest.raises(SessionError):
            store.load("missing")
        store.close()

    def test_session_ids(self):
        repository = SqliteHistoryRepository()
        store = SessionStore(repository)
        first, second = store.create(), store.create()
        store.append_message(second, Message.user("b"))
        store.append_message(first, Message.user("a"))

        assert repository.session_ids() == [second, first]
        store.close()
