"""
Tests for MessageStore

Query shapes sent to the store transport and window handling of results.
"""

import pytest
from unittest.mock import AsyncMock, Mock


def _row(ts, text="", user="U1", thread_ts=None):
    return {
        "teamId": "T1",
        "channelId": "C1",
        "userId": user,
        "threadTs": thread_ts,
        "ts": ts,
        "fromBot": 0,
        "text": text,
    }


@pytest.fixture
def db_client():
    client = Mock()
    client.do_query = AsyncMock(return_value={"results": []})
    return client


@pytest.fixture
def store(db_client):
    from rethread.common.message_store import MessageStore
    return MessageStore(db_client)


class TestWrites:
    """Tests for insert / update / delete"""

    @pytest.mark.asyncio
    async def test_insert_args(self, store, db_client, make_message):
        message = make_message("hello", ts="200", thread_ts=None)

        await store.insert(message)

        query, args = db_client.do_query.await_args.args
        assert query.startswith("INSERT INTO messages")
        assert args == ["T1", "C1", "U1", None, "200", False, "hello"]

    @pytest.mark.asyncio
    async def test_insert_failure_is_silent(self, store, db_client, make_message, caplog):
        import logging

        db_client.do_query.return_value = None

        with caplog.at_level(logging.WARNING, logger="rethread.common.message_store"):
            assert await store.insert(make_message("hello")) is None
        assert "Failed to store" in caplog.text

    @pytest.mark.asyncio
    async def test_update_text_matches_null_thread(self, store, db_client):
        await store.update_text("T1", "C1", "200", None, "edited")

        query, args = db_client.do_query.await_args.args
        assert "threadTs IS ?" in query
        assert args == ["edited", "T1", "C1", "200", None]

    @pytest.mark.asyncio
    async def test_delete(self, store, db_client):
        await store.delete("T1", "C1", "200", "100")

        query, args = db_client.do_query.await_args.args
        assert query.startswith("DELETE FROM messages")
        assert args == ["T1", "C1", "200", "100"]


class TestWindows:
    """Tests for the recency queries"""

    @pytest.mark.asyncio
    async def test_recent_in_channel(self, store, db_client):
        db_client.do_query.return_value = {
            "results": [_row("150", "b", thread_ts="100"), _row("120", "a")]
        }

        window = await store.recent_in_channel("T1", "C1")

        query, args = db_client.do_query.await_args.args
        assert "ORDER BY ts DESC LIMIT ?" in query
        assert args == ["T1", "C1", 25]
        assert [m.ts for m in window] == ["150", "120"]
        assert [m.thread_root for m in window] == ["100", "120"]

    @pytest.mark.asyncio
    async def test_recent_by_author(self, store, db_client):
        await store.recent_by_author_in_channel("T1", "C1", "U7")

        query, args = db_client.do_query.await_args.args
        assert "userId = ?" in query
        assert args == ["T1", "C1", "U7", 25]

    @pytest.mark.asyncio
    async def test_window_never_exceeds_limit(self, store, db_client):
        db_client.do_query.return_value = {
            "results": [_row(str(1000 - i)) for i in range(60)]
        }

        window = await store.recent_in_channel("T1", "C1")

        assert len(window) == 25
        assert window[0].ts == "1000"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("result", [None, {}, {"results": None}, {"error": "down"}])
    async def test_failed_read_is_empty(self, store, db_client, result):
        db_client.do_query.return_value = result

        assert await store.recent_by_author_in_channel("T1", "C1", "U1") == []

    @pytest.mark.asyncio
    async def test_custom_look_behind(self, db_client):
        from rethread.common.message_store import MessageStore

        store = MessageStore(db_client, look_behind=3)
        db_client.do_query.return_value = {"results": [_row(str(i)) for i in range(10)]}

        window = await store.recent_in_channel("T1", "C1")

        assert len(window) == 3
        assert db_client.do_query.await_args.args[1][-1] == 3


class TestStoredMessage:
    """Tests for row decoding"""

    def test_from_row(self):
        from rethread.common.schemas import StoredMessage

        msg = StoredMessage.from_row(_row("150", "text", user="U2", thread_ts=""))

        assert msg.ts == "150"
        assert msg.user_id == "U2"
        assert msg.thread_ts is None
        assert msg.thread_root == "150"

    def test_numeric_timestamps_formatted(self):
        from rethread.common.schemas import StoredMessage

        msg = StoredMessage.from_row(_row(1600000200.0001, thread_ts=1600000000))

        assert msg.ts == "1600000200.000100"
        assert msg.thread_ts == "1600000000.000000"

    @pytest.mark.parametrize("a, b, expected", [
        ("1600000200.000100", "1600000200.0001", True),
        ("1600000200.000100", "1600000200.000101", False),
        ("abc", "abc", True),
        ("abc", "1.0", False),
        ("", "1.0", False),
    ])
    def test_same_ts(self, a, b, expected):
        from rethread.common.schemas import same_ts

        assert same_ts(a, b) is expected


class TestLookBehindBound:
    """The store itself caps oversized or negative window sizes"""

    @pytest.mark.asyncio
    async def test_oversized_window_capped(self, db_client):
        from rethread.common.message_store import MessageStore

        store = MessageStore(db_client, look_behind=100)
        db_client.do_query.return_value = {"results": [_row(str(1000 - i)) for i in range(100)]}

        window = await store.recent_in_channel("T1", "C1")

        assert store.look_behind == 25
        assert db_client.do_query.await_args.args[1][-1] == 25
        assert len(window) == 25

    @pytest.mark.asyncio
    async def test_negative_window_floored(self, db_client):
        from rethread.common.message_store import MessageStore

        store = MessageStore(db_client, look_behind=-1)
        db_client.do_query.return_value = {"results": [_row("3"), _row("2"), _row("1")]}

        window = await store.recent_in_channel("T1", "C1")

        assert store.look_behind == 1
        assert [m.ts for m in window] == ["3"]
