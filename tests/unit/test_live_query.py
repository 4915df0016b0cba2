"""Unit tests for live query feeds."""

import threading
from unittest.mock import patch

from survey_service.services.live_query import LiveQuery, load_questions


def counting_loader(values):
    """Loader returning the current contents of ``values``."""
    return lambda db: list(values)


class TestLiveQuery:
    """Tests for subscribe/refresh/cancel."""

    def test_refresh_delivers_full_snapshot(self):
        values = ["a"]
        feed = LiveQuery("items", counting_loader(values))
        received = []
        feed.subscribe(received.append)

        feed.refresh(db=None)
        values.append("b")
        feed.refresh(db=None)

        assert received == [("a",), ("a", "b")]
        assert feed.snapshot == ("a", "b")

    def test_subscribe_gets_current_snapshot_immediately(self):
        feed = LiveQuery("items", counting_loader(["a"]))
        feed.refresh(db=None)

        received = []
        feed.subscribe(received.append)
        assert received == [("a",)]

    def test_no_delivery_before_first_refresh(self):
        feed = LiveQuery("items", counting_loader(["a"]))
        received = []
        feed.subscribe(received.append)
        assert received == []

    def test_cancel_stops_deliveries(self):
        feed = LiveQuery("items", counting_loader(["a"]))
        received = []
        subscription = feed.subscribe(received.append)

        subscription.cancel()
        subscription.cancel()
        feed.refresh(db=None)

        assert received == []
        assert feed.subscriber_count == 0

    def test_failing_subscriber_does_not_block_others(self):
        feed = LiveQuery("items", counting_loader(["a"]))
        received = []

        def broken(snapshot):
            raise RuntimeError("render failed")

        feed.subscribe(broken)
        feed.subscribe(received.append)

        with patch("survey_service.services.live_query.logger") as mock_logger:
            feed.refresh(db=None)
            mock_logger.error.assert_called_once()
        assert received == [("a",)]

    def test_clear(self):
        feed = LiveQuery("items", counting_loader(["a"]))
        received = []
        subscription = feed.subscribe(received.append)
        feed.refresh(db=None)

        feed.clear()
        feed.refresh(db=None)

        assert feed.subscriber_count == 0
        assert not subscription.active
        assert received == [("a",)]

    def test_overlapping_refreshes_publish_newest_last(self):
        """Test that a slow older load can't overwrite a newer snapshot."""
        values = ["q1"]
        first_load_started = threading.Event()
        release_first_load = threading.Event()
        calls = []

        def slow_first_loader(db):
            snapshot = list(values)
            calls.append(snapshot)
            if len(calls) == 1:
                first_load_started.set()
                release_first_load.wait(timeout=5)
            return snapshot

        feed = LiveQuery("questions", slow_first_loader)
        received = []
        feed.subscribe(received.append)

        older = threading.Thread(target=feed.refresh, args=(None,))
        older.start()
        assert first_load_started.wait(timeout=5)

        values.append("q2")
        newer = threading.Thread(target=feed.refresh, args=(None,))
        newer.start()
        newer.join(timeout=0.2)

        release_first_load.set()
        older.join(timeout=5)
        newer.join(timeout=5)

        assert feed.snapshot == ("q1", "q2")
        assert received[-1] == ("q1", "q2")
        assert received == [("q1",), ("q1", "q2")]


class TestLoaders:

    def test_load_questions_ordered_and_typed(self, db_session, make_question):
        make_question(text="Second", type="yes_no", order=2)
        make_question(text="First", type="dropdown", options=["A"], order=1)

        questions = load_questions(db_session)
        assert [question.text for question in questions] == ["First", "Second"]
        assert questions[0].choices == ("A",)

    def test_load_questions_skips_unknown_types(self, db_session, make_question):
        make_question(text="Legacy", type="matrix", order=1)
        make_question(text="Kept", order=2)

        with patch("survey_service.services.live_query.logger") as mock_logger:
            questions = load_questions(db_session)
            mock_logger.warning.assert_called_once()
        assert [question.text for question in questions] == ["Kept"]
