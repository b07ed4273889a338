"""Tests for session id propagation on log records."""

import logging

from salonbook.logging_context import (
    NO_SESSION,
    SessionIdFilter,
    bound_session,
    get_session_id,
    get_session_logger,
    new_session_id,
)


def _record(**extra) -> logging.LogRecord:
    record = logging.LogRecord("t", logging.INFO, __file__, 1, "msg", None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestSessionBinding:
    def test_default_is_no_session(self):
        assert get_session_id() == NO_SESSION

    def test_bound_session_restores_previous(self):
        with bound_session("WZ-outer"):
            with bound_session("WZ-inner"):
                assert get_session_id() == "WZ-inner"
            assert get_session_id() == "WZ-outer"
        assert get_session_id() == NO_SESSION

    def test_new_session_ids_are_unique(self):
        first, second = new_session_id(), new_session_id()
        assert first.startswith("WZ-")
        assert first != second


class TestSessionIdFilter:
    def test_stamps_current_session(self):
        with bound_session("WZ-1"):
            record = _record()
            SessionIdFilter().filter(record)
        assert record.session_id == "WZ-1"

    def test_keeps_explicit_session(self):
        with bound_session("WZ-1"):
            record = _record(session_id="WZ-explicit")
            SessionIdFilter().filter(record)
        assert record.session_id == "WZ-explicit"

    def test_filter_attached_once(self):
        logger = get_session_logger("salonbook.test.once")
        get_session_logger("salonbook.test.once")
        assert sum(isinstance(f, SessionIdFilter) for f in logger.filters) == 1
