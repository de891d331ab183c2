"""Tests for carrying the pending session across pages."""

from urllib.parse import parse_qs, urlsplit

from app.client.session_bridge import (
    PendingDeletionSession,
    SessionStore,
    build_confirm_url,
    is_valid_email,
    resolve_pending_session,
    session_from_url,
)


def test_is_valid_email():
    assert is_valid_email("a@b.com")
    assert is_valid_email("  first.last+tag@sub.example.org ")
    assert not is_valid_email("a@b")
    assert not is_valid_email("a b@c.com")
    assert not is_valid_email("")
    assert not is_valid_email(None)


class TestBuildConfirmUrl:
    def test_adds_token_and_account_type(self):
        url = build_confirm_url("https://example.com/confirm", "tok", "worker")

        assert url == "https://example.com/confirm?pendingToken=tok&accountType=worker"

    def test_keeps_other_params_and_replaces_stale_ones(self):
        url = build_confirm_url(
            "https://example.com/confirm?lang=en&pendingToken=old", "new", "propertyManager"
        )

        query = parse_qs(urlsplit(url).query)
        assert query == {"lang": ["en"], "pendingToken": ["new"], "accountType": ["propertyManager"]}

    def test_round_trips_through_session_from_url(self):
        url = build_confirm_url("https://example.com/confirm", "a-b_c", "worker")

        assert session_from_url(url) == PendingDeletionSession("a-b_c", "worker")


class TestSessionStore:
    def test_save_load_clear(self):
        store = SessionStore()
        store.save_session(PendingDeletionSession("tok", "worker"))

        assert store.load_session() == PendingDeletionSession("tok", "worker")

        store.clear_session()
        assert store.load_session() is None

    def test_ignores_unknown_account_type(self):
        store = SessionStore({"pendingToken": "tok", "accountType": "admin"})

        assert store.load_session() is None


class TestResolvePendingSession:
    def test_url_wins_and_overwrites_store(self):
        store = SessionStore({"pendingToken": "stale", "accountType": "worker"})

        session = resolve_pending_session({"pendingToken": "fresh", "accountType": "propertyManager"}, store)

        assert session == PendingDeletionSession("fresh", "propertyManager")
        assert store.load_session() == session

    def test_falls_back_to_store(self):
        store = SessionStore({"pendingToken": "stored", "accountType": "worker"})

        assert resolve_pending_session({}, store) == PendingDeletionSession("stored", "worker")

    def test_incomplete_url_uses_store(self):
        store = SessionStore({"pendingToken": "stored", "accountType": "worker"})

        session = resolve_pending_session({"pendingToken": "fresh"}, store)

        assert session == PendingDeletionSession("stored", "worker")

    def test_nothing_available(self):
        assert resolve_pending_session({}, SessionStore()) is None
