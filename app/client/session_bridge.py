"""Carries the pending token and account type across page navigation.

The confirm page may open in a fresh tab or after storage was cleared, so
the redirect URL carries both values as query parameters. The URL is
authoritative; the local store is only a fallback when the URL lacks them.
"""

import re
from dataclasses import dataclass
from typing import Mapping
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

from app.utils.constants import ACCOUNT_TYPE_PARAM, PENDING_TOKEN_PARAM

ACCOUNT_TYPES = ("worker", "propertyManager")

# local part, "@", and a domain containing a dot
_EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def is_valid_email(email: str | None) -> bool:
    return bool(email) and _EMAIL_RE.match(email.strip()) is not None


@dataclass(frozen=True)
class PendingDeletionSession:
    pending_token: str
    account_type: str


class SessionStore:
    """Dict-backed stand-in for browser local storage."""

    def __init__(self, initial: dict[str, str] | None = None):
        self._data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def remove(self, key: str) -> None:
        self._data.pop(key, None)

    def save_session(self, session: PendingDeletionSession) -> None:
        self.set(PENDING_TOKEN_PARAM, session.pending_token)
        self.set(ACCOUNT_TYPE_PARAM, session.account_type)

    def load_session(self) -> PendingDeletionSession | None:
        token = self.get(PENDING_TOKEN_PARAM)
        account_type = self.get(ACCOUNT_TYPE_PARAM)
        if token and account_type in ACCOUNT_TYPES:
            return PendingDeletionSession(token, account_type)
        return None

    def clear_session(self) -> None:
        self.remove(PENDING_TOKEN_PARAM)
        self.remove(ACCOUNT_TYPE_PARAM)


def build_confirm_url(base_url: str, pending_token: str, account_type: str) -> str:
    """Embed the token and account type in the confirm page URL.

    Any query parameters already on ``base_url`` are kept; stale token or
    account type values are replaced.
    """
    parts = urlsplit(base_url)
    query = [
        (key, value)
        for key, value in parse_qsl(parts.query, keep_blank_values=True)
        if key not in (PENDING_TOKEN_PARAM, ACCOUNT_TYPE_PARAM)
    ]
    query.append((PENDING_TOKEN_PARAM, pending_token))
    query.append((ACCOUNT_TYPE_PARAM, account_type))
    return urlunsplit(parts._replace(query=urlencode(query)))


def session_from_url(url: str) -> PendingDeletionSession | None:
    return session_from_params(dict(parse_qsl(urlsplit(url).query)))


def session_from_params(params: Mapping[str, str]) -> PendingDeletionSession | None:
    token = (params.get(PENDING_TOKEN_PARAM) or "").strip()
    account_type = (params.get(ACCOUNT_TYPE_PARAM) or "").strip()
    if token and account_type in ACCOUNT_TYPES:
        return PendingDeletionSession(token, account_type)
    return None


def resolve_pending_session(
    params: Mapping[str, str],
    store: SessionStore,
) -> PendingDeletionSession | None:
    """Pick the session for the confirm step.

    URL parameters win and overwrite the stored copy; the store is used only
    when the URL carries no usable pair.
    """
    from_url = session_from_params(params)
    if from_url is not None:
        store.save_session(from_url)
        return from_url
    return store.load_session()
