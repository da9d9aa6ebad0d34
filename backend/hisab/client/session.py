"""Persisted identity of the logged-in user."""

import json
import logging
from pathlib import Path

from pydantic import BaseModel, ValidationError

from hisab.common import User, UserPayload

LOGGER = logging.getLogger(__name__)


class StoredSession(BaseModel):
    """On-disk session format."""

    access_token: str
    user: UserPayload


class SessionStore:
    """Holds the current user and token, mirrored to a JSON file.

    :param path: Location of the session file
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        self.user: User | None = None
        self.access_token: str | None = None

    def load(self) -> User | None:
        """Restore the session saved by a previous run.

        A missing file means nobody is logged in. A file that cannot be read or
        validated is removed and also treated as logged out.

        :return: The restored user, or None
        """
        self.user = None
        self.access_token = None

        if not self.path.exists():
            LOGGER.debug("No session file at %s", self.path)
            return None

        try:
            stored = StoredSession.model_validate_json(self.path.read_bytes())
        except (OSError, UnicodeDecodeError, ValidationError):
            LOGGER.warning("Discarding unreadable session file %s", self.path)
            self.path.unlink(missing_ok=True)
            return None

        self.user = stored.user.to_user()
        self.access_token = stored.access_token
        LOGGER.info("Restored session for %s", self.user.username)
        return self.user

    def save(self, user: User, access_token: str) -> None:
        """Remember a user and their token, in memory and on disk."""
        self.user = user
        self.access_token = access_token

        stored = StoredSession(
            access_token=access_token,
            user=UserPayload.from_user(user),
        )
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(
            json.dumps(stored.model_dump(mode="json"), ensure_ascii=False),
            "utf-8",
        )

    def replace_user(self, user: User) -> None:
        """Update the stored user while keeping the current token."""
        if self.access_token is None:
            msg = "Cannot update user without an active session"
            raise RuntimeError(msg)
        self.save(user, self.access_token)

    def clear(self) -> None:
        """Forget the current session."""
        self.user = None
        self.access_token = None
        self.path.unlink(missing_ok=True)
