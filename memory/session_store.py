"""JSON file store for conversation sessions."""

import asyncio
import json
import logging
import os
import tempfile
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Tuple, Union

from pydantic import ValidationError

from .errors import SessionNotFoundError, SessionSerializationError, StorageIOError
from .models import ConversationSession, SessionInfo

logger = logging.getLogger(__name__)


class JSONSessionStore:
    """One pretty-printed JSON document per session, ``<session-id>.json``."""

    SUFFIX = ".json"

    def __init__(self, storage_path: Union[str, Path]):
        """
        Initialize session store.

        The directory is created lazily on first save.

        Args:
            storage_path: Directory holding session files
        """
        self.storage_path = Path(storage_path)

    def session_path(self, session_id: str) -> Path:
        return self.storage_path / f"{session_id}{self.SUFFIX}"

    def exists(self, session_id: str) -> bool:
        return self.session_path(session_id).exists()

    async def save(self, session: ConversationSession) -> None:
        """
        Write a session to disk.

        The document is written to a temporary file in the same directory
        and moved over the previous version, so readers see either the old
        or the new session, never a partial one.

        Args:
            session: Session to persist

        Raises:
            StorageIOError: If the directory or file cannot be written
        """
        data = session.model_dump_json(indent=2)
        path = self.session_path(session.id)

        def _write_session():
            self.storage_path.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(
                dir=self.storage_path, prefix=f".{session.id}.", suffix=".tmp"
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    f.write(data)
                    f.flush()
                    os.fsync(f.fileno())
                os.replace(tmp_path, path)
            except BaseException:
                if os.path.exists(tmp_path):
                    os.unlink(tmp_path)
                raise

        try:
            await asyncio.to_thread(_write_session)
        except OSError as e:
            logger.error(f"Failed to save session {session.id}: {e}")
            raise StorageIOError(f"Failed to save session {session.id}: {e}") from e

    async def load(self, session_id: str) -> ConversationSession:
        """
        Read and validate a full session.

        Args:
            session_id: Session ID

        Returns:
            Deserialized ConversationSession

        Raises:
            SessionNotFoundError: If no file exists for the session
            SessionSerializationError: If the file is corrupt
            StorageIOError: If the file cannot be read
        """
        data = await self._read(session_id)
        try:
            return ConversationSession.model_validate_json(data)
        except ValidationError as e:
            raise SessionSerializationError(f"Session {session_id} is corrupt: {e}") from e

    async def read_metadata(self, session_id: str) -> Tuple[str, datetime]:
        """
        Read only the name and last update time of a session.

        The rest of the document is not validated, so files written by
        newer versions with extra or changed fields still list.

        Returns:
            (name, updated_at)
        """
        data = await self._read(session_id)
        try:
            document = json.loads(data)
        except json.JSONDecodeError as e:
            raise SessionSerializationError(f"Session {session_id} is corrupt: {e}") from e
        if not isinstance(document, dict):
            raise SessionSerializationError(f"Session {session_id} is not a JSON object")

        name = document.get("name")
        if not isinstance(name, str):
            name = "Unnamed Session"

        updated_at = _parse_timestamp(document.get("updated_at"))
        return name, updated_at

    async def list_sessions(self) -> List[SessionInfo]:
        """
        Enumerate stored sessions, most recently updated first.

        Files whose name is not a session id or whose metadata cannot be
        read are skipped.

        Raises:
            StorageIOError: If the directory itself cannot be scanned
        """
        if not self.storage_path.exists():
            return []

        try:
            entries = await asyncio.to_thread(lambda: sorted(self.storage_path.iterdir()))
        except OSError as e:
            raise StorageIOError(f"Failed to scan {self.storage_path}: {e}") from e

        sessions = []
        for entry in entries:
            if entry.suffix != self.SUFFIX:
                continue
            try:
                session_id = str(uuid.UUID(entry.stem))
            except ValueError:
                continue

            try:
                name, updated_at = await self.read_metadata(session_id)
            except (SessionNotFoundError, SessionSerializationError, StorageIOError) as e:
                logger.debug(f"Skipping unreadable session file {entry.name}: {e}")
                continue

            sessions.append(SessionInfo(id=session_id, name=name, updated_at=updated_at))

        sessions.sort(key=lambda info: info.updated_at, reverse=True)
        return sessions

    async def _read(self, session_id: str) -> str:
        # Only UUID ids map to session files
        try:
            canonical_id = str(uuid.UUID(session_id))
        except (TypeError, ValueError):
            raise SessionNotFoundError(session_id) from None

        path = self.session_path(canonical_id)
        if not path.exists():
            raise SessionNotFoundError(session_id)

        def _read_session():
            with open(path, "r", encoding="utf-8") as f:
                return f.read()

        try:
            return await asyncio.to_thread(_read_session)
        except FileNotFoundError as e:
            raise SessionNotFoundError(session_id) from e
        except UnicodeDecodeError as e:
            raise SessionSerializationError(f"Session {session_id} is not valid UTF-8: {e}") from e
        except OSError as e:
            logger.error(f"Failed to read session {session_id}: {e}")
            raise StorageIOError(f"Failed to read session {session_id}: {e}") from e


def _parse_timestamp(value) -> datetime:
    if isinstance(value, str):
        try:
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            parsed = None
        if parsed is not None:
            if parsed.tzinfo is None:
                parsed = parsed.replace(tzinfo=timezone.utc)
            return parsed
    return datetime.now(timezone.utc)
