"""File-backed persistence for the PSN token pair.

The record's modification time is load-bearing: the lifecycle manager
measures access token expiry from it, so it is returned alongside the
loaded tokens as ``persisted_at``.
"""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path
from typing import Optional, Union

from pydantic import BaseModel, ValidationError

from src.models.base_models import PersistedTokens, Token, TokenPair
from src.models.errors import StorageError

logger = logging.getLogger(__name__)


class _TokenRecord(BaseModel):
    """On-disk record shape. Both entries must be present."""

    access: Token
    refresh: Token


class TokenStore:
    """Single JSON record holding the current ``TokenPair``."""

    def __init__(self, path: Union[str, Path]) -> None:
        self.path = Path(path)

    def exists(self) -> bool:
        return self.path.is_file()

    def last_write_time(self) -> Optional[float]:
        try:
            return self.path.stat().st_mtime
        except OSError:
            return None

    def load(self) -> Optional[PersistedTokens]:
        """Return the persisted tokens, or ``None`` when absent or malformed."""
        persisted_at = self.last_write_time()
        if persisted_at is None:
            return None

        try:
            raw = self.path.read_text(encoding="utf-8")
            record = _TokenRecord.model_validate_json(raw)
        except (OSError, ValueError, ValidationError) as exc:
            logger.warning("Ignoring unreadable token record %s: %s", self.path, exc)
            return None

        if record.access.is_empty:
            logger.warning("Ignoring token record %s without an access token", self.path)
            return None

        return PersistedTokens(
            tokens=TokenPair(access=record.access, refresh=record.refresh),
            persisted_at=persisted_at,
        )

    def save(self, tokens: TokenPair) -> None:
        """Atomically replace the record with ``tokens``."""
        payload = tokens.model_dump_json(by_alias=True, indent=2)
        tmp_name = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp"
            )
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(payload)
                handle.flush()
                os.fsync(handle.fileno())
            os.replace(tmp_name, self.path)
            tmp_name = None
        except OSError as exc:
            raise StorageError(f"Failed to save tokens to {self.path}: {exc}") from exc
        finally:
            if tmp_name is not None:
                try:
                    os.unlink(tmp_name)
                except OSError:
                    logger.debug("Temporary token file %s already gone", tmp_name)

        logger.debug("Saved tokens to %s", self.path)


__all__ = ["TokenStore"]
