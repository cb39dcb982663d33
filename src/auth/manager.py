"""Process-wide token lifecycle manager.

The bridge serves a single PSN account per process, so one
``TokenLifecycleManager`` is shared by every request. It is built lazily
from the environment on first use.
"""

from __future__ import annotations

from typing import Optional

from src.config.settings import Settings
from src.models.base_models import ClientIdentity

from .lifecycle import TokenLifecycleManager
from .token_store import TokenStore

_auth_manager: Optional[TokenLifecycleManager] = None


def create_auth_manager(settings: Settings) -> TokenLifecycleManager:
    """Build a manager for the credentials and token path in ``settings``."""
    return TokenLifecycleManager(
        TokenStore(settings.token_path),
        session_handle=settings.npsso,
        client=ClientIdentity(
            client_id=settings.client_id,
            client_secret=settings.client_secret,
        ),
    )


def get_auth_manager() -> TokenLifecycleManager:
    """Return the singleton token lifecycle manager."""
    global _auth_manager
    if _auth_manager is None:
        _auth_manager = create_auth_manager(Settings.from_env())
    return _auth_manager
