"""Environment-driven settings for the PSN bridge.

Values are read from the process environment; ``main.py`` loads ``.env``
with python-dotenv before anything here is evaluated.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Tuple

DEFAULT_CONNECT_TIMEOUT = 10
DEFAULT_TOKEN_PATH = Path("data") / "psn_tokens.json"
DEFAULT_RESOURCE_TMP_DIR = Path("data") / "psnapi" / "resources"


def get_api_timeout() -> Tuple[int, int]:
    """Return the (connect, read) timeout tuple for PSN HTTP calls."""
    read_timeout = int(os.getenv("PSN_API_TIMEOUT", "30"))
    return DEFAULT_CONNECT_TIMEOUT, read_timeout


@dataclass(frozen=True)
class Settings:
    npsso: str = ""
    client_id: str = ""
    client_secret: str = ""
    token_path: Path = DEFAULT_TOKEN_PATH
    resource_tmp_dir: Path = DEFAULT_RESOURCE_TMP_DIR
    port: int = 8000
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            npsso=os.getenv("NPSSO", ""),
            client_id=os.getenv("CLIENT_ID", ""),
            client_secret=os.getenv("CLIENT_SECRET", ""),
            token_path=Path(os.getenv("PSN_TOKEN_PATH", str(DEFAULT_TOKEN_PATH))),
            resource_tmp_dir=Path(
                os.getenv("PSN_RESOURCE_TMP_DIR", str(DEFAULT_RESOURCE_TMP_DIR))
            ),
            port=int(os.getenv("MCP_PORT", "8000")),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
        )


__all__ = ["Settings", "get_api_timeout", "DEFAULT_CONNECT_TIMEOUT"]
