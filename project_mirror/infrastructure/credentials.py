"""Loading of the personal access token from the user's home directory."""

import logging
from pathlib import Path
from typing import Optional

from project_mirror.domain.errors import ConfigError

logger = logging.getLogger(__name__)


def token_path(service: str = "gitlab", home: Optional[Path] = None) -> Path:
    """Return the path of the token file, e.g. ``~/.gitlab_pat``."""
    if home is None:
        home = Path.home()
    return Path(home) / f".{service}_pat"


def load_personal_access_token(service: str = "gitlab", home: Optional[Path] = None) -> str:
    """
    Read the personal access token for ``service``.

    Args:
        service: Service name used to build the file name
        home: Home directory override. If None, uses the current user's home.

    Returns:
        The token with surrounding whitespace removed

    Raises:
        ConfigError: If the file is missing, unreadable or empty
    """
    path = token_path(service, home)
    try:
        token = path.read_text(encoding="utf-8").strip()
    except OSError as e:
        logger.error(f"Cannot read token file {path}: {e}")
        raise ConfigError(f"Cannot read token file {path}: {e}") from e

    if not token:
        raise ConfigError(f"Token file {path} is empty")

    return token
