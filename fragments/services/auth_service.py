"""Authentication service backed by an htpasswd file."""

import threading
from pathlib import Path
from typing import Dict, Optional

from common.logging_config import get_logger
from fragments.auth import verify_password
from fragments.exceptions import InvalidCredentialsError
from fragments.utils import hash_owner

logger = get_logger(__name__)


def parse_htpasswd(text: str) -> Dict[str, str]:
    """
    Parse htpasswd-style content into a username -> bcrypt hash mapping.

    Blank lines and lines starting with '#' are ignored. Only bcrypt
    hashes ($2a$, $2b$, $2y$) are accepted.
    """
    users = {}
    for line_number, line in enumerate(text.splitlines(), start=1):
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        username, sep, password_hash = line.partition(":")
        if not sep or not username or not password_hash.startswith(("$2a$", "$2b$", "$2y$")):
            logger.warning(f"Skipping malformed htpasswd entry on line {line_number}")
            continue
        users[username] = password_hash
    return users


class AuthService:
    def __init__(self, htpasswd_file: str):
        self.htpasswd_file = htpasswd_file
        self._users: Optional[Dict[str, str]] = None
        self._lock = threading.Lock()

    def _load_users(self) -> Dict[str, str]:
        with self._lock:
            if self._users is None:
                path = Path(self.htpasswd_file)
                if not path.exists():
                    logger.error(f"htpasswd file not found: {self.htpasswd_file}")
                    self._users = {}
                else:
                    self._users = parse_htpasswd(path.read_text(encoding="utf-8"))
                    logger.info(f"Loaded {len(self._users)} users from {self.htpasswd_file}")
            return self._users

    def authenticate(self, username: str, password: str) -> str:
        """
        Check credentials and return the caller's owner id.

        Raises:
            InvalidCredentialsError: If the user is unknown or the password is wrong
        """
        password_hash = self._load_users().get(username)
        if password_hash is None:
            logger.warning("Authentication failed: unknown user")
            raise InvalidCredentialsError("Invalid username or password")

        if not verify_password(password, password_hash):
            logger.warning("Authentication failed: invalid password")
            raise InvalidCredentialsError("Invalid username or password")

        owner_id = hash_owner(username)
        logger.debug(f"Authenticated user [user_id={owner_id}]")
        return owner_id
