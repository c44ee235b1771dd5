"""
Anonymous user identity

Price reports are attributed to a locally generated id instead of an
account. The id lives in a small JSON key/value file (the desktop
counterpart of browser local storage) and is registered in the backend's
anonymous_users table on every use.
"""

import base64
import json
import locale
import logging
import platform
import shutil
import time
import uuid
from pathlib import Path
from typing import Dict, Optional

from baas_client import UNIQUE_VIOLATION, BaasClient, BaasError

logger = logging.getLogger(__name__)

STORAGE_KEY = "price-tracker-user-id"


class LocalStorage:
    """String key/value store persisted as a JSON file"""

    def __init__(self, path: Path):
        self.path = Path(path)

    def _load(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except ValueError:
            logger.warning(f"Ignoring unreadable storage file {self.path}")
            return {}
        if not isinstance(data, dict):
            logger.warning(f"Ignoring malformed storage file {self.path}")
            return {}
        return data

    def _save(self, data: Dict[str, str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(data, indent=2), encoding="utf-8")

    def get_item(self, key: str) -> Optional[str]:
        return self._load().get(key)

    def set_item(self, key: str, value: str) -> None:
        data = self._load()
        data[key] = value
        self._save(data)

    def remove_item(self, key: str) -> None:
        data = self._load()
        if data.pop(key, None) is not None:
            self._save(data)


class AnonymousUserService:
    """Creates and remembers the anonymous reporter id"""

    def __init__(self, client: BaasClient, storage: LocalStorage):
        self.client = client
        self.storage = storage

    def get_anonymous_user_id(self) -> str:
        """
        Return the stored id, generating one on first use.

        The backend row is (re)created every time; an existing row is fine.
        """
        user_id = self.storage.get_item(STORAGE_KEY)

        if not user_id:
            user_id = str(uuid.uuid4())
            self.storage.set_item(STORAGE_KEY, user_id)

        self._create_anonymous_user(user_id)
        return user_id

    def _create_anonymous_user(self, user_id: str) -> None:
        try:
            self.client.insert("anonymous_users", {
                "id": user_id,
                "display_name": f"User{user_id[:8]}",
            })
        except BaasError as e:
            if e.code != UNIQUE_VIOLATION:
                logger.warning(f"Anonymous user creation error: {e}")
            return

        logger.info(f"Anonymous user created: {user_id}")

    @staticmethod
    def generate_fingerprint() -> str:
        """Coarse fingerprint of this runtime (not an identifier on its own)"""
        size = shutil.get_terminal_size()
        parts = [
            f"Python/{platform.python_version()} ({platform.platform()})",
            locale.getlocale()[0] or "",
            f"{size.columns}x{size.lines}",
            str(time.timezone // 60),
        ]
        return base64.b64encode("|".join(parts).encode("utf-8")).decode("ascii")

    def clear_user_id(self) -> None:
        self.storage.remove_item(STORAGE_KEY)
