"""
Membership registry backed by a JSON status file.

The file maps user ids to their record, e.g.
{"user_123": {"status": "active", "tier": "yearly"}}. The server only reads
the status; operators revoke members by editing the file or through
manage_membership.py, and changes are picked up on the next lookup.
"""

import json
import logging
from pathlib import Path
from threading import Lock
from typing import Dict, Optional

logger = logging.getLogger(__name__)

ACTIVE = "active"
REVOKED = "revoked"


class MembershipRegistry:
    """Live membership status lookup, reloaded when the file changes."""

    def __init__(self, members_file: Path):
        self.members_file = members_file
        self._lock = Lock()
        self._members: Dict[str, dict] = {}
        self._mtime: Optional[float] = None

    def exists(self) -> bool:
        return self.members_file.exists()

    def lookup(self, user_id: str) -> Optional[str]:
        """
        Get the registry status of a user.

        Returns:
            "active", "revoked" or another recorded status; None if the user
            has no record
        """
        with self._lock:
            self._reload_if_changed()
            record = self._members.get(user_id)
        if record is None:
            return None
        return str(record.get("status", ACTIVE))

    def set_status(self, user_id: str, status: str, **fields) -> None:
        """Create or update a member record and write the file."""
        with self._lock:
            self._reload_if_changed()
            record = dict(self._members.get(user_id) or {})
            record.update({k: v for k, v in fields.items() if v is not None})
            record["status"] = status
            self._members[user_id] = record
            self._save()
        logger.info(f"Membership registry: user={user_id}, status={status}")

    def __len__(self) -> int:
        with self._lock:
            self._reload_if_changed()
            return len(self._members)

    def _reload_if_changed(self) -> None:
        try:
            mtime = self.members_file.stat().st_mtime
        except FileNotFoundError:
            self._members, self._mtime = {}, None
            return
        if mtime != self._mtime:
            self._members = self._load_data()
            self._mtime = mtime

    def _load_data(self) -> Dict[str, dict]:
        try:
            with open(self.members_file, 'r', encoding='utf-8') as f:
                raw = json.load(f)
        except (json.JSONDecodeError, OSError) as e:
            logger.error(f"Error loading membership registry: {e}")
            return {}

        if isinstance(raw, list):
            return {str(item["userId"]): item for item in raw if isinstance(item, dict) and item.get("userId")}
        if isinstance(raw, dict):
            return {str(k): v for k, v in raw.items() if isinstance(v, dict)}
        logger.error(f"Membership registry {self.members_file} is not a JSON object or list")
        return {}

    def _save(self) -> None:
        self.members_file.parent.mkdir(parents=True, exist_ok=True)
        tmp_file = self.members_file.with_suffix(".tmp")
        with open(tmp_file, 'w', encoding='utf-8') as f:
            json.dump(self._members, f, ensure_ascii=False, indent=2)
        tmp_file.replace(self.members_file)
        self._mtime = self.members_file.stat().st_mtime
