"""Message dataclass — the per-message state the unread count is derived from."""
from __future__ import annotations

import json
from dataclasses import dataclass, field

from imapclient.imapclient import DELETED, SEEN


def _flag_text(flag: bytes | str) -> str:
    return flag.decode("ascii", errors="replace") if isinstance(flag, bytes) else flag


@dataclass
class Message:
    id: int | None = None
    uid: int = 0
    folder_id: int = 0
    subject: str = ""
    flags: list[str] = field(default_factory=list)
    # Placeholder rows for messages whose content was never downloaded
    empty: bool = False

    def has_flag(self, flag: bytes | str) -> bool:
        """IMAP flag names compare case-insensitively."""
        wanted = _flag_text(flag).lower()
        return any(f.lower() == wanted for f in self.flags)

    @property
    def is_read(self) -> bool:
        return self.has_flag(SEEN)

    @property
    def is_deleted(self) -> bool:
        return self.has_flag(DELETED)

    @property
    def flags_json(self) -> str:
        return json.dumps(self.flags)

    @classmethod
    def from_imap_flags(cls, uid: int, folder_id: int, flags, subject: str = "") -> "Message":
        """Build a message from a FETCH FLAGS response (bytes or str flags)."""
        return cls(
            uid=uid,
            folder_id=folder_id,
            subject=subject,
            flags=[_flag_text(f) for f in flags],
        )

    @classmethod
    def from_row(cls, row: dict) -> "Message":
        return cls(
            id=row["id"],
            uid=row["uid"],
            folder_id=row["folder_id"],
            subject=row.get("subject") or "",
            flags=json.loads(row.get("flags") or "[]"),
            empty=bool(row["empty"]),
        )
