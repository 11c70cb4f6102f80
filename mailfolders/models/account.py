"""Account dataclass — per-account folder configuration."""
from __future__ import annotations

from dataclasses import dataclass

from mailfolders.models.folder import FolderMode


@dataclass
class Account:
    id: int | None = None
    display_name: str = ""
    inbox_folder: str | None = None
    outbox_folder: str | None = None
    sent_folder: str | None = None
    trash_folder: str | None = None
    drafts_folder: str | None = None
    archive_folder: str | None = None
    spam_folder: str | None = None
    folder_display_mode: FolderMode = FolderMode.NOT_SECOND_CLASS

    def is_special_folder(self, server_id: str | None) -> bool:
        """True if server_id is one of the configured special folders."""
        if server_id is None:
            return False
        return server_id in (
            self.inbox_folder,
            self.outbox_folder,
            self.sent_folder,
            self.trash_folder,
            self.drafts_folder,
            self.archive_folder,
            self.spam_folder,
        )

    def __str__(self) -> str:
        return self.display_name or f"account {self.id}"
