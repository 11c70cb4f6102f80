"""Display list helpers — display-class filter clauses and the folder list ordering.

Ordering, strongest key first:
  1. the account's inbox
  2. the account's outbox
  3. any other special folder (sent, trash, drafts, archive, spam)
  4. folders pinned to the top group
  5. name, case-insensitive

The exact name and the folder id follow as final tie-breaks so the order is total.
"""
from __future__ import annotations

from typing import Iterable

from mailfolders.models.account import Account
from mailfolders.models.folder import DisplayFolder, FolderClass, FolderMode


def display_class_selection(mode: FolderMode) -> tuple[str, list[str]]:
    """Return a WHERE clause on f.display_class and its parameters for mode.

    ALL yields an empty clause. NONE is a caller bug and raises AssertionError.
    """
    if mode == FolderMode.ALL:
        return "", []
    if mode == FolderMode.FIRST_CLASS:
        return "WHERE f.display_class = ?", [FolderClass.FIRST_CLASS.name]
    if mode == FolderMode.FIRST_AND_SECOND_CLASS:
        return (
            "WHERE f.display_class IN (?, ?)",
            [FolderClass.FIRST_CLASS.name, FolderClass.SECOND_CLASS.name],
        )
    if mode == FolderMode.NOT_SECOND_CLASS:
        # NULL never matches !=, so unclassified rows are compared as NO_CLASS
        return (
            "WHERE COALESCE(f.display_class, ?) != ?",
            [FolderClass.NO_CLASS.name, FolderClass.SECOND_CLASS.name],
        )
    raise AssertionError(f"Invalid folder display mode: {mode}")


def display_sort_key(display_folder: DisplayFolder, account: Account) -> tuple:
    server_id = display_folder.folder.server_id
    return (
        server_id != account.inbox_folder,
        server_id != account.outbox_folder,
        not account.is_special_folder(server_id),
        not display_folder.is_in_top_group,
        display_folder.folder.name.casefold(),
        # equal names: keep the order independent of input order
        display_folder.folder.name,
        display_folder.folder.id,
    )


def sort_for_display(folders: Iterable[DisplayFolder], account: Account) -> list[DisplayFolder]:
    return sorted(folders, key=lambda df: display_sort_key(df, account))
