from __future__ import annotations

import os
from pathlib import Path

import pytest

from aware_bundles.errors import ClassificationError
from aware_bundles.tree import SourceTree, scan_tree

from conftest import write_tree


def test_scan_tree_collects_code_files_and_descriptors(chat_source: Path) -> None:
    tree = scan_tree(chat_source)

    framework = tree.find(0, "/framework/")
    assert framework is not None
    assert tree.node(framework).files == ["core.js"]
    assert tree.node(framework).descriptor == "package.bundle"

    group = tree.find(0, "chat/group")
    assert group is not None
    assert tree.node(group).files == ["groupChat.app.js", "groupChatUser.js"]
    assert tree.key(group) == "/chat/group/"
    assert tree.fs_path(group) == (chat_source / "chat" / "group").resolve()


def test_scan_tree_ignores_hidden_entries_and_non_code_files(chat_source: Path) -> None:
    tree = scan_tree(chat_source)

    assert tree.find(0, ".hidden") is None
    empty = tree.find(0, "empty")
    assert empty is not None
    assert tree.node(empty).files == []


def test_find_is_case_and_separator_insensitive(chat_source: Path) -> None:
    tree = scan_tree(chat_source)

    assert tree.find(0, "\\Chat\\GROUP") == tree.find(0, "/chat/group/")
    assert tree.find(0, "/") == 0
    assert tree.find(0, "/missing/") is None


def test_scan_tree_missing_folder_raises(tmp_path: Path) -> None:
    with pytest.raises(ClassificationError):
        scan_tree(tmp_path / "does-not-exist")


def test_scan_tree_unreadable_subfolder_raises(chat_source: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    real_scandir = os.scandir

    def locked_scandir(path="."):
        if Path(path).name == "group":
            raise PermissionError(13, "Permission denied", str(path))
        return real_scandir(path)

    monkeypatch.setattr(os, "scandir", locked_scandir)

    with pytest.raises(ClassificationError, match="Unable to enumerate .*group"):
        scan_tree(chat_source)


def test_duplicate_folder_keys_are_rejected() -> None:
    tree = SourceTree()
    root = tree.add_root()
    tree.add_folder(root, "Chat")
    with pytest.raises(ClassificationError):
        tree.add_folder(root, "chat")


def test_ancestors_walk_and_parent_links() -> None:
    tree = SourceTree()
    root = tree.add_root()
    chat = tree.add_folder(root, "chat")
    group = tree.add_folder(chat, "group")
    other = tree.add_folder(root, "other")

    assert list(tree.ancestors(group)) == [chat, root]
    assert list(tree.ancestors(group, chat)) == [chat]
    assert list(tree.walk(root)) == [root, chat, group, other]
    assert tree.root_of(group) == root
    assert tree.is_within(group, chat)
    assert not tree.is_within(other, chat)


def test_detach_makes_subtree_its_own_root(tmp_path: Path) -> None:
    source = write_tree(tmp_path / "src", {"packages/ui/button.js": "", "apps/home/home.app.js": ""})
    tree = scan_tree(source)
    packages = tree.find(0, "packages")
    ui = tree.find(0, "packages/ui")

    tree.detach(packages)

    assert tree.parent(packages) is None
    assert tree.key(ui) == "/ui/"
    assert tree.root_of(ui) == packages
    assert tree.find(0, "packages") is None
    assert tree.fs_path(ui) == (source / "packages" / "ui").resolve()
    assert list(tree.walk(0)) == [0, tree.find(0, "apps"), tree.find(0, "apps/home")]
