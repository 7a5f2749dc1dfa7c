"""Tests for path containment and symlink target validation."""

import os
from pathlib import Path

from diskextract.PathSafety import is_contained, resolve_entry_path, validate_symlink

from builders import dir_entry, file_entry, link_entry, posix_only


def test_root_contains_itself_and_descendants(tmp_path: Path) -> None:
    assert is_contained(tmp_path, tmp_path)
    assert is_contained(tmp_path, tmp_path / "a" / "b.txt")
    assert is_contained(tmp_path, tmp_path / "a" / ".." / "b.txt")


def test_parent_and_sibling_prefix_are_not_contained(tmp_path: Path) -> None:
    root = tmp_path / "out"
    assert not is_contained(root, tmp_path)
    assert not is_contained(root, root / ".." / "escape.txt")
    # A string-prefix check would accept this one
    assert not is_contained(root, tmp_path / "out-evil" / "x")


@posix_only
def test_existing_symlink_segments_are_followed(tmp_path: Path) -> None:
    root = tmp_path / "out"
    outside = tmp_path / "elsewhere"
    root.mkdir()
    outside.mkdir()
    (root / "jump").symlink_to(outside)
    assert not is_contained(root, root / "jump" / "file.txt")


def test_traversal_names_are_skipped(tmp_path: Path) -> None:
    assert resolve_entry_path(tmp_path, file_entry("a/../../etc/passwd")) is None
    assert resolve_entry_path(tmp_path, file_entry("../bad.txt")) is None
    assert resolve_entry_path(tmp_path, dir_entry("../../outside/")) is None


def test_absolute_names_are_skipped(tmp_path: Path) -> None:
    assert resolve_entry_path(tmp_path, file_entry("/etc/passwd")) is None


def test_safe_names_resolve_under_root(tmp_path: Path) -> None:
    path = resolve_entry_path(tmp_path, file_entry("docs/./guide/../readme.md"))
    assert path == os.path.join(str(tmp_path), "docs", "readme.md")
    assert resolve_entry_path(tmp_path, dir_entry("docs/")) == os.path.join(str(tmp_path), "docs")


def test_absolute_symlink_targets_are_always_rejected(tmp_path: Path) -> None:
    assert not validate_symlink(tmp_path, link_entry("link", "/etc"))
    # Even an absolute target that happens to point inside the root
    assert not validate_symlink(tmp_path, link_entry("link", str(tmp_path / "inside")))


def test_relative_symlink_targets(tmp_path: Path) -> None:
    assert validate_symlink(tmp_path, link_entry("a/link", "../b.txt"))
    assert validate_symlink(tmp_path, link_entry("a/b/link", "../../c"))
    assert not validate_symlink(tmp_path, link_entry("a/link", "../../escape"))
    assert not validate_symlink(tmp_path, link_entry("a/b/c/link", "../../../../x"))
    assert not validate_symlink(tmp_path, link_entry("link", ".."))


def test_empty_symlink_target_is_permitted(tmp_path: Path) -> None:
    assert validate_symlink(tmp_path, link_entry("a/self", ""))
    assert resolve_entry_path(tmp_path, link_entry("a/self", "")) is not None


def test_symlink_entries_with_directory_style_names_are_checked_as_links(tmp_path: Path) -> None:
    assert resolve_entry_path(tmp_path, link_entry("evil/", "/etc")) is None
    assert resolve_entry_path(tmp_path, link_entry("evil/", "../..")) is None


@posix_only
def test_symlink_target_is_resolved_from_the_links_real_directory(tmp_path: Path) -> None:
    # a/up points back at the root, so a link created "inside" a/up actually lives in the root
    (tmp_path / "a").mkdir()
    (tmp_path / "a" / "up").symlink_to("..")
    assert not validate_symlink(tmp_path, link_entry("a/up/out", ".."))
    assert validate_symlink(tmp_path, link_entry("a/up/out", "a"))


def test_names_and_targets_with_nul_bytes_are_skipped(tmp_path: Path) -> None:
    assert resolve_entry_path(tmp_path, file_entry("bad\x00name.txt")) is None
    assert resolve_entry_path(tmp_path, dir_entry("dir\x00/")) is None
    assert resolve_entry_path(tmp_path, link_entry("link", "a\x00b")) is None


def test_links_without_a_readable_target_are_rejected(tmp_path: Path) -> None:
    entry = link_entry("link", None)
    assert not validate_symlink(tmp_path, entry)
    assert resolve_entry_path(tmp_path, entry) is None
