"""Tests for writing single entries to disk."""

import os
import stat
from pathlib import Path

import pytest

from diskextract.Entries import EntryStatus
from diskextract.Errors import ContentConsumedError
from diskextract.Materializer import file_buffer_size, materialize, restore_permissions

from builders import dir_entry, failing_entry, file_entry, link_entry, posix_only


def test_file_is_written_with_missing_parents(tmp_path: Path) -> None:
    target = tmp_path / "deep" / "nested" / "a.txt"
    result = materialize(file_entry("deep/nested/a.txt", b"hello"), str(target))
    assert result.status == EntryStatus.EXTRACTED
    assert result.path == str(target)
    assert target.read_bytes() == b"hello"


def test_buffer_size_is_capped_by_entry_size() -> None:
    assert file_buffer_size(file_entry("a", b"0123456789")) == 10
    assert file_buffer_size(file_entry("a", b"0123456789"), 4) == 4
    assert file_buffer_size(file_entry("empty", b"")) == 1
    assert file_buffer_size(file_entry("big", b"x" * 8192), 4096) == 4096


def test_failing_content_is_reported_and_stream_closed(tmp_path: Path) -> None:
    target = tmp_path / "broken.bin"
    result = materialize(failing_entry("broken.bin", partial=b"abc"), str(target))
    assert result.status == EntryStatus.WRITE_FAILED
    assert isinstance(result.error, OSError)
    # Bytes buffered before the failure were flushed when the stream was closed
    assert target.read_bytes() == b"abc"


def test_content_can_only_be_written_once(tmp_path: Path) -> None:
    entry = file_entry("once.txt", b"data")
    assert materialize(entry, str(tmp_path / "once.txt")).ok
    second = materialize(entry, str(tmp_path / "again.txt"))
    assert second.status == EntryStatus.WRITE_FAILED
    assert isinstance(second.error, ContentConsumedError)


def test_directory_creation_is_idempotent(tmp_path: Path) -> None:
    target = tmp_path / "a" / "b"
    assert materialize(dir_entry("a/b/"), str(target)).ok
    assert materialize(dir_entry("a/b/"), str(target)).ok
    assert target.is_dir()


def test_file_over_existing_directory_fails_without_raising(tmp_path: Path) -> None:
    (tmp_path / "taken").mkdir()
    result = materialize(file_entry("taken", b"x"), str(tmp_path / "taken"))
    assert result.status == EntryStatus.WRITE_FAILED


@posix_only
def test_symlink_is_created_and_replaced_on_rerun(tmp_path: Path) -> None:
    link = tmp_path / "sub" / "link"
    assert materialize(link_entry("sub/link", "./target.txt"), str(link)).ok
    assert os.readlink(link) == "target.txt"
    assert materialize(link_entry("sub/link", "other.txt"), str(link)).ok
    assert os.readlink(link) == "other.txt"


@posix_only
def test_file_replaces_stale_symlink_instead_of_writing_through_it(tmp_path: Path) -> None:
    victim = tmp_path / "victim.txt"
    victim.write_bytes(b"keep")
    (tmp_path / "name").symlink_to(victim)
    assert materialize(file_entry("name", b"new"), str(tmp_path / "name")).ok
    assert victim.read_bytes() == b"keep"
    assert not (tmp_path / "name").is_symlink()
    assert (tmp_path / "name").read_bytes() == b"new"


@posix_only
def test_restore_permissions(tmp_path: Path) -> None:
    target = tmp_path / "script.sh"
    entry = file_entry("script.sh", b"#!/bin/sh\n", mode=0o100644)
    assert materialize(entry, str(target)).ok
    os.chmod(target, 0o600)
    assert restore_permissions(entry, str(target))
    assert stat.S_IMODE(target.stat().st_mode) == 0o644


@posix_only
def test_restore_permissions_drops_setuid_setgid_and_sticky_bits(tmp_path: Path) -> None:
    target = tmp_path / "tool"
    entry = file_entry("tool", b"\x7fELF", mode=0o106755)
    assert materialize(entry, str(target)).ok
    assert restore_permissions(entry, str(target))
    assert stat.S_IMODE(target.stat().st_mode) == 0o755


@pytest.mark.parametrize("mode", [None, 0, 0o7000])
def test_restore_permissions_skips_missing_modes(tmp_path: Path, mode) -> None:
    target = tmp_path / "plain.txt"
    target.write_bytes(b"")
    assert not restore_permissions(file_entry("plain.txt", mode=mode), str(target))
