"""Tests for the diskextract command line interface."""

import tarfile
import zipfile
from pathlib import Path

import httpx
from click.testing import CliRunner

from diskextract import CLI

from builders import add_tar_file


def _make_tgz(path: Path) -> Path:
    with tarfile.open(path, "w:gz") as tar:
        add_tar_file(tar, "hello.txt", b"hi")
        add_tar_file(tar, "../escape.txt", b"no")
    return path


def test_extracts_local_archive_and_reports_skips(tmp_path: Path) -> None:
    source = _make_tgz(tmp_path / "demo.tgz")
    output = tmp_path / "out"

    result = CliRunner().invoke(CLI.extract, [str(source), "-o", str(output), "--yes"])

    assert result.exit_code == 0, result.output
    assert (output / "hello.txt").read_bytes() == b"hi"
    assert not (tmp_path / "escape.txt").exists()
    assert "1 of 2 entries written" in result.output
    assert "../escape.txt" in result.output


def test_confirmation_can_cancel(tmp_path: Path) -> None:
    source = _make_tgz(tmp_path / "demo.tgz")
    output = tmp_path / "out"

    result = CliRunner().invoke(CLI.extract, [str(source), "-o", str(output)], input="n\n")

    assert result.exit_code == 0
    assert "Extraction cancelled." in result.output
    assert not output.exists()


def test_list_only(tmp_path: Path) -> None:
    source = tmp_path / "bundle.zip"
    with zipfile.ZipFile(source, "w") as zf:
        zf.writestr("docs/guide.md", "# guide")
    output = tmp_path / "out"

    result = CliRunner().invoke(CLI.extract, [str(source), "-o", str(output), "--list"])

    assert result.exit_code == 0, result.output
    assert "docs/guide.md" in result.output
    assert not output.exists()


def test_unsupported_format_is_a_usage_error(tmp_path: Path) -> None:
    source = tmp_path / "archive.rar"
    source.write_bytes(b"Rar!")
    output = tmp_path / "out"

    result = CliRunner().invoke(CLI.extract, [str(source), "-o", str(output), "--yes"])

    assert result.exit_code == 2
    assert "Unsupported archive format" in result.output
    assert not output.exists()


def test_missing_local_file(tmp_path: Path) -> None:
    result = CliRunner().invoke(CLI.extract, [str(tmp_path / "nope.tar"), "--yes"])
    assert result.exit_code == 2
    assert "is not a file" in result.output


def test_remote_archive_is_downloaded_then_extracted(tmp_path: Path, monkeypatch) -> None:
    payload = _make_tgz(tmp_path / "remote.tar.gz").read_bytes()
    transport = httpx.MockTransport(lambda request: httpx.Response(200, content=payload))

    def fake_download(url, destination_dir, progress_callback=None):
        with httpx.Client(transport=transport) as client:
            return CLI.download_to_file(url, destination_dir, client=client, progress_callback=progress_callback)

    monkeypatch.setattr(CLI, "_fetch", fake_download)
    output = tmp_path / "out"

    result = CliRunner().invoke(
        CLI.extract, ["https://example.com/releases/remote.tar.gz", "-o", str(output), "--yes"]
    )

    assert result.exit_code == 0, result.output
    assert (output / "hello.txt").read_bytes() == b"hi"
