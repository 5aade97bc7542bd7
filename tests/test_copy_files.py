"""Tests for copying files by glob patterns."""

import os
import threading

import pytest

from monorepo_build_tools import copy_files as copy_files_module
from monorepo_build_tools.copy_files import CopyOptions, copy_files


@pytest.fixture
def source(tmp_path):
    src = tmp_path / "src"
    (src / "assets" / "img").mkdir(parents=True)
    (src / "assets" / "img" / "logo.svg").write_text("<svg/>")
    (src / "assets" / "data.json").write_text("{}")
    (src / "index.ts").write_text("export {};")
    return src


class TestCopyFiles:
    """Test copying while keeping the directory structure."""

    @pytest.mark.asyncio
    async def test_keeps_structure(self, source, tmp_path):
        destination = tmp_path / "dist"
        written = await copy_files(
            CopyOptions(include=["assets/**/*"], destination=str(destination), source=str(source))
        )
        assert (destination / "assets" / "img" / "logo.svg").read_text() == "<svg/>"
        assert (destination / "assets" / "data.json").read_text() == "{}"
        assert not (destination / "index.ts").exists()
        assert str(destination / "assets" / "data.json") in written

    @pytest.mark.asyncio
    async def test_exclude(self, source, tmp_path):
        destination = tmp_path / "dist"
        await copy_files(
            CopyOptions(
                include=["**/*.json", "**/*.svg"],
                exclude=["**/*.svg"],
                destination=str(destination),
                source=str(source),
            )
        )
        assert (destination / "assets" / "data.json").exists()
        assert not (destination / "assets" / "img" / "logo.svg").exists()

    @pytest.mark.asyncio
    async def test_dry_run_writes_nothing(self, source, tmp_path, caplog):
        destination = tmp_path / "dist"
        with caplog.at_level("INFO", logger="monorepo_build_tools"):
            written = await copy_files(
                CopyOptions(
                    include=["*.ts"], destination=str(destination), source=str(source), dry_run=True
                )
            )
        assert written == [str(destination / "index.ts")]
        assert not destination.exists()
        assert "copyFile" in caplog.text

    @pytest.mark.asyncio
    @pytest.mark.skipif(not hasattr(os, "symlink"), reason="symlinks")
    async def test_symlink_recreated(self, source, tmp_path):
        (source / "link.ts").symlink_to(source / "index.ts")
        destination = tmp_path / "dist"
        await copy_files(
            CopyOptions(include=["link.ts"], destination=str(destination), source=str(source))
        )
        target = destination / "link.ts"
        assert target.is_symlink()
        assert os.path.realpath(target) == os.path.realpath(source / "index.ts")

    @pytest.mark.asyncio
    async def test_symlink_followed(self, source, tmp_path):
        (source / "link.ts").symlink_to(source / "index.ts")
        destination = tmp_path / "dist"
        await copy_files(
            CopyOptions(
                include=["link.ts"],
                destination=str(destination),
                source=str(source),
                follow_symlinks=True,
            )
        )
        target = destination / "link.ts"
        assert not target.is_symlink()
        assert target.read_text() == "export {};"


class TestListedFiles:
    """Test copying files listed by name."""

    @pytest.mark.asyncio
    async def test_copies_listed(self, source, tmp_path):
        destination = tmp_path / "dist"
        written = await copy_files(
            CopyOptions(
                files=["index.ts", "assets/data.json"],
                destination=str(destination),
                source=str(source),
            )
        )
        assert (destination / "index.ts").read_text() == "export {};"
        assert (destination / "assets" / "data.json").read_text() == "{}"
        assert not (destination / "assets" / "img").exists()
        assert len(written) == 2

    @pytest.mark.asyncio
    async def test_missing_file(self, source, tmp_path):
        destination = tmp_path / "dist"
        with pytest.raises(FileNotFoundError):
            await copy_files(
                CopyOptions(
                    files=["index.ts", "missing.ts"], destination=str(destination), source=str(source)
                )
            )
        assert not destination.exists()

    def test_nothing_selected(self):
        with pytest.raises(ValueError):
            CopyOptions(destination="dist")


class TestGlobbing:
    """Test that globbing stays off the event loop thread."""

    @pytest.mark.asyncio
    async def test_runs_in_worker_thread(self, source, tmp_path, monkeypatch):
        threads = []
        original = copy_files_module._glob_entries

        def recording_glob(opts):
            threads.append(threading.get_ident())
            return original(opts)

        monkeypatch.setattr(copy_files_module, "_glob_entries", recording_glob)
        await copy_files(
            CopyOptions(include=["*.ts"], destination=str(tmp_path / "dist"), source=str(source))
        )
        assert threads and threads[0] != threading.get_ident()
