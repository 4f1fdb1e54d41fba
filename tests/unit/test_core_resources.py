"""Unit tests for scoped temporary resources and chunked reads."""

import io
import os

import pytest

from streaming_gpg.core import resources


class Boom(Exception):
    pass


# ==============================================================================
# Tests: temp_directory
# ==============================================================================

def test_temp_directory_exists_inside_scope_and_is_removed(tmp_path):
    """The directory is usable inside the block and gone afterwards."""
    with resources.temp_directory("sgpg-test.", parent=tmp_path) as d:
        assert d.is_dir()
        assert d.name.startswith("sgpg-test.")
        (d / "nested").mkdir()
        (d / "nested" / "file.bin").write_bytes(b"data")
    assert not d.exists()


def test_temp_directory_removed_when_body_raises(tmp_path):
    """A failure mid-scope still removes the directory and its contents."""
    with pytest.raises(Boom):
        with resources.temp_directory("sgpg-test.", parent=tmp_path) as d:
            (d / "partial.key").write_bytes(b"half")
            raise Boom()
    assert not d.exists()


def test_temp_directory_is_private(tmp_path):
    """mkdtemp creates the directory readable by the owner only."""
    with resources.temp_directory("sgpg-test.", parent=tmp_path) as d:
        if os.name == "posix":
            assert (d.stat().st_mode & 0o777) == 0o700


# ==============================================================================
# Tests: temp_file
# ==============================================================================

def test_temp_file_created_in_parent_and_removed(tmp_path):
    with resources.temp_file(tmp_path, "import", ".key") as (path, handle):
        assert path.parent == tmp_path
        assert path.name.startswith("import")
        assert path.name.endswith(".key")
        handle.write(b"key bytes")
        handle.close()
        assert path.read_bytes() == b"key bytes"
    assert not path.exists()


def test_temp_file_removed_when_body_raises(tmp_path):
    with pytest.raises(Boom):
        with resources.temp_file(tmp_path, "import", ".key") as (path, handle):
            handle.write(b"partial")
            raise Boom()
    assert not path.exists()
    assert list(tmp_path.iterdir()) == []


def test_temp_file_names_are_unique(tmp_path):
    with resources.temp_file(tmp_path, "import") as (p1, _h1):
        with resources.temp_file(tmp_path, "import") as (p2, _h2):
            assert p1 != p2


def test_temp_file_inside_temp_directory_cleans_up_in_either_order(tmp_path):
    """The file may already be gone with its directory when its scope ends."""
    with resources.temp_directory("sgpg-test.", parent=tmp_path) as d:
        with resources.temp_file(d, "import") as (path, handle):
            handle.close()
            path.unlink()
    assert not d.exists()


def test_temp_file_missing_parent_raises_os_error(tmp_path):
    with pytest.raises(FileNotFoundError):
        with resources.temp_file(tmp_path / "nope", "import"):
            pass


# ==============================================================================
# Tests: chunked reads
# ==============================================================================

def test_iter_file_chunks_respects_chunk_size():
    src = io.BytesIO(b"abcdefghij")
    assert list(resources.iter_file_chunks(src, chunk_size=4)) == [b"abcd", b"efgh", b"ij"]


def test_iter_file_chunks_empty():
    assert list(resources.iter_file_chunks(io.BytesIO(b""))) == []


def test_open_binary_chunks_closes_file(tmp_path):
    p = tmp_path / "key.asc"
    p.write_bytes(b"x" * 100)
    with resources.open_binary_chunks(p, chunk_size=30) as chunks:
        data = b"".join(chunks)
    assert data == b"x" * 100


def test_open_binary_chunks_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        with resources.open_binary_chunks(tmp_path / "missing.asc"):
            pass
