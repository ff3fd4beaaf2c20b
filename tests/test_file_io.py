# =============================================================================
# test_file_io.py - Virtual File System and File Statement Tests
# =============================================================================
# Tests for VirtualFileSystem (paths, handles, host directories) and the
# file statements that use it (OPEN/WRITE/READ, LINE INPUT, whole-path
# operations) including the binary value encoding.
# =============================================================================

import struct

import pytest

from edubasic.devices.filesystem import VirtualFileSystem
from edubasic.errors import FileSystemError


def lines(*text: str) -> str:
    return "\n".join(text)


# =============================================================================
# VirtualFileSystem
# =============================================================================

class TestVirtualFileSystem:
    """Direct use of the in-memory store."""

    def test_write_and_read_file(self):
        fs = VirtualFileSystem()
        fs.write_file("notes.txt", b"hello")
        assert fs.read_file("notes.txt") == b"hello"
        assert fs.is_file("notes.txt")
        assert not fs.is_dir("notes.txt")

    def test_missing_file(self):
        fs = VirtualFileSystem()
        with pytest.raises(FileSystemError, match="file not found: nope.txt"):
            fs.read_file("nope.txt")

    def test_missing_parent_directory(self):
        fs = VirtualFileSystem()
        with pytest.raises(FileSystemError, match="directory not found: a/b"):
            fs.write_file("a/b/c.txt", b"")

    def test_mkdir_creates_parents(self):
        fs = VirtualFileSystem()
        fs.mkdir("a/b")
        fs.write_file("a/b/c.txt", b"x")
        assert fs.list_dir("a") == ["b/"]
        assert fs.list_dir("a/b") == ["c.txt"]

    def test_path_normalization(self):
        fs = VirtualFileSystem()
        fs.mkdir("dir")
        fs.write_file("dir/../top.txt", b"1")
        assert fs.exists("./top.txt")
        assert fs.exists("\\top.txt")

    def test_rmdir_requires_empty(self):
        fs = VirtualFileSystem()
        fs.mkdir("d")
        fs.write_file("d/f", b"")
        with pytest.raises(FileSystemError, match="could not remove directory"):
            fs.rmdir("d")
        fs.delete("d/f")
        fs.rmdir("d")
        assert not fs.exists("d")

    def test_move(self):
        fs = VirtualFileSystem()
        fs.write_file("a", b"data")
        fs.move("a", "b")
        assert not fs.exists("a")
        assert fs.read_file("b") == b"data"

    def test_handles(self):
        fs = VirtualFileSystem()
        handle = fs.open("log.txt", "write")
        fs.write_bytes(handle, b"one\ntwo\n")
        fs.close(handle)

        handle = fs.open("log.txt", "read")
        assert fs.read_line(handle) == b"one\n"
        assert fs.read_line(handle) == b"two\n"
        assert fs.read_line(handle) is None
        assert fs.eof(handle)
        fs.seek(handle, 4)
        assert fs.read_bytes(handle, 3) == b"two"

    def test_append_mode_starts_at_end(self):
        fs = VirtualFileSystem()
        fs.write_file("f", b"ab")
        handle = fs.open("f", "append")
        assert fs.tell(handle) == 2
        fs.write_bytes(handle, b"c")
        assert fs.read_file("f") == b"abc"

    def test_write_mode_truncates(self):
        fs = VirtualFileSystem()
        fs.write_file("f", b"old content")
        fs.open("f", "write")
        assert fs.read_file("f") == b""

    def test_read_on_write_handle(self):
        fs = VirtualFileSystem()
        handle = fs.open("f", "write")
        with pytest.raises(FileSystemError, match="file not open for reading: f"):
            fs.read_bytes(handle, 1)

    def test_invalid_handle(self):
        fs = VirtualFileSystem()
        with pytest.raises(FileSystemError, match="Invalid file handle: 9"):
            fs.close(9)

    def test_handle_numbers_increase(self):
        fs = VirtualFileSystem()
        first = fs.open("a", "write")
        second = fs.open("b", "write")
        assert second == first + 1
        assert fs.open_handles == [first, second]
        fs.close_all()
        assert fs.open_handles == []

    def test_host_directory_round_trip(self, tmp_path):
        source = tmp_path / "in"
        (source / "sub").mkdir(parents=True)
        (source / "top.txt").write_bytes(b"top")
        (source / "sub" / "inner.txt").write_bytes(b"inner")

        fs = VirtualFileSystem()
        assert fs.load_directory(source) == 2
        assert fs.read_file("sub/inner.txt") == b"inner"

        target = tmp_path / "out"
        assert fs.save_directory(target) == 2
        assert (target / "top.txt").read_bytes() == b"top"
        assert (target / "sub" / "inner.txt").read_bytes() == b"inner"


# =============================================================================
# File Statements
# =============================================================================

class TestFileStatements:
    """Programs that use the file statements."""

    def test_write_then_read_values(self, run_program):
        interp = run_program(lines(
            'OPEN "data.bin" FOR OVERWRITE AS h%',
            "WRITE 42 TO h%",
            "WRITE 2.5 TO h%",
            "CLOSE h%",
            'OPEN "data.bin" FOR READ AS h%',
            "READ n% FROM h%",
            "READ r# FROM h%",
            "CLOSE h%",
            "PRINT n%; r#",
        ))
        assert interp.console.text == "422.5\n"

    def test_binary_layout(self, run_program):
        interp = run_program(lines(
            'OPEN "out.bin" FOR OVERWRITE AS h%',
            "WRITE 1 TO h%",
            "WRITE 0.5 TO h%",
            "WRITE 1+2i TO h%",
            "CLOSE h%",
        ))
        data = interp.file_system.read_file("out.bin")
        assert data == struct.pack("<i", 1) + struct.pack("<d", 0.5) + struct.pack("<dd", 1.0, 2.0)

    def test_string_array_layout(self, run_program):
        interp = run_program(lines(
            'LET words$[] = ["ab", "c"]',
            'OPEN "w.bin" FOR OVERWRITE AS h%',
            "WRITE words$[] TO h%",
            "CLOSE h%",
        ))
        data = interp.file_system.read_file("w.bin")
        assert data == struct.pack("<i", 2) + b"ab" + struct.pack("<i", 1) + b"c"

    def test_read_array_fills_existing(self, run_program):
        interp = run_program(lines(
            'OPEN "a.bin" FOR OVERWRITE AS h%',
            "WRITE [7, 8, 9] TO h%",
            "CLOSE h%",
            "DIM v%[3]",
            'OPEN "a.bin" FOR READ AS h%',
            "READ v%[] FROM h%",
            "PRINT v%[]",
        ))
        assert interp.console.text == "[7, 8, 9]\n"

    def test_top_level_string_is_a_text_line(self, run_program):
        interp = run_program(lines(
            'OPEN "log.txt" FOR OVERWRITE AS h%',
            'WRITE "first" TO h%',
            'WRITE "second" TO h%',
            "CLOSE h%",
            'OPEN "log.txt" FOR READ AS h%',
            "LINE INPUT a$ FROM h%",
            "PRINT a$;",
            "PRINT EOF h%",
        ))
        assert interp.file_system.read_file("log.txt") == b"first\nsecond\n"
        assert interp.console.text == "first\n0\n"

    def test_append(self, run_program):
        interp = run_program(lines(
            'WRITEFILE "a" TO "f.txt"',
            'OPEN "f.txt" FOR APPEND AS h%',
            'WRITE "b" TO h%',
            "CLOSE h%",
            'READFILE s$ FROM "f.txt"',
        ))
        assert interp.context.get_variable("s$") == "ab\n"

    def test_read_past_end(self, run_program):
        interp = run_program(lines(
            'WRITEFILE "" TO "empty"',
            'OPEN "empty" FOR READ AS h%',
            "READ n% FROM h%",
        ))
        assert interp.last_result.error.message == "READ: end of file"

    def test_whole_path_error_prefix(self, run_program):
        interp = run_program('READFILE s$ FROM "missing.txt"')
        assert interp.last_result.error.message == "READFILE: file not found: missing.txt"

    def test_open_missing_file_is_catchable(self, run_program):
        interp = run_program(lines(
            "TRY",
            'OPEN "missing" FOR READ AS h%',
            "CATCH e$",
            "PRINT e$",
            "END TRY",
        ))
        assert interp.console.text == "file not found: missing\n"

    def test_directories(self, run_program):
        interp = run_program(lines(
            'MKDIR "docs/old"',
            'WRITEFILE "x" TO "docs/a.txt"',
            'COPY "docs/a.txt" TO "docs/b.txt"',
            'MOVE "docs/b.txt" TO "docs/old/b.txt"',
            'LISTDIR names$[] FROM "docs"',
            "PRINT names$[]",
            'DELETE "docs/a.txt"',
            'PRINT EXISTS "docs/a.txt"',
        ))
        assert interp.console.text == '["a.txt", "old/"]\n0\n'

    def test_listdir_requires_array(self, run_program):
        interp = run_program('LISTDIR names$ FROM ""')
        assert interp.last_result.error.message == "LISTDIR: destination must be an array"

    def test_reset_closes_handles(self, run_program):
        interp = run_program('OPEN "f" FOR OVERWRITE AS h%')
        assert interp.file_system.open_handles
        interp.reset()
        assert interp.file_system.open_handles == []
        assert interp.file_system.exists("f")
