"""
Virtual File System
===================

In-memory tree of directories and byte files used by the file
statements. Paths use "/" separators and are resolved from the root;
"." and ".." components are honoured and a leading "/" is optional.

Open files are identified by small integer handles:

| Mode   | Opened by        | Behaviour                             |
|--------|------------------|---------------------------------------|
| read   | OPEN .. FOR READ | file must exist; position 0           |
| write  | FOR OVERWRITE    | creates or truncates; position 0      |
| append | FOR APPEND       | creates if missing; position at end   |

All failures raise FileSystemError, which TRY/CATCH can handle.

Example
-------
>>> fs = VirtualFileSystem()
>>> fs.write_file("notes/a.txt", b"hello")
Traceback (most recent call last):
    ...
edubasic.errors.FileSystemError: directory not found: notes
>>> fs.mkdir("notes")
>>> fs.write_file("notes/a.txt", b"hello")
>>> fs.read_file("notes/a.txt")
b'hello'
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Union
import logging

from edubasic.errors import FileSystemError

logger = logging.getLogger(__name__)

MODES = ("read", "write", "append")


@dataclass
class Directory:
    entries: dict[str, Union["Directory", bytearray]] = field(default_factory=dict)


@dataclass
class OpenFile:
    path: str
    mode: str
    data: bytearray
    position: int = 0


class VirtualFileSystem:
    """
    Hierarchical in-memory byte store with a handle API.

    Usage:
        fs = VirtualFileSystem()
        handle = fs.open("log.txt", "write")
        fs.write_bytes(handle, b"line\\n")
        fs.close(handle)
    """

    def __init__(self):
        self.root = Directory()
        self._handles: dict[int, OpenFile] = {}
        self._next_handle = 1

    # =========================================================================
    # Path Resolution
    # =========================================================================

    @staticmethod
    def split_path(path: str) -> list[str]:
        parts: list[str] = []
        for part in path.replace("\\", "/").split("/"):
            if part in ("", "."):
                continue
            if part == "..":
                if parts:
                    parts.pop()
                continue
            parts.append(part)
        return parts

    def _lookup(self, path: str) -> Optional[Union[Directory, bytearray]]:
        node: Union[Directory, bytearray] = self.root
        for part in self.split_path(path):
            if not isinstance(node, Directory) or part not in node.entries:
                return None
            node = node.entries[part]
        return node

    def _parent(self, path: str) -> tuple[Directory, str]:
        """Directory that holds path, and the final name."""
        parts = self.split_path(path)
        if not parts:
            raise FileSystemError("invalid path: root directory")
        parent = self._lookup("/".join(parts[:-1]))
        if not isinstance(parent, Directory):
            raise FileSystemError(f"directory not found: {'/'.join(parts[:-1])}")
        return parent, parts[-1]

    def _file(self, path: str) -> bytearray:
        node = self._lookup(path)
        if not isinstance(node, bytearray):
            raise FileSystemError(f"file not found: {path}")
        return node

    def exists(self, path: str) -> bool:
        return self._lookup(path) is not None

    def is_file(self, path: str) -> bool:
        return isinstance(self._lookup(path), bytearray)

    def is_dir(self, path: str) -> bool:
        return isinstance(self._lookup(path), Directory)

    # =========================================================================
    # Whole-File Operations
    # =========================================================================

    def read_file(self, path: str) -> bytes:
        return bytes(self._file(path))

    def write_file(self, path: str, data: bytes) -> None:
        parent, name = self._parent(path)
        existing = parent.entries.get(name)
        if isinstance(existing, Directory):
            raise FileSystemError(f"is a directory: {path}")
        if existing is None:
            parent.entries[name] = bytearray(data)
        else:
            # keep the same buffer so open handles see the new content
            existing[:] = data

    def delete(self, path: str) -> None:
        parent, name = self._parent(path)
        if not isinstance(parent.entries.get(name), bytearray):
            raise FileSystemError(f"file not found: {path}")
        del parent.entries[name]

    def copy(self, source: str, destination: str) -> None:
        self.write_file(destination, self.read_file(source))

    def move(self, source: str, destination: str) -> None:
        data = self.read_file(source)
        self.write_file(destination, data)
        self.delete(source)

    # =========================================================================
    # Directories
    # =========================================================================

    def mkdir(self, path: str) -> None:
        """Create a directory and any missing parents."""
        node = self.root
        for part in self.split_path(path):
            child = node.entries.get(part)
            if child is None:
                child = node.entries[part] = Directory()
            elif not isinstance(child, Directory):
                raise FileSystemError(f"not a directory: {part}")
            node = child

    def rmdir(self, path: str) -> None:
        parent, name = self._parent(path)
        node = parent.entries.get(name)
        if not isinstance(node, Directory) or node.entries:
            raise FileSystemError(f"could not remove directory: {path}")
        del parent.entries[name]

    def list_dir(self, path: str = "") -> list[str]:
        """Sorted entry names; directories carry a trailing "/"."""
        node = self._lookup(path)
        if not isinstance(node, Directory):
            raise FileSystemError(f"directory not found: {path}")
        return sorted(
            name + "/" if isinstance(child, Directory) else name
            for name, child in node.entries.items()
        )

    # =========================================================================
    # Handles
    # =========================================================================

    def open(self, path: str, mode: str) -> int:
        if mode not in MODES:
            raise FileSystemError(f"invalid file mode: {mode}")
        if mode == "read":
            data = self._file(path)
        else:
            parent, name = self._parent(path)
            node = parent.entries.get(name)
            if isinstance(node, Directory):
                raise FileSystemError(f"is a directory: {path}")
            if node is None:
                node = parent.entries[name] = bytearray()
            elif mode == "write":
                node.clear()
            data = node

        handle = self._next_handle
        self._next_handle += 1
        position = len(data) if mode == "append" else 0
        self._handles[handle] = OpenFile(path, mode, data, position)
        logger.debug("Opened %s for %s as handle %d", path, mode, handle)
        return handle

    def _handle(self, handle: int) -> OpenFile:
        try:
            return self._handles[handle]
        except KeyError:
            raise FileSystemError(f"Invalid file handle: {handle}") from None

    def close(self, handle: int) -> None:
        self._handle(handle)
        del self._handles[handle]

    def close_all(self) -> None:
        self._handles.clear()

    def read_bytes(self, handle: int, count: int) -> bytes:
        """Read up to count bytes; fewer are returned at end of file."""
        entry = self._handle(handle)
        if entry.mode != "read":
            raise FileSystemError(f"file not open for reading: {entry.path}")
        chunk = bytes(entry.data[entry.position:entry.position + count])
        entry.position += len(chunk)
        return chunk

    def read_line(self, handle: int) -> Optional[bytes]:
        """Read through the next newline (kept); None at end of file."""
        entry = self._handle(handle)
        if entry.mode != "read":
            raise FileSystemError(f"file not open for reading: {entry.path}")
        if entry.position >= len(entry.data):
            return None
        end = entry.data.find(b"\n", entry.position)
        end = len(entry.data) if end < 0 else end + 1
        line = bytes(entry.data[entry.position:end])
        entry.position = end
        return line

    def write_bytes(self, handle: int, data: bytes) -> None:
        entry = self._handle(handle)
        if entry.mode == "read":
            raise FileSystemError(f"file not open for writing: {entry.path}")
        end = entry.position + len(data)
        entry.data[entry.position:end] = data
        entry.position = end

    def seek(self, handle: int, position: int) -> None:
        entry = self._handle(handle)
        if position < 0:
            raise FileSystemError(f"invalid seek position: {position}")
        entry.position = min(position, len(entry.data))

    def tell(self, handle: int) -> int:
        return self._handle(handle).position

    def eof(self, handle: int) -> bool:
        entry = self._handle(handle)
        return entry.position >= len(entry.data)

    @property
    def open_handles(self) -> list[int]:
        return sorted(self._handles)

    # =========================================================================
    # Host Directories
    # =========================================================================

    def load_directory(self, host_path: Union[str, Path], prefix: str = "") -> int:
        """
        Copy a host directory tree into the store under prefix.

        Returns:
            Number of files loaded
        """
        base = Path(host_path)
        if not base.is_dir():
            raise FileSystemError(f"directory not found: {host_path}")
        count = 0
        for item in sorted(base.rglob("*")):
            relative = "/".join([prefix, *item.relative_to(base).parts])
            if item.is_dir():
                self.mkdir(relative)
            elif item.is_file():
                self.mkdir("/".join(self.split_path(relative)[:-1]))
                self.write_file(relative, item.read_bytes())
                count += 1
        logger.debug("Loaded %d files from %s", count, base)
        return count

    def save_directory(self, host_path: Union[str, Path]) -> int:
        """Write every stored file below host_path. Returns the file count."""
        base = Path(host_path)
        count = 0
        stack: list[tuple[Directory, Path]] = [(self.root, base)]
        while stack:
            directory, target = stack.pop()
            target.mkdir(parents=True, exist_ok=True)
            for name, node in directory.entries.items():
                if isinstance(node, Directory):
                    stack.append((node, target / name))
                else:
                    (target / name).write_bytes(bytes(node))
                    count += 1
        return count
