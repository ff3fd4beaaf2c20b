"""
File Statements
===============

Handle-based I/O (OPEN, CLOSE, READ, LINE INPUT, WRITE, SEEK) and
whole-path operations (READFILE, WRITEFILE, LISTDIR, MKDIR, RMDIR, COPY,
MOVE, DELETE) against the context's VirtualFileSystem.

Binary Format
-------------
WRITE and READ use a fixed little-endian encoding chosen by value type
(WRITE) or by the destination variable's sigil (READ):

| Type     | Encoding                                      |
|----------|-----------------------------------------------|
| Integer  | int32                                         |
| Real     | float64                                       |
| Complex  | float64 real part, float64 imaginary part     |
| String   | int32 byte length, then UTF-8 bytes           |
| Array    | elements in order, no count prefix            |

A String written at the top level is written as text followed by a
newline, so text files can be produced with WRITE and read back with
LINE INPUT. READ of an array fills the existing array element by
element, so DIM the destination first.
"""

from dataclasses import dataclass
from typing import Any, Optional
import logging
import struct

from edubasic.builtins import require_file_system
from edubasic.errors import BasicRuntimeError, FileSystemError
from edubasic.expressions import Expression
from edubasic.statements.base import ExecutionResult, Outcome, Statement
from edubasic.statements.misc import next_data_value
from edubasic.values import BasicArray, Structure, ValueType, split_name, type_for_name

logger = logging.getLogger(__name__)

INT32 = struct.Struct("<i")
FLOAT64 = struct.Struct("<d")
COMPLEX128 = struct.Struct("<dd")

# Language mode keyword -> VirtualFileSystem mode
FILE_MODES = {"READ": "read", "APPEND": "append", "OVERWRITE": "write"}


# =============================================================================
# Helpers
# =============================================================================

def _handle(value: Any, operation: str) -> int:
    if not isinstance(value, int):
        raise BasicRuntimeError(f"{operation}: file handle must be an integer")
    return value


def _path(value: Any, operation: str, what: str = "filename") -> str:
    if not isinstance(value, str):
        raise BasicRuntimeError(f"{operation}: {what} must be a string")
    return value


def _with_prefix(operation: str, call, *args):
    """Run a whole-path file system call, prefixing its error message."""
    try:
        return call(*args)
    except FileSystemError as e:
        raise FileSystemError(f"{operation}: {e.message}") from e


def encode_value(value: Any, operation: str = "WRITE", top_level: bool = True) -> bytes:
    if isinstance(value, str):
        if top_level:
            return (value + "\n").encode("utf-8")
        data = value.encode("utf-8")
        return INT32.pack(len(data)) + data
    if isinstance(value, int):
        if not -2**31 <= value < 2**31:
            raise BasicRuntimeError(f"{operation}: integer out of range: {value}")
        return INT32.pack(value)
    if isinstance(value, float):
        return FLOAT64.pack(value)
    if isinstance(value, complex):
        return COMPLEX128.pack(value.real, value.imag)
    if isinstance(value, BasicArray):
        return b"".join(encode_value(item, operation, top_level=False) for item in value.data)
    raise BasicRuntimeError(f"{operation}: cannot write STRUCTURE values")


def _read_exact(file_system, handle: int, count: int) -> bytes:
    data = file_system.read_bytes(handle, count)
    if len(data) < count:
        raise BasicRuntimeError("READ: end of file")
    return data


def decode_value(file_system, handle: int, value_type: Optional[ValueType]) -> Any:
    """Read one scalar of value_type from handle."""
    if value_type == ValueType.INTEGER:
        return INT32.unpack(_read_exact(file_system, handle, INT32.size))[0]
    if value_type == ValueType.REAL:
        return FLOAT64.unpack(_read_exact(file_system, handle, FLOAT64.size))[0]
    if value_type == ValueType.COMPLEX:
        real, imag = COMPLEX128.unpack(_read_exact(file_system, handle, COMPLEX128.size))
        return complex(real, imag)
    if value_type == ValueType.STRING:
        length = INT32.unpack(_read_exact(file_system, handle, INT32.size))[0]
        return _read_exact(file_system, handle, length).decode("utf-8")
    raise BasicRuntimeError("READ: cannot read STRUCTURE values")


# =============================================================================
# Handle Statements
# =============================================================================

@dataclass
class OpenStatement(Statement):
    """OPEN filename FOR READ|APPEND|OVERWRITE AS handle"""
    filename: Expression
    mode: str
    handle_variable: str

    def execute(self, context, runtime) -> Outcome:
        path = _path(self.filename.evaluate(context), "OPEN")
        handle = require_file_system(context).open(path, FILE_MODES[self.mode])
        context.set_variable(self.handle_variable, handle)
        return ExecutionResult.CONTINUE

    def __str__(self) -> str:
        return f"OPEN {self.filename} FOR {self.mode} AS {self.handle_variable}"


@dataclass
class CloseStatement(Statement):
    handle: Expression

    def execute(self, context, runtime) -> Outcome:
        handle = _handle(self.handle.evaluate(context), "CLOSE")
        require_file_system(context).close(handle)
        return ExecutionResult.CONTINUE

    def __str__(self) -> str:
        return f"CLOSE {self.handle}"


@dataclass
class ReadStatement(Statement):
    """
    READ variable FROM handle, or READ variable to take the next DATA item.
    """
    variable: str
    handle: Optional[Expression] = None

    def execute(self, context, runtime) -> Outcome:
        if self.handle is None:
            context.set_variable(self.variable, next_data_value(context, runtime))
            return ExecutionResult.CONTINUE

        handle = _handle(self.handle.evaluate(context), "READ")
        file_system = require_file_system(context)
        _, _, suffix = split_name(self.variable)
        if not suffix:
            value = decode_value(file_system, handle, type_for_name(self.variable))
            context.set_variable(self.variable, value)
            return ExecutionResult.CONTINUE

        array = context.get_variable(self.variable)
        if not isinstance(array, BasicArray):
            raise BasicRuntimeError(f"READ: {self.variable} is not an array")
        element_type = array.element_type or type_for_name(self.variable)
        for index in range(len(array.data)):
            array.data[index] = array.coerce_element(decode_value(file_system, handle, element_type))
        return ExecutionResult.CONTINUE

    def __str__(self) -> str:
        if self.handle is None:
            return f"READ {self.variable}"
        return f"READ {self.variable} FROM {self.handle}"


@dataclass
class LineInputStatement(Statement):
    """LINE INPUT variable FROM handle: the line keeps its newline."""
    variable: str
    handle: Expression

    def execute(self, context, runtime) -> Outcome:
        handle = _handle(self.handle.evaluate(context), "LINE INPUT")
        line = require_file_system(context).read_line(handle)
        if line is None:
            raise BasicRuntimeError("LINE INPUT: end of file")
        context.set_variable(self.variable, line.decode("utf-8"))
        return ExecutionResult.CONTINUE

    def __str__(self) -> str:
        return f"LINE INPUT {self.variable} FROM {self.handle}"


@dataclass
class WriteStatement(Statement):
    """WRITE expression TO handle"""
    value: Expression
    handle: Expression

    def execute(self, context, runtime) -> Outcome:
        value = self.value.evaluate(context)
        handle = _handle(self.handle.evaluate(context), "WRITE")
        if isinstance(value, Structure):
            raise BasicRuntimeError("WRITE: cannot write STRUCTURE values")
        require_file_system(context).write_bytes(handle, encode_value(value))
        return ExecutionResult.CONTINUE

    def __str__(self) -> str:
        return f"WRITE {self.value} TO {self.handle}"


@dataclass
class SeekStatement(Statement):
    """SEEK position IN handle"""
    position: Expression
    handle: Expression

    def execute(self, context, runtime) -> Outcome:
        position = self.position.evaluate(context)
        if not isinstance(position, (int, float)):
            raise BasicRuntimeError("SEEK: position must be a number")
        handle = _handle(self.handle.evaluate(context), "SEEK")
        require_file_system(context).seek(handle, int(position))
        return ExecutionResult.CONTINUE

    def __str__(self) -> str:
        return f"SEEK {self.position} IN {self.handle}"


# =============================================================================
# Whole-Path Statements
# =============================================================================

@dataclass
class ReadFileStatement(Statement):
    """READFILE variable FROM filename: the whole file as text."""
    variable: str
    filename: Expression

    def execute(self, context, runtime) -> Outcome:
        path = _path(self.filename.evaluate(context), "READFILE")
        data = _with_prefix("READFILE", require_file_system(context).read_file, path)
        context.set_variable(self.variable, data.decode("utf-8"))
        return ExecutionResult.CONTINUE

    def __str__(self) -> str:
        return f"READFILE {self.variable} FROM {self.filename}"


@dataclass
class WriteFileStatement(Statement):
    """WRITEFILE content TO filename: replace the file's text."""
    content: Expression
    filename: Expression

    def execute(self, context, runtime) -> Outcome:
        content = self.content.evaluate(context)
        if not isinstance(content, str):
            raise BasicRuntimeError("WRITEFILE: content must be a string")
        path = _path(self.filename.evaluate(context), "WRITEFILE")
        _with_prefix("WRITEFILE", require_file_system(context).write_file, path, content.encode("utf-8"))
        return ExecutionResult.CONTINUE

    def __str__(self) -> str:
        return f"WRITEFILE {self.content} TO {self.filename}"


@dataclass
class ListDirStatement(Statement):
    """LISTDIR names$[] FROM path: entry names, directories ending in "/"."""
    variable: str
    path: Expression

    def execute(self, context, runtime) -> Outcome:
        if not split_name(self.variable)[2]:
            raise BasicRuntimeError("LISTDIR: destination must be an array")
        path = _path(self.path.evaluate(context), "LISTDIR", "path")
        names = _with_prefix("LISTDIR", require_file_system(context).list_dir, path)
        context.set_variable(self.variable, BasicArray.of(names, ValueType.STRING))
        return ExecutionResult.CONTINUE

    def __str__(self) -> str:
        return f"LISTDIR {self.variable} FROM {self.path}"


@dataclass
class PathStatement(Statement):
    """MKDIR path, RMDIR path or DELETE path."""
    keyword: str
    path: Expression

    def execute(self, context, runtime) -> Outcome:
        what = "filename" if self.keyword == "DELETE" else "path"
        path = _path(self.path.evaluate(context), self.keyword, what)
        file_system = require_file_system(context)
        operation = {
            "MKDIR": file_system.mkdir,
            "RMDIR": file_system.rmdir,
            "DELETE": file_system.delete,
        }[self.keyword]
        _with_prefix(self.keyword, operation, path)
        return ExecutionResult.CONTINUE

    def __str__(self) -> str:
        return f"{self.keyword} {self.path}"


@dataclass
class TransferStatement(Statement):
    """COPY source TO destination, or MOVE source TO destination."""
    keyword: str
    source: Expression
    destination: Expression

    def execute(self, context, runtime) -> Outcome:
        source = self.source.evaluate(context)
        destination = self.destination.evaluate(context)
        if not isinstance(source, str) or not isinstance(destination, str):
            raise BasicRuntimeError(f"{self.keyword}: source and destination must be strings")
        file_system = require_file_system(context)
        operation = file_system.copy if self.keyword == "COPY" else file_system.move
        _with_prefix(self.keyword, operation, source, destination)
        return ExecutionResult.CONTINUE

    def __str__(self) -> str:
        return f"{self.keyword} {self.source} TO {self.destination}"
