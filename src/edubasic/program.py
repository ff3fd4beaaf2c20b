"""
Program
=======

A Program is the ordered list of statements of a source text, together
with the source lines and a map from label names to line indices. Block
links are kept apart from it, in a LinkTable (see edubasic.links).

Example
-------
>>> from edubasic.statements import LabelStatement
>>> program = Program()
>>> program.append_line(LabelStatement("start"), "LABEL start")
0
>>> program.label_index("START")
0
"""

from typing import Optional

from edubasic.links import LinkKind, LinkTable
from edubasic.statements.base import Statement


# =============================================================================
# Program
# =============================================================================

class Program:
    """
    Ordered statements of a source text.

    Line indices are zero-based. Inserting or deleting a line shifts the
    label indices that follow it. Every mutation bumps version so that
    the runtime knows to re-link before the next step.

    Attributes:
        statements: One statement per source line
        source_lines: Original text of each line
        version: Mutation counter
    """

    def __init__(self):
        self.statements: list[Statement] = []
        self.source_lines: list[str] = []
        self._labels: dict[str, int] = {}
        self.version = 0

    # =========================================================================
    # Editing
    # =========================================================================

    def append_line(self, statement: Statement, source: str = "") -> int:
        index = len(self.statements)
        self.statements.append(statement)
        self.source_lines.append(source)
        self._register_label(statement, index)
        self.version += 1
        return index

    def insert_line(self, index: int, statement: Statement, source: str = "") -> None:
        if index < 0 or index > len(self.statements):
            raise IndexError(f"Line index out of range: {index}")
        self.statements.insert(index, statement)
        self.source_lines.insert(index, source)
        self._labels = {
            name: line + 1 if line >= index else line
            for name, line in self._labels.items()
        }
        self._register_label(statement, index)
        self.version += 1

    def replace_line(self, index: int, statement: Statement, source: str = "") -> None:
        self._check_index(index)
        self.statements[index] = statement
        self.source_lines[index] = source
        self.rebuild_label_map()
        self.version += 1

    def delete_line(self, index: int) -> None:
        self._check_index(index)
        removed = self.statements.pop(index)
        del self.source_lines[index]
        if removed.label_name is not None:
            self.rebuild_label_map()
        else:
            self._labels = {
                name: line - 1 if line > index else line
                for name, line in self._labels.items()
            }
        self.version += 1

    def clear(self) -> None:
        self.statements.clear()
        self.source_lines.clear()
        self._labels.clear()
        self.version += 1

    # =========================================================================
    # Queries
    # =========================================================================

    def get_statement(self, index: int) -> Optional[Statement]:
        if 0 <= index < len(self.statements):
            return self.statements[index]
        return None

    def line_count(self) -> int:
        return len(self.statements)

    def __len__(self) -> int:
        return len(self.statements)

    def label_index(self, name: str) -> Optional[int]:
        return self._labels.get(name.upper())

    def has_label(self, name: str) -> bool:
        return name.upper() in self._labels

    @property
    def labels(self) -> dict[str, int]:
        return dict(self._labels)

    def rebuild_label_map(self) -> None:
        """Recompute the label map from the statements (first label wins)."""
        self._labels = {}
        for index, statement in enumerate(self.statements):
            self._register_label(statement, index)

    def _register_label(self, statement: Statement, index: int) -> None:
        name = statement.label_name
        if name is not None and name.upper() not in self._labels:
            self._labels[name.upper()] = index

    def _check_index(self, index: int) -> None:
        if index < 0 or index >= len(self.statements):
            raise IndexError(f"Line index out of range: {index}")
