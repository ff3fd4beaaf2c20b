"""
Link Table
==========

Block structure is not stored on the statements. The analyzer records
resolved links (IF -> END IF, FOR -> NEXT, GOTO -> LABEL, ...) here, one
mapping per LinkKind, and the runtime reads them back.
"""

from enum import Enum, auto
from typing import Optional


class LinkKind(Enum):
    """Kinds of resolved line links."""
    END_LINE = auto()         # opener -> closer
    NEXT_CLAUSE = auto()      # IF/ELSEIF -> next ELSEIF/ELSE/END IF
    ELSE_OR_END = auto()      # UNLESS -> ELSE/END UNLESS
    FIRST_CASE = auto()       # SELECT -> first CASE
    NEXT_CASE = auto()        # CASE -> next CASE/END SELECT
    OPENER = auto()           # closer or clause -> opener
    EXIT_TARGET = auto()      # EXIT -> line after the loop (END SUB for SUB)
    CONTINUE_TARGET = auto()  # CONTINUE -> loop closer
    JUMP_TARGET = auto()      # GOTO/GOSUB -> LABEL
    CALL_TARGET = auto()      # CALL -> SUB
    CATCH_LINE = auto()       # TRY -> CATCH
    FINALLY_LINE = auto()     # TRY -> FINALLY


class LinkTable:
    """
    Resolved links, keyed by kind and source line.

    Usage:
        links.set(LinkKind.END_LINE, 3, 7)
        links.get(LinkKind.END_LINE, 3)   # -> 7
    """

    def __init__(self):
        self._links: dict[LinkKind, dict[int, int]] = {kind: {} for kind in LinkKind}

    def set(self, kind: LinkKind, line: int, target: int) -> None:
        self._links[kind][line] = target

    def get(self, kind: LinkKind, line: int) -> Optional[int]:
        return self._links[kind].get(line)

    def has(self, kind: LinkKind, line: int) -> bool:
        return line in self._links[kind]

    def table(self, kind: LinkKind) -> dict[int, int]:
        """The mapping for one kind (live view)."""
        return self._links[kind]

    def clear(self) -> None:
        for mapping in self._links.values():
            mapping.clear()

    def __len__(self) -> int:
        return sum(len(mapping) for mapping in self._links.values())

