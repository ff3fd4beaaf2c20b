"""
EduBASIC Statements
===================

One dataclass per statement kind, grouped by module:

- **base**: Statement, UnparsableStatement, ExecutionResult, Jump
- **variables**: LET, LOCAL, DIM
- **io**: PRINT, INPUT, CLS, COLOR, LOCATE
- **control_flow**: IF, UNLESS, SELECT CASE, loops, SUB/CALL, GOTO/GOSUB,
  END/EXIT/CONTINUE, TRY/CATCH/FINALLY/THROW
- **file_io**: OPEN, CLOSE, READ, LINE INPUT, WRITE, SEEK and the
  whole-path file statements
- **arrays**: PUSH, POP, SHIFT, UNSHIFT
- **audio**: TEMPO, VOLUME, VOICE, PLAY
- **graphics**: PSET, LINE, RECTANGLE, OVAL, CIRCLE, TRIANGLE, ARC, PAINT,
  GET, PUT, TURTLE
- **misc**: SLEEP, RANDOMIZE, SET, HELP, CONSOLE, DATA, RESTORE
"""

from edubasic.statements.arrays import PopStatement, PushStatement, ShiftStatement, UnshiftStatement
from edubasic.statements.audio import PlayStatement, TempoStatement, VoiceStatement, VolumeStatement
from edubasic.statements.base import ExecutionResult, Jump, Outcome, Statement, UnparsableStatement
from edubasic.statements.control_flow import (
    CallStatement,
    CaseSelector,
    CaseStatement,
    CatchStatement,
    ContinueStatement,
    DoStatement,
    ElseIfStatement,
    ElseStatement,
    EndStatement,
    ExitStatement,
    FinallyStatement,
    ForStatement,
    GosubStatement,
    GotoStatement,
    IfStatement,
    LabelStatement,
    LoopStatement,
    NextStatement,
    Parameter,
    ReturnStatement,
    SelectCaseStatement,
    SubStatement,
    ThrowStatement,
    TryStatement,
    UendStatement,
    UnlessStatement,
    UntilStatement,
    WendStatement,
    WhileStatement,
)
from edubasic.statements.file_io import (
    CloseStatement,
    LineInputStatement,
    ListDirStatement,
    OpenStatement,
    PathStatement,
    ReadFileStatement,
    ReadStatement,
    SeekStatement,
    TransferStatement,
    WriteFileStatement,
    WriteStatement,
)
from edubasic.statements.graphics import (
    ArcStatement,
    CircleStatement,
    GetStatement,
    LineStatement,
    OvalStatement,
    PaintStatement,
    PsetStatement,
    PutStatement,
    RectangleStatement,
    TriangleStatement,
    TurtleStatement,
)
from edubasic.statements.io import (
    ClsStatement,
    ColorStatement,
    InputStatement,
    LocateStatement,
    PrintStatement,
)
from edubasic.statements.misc import (
    ConsoleStatement,
    DataStatement,
    HelpStatement,
    RandomizeStatement,
    RestoreStatement,
    SetStatement,
    SleepStatement,
)
from edubasic.statements.variables import DimStatement, Dimension, LetStatement, LocalStatement

__all__ = [
    # base
    "ExecutionResult",
    "Jump",
    "Outcome",
    "Statement",
    "UnparsableStatement",
    # variables
    "DimStatement",
    "Dimension",
    "LetStatement",
    "LocalStatement",
    # io
    "ClsStatement",
    "ColorStatement",
    "InputStatement",
    "LocateStatement",
    "PrintStatement",
    # control flow
    "CallStatement",
    "CaseSelector",
    "CaseStatement",
    "CatchStatement",
    "ContinueStatement",
    "DoStatement",
    "ElseIfStatement",
    "ElseStatement",
    "EndStatement",
    "ExitStatement",
    "FinallyStatement",
    "ForStatement",
    "GosubStatement",
    "GotoStatement",
    "IfStatement",
    "LabelStatement",
    "LoopStatement",
    "NextStatement",
    "Parameter",
    "ReturnStatement",
    "SelectCaseStatement",
    "SubStatement",
    "ThrowStatement",
    "TryStatement",
    "UendStatement",
    "UnlessStatement",
    "UntilStatement",
    "WendStatement",
    "WhileStatement",
    # file I/O
    "CloseStatement",
    "LineInputStatement",
    "ListDirStatement",
    "OpenStatement",
    "PathStatement",
    "ReadFileStatement",
    "ReadStatement",
    "SeekStatement",
    "TransferStatement",
    "WriteFileStatement",
    "WriteStatement",
    # arrays
    "PopStatement",
    "PushStatement",
    "ShiftStatement",
    "UnshiftStatement",
    # audio
    "PlayStatement",
    "TempoStatement",
    "VoiceStatement",
    "VolumeStatement",
    # graphics
    "ArcStatement",
    "CircleStatement",
    "GetStatement",
    "LineStatement",
    "OvalStatement",
    "PaintStatement",
    "PsetStatement",
    "PutStatement",
    "RectangleStatement",
    "TriangleStatement",
    "TurtleStatement",
    # misc
    "ConsoleStatement",
    "DataStatement",
    "HelpStatement",
    "RandomizeStatement",
    "RestoreStatement",
    "SetStatement",
    "SleepStatement",
]
