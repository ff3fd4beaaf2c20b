"""
EduBASIC Keyword Tables
=======================

The fixed keyword set of the language, grouped by purpose. The tokenizer
upper-cases every identifier-shaped word and checks it against KEYWORDS;
a hit becomes a KEYWORD token, a miss stays an IDENTIFIER that keeps its
original case.

The smaller sets below are used by the expression collector (which
keywords end an expression) and by the expression grammar (which
keywords are functions, constants, or postfix/binary operators).
"""

# =============================================================================
# Statement Keywords
# =============================================================================

VARIABLE_KEYWORDS = frozenset({"LET", "DIM", "LOCAL"})

CONTROL_FLOW_KEYWORDS = frozenset({
    "IF", "THEN", "ELSE", "ELSEIF", "END",
    "FOR", "TO", "STEP", "NEXT",
    "WHILE", "WEND", "DO", "LOOP", "UNTIL", "UEND", "UNLESS",
    "SELECT", "CASE", "IS",
    "GOSUB", "RETURN", "GOTO", "LABEL",
    "CALL", "EXIT", "CONTINUE", "SUB",
    "TRY", "CATCH", "FINALLY", "THROW",
})

IO_KEYWORDS = frozenset({"PRINT", "INPUT", "CLS", "COLOR", "LOCATE"})

GRAPHICS_KEYWORDS = frozenset({
    "PSET", "LINE", "CIRCLE", "RECTANGLE", "OVAL", "TRIANGLE",
    "PAINT", "GET", "PUT", "ARC", "TURTLE",
})

FILE_KEYWORDS = frozenset({
    "OPEN", "CLOSE", "READ", "WRITE", "SEEK",
    "READFILE", "WRITEFILE", "LISTDIR", "MKDIR", "RMDIR",
    "COPY", "MOVE", "DELETE",
})

AUDIO_KEYWORDS = frozenset({"PLAY", "TEMPO", "VOLUME", "VOICE"})

ARRAY_KEYWORDS = frozenset({"PUSH", "POP", "SHIFT", "UNSHIFT"})

MISC_KEYWORDS = frozenset({"SLEEP", "RANDOMIZE", "SET", "HELP", "CONSOLE"})

DATA_KEYWORDS = frozenset({"DATA", "RESTORE"})

# =============================================================================
# Modifier Keywords
# =============================================================================

SET_MODIFIERS = frozenset({"SPACING", "TEXT", "WRAP", "AUDIO", "ON", "OFF"})

FILE_MODIFIERS = frozenset({"EOF", "LOC", "EXISTS", "APPEND", "OVERWRITE", "IN"})

GRAPHICS_MODIFIERS = frozenset({
    "FROM", "WITH", "AS", "AT", "RADIUS", "RADII", "FILLED", "PRESET",
})

AUDIO_MODIFIERS = frozenset({"INSTRUMENT", "ADSR"})

GENERAL_MODIFIERS = frozenset({"INTO", "BYREF"})

# =============================================================================
# Expression Keywords
# =============================================================================

LOGICAL_OPERATORS = frozenset({"AND", "OR", "NOT", "XOR", "NAND", "NOR", "XNOR", "IMP"})

ARITHMETIC_KEYWORDS = frozenset({"MOD"})

MATH_FUNCTIONS = frozenset({
    "SIN", "COS", "TAN", "ASIN", "ACOS", "ATAN",
    "SINH", "COSH", "TANH", "ASINH", "ACOSH", "ATANH",
    "EXP", "LOG", "LOG10", "LOG2", "SQRT", "CBRT",
    "FLOOR", "CEIL", "ROUND", "TRUNC", "ABS", "SGN", "INT",
})

COMPLEX_FUNCTIONS = frozenset({"REAL", "IMAG", "CONJ", "CABS", "CARG", "CSQRT"})

STRING_FUNCTIONS = frozenset({
    "ASC", "CHR", "STR", "VAL", "HEX", "BIN",
    "UCASE", "LCASE", "LTRIM", "RTRIM", "TRIM", "REVERSE",
})

# Binary keyword operators on strings: s$ LEFT n, s$ MID a TO b, ...
STRING_OPERATORS = frozenset({
    "LEFT", "RIGHT", "MID", "INSTR", "JOIN", "REPLACE", "STARTSWITH", "ENDSWITH",
})

ARRAY_SEARCH_OPERATORS = frozenset({"FIND", "INDEXOF", "INCLUDES"})

CONSTANTS = frozenset({"RND", "PI", "E", "TRUE", "FALSE", "INKEY", "DATE", "TIME", "NOW"})

POSTFIX_OPERATORS = frozenset({"DEG", "RAD"})

OTHER_KEYWORDS = frozenset({"EXPAND", "NOTES"})

# Prefix keyword functions that take a single operand: SIN x, EOF h, ...
UNARY_FUNCTIONS = (
    MATH_FUNCTIONS
    | COMPLEX_FUNCTIONS
    | STRING_FUNCTIONS
    | frozenset({"EOF", "LOC", "EXISTS", "NOTES", "EXPAND"})
)

KEYWORDS = frozenset().union(
    VARIABLE_KEYWORDS,
    CONTROL_FLOW_KEYWORDS,
    IO_KEYWORDS,
    GRAPHICS_KEYWORDS,
    FILE_KEYWORDS,
    AUDIO_KEYWORDS,
    ARRAY_KEYWORDS,
    MISC_KEYWORDS,
    DATA_KEYWORDS,
    SET_MODIFIERS,
    FILE_MODIFIERS,
    GRAPHICS_MODIFIERS,
    AUDIO_MODIFIERS,
    GENERAL_MODIFIERS,
    LOGICAL_OPERATORS,
    ARITHMETIC_KEYWORDS,
    MATH_FUNCTIONS,
    COMPLEX_FUNCTIONS,
    STRING_FUNCTIONS,
    STRING_OPERATORS,
    ARRAY_SEARCH_OPERATORS,
    CONSTANTS,
    POSTFIX_OPERATORS,
    OTHER_KEYWORDS,
)

# Keywords that end an expression when met at nesting depth zero. They
# separate the clauses of statements such as FOR .. TO .. STEP and
# CIRCLE AT .. RADIUS .. WITH.
EXPRESSION_TERMINATORS = frozenset({
    "ADSR", "APPEND", "AS", "AT", "FILLED", "FOR", "FROM", "IN",
    "INSTRUMENT", "INTO", "OVERWRITE", "PRESET", "RADII", "RADIUS",
    "READ", "STEP", "THEN", "TO", "WITH",
})


def is_keyword(word: str) -> bool:
    """Return True if word (any case) is a reserved keyword."""
    return word.upper() in KEYWORDS
