"""
Built-in Keyword Functions and Constants
========================================

Prefix keyword functions take a single operand (SIN x, UCASE s$, EOF h).
Each entry in FUNCTIONS maps the keyword to a callable
(context, value) -> value. Constants are nullary keywords evaluated
against the execution context (RND, INKEY and the clock readings change
on every evaluation).
"""

from datetime import datetime
from typing import Any, Callable
import cmath
import math

from edubasic.errors import BasicRuntimeError
from edubasic.values import (
    FALSE,
    TRUE,
    BasicArray,
    format_value,
    to_int,
    to_number,
    to_string,
    type_of,
)


# =============================================================================
# Mathematical Functions
# =============================================================================

def _real_or_complex(name: str, real_fn: Callable, complex_fn: Callable) -> Callable:
    """
    Build a function that uses math for reals and cmath for complex
    operands, falling back to cmath when the real result is undefined
    (e.g. SQRT of a negative number).
    """
    def apply(context, value):
        if isinstance(value, complex):
            return complex_fn(value)
        number = to_number(value, name)
        try:
            return float(real_fn(number))
        except (ValueError, OverflowError) as e:
            if complex_fn is None:
                raise BasicRuntimeError(f"{name}: {e}") from e
            try:
                return complex_fn(complex(number))
            except (ValueError, ZeroDivisionError, OverflowError) as inner:
                raise BasicRuntimeError(f"{name}: {inner}") from inner
    return apply


def _real_only(name: str, fn: Callable) -> Callable:
    def apply(context, value):
        if isinstance(value, complex):
            raise BasicRuntimeError(f"Operator {name} is not applicable to complex numbers")
        number = to_number(value, name)
        try:
            return fn(number)
        except (ValueError, OverflowError) as e:
            raise BasicRuntimeError(f"{name}: {e}") from e
    return apply


def _expand(number):
    return float(math.ceil(number) if number >= 0 else math.floor(number))


def _sgn(number):
    return (number > 0) - (number < 0)


def _abs(context, value):
    if isinstance(value, complex):
        return abs(value)
    return abs(to_number(value, "ABS"))


def _int(context, value):
    if isinstance(value, str):
        return to_int(_val(context, value), "INT")
    if isinstance(value, complex):
        raise BasicRuntimeError("Operator INT is not applicable to complex numbers")
    number = to_number(value, "INT")
    if isinstance(number, float) and (math.isnan(number) or math.isinf(number)):
        raise BasicRuntimeError("INT: expected a finite number")
    return math.floor(number)


def _cbrt(number):
    return math.copysign(abs(number) ** (1.0 / 3.0), number)


# =============================================================================
# Complex Functions
# =============================================================================

def _as_complex(value, name: str) -> complex:
    if isinstance(value, complex):
        return value
    return complex(to_number(value, name))


def _csqrt(context, value):
    return cmath.sqrt(_as_complex(value, "CSQRT"))


# =============================================================================
# String and Conversion Functions
# =============================================================================

def _asc(context, value):
    text = to_string(value, "ASC")
    if not text:
        raise BasicRuntimeError("ASC: empty string")
    return ord(text[0])


def _chr(context, value):
    code = to_int(value, "CHR")
    if code < 0 or code > 0x10FFFF:
        raise BasicRuntimeError(f"CHR: invalid character code {code}")
    return chr(code)


def _str(context, value):
    return format_value(value)


def _val(context, value):
    """Parse a number from text; unparsable text is 0."""
    text = to_string(value, "VAL").strip()
    try:
        return int(text)
    except ValueError:
        pass
    try:
        return float(text)
    except ValueError:
        pass
    try:
        return complex(text.replace("i", "j").replace("I", "j"))
    except ValueError:
        return 0


def _hex(context, value):
    number = to_int(value, "HEX")
    return format(number, "X") if number >= 0 else "-" + format(-number, "X")


def _bin(context, value):
    number = to_int(value, "BIN")
    return format(number, "b") if number >= 0 else "-" + format(-number, "b")


def _string_fn(name: str, fn: Callable[[str], str]) -> Callable:
    def apply(context, value):
        return fn(to_string(value, name))
    return apply


# =============================================================================
# File and Audio Functions
# =============================================================================

def require_file_system(context):
    if context.file_system is None:
        raise BasicRuntimeError("No file system is attached")
    return context.file_system


def _eof(context, value):
    return TRUE if require_file_system(context).eof(to_int(value, "EOF")) else FALSE


def _loc(context, value):
    return require_file_system(context).tell(to_int(value, "LOC"))


def _exists(context, value):
    return TRUE if require_file_system(context).exists(to_string(value, "EXISTS")) else FALSE


def _notes(context, value):
    """Number of notes (A-G and rests) in a music macro string."""
    text = to_string(value, "NOTES").upper()
    count = 0
    previous = ""
    for char in text:
        if char in "ABCDEFGPR" and previous not in ("O", "M"):
            count += 1
        previous = char
    return count


FUNCTIONS: dict[str, Callable[[Any, Any], Any]] = {
    # Trigonometric and hyperbolic
    "SIN": _real_or_complex("SIN", math.sin, cmath.sin),
    "COS": _real_or_complex("COS", math.cos, cmath.cos),
    "TAN": _real_or_complex("TAN", math.tan, cmath.tan),
    "ASIN": _real_or_complex("ASIN", math.asin, cmath.asin),
    "ACOS": _real_or_complex("ACOS", math.acos, cmath.acos),
    "ATAN": _real_or_complex("ATAN", math.atan, cmath.atan),
    "SINH": _real_or_complex("SINH", math.sinh, cmath.sinh),
    "COSH": _real_or_complex("COSH", math.cosh, cmath.cosh),
    "TANH": _real_or_complex("TANH", math.tanh, cmath.tanh),
    "ASINH": _real_or_complex("ASINH", math.asinh, cmath.asinh),
    "ACOSH": _real_or_complex("ACOSH", math.acosh, cmath.acosh),
    "ATANH": _real_or_complex("ATANH", math.atanh, cmath.atanh),
    # Exponential and roots
    "EXP": _real_or_complex("EXP", math.exp, cmath.exp),
    "LOG": _real_or_complex("LOG", math.log, cmath.log),
    "LOG10": _real_or_complex("LOG10", math.log10, cmath.log10),
    "LOG2": _real_or_complex("LOG2", math.log2, lambda z: cmath.log(z) / math.log(2)),
    "SQRT": _real_or_complex("SQRT", math.sqrt, cmath.sqrt),
    "CBRT": _real_only("CBRT", _cbrt),
    # Rounding
    "FLOOR": _real_only("FLOOR", lambda n: float(math.floor(n))),
    "CEIL": _real_only("CEIL", lambda n: float(math.ceil(n))),
    "ROUND": _real_only("ROUND", lambda n: float(math.floor(n + 0.5))),
    "TRUNC": _real_only("TRUNC", lambda n: float(math.trunc(n))),
    "EXPAND": _real_only("EXPAND", _expand),
    "SGN": _real_only("SGN", _sgn),
    "ABS": _abs,
    "INT": _int,
    # Complex
    "REAL": lambda context, v: _as_complex(v, "REAL").real,
    "IMAG": lambda context, v: _as_complex(v, "IMAG").imag,
    "CONJ": lambda context, v: _as_complex(v, "CONJ").conjugate(),
    "CABS": lambda context, v: abs(_as_complex(v, "CABS")),
    "CARG": lambda context, v: cmath.phase(_as_complex(v, "CARG")),
    "CSQRT": _csqrt,
    # Strings and conversion
    "ASC": _asc,
    "CHR": _chr,
    "STR": _str,
    "VAL": _val,
    "HEX": _hex,
    "BIN": _bin,
    "UCASE": _string_fn("UCASE", str.upper),
    "LCASE": _string_fn("LCASE", str.lower),
    "LTRIM": _string_fn("LTRIM", str.lstrip),
    "RTRIM": _string_fn("RTRIM", str.rstrip),
    "TRIM": _string_fn("TRIM", str.strip),
    "REVERSE": _string_fn("REVERSE", lambda s: s[::-1]),
    # Files and audio
    "EOF": _eof,
    "LOC": _loc,
    "EXISTS": _exists,
    "NOTES": _notes,
}


def call_function(name: str, context, value: Any) -> Any:
    """Apply the keyword function name to an evaluated operand."""
    try:
        fn = FUNCTIONS[name]
    except KeyError:
        raise BasicRuntimeError(f"Unknown function {name}") from None
    if isinstance(value, BasicArray) and name not in ("STR",):
        raise BasicRuntimeError(f"{name}: cannot apply to {type_of(value).value}")
    return fn(context, value)


# =============================================================================
# Constants
# =============================================================================

def _now_text(fmt: str) -> str:
    return datetime.now().strftime(fmt)


CONSTANTS: dict[str, Callable[[Any], Any]] = {
    "PI": lambda context: math.pi,
    "E": lambda context: math.e,
    "TRUE": lambda context: TRUE,
    "FALSE": lambda context: FALSE,
    "RND": lambda context: context.random(),
    "INKEY": lambda context: context.take_key(),
    "DATE": lambda context: _now_text("%Y-%m-%d"),
    "TIME": lambda context: _now_text("%H:%M:%S"),
    "NOW": lambda context: int(datetime.now().timestamp() * 1000),
}


def evaluate_constant(name: str, context) -> Any:
    try:
        return CONSTANTS[name](context)
    except KeyError:
        raise BasicRuntimeError(f"Unknown constant {name}") from None


__all__ = [
    "FUNCTIONS",
    "CONSTANTS",
    "call_function",
    "evaluate_constant",
]
