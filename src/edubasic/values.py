"""
EduBASIC Runtime Values
=======================

Values are held as native Python objects:

| Language type | Python type  | Sigil | Default   |
|---------------|--------------|-------|-----------|
| Integer       | int          | %     | 0         |
| Real          | float        | #     | 0.0       |
| Complex       | complex      | &     | 0j        |
| String        | str          | $     | ""        |
| Structure     | Structure    | none  | {}        |
| Array         | BasicArray   | []    | empty     |

Booleans are integers: TRUE is -1 and FALSE is 0, so the logical
operators can work bitwise.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterable, Optional, Union
import math

from edubasic.errors import BasicRuntimeError


TRUE = -1
FALSE = 0


class ValueType(Enum):
    """Language-level type of a value."""
    INTEGER = "INTEGER"
    REAL = "REAL"
    COMPLEX = "COMPLEX"
    STRING = "STRING"
    STRUCTURE = "STRUCTURE"
    ARRAY = "ARRAY"


SIGIL_TYPES = {
    "%": ValueType.INTEGER,
    "#": ValueType.REAL,
    "$": ValueType.STRING,
    "&": ValueType.COMPLEX,
}

NUMERIC_TYPES = (ValueType.INTEGER, ValueType.REAL, ValueType.COMPLEX)


# =============================================================================
# Container Types
# =============================================================================

class Structure(dict):
    """
    Record value with named members.

    Member names are case-insensitive and stored uppercase.
    """

    def get_member(self, name: str) -> Any:
        key = name.upper()
        if key not in self:
            raise BasicRuntimeError(f"Structure has no member '{name}'")
        return self[key]

    def set_member(self, name: str, value: Any) -> None:
        self[name.upper()] = value


@dataclass
class BasicArray:
    """
    One- or two-dimensional array.

    Elements are stored flat in row-major order. Each dimension has an
    inclusive (lower, upper) bound pair; arrays created by literals or
    by DIM name[n] are one-based.

    Attributes:
        element_type: Type every element is coerced to (None for untyped)
        bounds: (lower, upper) per dimension
        data: Flat element storage
    """
    element_type: Optional[ValueType]
    bounds: list[tuple[int, int]] = field(default_factory=lambda: [(1, 0)])
    data: list = field(default_factory=list)

    @classmethod
    def of(cls, elements: Iterable[Any], element_type: Optional[ValueType] = None) -> "BasicArray":
        items = list(elements)
        return cls(element_type, [(1, len(items))], items)

    @classmethod
    def dimensioned(cls, element_type: Optional[ValueType], bounds: list[tuple[int, int]]) -> "BasicArray":
        size = 1
        for lower, upper in bounds:
            if upper < lower:
                raise BasicRuntimeError(f"Invalid array bounds {lower} TO {upper}")
            size *= upper - lower + 1
        return cls(element_type, list(bounds), [default_for_type(element_type)] * size)

    @property
    def rank(self) -> int:
        return len(self.bounds)

    def __len__(self) -> int:
        return len(self.data)

    def _offset(self, indices: list[int]) -> int:
        if len(indices) != self.rank:
            raise BasicRuntimeError(
                f"Array has {self.rank} dimension(s), got {len(indices)} index(es)"
            )
        offset = 0
        for index, (lower, upper) in zip(indices, self.bounds):
            if index < lower or index > upper:
                raise BasicRuntimeError(f"Array index out of bounds: {index}")
            offset = offset * (upper - lower + 1) + (index - lower)
        return offset

    def get(self, indices: list[int]) -> Any:
        return self.data[self._offset(indices)]

    def set(self, indices: list[int], value: Any) -> None:
        self.data[self._offset(indices)] = self.coerce_element(value)

    def coerce_element(self, value: Any) -> Any:
        if self.element_type is None:
            return value
        return coerce(value, self.element_type)

    def _require_vector(self, operation: str) -> None:
        if self.rank != 1:
            raise BasicRuntimeError(f"{operation} requires a one-dimensional array")

    def push(self, value: Any) -> None:
        self._require_vector("PUSH")
        self.data.append(self.coerce_element(value))
        lower, upper = self.bounds[0]
        self.bounds[0] = (lower, upper + 1)

    def unshift(self, value: Any) -> None:
        self._require_vector("UNSHIFT")
        self.data.insert(0, self.coerce_element(value))
        lower, upper = self.bounds[0]
        self.bounds[0] = (lower, upper + 1)

    def pop(self) -> Any:
        self._require_vector("POP")
        if not self.data:
            raise BasicRuntimeError("POP from empty array")
        lower, upper = self.bounds[0]
        self.bounds[0] = (lower, upper - 1)
        return self.data.pop()

    def shift(self) -> Any:
        self._require_vector("SHIFT")
        if not self.data:
            raise BasicRuntimeError("SHIFT from empty array")
        lower, upper = self.bounds[0]
        self.bounds[0] = (lower, upper - 1)
        return self.data.pop(0)

    def copy(self) -> "BasicArray":
        return BasicArray(self.element_type, list(self.bounds), [copy_value(v) for v in self.data])


Value = Union[int, float, complex, str, Structure, BasicArray]


# =============================================================================
# Type Inspection
# =============================================================================

def type_of(value: Any) -> ValueType:
    """Return the language type of a Python value."""
    # bool is a subclass of int; both map to INTEGER
    if isinstance(value, int):
        return ValueType.INTEGER
    if isinstance(value, float):
        return ValueType.REAL
    if isinstance(value, complex):
        return ValueType.COMPLEX
    if isinstance(value, str):
        return ValueType.STRING
    if isinstance(value, BasicArray):
        return ValueType.ARRAY
    if isinstance(value, Structure):
        return ValueType.STRUCTURE
    raise BasicRuntimeError(f"Unsupported value {value!r}")


def is_numeric(value: Any) -> bool:
    return isinstance(value, (int, float, complex))


def split_name(name: str) -> tuple[str, str, str]:
    """
    Split a variable name into (base, sigil, rank suffix).

    >>> split_name("grid#[,]")
    ('grid', '#', '[,]')
    """
    suffix = ""
    bracket = name.find("[")
    if bracket >= 0:
        suffix = name[bracket:]
        name = name[:bracket]
    sigil = ""
    if name and name[-1] in SIGIL_TYPES:
        sigil = name[-1]
        name = name[:-1]
    return name, sigil, suffix


def type_for_name(name: str) -> Optional[ValueType]:
    """Scalar type implied by a name's sigil (None when untyped)."""
    _, sigil, _ = split_name(name)
    return SIGIL_TYPES.get(sigil)


def default_for_type(value_type: Optional[ValueType]) -> Any:
    if value_type == ValueType.INTEGER:
        return 0
    if value_type == ValueType.REAL:
        return 0.0
    if value_type == ValueType.COMPLEX:
        return 0j
    if value_type == ValueType.STRING:
        return ""
    if value_type == ValueType.ARRAY:
        return BasicArray.of([])
    return Structure()


def default_for_name(name: str) -> Any:
    """Value an unassigned variable reads as."""
    _, sigil, suffix = split_name(name)
    element_type = SIGIL_TYPES.get(sigil)
    if suffix:
        rank = suffix.count(",") + 1
        return BasicArray(element_type, [(1, 0)] * rank, [])
    return default_for_type(element_type)


# =============================================================================
# Coercion
# =============================================================================

def coerce(value: Any, target: Optional[ValueType]) -> Any:
    """
    Convert value to target type.

    Integer, Real and Complex convert freely (conversion to Integer
    truncates toward zero; Complex drops its imaginary part). Strings
    never convert implicitly.

    Raises:
        BasicRuntimeError: "Type mismatch" for string/number mixes
    """
    if target is None:
        return value
    source = type_of(value)
    if source == target:
        return value

    if target in NUMERIC_TYPES and source in NUMERIC_TYPES:
        if target == ValueType.COMPLEX:
            return complex(value)
        if isinstance(value, complex):
            value = value.real
        if target == ValueType.REAL:
            return float(value)
        if math.isnan(value) or math.isinf(value):
            raise BasicRuntimeError("Cannot convert non-finite value to INTEGER")
        return math.trunc(value)

    raise BasicRuntimeError(f"Type mismatch: cannot assign {source.value} to {target.value}")


def coerce_for_name(name: str, value: Any) -> Any:
    """Coerce value for storage in the named variable."""
    _, sigil, suffix = split_name(name)
    if suffix:
        if not isinstance(value, BasicArray):
            raise BasicRuntimeError(f"Type mismatch: {name} requires an array")
        element_type = SIGIL_TYPES.get(sigil)
        if element_type is not None and value.element_type != element_type:
            value = BasicArray(
                element_type,
                list(value.bounds),
                [coerce(v, element_type) for v in value.data],
            )
        return value
    if sigil:
        if isinstance(value, (BasicArray, Structure)):
            raise BasicRuntimeError(f"Type mismatch: {name} cannot hold {type_of(value).value}")
        return coerce(value, SIGIL_TYPES[sigil])
    return value


def to_number(value: Any, operation: str = "operation") -> Union[int, float]:
    """Real-valued number from an Integer or Real (Complex/String are errors)."""
    if isinstance(value, (int, float)):
        return value
    raise BasicRuntimeError(f"{operation}: expected a number, got {type_of(value).value}")


def to_int(value: Any, operation: str = "operation") -> int:
    """Integer from a numeric value, truncating toward zero."""
    if isinstance(value, complex):
        value = value.real
    number = to_number(value, operation)
    if isinstance(number, float):
        if math.isnan(number) or math.isinf(number):
            raise BasicRuntimeError(f"{operation}: expected a finite number")
        return math.trunc(number)
    return number


def to_string(value: Any, operation: str = "operation") -> str:
    if isinstance(value, str):
        return value
    raise BasicRuntimeError(f"{operation}: expected a string, got {type_of(value).value}")


def is_truthy(value: Any) -> bool:
    """Truth value used by IF, WHILE and friends."""
    if isinstance(value, (int, float, complex)):
        return value != 0
    if isinstance(value, str):
        return value != ""
    if isinstance(value, BasicArray):
        return len(value) > 0
    return bool(value)


def from_bool(flag: bool) -> int:
    return TRUE if flag else FALSE


def copy_value(value: Any) -> Any:
    """Deep copy for by-value passing of containers."""
    if isinstance(value, BasicArray):
        return value.copy()
    if isinstance(value, Structure):
        return Structure({k: copy_value(v) for k, v in value.items()})
    return value


def unify_elements(values: list[Any]) -> tuple[list[Any], Optional[ValueType]]:
    """
    Promote array-literal elements to a common type.

    Integers widen to Real, and Real to Complex, when mixed. Strings may
    not be mixed with any other type.
    """
    if not values:
        return [], ValueType.INTEGER
    types = {type_of(v) for v in values}
    if len(types) == 1:
        return list(values), types.pop()
    if ValueType.STRING in types:
        raise BasicRuntimeError("Array literal cannot mix STRING with other types")
    if types <= set(NUMERIC_TYPES):
        target = ValueType.COMPLEX if ValueType.COMPLEX in types else ValueType.REAL
        return [coerce(v, target) for v in values], target
    return list(values), None


# =============================================================================
# Formatting
# =============================================================================

def format_number(number: Union[int, float]) -> str:
    """Format a real number the way PRINT shows it (no trailing .0)."""
    if isinstance(number, int):
        return str(number)
    if math.isnan(number):
        return "NaN"
    if math.isinf(number):
        return "Infinity" if number > 0 else "-Infinity"
    if number.is_integer() and abs(number) < 1e16:
        return str(int(number))
    return repr(number)


def format_value(value: Any) -> str:
    """Text shown by PRINT and STR for a value."""
    if isinstance(value, str):
        return value
    if isinstance(value, complex):
        sign = "+" if value.imag >= 0 else "-"
        return f"{format_number(value.real)}{sign}{format_number(abs(value.imag))}i"
    if isinstance(value, (int, float)):
        return format_number(value)
    if isinstance(value, BasicArray):
        return "[" + ", ".join(_format_element(v) for v in value.data) + "]"
    if isinstance(value, Structure):
        if not value:
            return "{ }"
        members = ", ".join(f"{k}: {_format_element(v)}" for k, v in value.items())
        return "{ " + members + " }"
    return str(value)


def _format_element(value: Any) -> str:
    if isinstance(value, str):
        return '"' + value + '"'
    return format_value(value)
