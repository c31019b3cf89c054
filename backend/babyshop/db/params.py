"""
BabyShop Backend — Typed Parameter Binding
===========================================

What:  Turns the positional values a service passes to `Database.query()`
       into typed SQLAlchemy bind parameters.
Why:   pyodbc guesses SQL types from Python values on its own, and guesses
       differently for None, whole floats and Decimals. Declaring the type
       keeps SQL Server plans stable and makes NULL binds explicit.
How:   Each value becomes a `BoundParameter` (name, type tag, value):

           None                    → TEXT   (NVARCHAR NULL)
           bool                    → BOOLEAN (BIT)
           int / float / Decimal   → INTEGER when there is no fractional
                                     part, else FLOAT
           Decimal("sNaN")         → TEXT
           anything else           → TEXT   (str(value))

       Inference dispatches on the value's class with functools.singledispatch,
       so `bool` resolves to its own handler before `int` (bool is an int
       subclass) without relying on check order.

Callers that already know the column type can skip inference by passing a
`BoundParameter` built with one of the explicit constructors; `bind()` keeps
its type and only assigns the positional name.
"""

import dataclasses
import enum
from dataclasses import dataclass
from decimal import Decimal
from functools import singledispatch
from typing import Any, List, Sequence

from sqlalchemy import Boolean, Float, Integer, Unicode, bindparam
from sqlalchemy.sql.elements import BindParameter
from sqlalchemy.types import TypeEngine

from babyshop.db.placeholders import parameter_name


class ParamType(str, enum.Enum):
    INTEGER = "integer"
    FLOAT = "float"
    BOOLEAN = "boolean"
    TEXT = "text"


_SQL_TYPES = {
    ParamType.INTEGER: Integer,
    ParamType.FLOAT: Float,
    ParamType.BOOLEAN: Boolean,
    ParamType.TEXT: Unicode,
}


@dataclass(frozen=True)
class BoundParameter:
    """A single (name, type, value) triple, built per call and then discarded."""

    name: str
    type: ParamType
    value: Any

    # ── Explicit constructors ─────────────────────────────────────────────

    @classmethod
    def null(cls, name: str = "") -> "BoundParameter":
        return cls(name, ParamType.TEXT, None)

    @classmethod
    def integer(cls, value: int, name: str = "") -> "BoundParameter":
        return cls(name, ParamType.INTEGER, int(value))

    @classmethod
    def floating(cls, value: float, name: str = "") -> "BoundParameter":
        return cls(name, ParamType.FLOAT, float(value))

    @classmethod
    def boolean(cls, value: bool, name: str = "") -> "BoundParameter":
        return cls(name, ParamType.BOOLEAN, bool(value))

    @classmethod
    def text(cls, value: Any, name: str = "") -> "BoundParameter":
        return cls(name, ParamType.TEXT, None if value is None else str(value))

    # ── SQLAlchemy integration ────────────────────────────────────────────

    @property
    def sql_type(self) -> TypeEngine:
        return _SQL_TYPES[self.type]()

    def to_bindparam(self) -> BindParameter:
        return bindparam(self.name, self.value, type_=self.sql_type)

    def renamed(self, name: str) -> "BoundParameter":
        return dataclasses.replace(self, name=name)


# ── Inference ─────────────────────────────────────────────────────────────

@singledispatch
def _infer(value: Any, name: str) -> BoundParameter:
    return BoundParameter.text(value, name)


@_infer.register(type(None))
def _(value: None, name: str) -> BoundParameter:
    return BoundParameter.null(name)


@_infer.register(bool)
def _(value: bool, name: str) -> BoundParameter:
    return BoundParameter.boolean(value, name)


@_infer.register(int)
def _(value: int, name: str) -> BoundParameter:
    return BoundParameter.integer(value, name)


@_infer.register(float)
def _(value: float, name: str) -> BoundParameter:
    # nan and inf are not integral and stay FLOAT
    if value.is_integer():
        return BoundParameter.integer(value, name)
    return BoundParameter.floating(value, name)


@_infer.register(Decimal)
def _(value: Decimal, name: str) -> BoundParameter:
    # sNaN has no float form
    if value.is_snan():
        return BoundParameter.text(value, name)
    if value.is_finite() and value == value.to_integral_value():
        return BoundParameter.integer(value, name)
    return BoundParameter.floating(value, name)


@_infer.register(BoundParameter)
def _(value: BoundParameter, name: str) -> BoundParameter:
    return value.renamed(name)


def infer(name: str, value: Any) -> BoundParameter:
    """Bind one value under `name`, inferring its SQL type."""
    return _infer(value, name)


def bind(parameters: Sequence[Any]) -> List[BoundParameter]:
    """Bind `parameters[i]` as `p{i}` for every supplied value, in order."""
    return [infer(parameter_name(index), value) for index, value in enumerate(parameters)]
