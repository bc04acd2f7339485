"""Runtime value model for the pricing engine.

Every value flowing through the evaluator is one of the closed set of
variants below, discriminated by ``kind``.  Consumers match on the
concrete class; there is no "anything goes" value.
"""

from __future__ import annotations

import datetime
from enum import Enum
from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field


class ValueType(str, Enum):
    """Declared type of a Variable."""

    NUMBER = "number"
    TEXT = "text"
    BOOLEAN = "boolean"
    DATE = "date"
    DATETIME = "datetime"
    ENUM = "enum"
    ARRAY = "array"
    CHAR = "char"
    POINT = "point"


class NumberValue(BaseModel):
    kind: Literal["number"] = "number"
    value: float


class BooleanValue(BaseModel):
    kind: Literal["boolean"] = "boolean"
    value: bool


class TextValue(BaseModel):
    """Free text, also used for single characters."""

    kind: Literal["text"] = "text"
    value: str


class DateValue(BaseModel):
    kind: Literal["date"] = "date"
    value: datetime.date


class DateTimeValue(BaseModel):
    kind: Literal["datetime"] = "datetime"
    value: datetime.datetime


class EnumValue(BaseModel):
    """One member of an enum Variable's ``values`` list."""

    kind: Literal["enum"] = "enum"
    value: str


class ArrayValue(BaseModel):
    kind: Literal["array"] = "array"
    items: list[Value] = []


class PointValue(BaseModel):
    """A 2D coordinate."""

    kind: Literal["point"] = "point"
    x: float
    y: float


Value = Annotated[
    Union[
        NumberValue,
        BooleanValue,
        TextValue,
        DateValue,
        DateTimeValue,
        EnumValue,
        ArrayValue,
        PointValue,
    ],
    Field(discriminator="kind"),
]

# Rebuild models with recursive Value references.
ArrayValue.model_rebuild()
