"""Validator primitives and the schema walker."""
from fieldcheck.validate.array import Array, ArrayValidator
from fieldcheck.validate.base import FieldErrors, FieldValidator, Schema, Validator
from fieldcheck.validate.boolean import Bool, BoolValidator
from fieldcheck.validate.composite import (
    AnyValidator,
    AnyValue,
    Enum,
    EnumValidator,
    Literal,
    LiteralValidator,
    Optional,
    OptionalValidator,
    Union,
    UnionValidator,
)
from fieldcheck.validate.file import File, FileValidator, ImageDimensions, UploadedFile
from fieldcheck.validate.number import Float, Int, NumberValidator
from fieldcheck.validate.object import Object, ObjectValidator
from fieldcheck.validate.string import String, StringValidator
from fieldcheck.validate.time import Time, TimeValidator
from fieldcheck.validate.walker import validate_schema

__all__ = [
    "FieldErrors",
    "FieldValidator",
    "Schema",
    "Validator",
    "validate_schema",
    "String",
    "StringValidator",
    "Int",
    "Float",
    "NumberValidator",
    "Bool",
    "BoolValidator",
    "Object",
    "ObjectValidator",
    "Array",
    "ArrayValidator",
    "File",
    "FileValidator",
    "ImageDimensions",
    "UploadedFile",
    "Time",
    "TimeValidator",
    "Enum",
    "EnumValidator",
    "Literal",
    "LiteralValidator",
    "Union",
    "UnionValidator",
    "Optional",
    "OptionalValidator",
    "AnyValue",
    "AnyValidator",
]
