"""
Validation functions for attrs.

Every validator raises :py:class:`~wallcomp.exceptions.InvalidSceneError`, so
a malformed scene is rejected at construction time.
"""

from enum import Enum
from typing import Any, Callable, Type, TypeVar

from attrs import define

from wallcomp.exceptions import InvalidSceneError

__all__ = ["range_", "positive", "non_negative", "to_enum"]

E = TypeVar("E", bound=Enum)


@define(repr=False, slots=True, hash=True)
class _RangeValidator(object):
    minimum: Any
    maximum: Any

    def __call__(self, inst: Any, attr: Any, value: Any) -> None:
        try:
            in_range = self.minimum <= value and value <= self.maximum
        except TypeError:
            in_range = False

        if not in_range:
            raise InvalidSceneError(
                "'{name}' must be in range [{minimum!r}, {maximum!r}]: {value!r}".format(
                    name=attr.name,
                    minimum=self.minimum,
                    maximum=self.maximum,
                    value=value,
                )
            )

    def __repr__(self) -> str:
        return "<range_ validator with [{minimum!r}, {maximum!r}]>".format(
            minimum=self.minimum, maximum=self.maximum
        )


def range_(minimum: Any, maximum: Any) -> _RangeValidator:
    """
    A validator that raises :exc:`InvalidSceneError` if the initializer is
    called with a value that does not belong in the [minimum, maximum] range.
    """
    return _RangeValidator(minimum, maximum)


def positive(inst: Any, attr: Any, value: Any) -> None:
    """Value must be a number strictly greater than zero."""
    if not isinstance(value, (int, float)) or isinstance(value, bool) or not value > 0:
        raise InvalidSceneError("'%s' must be positive: %r" % (attr.name, value))


def non_negative(inst: Any, attr: Any, value: Any) -> None:
    """Value must be a number greater than or equal to zero."""
    if not isinstance(value, (int, float)) or isinstance(value, bool) or not value >= 0:
        raise InvalidSceneError("'%s' must be non-negative: %r" % (attr.name, value))


def to_enum(enum_class: Type[E]) -> Callable[[Any], E]:
    """
    Converter that maps a raw value onto ``enum_class``.

    Unknown values raise :exc:`InvalidSceneError` instead of being coerced.
    """

    def converter(value: Any) -> E:
        if isinstance(value, enum_class):
            return value
        key = value.lower() if isinstance(value, str) else value
        try:
            return enum_class(key)
        except ValueError:
            raise InvalidSceneError(
                "Unknown %s: %r" % (enum_class.__name__, value)
            ) from None

    return converter
