"""
Dispatch tables keyed by scene enums.

Clip shapes and frame styles are looked up by an enum value taken from the
scene. :py:func:`new_registry` returns the table and a decorator filling it;
:py:func:`check_exhaustive` fails at import time when an enum member was
never registered, so a new shape or frame type cannot slip through unhandled.

Usage example::

    from wallcomp.registry import check_exhaustive, new_registry

    FRAME_STYLES, register = new_registry(attribute='frame_type')

    @register(FrameType.CLASSIC)
    class Classic(FrameStyle):
        ...

    check_exhaustive(FRAME_STYLES, FrameType)
"""

from enum import Enum
from typing import Any, Callable, Dict, Optional, Tuple, Type, TypeVar

T = TypeVar("T")


def new_registry(
    attribute: Optional[str] = None,
) -> Tuple[Dict[Any, Any], Callable[[Any], Callable[[T], T]]]:
    """
    Returns an empty table and a ``@register(key)`` decorator.

    :param attribute: when set, the key is also stored on the registered
        object under this attribute name.
    :raises KeyError: when a key is registered twice.
    """
    registry: Dict[Any, Any] = {}

    def register(key: Any) -> Callable[[T], T]:
        def decorator(obj: T) -> T:
            if key in registry:
                raise KeyError("%r is already registered to %r" % (key, registry[key]))
            registry[key] = obj
            if attribute:
                setattr(obj, attribute, key)
            return obj

        return decorator

    return registry, register


def check_exhaustive(registry: Dict[Any, Any], enum_class: Type[Enum]) -> None:
    """Raise ``NotImplementedError`` for members of ``enum_class`` missing from ``registry``."""
    missing = [member.value for member in enum_class if member not in registry]
    if missing:
        raise NotImplementedError(
            "Unhandled %s: %s" % (enum_class.__name__, ", ".join(missing))
        )
