"""Conversion of substituted values into command arguments.

``to_arguments`` is a ``functools.singledispatch`` function. Register a
coercion for your own type where it is needed::

    @to_arguments.register
    def _(value: Version) -> tuple[str, ...]:
        return (str(value),)

Types that would rather carry their own coercion implement
``__shell_arguments__`` (see ``SupportsArguments``).
"""

from __future__ import annotations

from functools import singledispatch
from pathlib import Path, PurePath
from typing import Protocol, runtime_checkable

from pipewright.errors import CoercionError


@runtime_checkable
class SupportsArguments(Protocol):
    """Value that knows how to render itself as command arguments."""

    def __shell_arguments__(self) -> str | tuple[str, ...] | list[str]: ...


@singledispatch
def to_arguments(value: object) -> tuple[str, ...]:
    """Coerce one substituted value into one or more arguments."""
    if isinstance(value, SupportsArguments):
        rendered = value.__shell_arguments__()
        if isinstance(rendered, str):
            return (rendered,)
        return tuple(rendered)
    raise CoercionError(value)


@to_arguments.register
def _(value: str) -> tuple[str, ...]:
    return (value,)


@to_arguments.register
def _(value: bool) -> tuple[str, ...]:
    raise CoercionError(value)


@to_arguments.register
def _(value: int) -> tuple[str, ...]:
    return (str(int(value)),)


@to_arguments.register
def _(value: PurePath) -> tuple[str, ...]:
    return (str(_canonical(value)),)


@to_arguments.register(list)
@to_arguments.register(tuple)
def _(value: list[object] | tuple[object, ...]) -> tuple[str, ...]:
    arguments: list[str] = []
    for item in value:
        arguments.extend(to_arguments(item))
    return tuple(arguments)


def _canonical(path: PurePath) -> PurePath:
    if isinstance(path, Path):
        return path.resolve()
    return path
