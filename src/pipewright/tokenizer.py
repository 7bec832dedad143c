"""Quoting-aware tokenizer for interpolated command templates.

The tokenizer is a small state machine driven one character at a time over
the literal fragments of a template. Substituted values are inserted between
fragments with ``insert_substitution``; they are never re-scanned for quotes
or escapes, so a value can never change how the surrounding text is split.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from enum import Enum

from pipewright.errors import ParseError

WHITESPACE = frozenset(" \t")


class Context(Enum):
    """Parse mode of the tokenizer."""

    AWAITING = "awaiting"
    UNQUOTED = "unquoted"
    IN_DOUBLE_QUOTE = "in_double_quote"
    IN_SINGLE_QUOTE = "in_single_quote"

    @property
    def quoted(self) -> bool:
        return self in (Context.IN_DOUBLE_QUOTE, Context.IN_SINGLE_QUOTE)


@dataclass(frozen=True)
class ParserState:
    """Immutable tokenizer state.

    ``arguments`` holds every argument seen so far. Outside ``AWAITING`` the
    last element is the argument currently being built.
    """

    context: Context = Context.AWAITING
    escape_pending: bool = False
    arguments: tuple[str, ...] = field(default_factory=tuple)


INITIAL_STATE = ParserState()


def parse(state: ParserState, fragment: str) -> ParserState:
    """Feed one literal fragment through the state machine."""
    context = state.context
    escape = state.escape_pending
    arguments = list(state.arguments)
    current: list[str] = []
    if context is not Context.AWAITING:
        current.append(arguments.pop())

    for char in fragment:
        if context is Context.AWAITING:
            if char in WHITESPACE:
                continue
            if char == '"':
                context = Context.IN_DOUBLE_QUOTE
            elif char == "'":
                context = Context.IN_SINGLE_QUOTE
            elif char == "\\":
                context = Context.UNQUOTED
                escape = True
            else:
                context = Context.UNQUOTED
                current.append(char)
            continue

        if escape:
            current.append(char)
            escape = False
            continue

        if context is Context.IN_SINGLE_QUOTE:
            if char == "'":
                context = Context.UNQUOTED
            else:
                current.append(char)
        elif context is Context.IN_DOUBLE_QUOTE:
            if char == '"':
                context = Context.UNQUOTED
            elif char == "\\":
                escape = True
            else:
                current.append(char)
        elif char in WHITESPACE:
            arguments.append("".join(current))
            current = []
            context = Context.AWAITING
        elif char == '"':
            context = Context.IN_DOUBLE_QUOTE
        elif char == "'":
            context = Context.IN_SINGLE_QUOTE
        elif char == "\\":
            escape = True
        else:
            current.append(char)

    if context is not Context.AWAITING:
        arguments.append("".join(current))
    return ParserState(context=context, escape_pending=escape, arguments=tuple(arguments))


def insert_substitution(state: ParserState, values: Sequence[str]) -> ParserState:
    """Insert the coerced values of one substitution.

    Unquoted, the first value glues onto the current argument and each further
    value becomes a new argument. Quoted, all values are joined with a single
    space into the current argument.
    """
    if state.escape_pending:
        raise ParseError("escaping is not allowed immediately before a substitution")

    values = tuple(values)
    if state.context is Context.AWAITING:
        if not values:
            return state
        return ParserState(context=Context.UNQUOTED, arguments=state.arguments + values)

    *done, current = state.arguments
    if state.context.quoted:
        return ParserState(context=state.context, arguments=(*done, current + " ".join(values)))
    if not values:
        return state
    first, *rest = values
    return ParserState(context=Context.UNQUOTED, arguments=(*done, current + first, *rest))


def complete(state: ParserState) -> tuple[str, ...]:
    """Finish parsing and return the argument vector."""
    if state.context is Context.IN_DOUBLE_QUOTE:
        raise ParseError("unclosed double quote")
    if state.context is Context.IN_SINGLE_QUOTE:
        raise ParseError("unclosed single quote")
    if state.escape_pending:
        raise ParseError("dangling escape at end of input")
    if not state.arguments:
        raise ParseError("command is empty")
    return state.arguments


def tokenize(fragments: Sequence[str], substitutions: Iterable[Sequence[str]] = ()) -> tuple[str, ...]:
    """Tokenize literal fragments interleaved with coerced substitutions.

    ``fragments`` must hold exactly one more element than ``substitutions``;
    substitution ``i`` sits between ``fragments[i]`` and ``fragments[i + 1]``.
    """
    values = list(substitutions)
    if len(fragments) != len(values) + 1:
        raise ValueError(f"expected {len(values) + 1} fragments for {len(values)} substitutions, got {len(fragments)}")

    state = parse(INITIAL_STATE, fragments[0])
    for value, fragment in zip(values, fragments[1:], strict=True):
        state = insert_substitution(state, value)
        state = parse(state, fragment)
    return complete(state)
