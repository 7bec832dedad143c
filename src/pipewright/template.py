"""Build commands from ``str.format``-style templates::

    sh("ls -l {}", Path("/tmp"))
    sh("grep -e {pattern} {files}", pattern="a b", files=["x.txt", "y.txt"])

Placeholders are substitutions, not text: their values go through
``to_arguments`` and are inserted after the surrounding literal text has been
tokenized, so a value containing spaces or quotes stays one argument. Literal
braces are written ``{{`` and ``}}``.
"""

from __future__ import annotations

from string import Formatter

from pipewright.coercion import to_arguments
from pipewright.command import Command
from pipewright.errors import ParseError
from pipewright.tokenizer import tokenize

_FORMATTER = Formatter()


def split_template(template: str, args: tuple[object, ...], kwargs: dict[str, object]) -> tuple[list[str], list[object]]:
    """Split ``template`` into literal fragments and resolved substitution values."""
    fragments: list[str] = [""]
    values: list[object] = []
    auto_index = 0
    manual = False

    try:
        parsed = list(_FORMATTER.parse(template))
    except ValueError as exc:
        raise ParseError(f"malformed template: {exc}") from exc

    for literal, field_name, format_spec, conversion in parsed:
        fragments[-1] += literal
        if field_name is None:
            continue
        if format_spec or conversion:
            raise ParseError(f"format specs and conversions are not supported in {{{field_name}}}")
        if field_name == "":
            if manual:
                raise ParseError("cannot switch from manual field numbering to automatic numbering")
            field_name = str(auto_index)
            auto_index += 1
        elif field_name[0].isdigit():
            if auto_index:
                raise ParseError("cannot switch from automatic field numbering to manual numbering")
            manual = True
        try:
            value, _ = _FORMATTER.get_field(field_name, args, kwargs)
        except (IndexError, KeyError, AttributeError) as exc:
            raise ParseError(f"no value for substitution {{{field_name}}}") from exc
        values.append(value)
        fragments.append("")

    return fragments, values


def sh(template: str, /, *args: object, **kwargs: object) -> Command:
    """Tokenize ``template`` with its substitutions into a ``Command``."""
    fragments, values = split_template(template, args, kwargs)
    return Command(tokenize(fragments, [to_arguments(value) for value in values]))
