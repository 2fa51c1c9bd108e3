# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/gastown_formula

import re
import tomllib
from typing import Any, Dict, Optional, Tuple, Type, TypeVar

import tomli_w
from pydantic import ValidationError

from gastown_formula.core.errors import FormulaSyntaxError, ParseError, SchemaError
from gastown_formula.core.formula import Formula, FormulaType
from gastown_formula.utils.logger import logger

# Top-level `type = "workflow"`, optionally followed by a comment.
_TYPE_LINE = re.compile(r"""^\s*type\s*=\s*(["'])([A-Za-z]+)\1\s*(?:#.*)?$""")
_DECODE_LOCATION = re.compile(r"at line (\d+), column (\d+)")
_TYPE_VALUES = {member.value for member in FormulaType}
_MULTILINE_QUOTE = '"""'
_MULTILINE_LITERAL = "'''"

F = TypeVar("F", bound=Formula)


def _decode_location(error: tomllib.TOMLDecodeError) -> Tuple[Optional[int], Optional[int]]:
    line = getattr(error, "lineno", None)
    column = getattr(error, "colno", None)
    if line is None:
        match = _DECODE_LOCATION.search(str(error))
        if match:
            return int(match.group(1)), int(match.group(2))
    return line, column


def _schema_error(error: ValidationError) -> SchemaError:
    """Reduces a pydantic ValidationError to its first failing field."""
    first = error.errors()[0]
    field = ".".join(str(part) for part in first["loc"]) or "<root>"
    return SchemaError(field, first["msg"])


def load_toml(text: str) -> Dict[str, Any]:
    """Decodes TOML text, raising FormulaSyntaxError on malformed input."""
    try:
        return tomllib.loads(text)
    except tomllib.TOMLDecodeError as e:
        line, column = _decode_location(e)
        raise FormulaSyntaxError(str(e), line, column) from e


def parse_dict(data: Any, model: Type[F] = Formula) -> F:  # type: ignore[assignment]
    """
    Validates an already-decoded mapping into a Formula.

    Args:
        data: The decoded document (from TOML or JSON).
        model: Formula, or CookedFormula for cooked payloads.

    Returns:
        Formula: The validated formula.

    Raises:
        SchemaError: If any field violates the formula schema.
    """
    if not isinstance(data, dict):
        raise SchemaError("<root>", f"expected a table, got {type(data).__name__}")
    try:
        return model.model_validate(data)
    except ValidationError as e:
        raise _schema_error(e) from e


def parse(text: str) -> Formula:
    """
    Parses formula text into a Formula.

    Args:
        text: TOML formula content.

    Returns:
        Formula: The validated formula.

    Raises:
        FormulaSyntaxError: If the text is not well-formed TOML.
        SchemaError: If the document violates the formula schema.
    """
    formula = parse_dict(load_toml(text))
    logger.debug(f"Parsed formula '{formula.name}' ({formula.formula_type.value}, v{formula.version})")
    return formula


def validate(text: str) -> bool:
    """Returns True when ``parse`` would succeed."""
    try:
        parse(text)
    except ParseError:
        return False
    return True


def get_formula_type(text: str) -> FormulaType:
    """
    Returns the formula type without a full parse when possible.

    Only lines ahead of the first table header are scanned, since a ``type``
    key inside ``[synthesis]`` or ``[[steps]]`` is not the formula's type.
    The scan also stops at the first multi-line string, whose body may hold
    a line that looks like a key. Anything the fast path cannot settle goes
    through ``parse``.
    """
    for line in text.splitlines():
        stripped = line.strip()
        if stripped.startswith("[") or _MULTILINE_QUOTE in line or _MULTILINE_LITERAL in line:
            break
        match = _TYPE_LINE.match(line)
        if match and match.group(2) in _TYPE_VALUES:
            return FormulaType(match.group(2))
    return parse(text).formula_type


def dump(formula: Formula) -> str:
    """
    Serializes a Formula to TOML text that ``parse`` reads back unchanged.

    Cooking metadata is not written; only the formula fields are.
    """
    data = formula.model_dump(
        mode="json",
        by_alias=True,
        exclude_none=True,
        include=set(Formula.model_fields),
    )
    # The var name is implied by its table key.
    for var in data.get("vars", {}).values():
        var.pop("name", None)
    return tomli_w.dumps(data)
