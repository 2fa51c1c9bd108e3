# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/gastown_formula

from typing import Any, Dict, List, Optional


class FormulaError(Exception):
    """Base class for every error raised by the formula pipeline."""

    kind = "formula_error"

    def to_dict(self) -> Dict[str, Any]:
        """Returns a JSON-ready description of the error."""
        return {"kind": self.kind, "message": str(self)}


# --- Parse stage ---


class ParseError(FormulaError):
    """Raised when formula text cannot be turned into a Formula."""

    kind = "parse_error"


class FormulaSyntaxError(ParseError):
    """Raised when the text is not well-formed TOML."""

    kind = "syntax_error"

    def __init__(self, reason: str, line: Optional[int] = None, column: Optional[int] = None) -> None:
        self.reason = reason
        self.line = line
        self.column = column
        location = f" (line {line}, column {column})" if line is not None else ""
        super().__init__(f"Invalid formula syntax{location}: {reason}")

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data.update({"reason": self.reason, "line": self.line, "column": self.column})
        return data


class SchemaError(ParseError):
    """Raised when well-formed text violates the formula schema."""

    kind = "schema_error"

    def __init__(self, field: str, reason: str) -> None:
        self.field = field
        self.reason = reason
        super().__init__(f"Invalid field '{field}': {reason}")

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data.update({"field": self.field, "reason": self.reason})
        return data


# --- Cook stage ---


class CookError(FormulaError):
    """Raised when variables cannot be bound into a formula."""

    kind = "cook_error"


class MissingRequiredVarError(CookError):
    kind = "missing_required_var"

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Required variable '{name}' has no value and no default")

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["name"] = self.name
        return data


class PatternMismatchError(CookError):
    kind = "pattern_mismatch"

    def __init__(self, name: str, value: str, pattern: str) -> None:
        self.name = name
        self.value = value
        self.pattern = pattern
        super().__init__(f"Value '{value}' for variable '{name}' does not match pattern '{pattern}'")

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data.update({"name": self.name, "value": self.value, "pattern": self.pattern})
        return data


class InvalidEnumValueError(CookError):
    kind = "invalid_enum_value"

    def __init__(self, name: str, value: str, allowed: List[str]) -> None:
        self.name = name
        self.value = value
        self.allowed = list(allowed)
        super().__init__(f"Value '{value}' for variable '{name}' is not one of {self.allowed}")

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data.update({"name": self.name, "value": self.value, "allowed": self.allowed})
        return data


class InvalidBindingError(CookError, TypeError):
    """Raised when a caller-supplied binding is not a string."""

    kind = "invalid_binding"

    def __init__(self, name: str, value_type: str) -> None:
        self.name = name
        self.value_type = value_type
        super().__init__(f"Binding for '{name}' must be a string, got {value_type}")

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data.update({"name": self.name, "value_type": self.value_type})
        return data


class UnknownVariableReferenceError(CookError):
    kind = "unknown_variable_reference"

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Template references undeclared variable '{name}'")

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["name"] = self.name
        return data


# --- Compile stage ---


class GraphError(FormulaError):
    """Raised when a cooked formula cannot be compiled into a molecule."""

    kind = "graph_error"


class CycleDetectedError(GraphError):
    """Raised when the dependency graph contains a cycle."""

    kind = "cycle_detected"

    def __init__(self, ids: List[str]) -> None:
        self.ids = sorted(ids)
        super().__init__(f"The dependency graph contains a cycle through {self.ids}")

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["ids"] = self.ids
        return data


class DanglingReferenceError(GraphError):
    """Raised when a step needs an id that is not declared."""

    kind = "dangling_reference"

    def __init__(self, id: str, referenced_by: str) -> None:
        self.id = id
        self.referenced_by = referenced_by
        super().__init__(f"Step '{referenced_by}' needs unknown step '{id}'")

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data.update({"id": self.id, "referenced_by": self.referenced_by})
        return data
