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
from typing import Dict, Mapping, Optional, Pattern

from gastown_formula.core.errors import (
    InvalidEnumValueError,
    PatternMismatchError,
    UnknownVariableReferenceError,
)
from gastown_formula.core.formula import Var

# {{ name }} with optional inner whitespace. The name is everything between the
# braces, so quoted TOML keys such as "app.env" are referenceable too.
PLACEHOLDER = re.compile(r"\{\{\s*([^{}\s](?:[^{}]*[^{}\s])?)\s*\}\}")


class VariableResolver:
    """
    Matcher table for one formula's variables.

    Built once per cook: value constraints are compiled up front and every
    template field is rendered through the same placeholder matcher.
    """

    def __init__(self, variables: Mapping[str, Var]) -> None:
        self.variables = dict(variables)
        self.patterns: Dict[str, Pattern[str]] = {
            name: re.compile(var.pattern) for name, var in self.variables.items() if var.pattern is not None
        }
        self.values: Dict[str, str] = {}

    def check(self, name: str, value: str) -> None:
        """
        Validates a caller-supplied value against the variable's pattern and enum.

        Raises:
            PatternMismatchError: If a declared pattern does not match.
            InvalidEnumValueError: If the value is outside a declared enum.
        """
        var = self.variables[name]
        pattern = self.patterns.get(name)
        if pattern is not None and pattern.search(value) is None:
            raise PatternMismatchError(name, value, pattern.pattern)
        if var.enum_values is not None and value not in var.enum_values:
            raise InvalidEnumValueError(name, value, var.enum_values)

    def bind(self, values: Mapping[str, str]) -> None:
        self.values = dict(values)

    def render(self, text: str) -> str:
        """
        Replaces every {{ name }} with its bound value.

        Single pass: replacement text is never scanned again, so a value that
        itself looks like a placeholder is emitted literally.
        """

        def _replace(match: re.Match[str]) -> str:
            name = match.group(1)
            if name not in self.variables:
                raise UnknownVariableReferenceError(name)
            return self.values.get(name, "")

        return PLACEHOLDER.sub(_replace, text)

    def render_optional(self, text: Optional[str]) -> Optional[str]:
        return None if text is None else self.render(text)
