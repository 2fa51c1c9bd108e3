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
from enum import Enum
from typing import Annotated, Any, Dict, List, Optional

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, field_validator, model_validator

from gastown_formula.core.errors import SchemaError


def _not_blank(value: str) -> str:
    if not value.strip():
        raise ValueError("must not be empty")
    return value


NonEmptyStr = Annotated[str, AfterValidator(_not_blank)]
NonNegativeInt = Annotated[int, Field(ge=0, strict=True)]


# 1. Formula kinds
class FormulaType(str, Enum):
    """Closed set of formula kinds. Selects the molecule construction rule."""

    CONVOY = "convoy"
    WORKFLOW = "workflow"
    EXPANSION = "expansion"
    ASPECT = "aspect"


# 2. Variables
class Var(BaseModel):
    """
    A substitution slot declared under ``[vars.<name>]``.
    """

    model_config = ConfigDict(extra="forbid", frozen=True, populate_by_name=True)

    name: NonEmptyStr
    description: Optional[str] = None
    default: Optional[str] = None
    required: bool = False
    pattern: Optional[str] = None
    enum_values: Optional[List[str]] = Field(default=None, alias="enum", min_length=1)

    @field_validator("pattern")
    @classmethod
    def _pattern_compiles(cls, value: Optional[str]) -> Optional[str]:
        if value is not None:
            try:
                re.compile(value)
            except re.error as e:
                raise ValueError(f"invalid regular expression: {e}") from e
        return value

    def allows(self, value: str) -> bool:
        """True when the value satisfies both the pattern and the enum, if declared."""
        if self.pattern is not None and re.search(self.pattern, value) is None:
            return False
        if self.enum_values is not None and value not in self.enum_values:
            return False
        return True


# 3. Units of work
class Step(BaseModel):
    """A workflow unit. ``needs`` may reference steps declared later."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    id: NonEmptyStr
    title: str = ""
    description: str = ""
    needs: List[str] = Field(default_factory=list)
    duration: Optional[NonNegativeInt] = None
    requires: List[str] = Field(default_factory=list)


class Leg(BaseModel):
    """A convoy unit. ``order`` groups legs into sequential waves."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    id: NonEmptyStr
    title: str = ""
    focus: str = ""
    description: str = ""
    agent: Optional[str] = None
    order: Optional[NonNegativeInt] = None


class Synthesis(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    strategy: str
    format: Optional[str] = None
    description: Optional[str] = None


# 4. Root object
class Formula(BaseModel):
    """
    A declarative work template.

    Field aliases (``formula``, ``type``) are the stable external keys; the TOML
    text and the JSON boundary both use them.
    """

    model_config = ConfigDict(extra="forbid", frozen=True, populate_by_name=True)

    name: NonEmptyStr = Field(alias="formula")
    description: NonEmptyStr
    formula_type: FormulaType = Field(alias="type")
    version: NonNegativeInt = 1
    vars: Dict[str, Var] = Field(default_factory=dict)
    legs: List[Leg] = Field(default_factory=list)
    steps: List[Step] = Field(default_factory=list)
    synthesis: Optional[Synthesis] = None

    @model_validator(mode="before")
    @classmethod
    def _name_vars_from_keys(cls, data: Any) -> Any:
        # [vars.env] tables carry their name as the key; fill it in when omitted.
        if isinstance(data, dict) and isinstance(data.get("vars"), dict):
            named: Dict[str, Any] = {}
            for key, var in data["vars"].items():
                if isinstance(var, dict):
                    if "name" not in var:
                        var = {**var, "name": key}
                    elif var["name"] != key:
                        raise SchemaError(f"vars.{key}.name", f"name '{var['name']}' does not match table key '{key}'")
                named[key] = var
            data = {**data, "vars": named}
        return data

    @model_validator(mode="after")
    def _check_structure(self) -> "Formula":
        for key, var in self.vars.items():
            if var.name != key:
                raise SchemaError(f"vars.{key}.name", f"name '{var.name}' does not match key '{key}'")
            if var.default is not None and not var.allows(var.default):
                raise SchemaError(
                    f"vars.{key}.default",
                    f"default '{var.default}' violates the variable's own pattern or enum",
                )

        seen: set[str] = set()
        for index, step in enumerate(self.steps):
            if step.id in seen:
                raise SchemaError(f"steps.{index}.id", f"duplicate step id '{step.id}'")
            seen.add(step.id)
            if step.id in step.needs:
                raise SchemaError(f"steps.{index}.needs", f"step '{step.id}' needs itself")

        seen = set()
        for index, leg in enumerate(self.legs):
            if leg.id in seen:
                raise SchemaError(f"legs.{index}.id", f"duplicate leg id '{leg.id}'")
            seen.add(leg.id)

        return self


class CookedFormula(Formula):
    """
    A Formula with every variable substituted.

    Serializes flat: the formula keys plus ``cooked_at``, ``cooked_vars``,
    ``original_name`` and ``unresolved_vars``. Name and description hold
    whatever substitution produced, which may be empty when they consist of an
    unresolved optional variable.
    """

    name: str = Field(alias="formula")
    description: str
    cooked_at: str
    cooked_vars: Dict[str, str]
    original_name: str
    unresolved_vars: List[str] = Field(default_factory=list)
