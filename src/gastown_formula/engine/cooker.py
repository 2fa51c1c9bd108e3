# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/gastown_formula

from datetime import datetime, timezone
from typing import Dict, List, Mapping

from gastown_formula.core.errors import InvalidBindingError, MissingRequiredVarError
from gastown_formula.core.formula import CookedFormula, Formula, Leg, Step, Synthesis
from gastown_formula.engine.resolver import VariableResolver
from gastown_formula.utils.logger import logger


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _cook_step(step: Step, resolver: VariableResolver) -> Step:
    return step.model_copy(
        update={
            "title": resolver.render(step.title),
            "description": resolver.render(step.description),
        }
    )


def _cook_leg(leg: Leg, resolver: VariableResolver) -> Leg:
    return leg.model_copy(
        update={
            "title": resolver.render(leg.title),
            "focus": resolver.render(leg.focus),
            "description": resolver.render(leg.description),
        }
    )


def _cook_synthesis(synthesis: Synthesis, resolver: VariableResolver) -> Synthesis:
    return synthesis.model_copy(update={"description": resolver.render_optional(synthesis.description)})


def cook(formula: Formula, bindings: Mapping[str, str]) -> CookedFormula:
    """
    Binds variables into a formula.

    Args:
        formula: The parsed formula. It is not modified.
        bindings: Caller-supplied values keyed by variable name.

    Returns:
        CookedFormula: A new, fully substituted snapshot.

    Raises:
        InvalidBindingError: A binding value is not a string.
        MissingRequiredVarError: A required variable has no binding and no default.
        PatternMismatchError: A supplied value fails the variable's pattern.
        InvalidEnumValueError: A supplied value is outside the variable's enum.
        UnknownVariableReferenceError: A template names an undeclared variable.
    """
    for name, value in bindings.items():
        if not isinstance(value, str):
            raise InvalidBindingError(name, type(value).__name__)

    resolver = VariableResolver(formula.vars)

    # 1. Resolve
    resolved: Dict[str, str] = {}
    unresolved: List[str] = []
    for name in sorted(formula.vars):
        var = formula.vars[name]
        if name in bindings:
            resolved[name] = bindings[name]
        elif var.default is not None:
            resolved[name] = var.default
        elif var.required:
            raise MissingRequiredVarError(name)
        else:
            resolved[name] = ""
            unresolved.append(name)

    ignored = sorted(set(bindings) - set(formula.vars))
    if ignored:
        logger.debug(f"Ignoring bindings for undeclared variables in '{formula.name}': {ignored}")

    # 2. Validate supplied values
    for name in sorted(set(bindings) & set(formula.vars)):
        resolver.check(name, bindings[name])

    # 3. Substitute
    resolver.bind(resolved)
    cooked = CookedFormula(
        name=resolver.render(formula.name),
        description=resolver.render(formula.description),
        formula_type=formula.formula_type,
        version=formula.version,
        vars=formula.vars,
        legs=[_cook_leg(leg, resolver) for leg in formula.legs],
        steps=[_cook_step(step, resolver) for step in formula.steps],
        synthesis=_cook_synthesis(formula.synthesis, resolver) if formula.synthesis else None,
        # 4. Record
        cooked_at=_now(),
        cooked_vars=resolved,
        original_name=formula.name,
        unresolved_vars=unresolved,
    )
    logger.debug(f"Cooked formula '{formula.name}' with {len(resolved)} variables")
    return cooked
