# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/gastown_formula

"""
JSON boundary of the formula pipeline.

Every entry point takes TOML text or JSON strings and returns JSON-ready
values, keeping the external key spelling (``formula``, ``type``, ``enum``,
``cooked_at``...). Failures raise the typed errors from
``gastown_formula.core.errors``; each exposes ``to_dict()`` for transport.
"""

import json
from typing import Any, Dict, List, Optional, Union

from pydantic import StrictStr, TypeAdapter, ValidationError

from gastown_formula.core.errors import FormulaError, FormulaSyntaxError, ParseError, SchemaError
from gastown_formula.core.formula import CookedFormula, Formula
from gastown_formula.engine import batch, cooker, parser
from gastown_formula.engine.topology import compile_molecule

_BINDINGS = TypeAdapter(Dict[str, StrictStr])

METRIC_TARGETS = {
    "parse_toml_ms": 0.1,
    "cook_formula_ms": 0.05,
    "batch_100_ms": 1.0,
    "generate_molecule_ms": 0.1,
}

OPTIMIZATIONS = [
    "precompiled_substitution_table",
    "single_pass_substitution",
    "type_fast_path",
    "lexicographic_topological_sort",
    "concurrent_batch_cooking",
]


def _load_json(payload: str, field: str) -> Any:
    try:
        return json.loads(payload)
    except json.JSONDecodeError as e:
        raise FormulaSyntaxError(f"{field}: {e.msg}", e.lineno, e.colno) from e


def load_bindings(data: Any, field: str) -> Dict[str, str]:
    """Checks decoded bindings are an object of strings, raising SchemaError at ``field``."""
    try:
        return _BINDINGS.validate_python(data)
    except ValidationError as e:
        first = e.errors()[0]
        loc = ".".join(str(part) for part in (field, *first["loc"]))
        raise SchemaError(loc, first["msg"]) from e


def _formula_json(formula: Formula) -> Dict[str, Any]:
    return formula.model_dump(mode="json", by_alias=True)


def parse_formula(content: str) -> Dict[str, Any]:
    """Parses TOML formula text into its JSON-ready form."""
    return _formula_json(parser.parse(content))


def validate_formula(content: str) -> bool:
    """True when the TOML formula text parses and validates."""
    return parser.validate(content)


def get_formula_type(content: str) -> str:
    """Returns "convoy", "workflow", "expansion" or "aspect"."""
    return parser.get_formula_type(content).value


def cook_formula(formula_json: str, vars_json: str) -> str:
    """
    Cooks a formula.

    Args:
        formula_json: Formula as a JSON object.
        vars_json: Variable bindings as a JSON object of strings.

    Returns:
        str: The CookedFormula as JSON.
    """
    formula = parser.parse_dict(_load_json(formula_json, "formula"))
    bindings = load_bindings(_load_json(vars_json, "vars"), "vars")
    return cooker.cook(formula, bindings).model_dump_json(by_alias=True)


def _error_slot(error: FormulaError) -> Dict[str, Any]:
    return {"error": error.to_dict()}


class _BatchPlan:
    """Raw batch input split into per-slot parse failures and cookable items."""

    def __init__(self, formulas: Any, bindings_list: Any) -> None:
        if not isinstance(formulas, list):
            raise SchemaError("formulas", "expected an array")
        if not isinstance(bindings_list, list):
            raise SchemaError("vars", "expected an array")
        if len(formulas) != len(bindings_list):
            raise SchemaError("vars", f"expected {len(formulas)} binding objects, got {len(bindings_list)}")

        self.slots: List[Optional[Dict[str, Any]]] = [None] * len(formulas)
        self.pending: List[int] = []
        self.formulas: List[Formula] = []
        self.bindings: List[Dict[str, str]] = []
        for index, (raw_formula, raw_bindings) in enumerate(zip(formulas, bindings_list)):
            try:
                formula = parser.parse_dict(raw_formula)
                bindings = load_bindings(raw_bindings, f"vars.{index}")
            except ParseError as e:
                self.slots[index] = _error_slot(e)
                continue
            self.pending.append(index)
            self.formulas.append(formula)
            self.bindings.append(bindings)

    def fill(self, results: List[batch.BatchResult]) -> List[Dict[str, Any]]:
        for index, result in zip(self.pending, results):
            if isinstance(result, FormulaError):
                self.slots[index] = _error_slot(result)
            else:
                self.slots[index] = _formula_json(result)
        return [slot for slot in self.slots if slot is not None]


def cook_batch_items(formulas: Any, bindings_list: Any) -> List[Dict[str, Any]]:
    """
    Cooks decoded batch input.

    Returns one slot per input: a CookedFormula object or ``{"error": {...}}``.
    Malformed items fail in their own slot; only a malformed batch shape raises.
    """
    plan = _BatchPlan(formulas, bindings_list)
    return plan.fill(batch.cook_batch(plan.formulas, plan.bindings))


async def cook_batch_items_async(formulas: Any, bindings_list: Any, max_parallel: int = 10) -> List[Dict[str, Any]]:
    """Concurrent variant of ``cook_batch_items``; slot order matches input order."""
    plan = _BatchPlan(formulas, bindings_list)
    return plan.fill(await batch.cook_batch_async(plan.formulas, plan.bindings, max_parallel))


def cook_batch(formulas_json: str, vars_json: str) -> str:
    """
    Cooks many formulas.

    Args:
        formulas_json: JSON array of formulas.
        vars_json: JSON array of binding objects, index-aligned with formulas.

    Returns:
        str: JSON array with one slot per input (see ``cook_batch_items``).
    """
    return json.dumps(cook_batch_items(_load_json(formulas_json, "formulas"), _load_json(vars_json, "vars")))


def generate_molecule(formula_json: str) -> str:
    """
    Compiles a cooked formula (JSON) into a Molecule (JSON).

    Equal input yields byte-identical output.
    """
    cooked = parser.parse_dict(_load_json(formula_json, "formula"), CookedFormula)
    return compile_molecule(cooked).model_dump_json(by_alias=True)


def get_metrics() -> Dict[str, Union[str, Dict[str, float], List[str]]]:
    """Static descriptor of the declared performance targets. Informational only."""
    from gastown_formula import __version__

    return {
        "version": __version__,
        "targets": dict(METRIC_TARGETS),
        "optimizations": list(OPTIMIZATIONS),
    }
