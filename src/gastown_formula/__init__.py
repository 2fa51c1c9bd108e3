# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/gastown_formula

__version__ = "0.1.0"

from gastown_formula.core.errors import (  # noqa: E402
    CookError,
    CycleDetectedError,
    DanglingReferenceError,
    FormulaError,
    FormulaSyntaxError,
    GraphError,
    InvalidBindingError,
    InvalidEnumValueError,
    MissingRequiredVarError,
    ParseError,
    PatternMismatchError,
    SchemaError,
    UnknownVariableReferenceError,
)
from gastown_formula.core.formula import CookedFormula, Formula, FormulaType, Leg, Step, Synthesis, Var  # noqa: E402
from gastown_formula.core.molecule import Bead, Molecule  # noqa: E402
from gastown_formula.engine.batch import cook_batch, cook_batch_async  # noqa: E402
from gastown_formula.engine.cooker import cook  # noqa: E402
from gastown_formula.engine.parser import dump, get_formula_type, parse, validate  # noqa: E402
from gastown_formula.engine.topology import TopologyEngine, compile_molecule  # noqa: E402

__all__ = [
    "Bead",
    "CookError",
    "CookedFormula",
    "CycleDetectedError",
    "DanglingReferenceError",
    "Formula",
    "FormulaError",
    "FormulaSyntaxError",
    "FormulaType",
    "GraphError",
    "InvalidBindingError",
    "InvalidEnumValueError",
    "Leg",
    "MissingRequiredVarError",
    "Molecule",
    "ParseError",
    "PatternMismatchError",
    "SchemaError",
    "Step",
    "Synthesis",
    "TopologyEngine",
    "UnknownVariableReferenceError",
    "Var",
    "__version__",
    "compile_molecule",
    "cook",
    "cook_batch",
    "cook_batch_async",
    "dump",
    "get_formula_type",
    "parse",
    "validate",
]
