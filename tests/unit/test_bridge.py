# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/gastown_formula

import json

import pytest

from gastown_formula import __version__, bridge
from gastown_formula.core.errors import (
    CycleDetectedError,
    FormulaSyntaxError,
    MissingRequiredVarError,
    SchemaError,
)


def test_parse_formula_uses_external_keys(workflow_toml: str) -> None:
    data = bridge.parse_formula(workflow_toml)

    assert data["formula"] == "deploy-{{ env }}"
    assert data["type"] == "workflow"
    assert data["version"] == 2
    assert data["vars"]["env"]["enum"] == ["dev", "staging", "prod"]
    assert "name" not in data
    assert "formula_type" not in data


def test_validate_and_type(convoy_toml: str) -> None:
    assert bridge.validate_formula(convoy_toml) is True
    assert bridge.validate_formula("not toml [") is False
    assert bridge.get_formula_type(convoy_toml) == "convoy"


def test_cook_formula_json(workflow_toml: str) -> None:
    formula_json = json.dumps(bridge.parse_formula(workflow_toml))

    cooked = json.loads(bridge.cook_formula(formula_json, json.dumps({"env": "prod"})))

    assert cooked["formula"] == "deploy-prod"
    assert cooked["original_name"] == "deploy-{{ env }}"
    assert cooked["cooked_vars"] == {"env": "prod", "service": "api", "ticket": ""}
    assert "cooked_at" in cooked
    assert cooked["type"] == "workflow"


def test_cook_formula_errors(workflow_toml: str) -> None:
    formula_json = json.dumps(bridge.parse_formula(workflow_toml))

    with pytest.raises(MissingRequiredVarError):
        bridge.cook_formula(formula_json, "{}")
    with pytest.raises(FormulaSyntaxError):
        bridge.cook_formula(formula_json, "{not json")
    with pytest.raises(SchemaError) as exc_info:
        bridge.cook_formula(formula_json, json.dumps({"env": 5}))
    assert exc_info.value.field == "vars.env"


def test_cook_batch_json(workflow_toml: str) -> None:
    formula = bridge.parse_formula(workflow_toml)

    slots = json.loads(
        bridge.cook_batch(
            json.dumps([formula, formula, {"formula": "broken"}, formula]),
            json.dumps([{"env": "dev"}, {}, {}, {"env": "prod"}]),
        )
    )

    assert len(slots) == 4
    assert slots[0]["formula"] == "deploy-dev"
    assert slots[1]["error"]["kind"] == "missing_required_var"
    assert slots[1]["error"]["name"] == "env"
    assert slots[2]["error"]["kind"] == "schema_error"
    assert slots[3]["formula"] == "deploy-prod"


def test_cook_batch_bad_bindings_slot(workflow_toml: str) -> None:
    formula = bridge.parse_formula(workflow_toml)

    slots = json.loads(bridge.cook_batch(json.dumps([formula, formula]), json.dumps([{"env": "dev"}, ["x"]])))

    assert slots[0]["formula"] == "deploy-dev"
    assert slots[1]["error"]["kind"] == "schema_error"
    assert slots[1]["error"]["field"] == "vars.1"


def test_cook_batch_shape_errors() -> None:
    with pytest.raises(SchemaError):
        bridge.cook_batch("{}", "[]")
    with pytest.raises(SchemaError):
        bridge.cook_batch("[]", "{}")
    with pytest.raises(SchemaError):
        bridge.cook_batch("[{}]", "[]")


def test_generate_molecule_json(workflow_toml: str) -> None:
    formula_json = json.dumps(bridge.parse_formula(workflow_toml))
    cooked_json = bridge.cook_formula(formula_json, json.dumps({"env": "prod"}))

    first = bridge.generate_molecule(cooked_json)
    second = bridge.generate_molecule(cooked_json)

    assert first == second
    molecule = json.loads(first)
    assert [bead["id"] for bead in molecule["beads"]] == ["build", "test", "ship"]
    assert molecule["type"] == "workflow"


def test_generate_molecule_requires_cooked_fields(workflow_toml: str) -> None:
    with pytest.raises(SchemaError) as exc_info:
        bridge.generate_molecule(json.dumps(bridge.parse_formula(workflow_toml)))

    assert exc_info.value.field == "cooked_at"


def test_generate_molecule_cycle() -> None:
    formula = {
        "formula": "loop",
        "description": "d",
        "type": "workflow",
        "steps": [{"id": "A", "needs": ["B"]}, {"id": "B", "needs": ["A"]}],
    }
    cooked_json = bridge.cook_formula(json.dumps(formula), "{}")

    with pytest.raises(CycleDetectedError) as exc_info:
        bridge.generate_molecule(cooked_json)

    assert exc_info.value.to_dict() == {
        "kind": "cycle_detected",
        "message": str(exc_info.value),
        "ids": ["A", "B"],
    }


def test_get_metrics() -> None:
    metrics = bridge.get_metrics()

    assert metrics["version"] == __version__
    assert set(metrics["targets"]) == {  # type: ignore[arg-type]
        "parse_toml_ms",
        "cook_formula_ms",
        "batch_100_ms",
        "generate_molecule_ms",
    }
    assert "precompiled_substitution_table" in metrics["optimizations"]
