# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/gastown_formula

import pytest

from gastown_formula.core.errors import InvalidBindingError, InvalidEnumValueError, MissingRequiredVarError
from gastown_formula.core.formula import CookedFormula, Formula
from gastown_formula.engine.batch import cook_batch, cook_batch_async


def test_batch_isolates_failures(workflow_formula: Formula) -> None:
    results = cook_batch(
        [workflow_formula, workflow_formula, workflow_formula],
        [{"env": "dev"}, {}, {"env": "prod"}],
    )

    assert len(results) == 3
    assert isinstance(results[0], CookedFormula)
    assert isinstance(results[1], MissingRequiredVarError)
    assert isinstance(results[2], CookedFormula)
    assert results[0].name == "deploy-dev"
    assert results[2].name == "deploy-prod"


def test_batch_isolates_non_string_bindings(workflow_formula: Formula) -> None:
    results = cook_batch(
        [workflow_formula, workflow_formula, workflow_formula],
        [{"env": "dev"}, {"env": 1}, {"env": "prod"}],  # type: ignore[list-item]
    )

    assert isinstance(results[0], CookedFormula)
    assert isinstance(results[1], InvalidBindingError)
    assert results[1].name == "env"
    assert isinstance(results[2], CookedFormula)


def test_batch_mixed_formulas(
    workflow_formula: Formula, convoy_formula: Formula, expansion_formula: Formula
) -> None:
    results = cook_batch(
        [convoy_formula, workflow_formula, expansion_formula],
        [{"target": "db"}, {"env": "qa"}, {}],
    )

    assert isinstance(results[0], CookedFormula)
    assert isinstance(results[1], InvalidEnumValueError)
    assert isinstance(results[2], CookedFormula)
    assert results[0].original_name == "review-convoy"
    assert results[2].original_name == "expand-docs"


def test_batch_empty() -> None:
    assert cook_batch([], []) == []


def test_batch_length_mismatch(workflow_formula: Formula) -> None:
    with pytest.raises(ValueError):
        cook_batch([workflow_formula], [])


@pytest.mark.asyncio  # type: ignore
async def test_batch_async_preserves_order(workflow_formula: Formula) -> None:
    envs = ["dev", "staging", "prod"] * 10
    bindings = [{"env": env} if i % 7 else {} for i, env in enumerate(envs)]

    results = await cook_batch_async([workflow_formula] * len(bindings), bindings, max_parallel=4)

    assert len(results) == len(bindings)
    for i, (result, env) in enumerate(zip(results, envs)):
        if i % 7:
            assert isinstance(result, CookedFormula)
            assert result.name == f"deploy-{env}"
        else:
            assert isinstance(result, MissingRequiredVarError)


@pytest.mark.asyncio  # type: ignore
async def test_batch_async_matches_sequential(workflow_formula: Formula, convoy_formula: Formula) -> None:
    formulas = [workflow_formula, convoy_formula, workflow_formula]
    bindings = [{"env": "dev"}, {"target": "x"}, {"env": "bogus"}]

    sequential = cook_batch(formulas, bindings)
    concurrent = await cook_batch_async(formulas, bindings)

    assert [type(r) for r in sequential] == [type(r) for r in concurrent]
    assert concurrent[0].model_dump(exclude={"cooked_at"}) == sequential[0].model_dump(exclude={"cooked_at"})  # type: ignore[union-attr]


@pytest.mark.asyncio  # type: ignore
async def test_batch_async_invalid_parallelism(workflow_formula: Formula) -> None:
    with pytest.raises(ValueError):
        await cook_batch_async([workflow_formula], [{"env": "dev"}], max_parallel=0)


@pytest.mark.asyncio  # type: ignore
async def test_batch_async_length_mismatch(workflow_formula: Formula) -> None:
    with pytest.raises(ValueError):
        await cook_batch_async([workflow_formula, workflow_formula], [{"env": "dev"}])


@pytest.mark.asyncio  # type: ignore
async def test_batch_async_isolates_non_string_bindings(workflow_formula: Formula) -> None:
    results = await cook_batch_async(
        [workflow_formula, workflow_formula, workflow_formula],
        [{"env": "dev"}, {"env": None}, {"env": "prod"}],  # type: ignore[list-item]
        max_parallel=2,
    )

    assert isinstance(results[0], CookedFormula)
    assert isinstance(results[1], InvalidBindingError)
    assert isinstance(results[2], CookedFormula)
