# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/gastown_formula

import asyncio
from typing import List, Mapping, Sequence, Union

from gastown_formula.core.errors import CookError
from gastown_formula.core.formula import CookedFormula, Formula
from gastown_formula.engine.cooker import cook
from gastown_formula.utils.logger import logger

BatchResult = Union[CookedFormula, CookError]


def _check_shape(formulas: Sequence[Formula], bindings_list: Sequence[Mapping[str, str]]) -> None:
    if len(formulas) != len(bindings_list):
        raise ValueError(
            f"cook_batch needs one bindings map per formula: got {len(formulas)} formulas "
            f"and {len(bindings_list)} bindings maps"
        )


def _cook_slot(index: int, formula: Formula, bindings: Mapping[str, str]) -> BatchResult:
    try:
        return cook(formula, bindings)
    except CookError as e:
        logger.debug(f"Batch item {index} ('{formula.name}') failed: {e}")
        return e


def cook_batch(formulas: Sequence[Formula], bindings_list: Sequence[Mapping[str, str]]) -> List[BatchResult]:
    """
    Cooks each (formula, bindings) pair independently.

    A failing item leaves its CookError in its own slot; the other items are
    still cooked. Slot ``i`` always corresponds to input ``i``.

    Raises:
        ValueError: If the two sequences differ in length.
    """
    _check_shape(formulas, bindings_list)
    results = [_cook_slot(i, f, b) for i, (f, b) in enumerate(zip(formulas, bindings_list))]
    failed = sum(1 for r in results if isinstance(r, CookError))
    logger.debug(f"Batch cooked {len(results)} formulas ({failed} failed)")
    return results


async def cook_batch_async(
    formulas: Sequence[Formula],
    bindings_list: Sequence[Mapping[str, str]],
    max_parallel: int = 10,
) -> List[BatchResult]:
    """
    Concurrent variant of ``cook_batch``.

    Items run on worker threads, at most ``max_parallel`` at a time. Results
    come back in input order regardless of completion order.
    """
    if max_parallel < 1:
        raise ValueError("max_parallel must be >= 1")
    _check_shape(formulas, bindings_list)

    semaphore = asyncio.Semaphore(max_parallel)

    async def _run(index: int, formula: Formula, bindings: Mapping[str, str]) -> BatchResult:
        async with semaphore:
            return await asyncio.to_thread(_cook_slot, index, formula, bindings)

    async with asyncio.TaskGroup() as tg:
        tasks = [tg.create_task(_run(i, f, b)) for i, (f, b) in enumerate(zip(formulas, bindings_list))]

    return [task.result() for task in tasks]
