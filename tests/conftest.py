# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/gastown_formula

import logging
from typing import Any, Generator

import pytest
from loguru import logger

from gastown_formula.core.formula import Formula
from gastown_formula.engine.parser import parse

pytest_plugins = ("pytest_asyncio",)

WORKFLOW_TOML = """
formula = "deploy-{{ env }}"
description = "Deploy {{service}} to {{ env }}"
type = "workflow"
version = 2

[vars.env]
description = "Target environment"
required = true
enum = ["dev", "staging", "prod"]

[vars.service]
default = "api"
pattern = "^[a-z][a-z0-9-]*$"

[vars.ticket]
description = "Optional change ticket"

[[steps]]
id = "build"
title = "Build {{ service }}"
description = "Compile and package"
needs = []
duration = 5
requires = ["docker"]

[[steps]]
id = "ship"
title = "Ship to {{ env }}"
description = "Roll out. Ticket: {{ ticket }}"
needs = ["test", "build"]

[[steps]]
id = "test"
title = "Test"
description = "Run the suite"
needs = ["build"]
"""

CONVOY_TOML = """
formula = "review-convoy"
description = "Parallel review of {{ target }}"
type = "convoy"

[vars.target]
required = true

[[legs]]
id = "security"
title = "Security review"
focus = "Vulnerabilities in {{ target }}"
description = "Look for injection"
agent = "auditor"
order = 1

[[legs]]
id = "perf"
title = "Performance review"
focus = "Hot paths"
description = "Profile"
order = 1

[[legs]]
id = "summary"
title = "Summary"
focus = "Merge findings"
description = "Write the report"
order = 2

[[legs]]
id = "adhoc"
title = "Ad hoc"
focus = "Anything"
description = "Unordered leg"
"""

EXPANSION_TOML = """
formula = "expand-docs"
description = "Expand the docs for {{ topic }}"
type = "expansion"

[vars.topic]
default = "formulas"

[synthesis]
strategy = "merge"
format = "markdown"
description = "Combine sections about {{ topic }}"
"""


# Propagate loguru logs to standard logging for caplog compatibility
class PropagateHandler(logging.Handler):
    def emit(self, record: logging.LogRecord) -> None:
        logging.getLogger(record.name).handle(record)


@pytest.fixture
def propagate_logs() -> Generator[None, Any, None]:
    handler_id = logger.add(PropagateHandler(), format="{message}", level="DEBUG")
    yield
    logger.remove(handler_id)


@pytest.fixture
def workflow_toml() -> str:
    return WORKFLOW_TOML


@pytest.fixture
def convoy_toml() -> str:
    return CONVOY_TOML


@pytest.fixture
def expansion_toml() -> str:
    return EXPANSION_TOML


@pytest.fixture
def workflow_formula() -> Formula:
    return parse(WORKFLOW_TOML)


@pytest.fixture
def convoy_formula() -> Formula:
    return parse(CONVOY_TOML)


@pytest.fixture
def expansion_formula() -> Formula:
    return parse(EXPANSION_TOML)


def make_workflow(steps: list[dict[str, Any]], **extra: Any) -> Formula:
    """Builds a workflow Formula from plain step dicts."""
    data: dict[str, Any] = {
        "formula": extra.pop("formula", "wf"),
        "description": extra.pop("description", "A workflow"),
        "type": "workflow",
        "steps": steps,
    }
    data.update(extra)
    return Formula.model_validate(data)
