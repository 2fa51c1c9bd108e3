# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/gastown_formula

from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from gastown_formula.core.formula import FormulaType, Synthesis


class Bead(BaseModel):
    """
    One node of a molecule: an atomic unit of work and the ids it waits on.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    id: str
    title: str
    description: str
    predecessors: List[str] = Field(default_factory=list)

    # Convoy legs
    agent: Optional[str] = None
    focus: Optional[str] = None
    order: Optional[int] = None

    # Workflow steps
    duration: Optional[int] = None
    requires: List[str] = Field(default_factory=list)

    # Expansion / aspect
    synthesis: Optional[Synthesis] = None


class Molecule(BaseModel):
    """
    The compiled plan handed to the orchestrator.

    ``beads`` are in the lexicographically smallest topological order and
    ``layers`` group bead ids that have no ordering between them. No
    timestamps are carried, so equal input serializes to equal bytes.
    """

    model_config = ConfigDict(extra="forbid", frozen=True, populate_by_name=True)

    formula: str
    original_name: str
    formula_type: FormulaType = Field(alias="type")
    version: int
    cooked_vars: Dict[str, str] = Field(default_factory=dict)
    beads: List[Bead]
    layers: List[List[str]] = Field(default_factory=list)

    def bead(self, bead_id: str) -> Bead:
        """Returns the bead with the given id."""
        for bead in self.beads:
            if bead.id == bead_id:
                return bead
        raise KeyError(bead_id)

    @property
    def order(self) -> List[str]:
        return [bead.id for bead in self.beads]
