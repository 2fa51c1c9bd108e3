# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/gastown_formula

from typing import Callable, Dict, List, Tuple

import networkx as nx

from gastown_formula.core.errors import CycleDetectedError, DanglingReferenceError
from gastown_formula.core.formula import CookedFormula, FormulaType
from gastown_formula.core.molecule import Bead, Molecule
from gastown_formula.utils.logger import logger

SYNTHESIS_BEAD_ID = "synthesis"


def workflow_beads(cooked: CookedFormula) -> List[Bead]:
    """One bead per step; a step's needs become its predecessors."""
    declared = {step.id for step in cooked.steps}
    beads = []
    for step in cooked.steps:
        for need in step.needs:
            if need not in declared:
                raise DanglingReferenceError(need, step.id)
        beads.append(
            Bead(
                id=step.id,
                title=step.title,
                description=step.description,
                predecessors=list(dict.fromkeys(step.needs)),
                duration=step.duration,
                requires=step.requires,
            )
        )
    return beads


def convoy_beads(cooked: CookedFormula) -> List[Bead]:
    """
    One bead per leg. Legs wait on every leg of the next-lower order value
    present; unordered legs and legs of the lowest order wait on nothing.
    """
    waves: Dict[int, List[str]] = {}
    for leg in cooked.legs:
        if leg.order is not None:
            waves.setdefault(leg.order, []).append(leg.id)

    orders = sorted(waves)
    previous = {order: orders[i - 1] for i, order in enumerate(orders) if i > 0}

    beads = []
    for leg in cooked.legs:
        predecessors: List[str] = []
        if leg.order is not None and leg.order in previous:
            predecessors = sorted(waves[previous[leg.order]])
        beads.append(
            Bead(
                id=leg.id,
                title=leg.title,
                description=leg.description,
                predecessors=predecessors,
                agent=leg.agent,
                focus=leg.focus,
                order=leg.order,
            )
        )
    return beads


def synthesis_beads(cooked: CookedFormula) -> List[Bead]:
    """A single bead carrying the synthesis directive as-is."""
    synthesis = cooked.synthesis
    description = synthesis.description if synthesis and synthesis.description is not None else cooked.description
    return [
        Bead(
            id=SYNTHESIS_BEAD_ID,
            title=cooked.name,
            description=description,
            synthesis=synthesis,
        )
    ]


BEAD_BUILDERS: Dict[FormulaType, Callable[[CookedFormula], List[Bead]]] = {
    FormulaType.WORKFLOW: workflow_beads,
    FormulaType.CONVOY: convoy_beads,
    FormulaType.EXPANSION: synthesis_beads,
    FormulaType.ASPECT: synthesis_beads,
}

# Sections each builder reads; anything else present is ignored.
COMPILED_SECTIONS: Dict[FormulaType, Tuple[str, ...]] = {
    FormulaType.WORKFLOW: ("steps",),
    FormulaType.CONVOY: ("legs",),
    FormulaType.EXPANSION: ("synthesis",),
    FormulaType.ASPECT: ("synthesis",),
}


def ignored_sections(cooked: CookedFormula) -> List[str]:
    """Names the populated sections the compiler will not read for this type."""
    kept = COMPILED_SECTIONS[cooked.formula_type]
    return [name for name in ("legs", "steps", "synthesis") if name not in kept and getattr(cooked, name)]


class TopologyEngine:
    """Builds the bead graph of a cooked formula and fixes its execution order."""

    def build_graph(self, beads: List[Bead]) -> nx.DiGraph:
        """Builds a DiGraph with an edge from every predecessor to its bead."""
        graph = nx.DiGraph()
        for bead in beads:
            graph.add_node(bead.id)
        for bead in beads:
            for predecessor in bead.predecessors:
                graph.add_edge(predecessor, bead.id)
        return graph

    def validate_graph(self, graph: nx.DiGraph) -> None:
        """
        Raises:
            CycleDetectedError: If the graph contains a cycle. Every id that
                sits on some cycle is named.
        """
        if nx.is_directed_acyclic_graph(graph):
            return
        on_cycle: List[str] = []
        for component in nx.strongly_connected_components(graph):
            node = next(iter(component))
            if len(component) > 1 or graph.has_edge(node, node):
                on_cycle.extend(component)
        raise CycleDetectedError(on_cycle)

    def get_execution_order(self, graph: nx.DiGraph) -> List[str]:
        """The lexicographically smallest topological order of the graph."""
        try:
            return list(nx.lexicographical_topological_sort(graph))
        except nx.NetworkXUnfeasible as e:
            raise CycleDetectedError(list(graph.nodes)) from e

    def get_execution_layers(self, graph: nx.DiGraph) -> List[List[str]]:
        """
        Returns the topological generations of the graph, each sorted by id.
        Beads in one layer have no ordering between them.
        """
        try:
            return [sorted(layer) for layer in nx.topological_generations(graph)]
        except nx.NetworkXUnfeasible as e:
            raise CycleDetectedError(list(graph.nodes)) from e

    def compile(self, cooked: CookedFormula) -> Molecule:
        """
        Compiles a cooked formula into a Molecule.

        Args:
            cooked: The cooked formula.

        Returns:
            Molecule: Beads in deterministic topological order.

        Raises:
            DanglingReferenceError: If a step needs an undeclared step.
            CycleDetectedError: If step needs form a cycle.
        """
        ignored = ignored_sections(cooked)
        if ignored:
            logger.warning(f"Ignoring sections {ignored} of {cooked.formula_type.value} formula '{cooked.name}'")

        beads = BEAD_BUILDERS[cooked.formula_type](cooked)
        graph = self.build_graph(beads)
        self.validate_graph(graph)

        by_id = {bead.id: bead for bead in beads}
        order = self.get_execution_order(graph)
        molecule = Molecule(
            formula=cooked.name,
            original_name=cooked.original_name,
            formula_type=cooked.formula_type,
            version=cooked.version,
            cooked_vars=dict(sorted(cooked.cooked_vars.items())),
            beads=[by_id[bead_id] for bead_id in order],
            layers=self.get_execution_layers(graph),
        )
        logger.debug(f"Compiled '{cooked.name}' into {len(molecule.beads)} beads over {len(molecule.layers)} layers")
        return molecule


def compile_molecule(cooked: CookedFormula) -> Molecule:
    """Compiles a cooked formula with a default TopologyEngine."""
    return TopologyEngine().compile(cooked)
