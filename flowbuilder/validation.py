# -*- coding: utf-8 -*-
"""
Static checks run by the "Test" action before a flow is handed to an executor.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Set, Tuple

import flowbuilder.conf as conf
from flowbuilder.model import Graph

@dataclass(frozen=True)
class Issue:
    message: str
    block_id: Optional[str] = None
    block_ids: Tuple[str, ...] = ()

@dataclass
class ValidationReport:
    errors: List[Issue] = field(default_factory=list)
    warnings: List[Issue] = field(default_factory=list)

    @property
    def valid(self) -> bool:
        return not self.errors

def detect_cycles(graph: Graph) -> List[str]:
    """
    Finds a cycle in the block-to-block connection graph.

    Returns:
        List[str]: Ids of the blocks on the first cycle found, in path
        order, or an empty list if the graph is acyclic. A self-loop is a
        cycle of one block.
    """
    edges: Dict[str, List[str]] = {block.id: [] for block in graph.blocks}
    for conn in graph.connections:
        edges.setdefault(conn.source.block_id, []).append(conn.destination.block_id)

    visited: Set[str] = set()
    path: List[str] = []
    on_path: Set[str] = set()

    # Iterative DFS; each stack frame is (node, index of next neighbor).
    for root in edges:
        if root in visited:
            continue
        stack = [(root, 0)]
        visited.add(root)
        path.append(root)
        on_path.add(root)
        while stack:
            node, i = stack[-1]
            neighbors = edges.get(node, [])
            if i < len(neighbors):
                stack[-1] = (node, i + 1)
                nxt = neighbors[i]
                if nxt in on_path:
                    return path[path.index(nxt):]
                if nxt not in visited:
                    visited.add(nxt)
                    path.append(nxt)
                    on_path.add(nxt)
                    stack.append((nxt, 0))
            else:
                stack.pop()
                path.pop()
                on_path.discard(node)
    return []

def validate_flow(graph: Graph) -> ValidationReport:
    """
    Checks a flow for problems an executor would trip over.

    Warnings are reported for blocks with input ports but no incoming
    connection, for blocks with output ports but no outgoing connection
    (except blocks of the Output category), and for empty config values.
    A cycle between blocks is an error.

    Args:
        graph (Graph): The flow to check.

    Returns:
        ValidationReport: The errors and warnings found.
    """
    report = ValidationReport()
    connections = graph.connections
    for block in graph.blocks:
        block_type = graph.block_type(block)
        name = block_type.name if block_type else block.type_key
        category = block_type.category if block_type else None
        has_input = any(conn.destination.block_id == block.id for conn in connections)
        has_output = any(conn.source.block_id == block.id for conn in connections)

        if block.inputs and not has_input:
            report.warnings.append(Issue(conf.UI.Validation.NO_INPUT_CONNECTION.format(name=name), block.id))
        if block.outputs and not has_output and category != conf.OUTPUT_CATEGORY:
            report.warnings.append(Issue(conf.UI.Validation.NO_OUTPUT_CONNECTION.format(name=name), block.id))
        for key, value in block.config.items():
            if value is None or value == '':
                report.warnings.append(Issue(conf.UI.Validation.NOT_CONFIGURED.format(name=name, key=key), block.id))

    cycle = detect_cycles(graph)
    if cycle:
        report.errors.append(Issue(conf.UI.Validation.CIRCULAR, block_ids=tuple(cycle)))
    return report
