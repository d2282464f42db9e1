from __future__ import annotations

from decimal import Decimal
from typing import Dict, Iterator, List, Optional, Set, Tuple

from crogentx.core.enums import EdgeType, NodeType, TxStatus
from crogentx.core.models import Graph, GraphMetrics, NetworkInsights


def degree_map(graph: Graph) -> Dict[str, int]:
    """Single pass over edges; nodes without edges are absent."""
    degrees: Dict[str, int] = {}
    for e in graph.edges:
        degrees[e.source] = degrees.get(e.source, 0) + 1
        degrees[e.target] = degrees.get(e.target, 0) + 1
    return degrees


def calculate_graph_metrics(graph: Graph) -> GraphMetrics:
    degrees = degree_map(graph)
    counts = {t: 0 for t in NodeType}
    for n in graph.nodes.values():
        counts[n.node_type] += 1

    avg_degree = sum(degrees.values()) / len(degrees) if degrees else 0.0

    return GraphMetrics(
        total_nodes=len(graph.nodes),
        total_edges=len(graph.edges),
        total_transactions=counts[NodeType.TRANSACTION],
        total_agents=counts[NodeType.AGENT],
        total_wallets=counts[NodeType.WALLET],
        total_contracts=counts[NodeType.CONTRACT],
        avg_degree=avg_degree,
        max_depth=max(pipeline_depths(graph).values(), default=0),
        isolated_nodes=sum(1 for node_id in graph.nodes if node_id not in degrees),
    )


def pipeline_depths(graph: Graph) -> Dict[str, int]:
    """
    Chain length (in nodes) of the longest pipeline path starting at each
    transaction that has at least one pipeline child. Cycles are cut.
    Walked with an explicit stack; chains of any length are fine.
    """
    children: Dict[str, List[str]] = {}
    for e in graph.edges:
        if e.edge_type is EdgeType.PIPELINE:
            children.setdefault(e.source, []).append(e.target)

    memo: Dict[str, int] = {}

    for start in children:
        if start in memo:
            continue
        on_path: Set[str] = {start}
        best: Dict[str, int] = {start: 0}
        stack: List[Tuple[str, Iterator[str]]] = [(start, iter(children.get(start, ())))]

        while stack:
            node_id, pending = stack[-1]
            child = next(pending, None)
            if child is None:
                stack.pop()
                on_path.discard(node_id)
                memo[node_id] = 1 + best.pop(node_id)
                if stack:
                    parent = stack[-1][0]
                    best[parent] = max(best[parent], memo[node_id])
                continue
            if child in memo:
                best[node_id] = max(best[node_id], memo[child])
            elif child not in on_path:
                on_path.add(child)
                best[child] = 0
                stack.append((child, iter(children.get(child, ()))))

    return {
        node_id: memo[node_id]
        for node_id, node in graph.nodes.items()
        if node.node_type is NodeType.TRANSACTION and node_id in children
    }


def calculate_network_insights(graph: Graph) -> NetworkInsights:
    n = len(graph.nodes)
    max_edges = n * (n - 1) / 2
    density = (len(graph.edges) / max_edges) * 100 if max_edges > 0 else 0.0

    degrees = degree_map(graph)
    most_active_id: Optional[str] = None
    most_active_degree = 0
    for node_id in graph.nodes:
        d = degrees.get(node_id, 0)
        if most_active_id is None or d > most_active_degree:
            most_active_id = node_id
            most_active_degree = d

    txs = [x for x in graph.nodes.values() if x.node_type is NodeType.TRANSACTION]
    success_count = sum(1 for x in txs if x.status is TxStatus.SUCCESS)
    total_value = sum((x.value or Decimal("0") for x in txs), Decimal("0"))

    depths = pipeline_depths(graph)

    return NetworkInsights(
        density=density,
        most_active_id=most_active_id,
        most_active_name=graph.nodes[most_active_id].name if most_active_id else None,
        most_active_degree=most_active_degree,
        success_count=success_count,
        success_rate=(success_count / len(txs)) * 100 if txs else 0.0,
        avg_transaction_value=(total_value / len(txs)) if txs else Decimal("0"),
        avg_pipeline_depth=(sum(depths.values()) / len(depths)) if depths else 0.0,
        max_pipeline_depth=max(depths.values(), default=0),
    )
