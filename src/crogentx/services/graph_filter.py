from __future__ import annotations

from typing import Callable, Dict, List, Set

from crogentx.core.enums import EdgeType, NodeType
from crogentx.core.models import FilterOptions, Graph, GraphEdge, GraphNode

NodePredicate = Callable[[GraphNode], bool]


def filter_graph(graph: Graph, filters: FilterOptions) -> Graph:
    """
    Return a new graph holding the nodes that pass every active predicate and
    the edges whose endpoints both survive.

    Predicates are evaluated against the input graph, never against a partly
    filtered one, so their order does not matter. Nodes are shared with the
    input graph and are not modified.
    """
    predicates = _build_predicates(graph, filters)

    kept: Dict[str, GraphNode] = {
        node_id: node
        for node_id, node in graph.nodes.items()
        if all(p(node) for p in predicates)
    }
    edges = [e for e in graph.edges if e.source in kept and e.target in kept]
    return Graph(nodes=kept, edges=edges)


def adjacency_index(graph: Graph) -> Dict[str, List[GraphEdge]]:
    """id -> edges touching it"""
    index: Dict[str, List[GraphEdge]] = {}
    for e in graph.edges:
        index.setdefault(e.source, []).append(e)
        if e.target != e.source:
            index.setdefault(e.target, []).append(e)
    return index


# -------------------------
# Predicates
# -------------------------

def _build_predicates(graph: Graph, f: FilterOptions) -> List[NodePredicate]:
    preds: List[NodePredicate] = []

    if f.search_query.strip():
        q = f.search_query.strip().lower()
        preds.append(lambda n: (
            q in n.name.lower()
            or (n.address is not None and q in n.address.lower())
            or (n.tx_hash is not None and q in n.tx_hash.lower())
        ))

    if f.instruction_types:
        preds.append(_tx_only(lambda n: n.instruction_type in f.instruction_types))

    if f.statuses:
        preds.append(_tx_only(lambda n: n.status in f.statuses))

    if f.categories:
        preds.append(_tx_only(lambda n: n.category in f.categories))

    if f.protocols:
        preds.append(_tx_only(lambda n: n.protocol in f.protocols))

    if f.date_range is not None:
        start, end = f.date_range
        preds.append(_tx_only(lambda n: start <= n.timestamp <= end))

    if f.min_value is not None:
        preds.append(_tx_only(lambda n: n.value is not None and n.value >= f.min_value))

    if f.max_value is not None:
        preds.append(_tx_only(lambda n: n.value is not None and n.value <= f.max_value))

    if f.agent_types:
        preds.append(_agent_type_predicate(graph, f.agent_types))

    if f.agent_ids:
        preds.append(_tx_only(lambda n: n.agent_id in f.agent_ids))

    if f.only_batched or f.only_multi_step:
        index = adjacency_index(graph)
        if f.only_batched:
            preds.append(_edge_kind_predicate(graph, index, EdgeType.BATCH))
        if f.only_multi_step:
            preds.append(_edge_kind_predicate(graph, index, EdgeType.PIPELINE))

    return preds


def _tx_only(pred: NodePredicate) -> NodePredicate:
    """Apply pred to transaction nodes; every other node type passes."""
    return lambda n: n.node_type is not NodeType.TRANSACTION or pred(n)


def _agent_type_predicate(graph: Graph, agent_types) -> NodePredicate:
    matching_agent_ids: Set[str] = {
        n.agent_id
        for n in graph.nodes.values()
        if n.node_type is NodeType.AGENT and n.agent_id and n.agent_type in agent_types
    }

    def pred(n: GraphNode) -> bool:
        if n.node_type is NodeType.AGENT:
            return n.agent_type in agent_types
        if n.node_type is NodeType.TRANSACTION:
            return n.agent_id is not None and n.agent_id in matching_agent_ids
        return True

    return pred


def _edge_kind_predicate(
    graph: Graph,
    index: Dict[str, List[GraphEdge]],
    kind: EdgeType,
) -> NodePredicate:
    """
    Transactions must touch an edge of `kind`; other nodes must be adjacent to
    such a transaction.
    """
    tx_hits: Set[str] = {
        node_id
        for node_id, node in graph.nodes.items()
        if node.node_type is NodeType.TRANSACTION
        and any(e.edge_type is kind for e in index.get(node_id, ()))
    }

    def pred(n: GraphNode) -> bool:
        if n.node_type is NodeType.TRANSACTION:
            return n.id in tx_hits
        return any(
            (e.source if e.target == n.id else e.target) in tx_hits
            for e in index.get(n.id, ())
        )

    return pred
