from __future__ import annotations

import json
from decimal import Decimal
from pathlib import Path
from typing import Dict, Optional

from crogentx.core.enums import EdgeType, NodeType, TxStatus
from crogentx.core.models import Graph
from crogentx.io.schemas import graph_to_dict
from crogentx.services.graph_builder import short_address
from crogentx.services.graph_metrics import calculate_graph_metrics, calculate_network_insights


def write_graph_json(graph: Graph, out_dir: str, filename: str = "graph.json") -> str:
    p = Path(out_dir)
    p.mkdir(parents=True, exist_ok=True)

    out_path = p / filename
    with out_path.open("w", encoding="utf-8") as f:
        json.dump(graph_to_dict(graph), f, indent=2)

    return str(out_path)


def write_summary_md(
    graph: Graph,
    out_dir: str,
    filename: str = "summary.md",
    title: Optional[str] = None,
) -> str:
    """
    Short, human-readable overview of a transaction graph.
    """
    p = Path(out_dir)
    p.mkdir(parents=True, exist_ok=True)

    out_path = p / filename

    metrics = calculate_graph_metrics(graph)
    insights = calculate_network_insights(graph)

    txs = [n for n in graph.nodes.values() if n.node_type is NodeType.TRANSACTION]
    top = sorted(txs, key=lambda n: n.value or Decimal("0"), reverse=True)[:15]

    edge_counts: Dict[str, int] = {k.value: 0 for k in EdgeType}
    for e in graph.edges:
        edge_counts[e.edge_type.value] += 1

    busiest = sorted(
        (n for n in graph.nodes.values() if n.node_type is not NodeType.TRANSACTION),
        key=lambda n: n.connection_count,
        reverse=True,
    )[:10]

    failed = sum(1 for n in txs if n.status is TxStatus.FAILED)

    def interpretation() -> str:
        if not txs:
            return "No transactions matched the selected filters."
        if insights.success_rate < 80:
            return (
                f"Failure rate is elevated ({failed} of {len(txs)} transactions failed). "
                "Debug the failed hashes before scaling the agents involved."
            )
        if insights.max_pipeline_depth > 2:
            return (
                "Multi-step settlement chains dominate this view; "
                "check pipeline steps for stuck or pending settlements."
            )
        return "Activity looks healthy with no strong concentration of failures."

    lines = []
    lines.append(f"# {title or 'Transaction Graph Summary'}\n")
    lines.append(f"- Nodes: **{metrics.total_nodes}**\n")
    lines.append(f"- Edges: **{metrics.total_edges}**\n")
    lines.append(
        f"- Transactions: **{metrics.total_transactions}** | Agents: **{metrics.total_agents}** "
        f"| Wallets: **{metrics.total_wallets}** | Contracts: **{metrics.total_contracts}**\n"
    )
    lines.append(f"- Isolated nodes: **{metrics.isolated_nodes}**\n")
    lines.append("\n")

    lines.append("## Network Insights\n\n")
    lines.append(f"- Density: {insights.density:.2f}%\n")
    lines.append(f"- Success rate: {insights.success_rate:.1f}% ({insights.success_count}/{len(txs)})\n")
    lines.append(f"- Avg transaction value: {insights.avg_transaction_value:.4f}\n")
    lines.append(
        f"- Pipeline depth: avg {insights.avg_pipeline_depth:.2f}, max {insights.max_pipeline_depth}\n"
    )
    if insights.most_active_id:
        lines.append(
            f"- Most active: **{insights.most_active_name}** ({insights.most_active_degree} connections)\n"
        )
    lines.append("\n")

    lines.append("## Edges by Kind\n\n")
    for kind, count in edge_counts.items():
        lines.append(f"- **{kind}**: {count}\n")
    lines.append("\n")

    lines.append("## Busiest Addresses\n\n")
    if not busiest:
        lines.append("_No agents, wallets or contracts in this view._\n\n")
    else:
        for n in busiest:
            lines.append(
                f"- **{n.connection_count}** connections | {n.node_type.value} {n.name} "
                f"| {short_address(n.address or n.id)}\n"
            )
        lines.append("\n")

    lines.append("## Interpretation\n\n")
    lines.append(f"{interpretation()}\n\n")

    lines.append("## Top Transactions (by value)\n\n")
    if not top:
        lines.append("_No transactions in this view._\n")
    else:
        for n in top:
            status = n.status.value if n.status else "unknown"
            kind = n.instruction_type.value if n.instruction_type else "unknown"
            lines.append(f"- **{n.value or 0}** | {kind} | {status} | tx: {n.tx_hash or n.id}\n")

    with out_path.open("w", encoding="utf-8") as f:
        f.writelines(lines)

    return str(out_path)
