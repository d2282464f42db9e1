from __future__ import annotations

from decimal import Decimal
from typing import Any, Dict, List, Optional

from crogentx.core.dto import (
    DashboardStats,
    DebugReport,
    LeaderboardEntry,
    SimulationResult,
    TransactionStats,
)
from crogentx.core.enums import (
    AgentType,
    EdgeType,
    InstructionType,
    NodeType,
    StepStatus,
    TransactionCategory,
    TxStatus,
)
from crogentx.core.models import (
    Agent,
    Graph,
    GraphEdge,
    GraphMetrics,
    GraphNode,
    NetworkInsights,
    SettlementStep,
    Transaction,
    TransactionMetadata,
    TreeNode,
)
from crogentx.core.parsing import to_decimal, to_enum, to_float, to_int


def _dec_to_str(x: Decimal) -> str:
    # keep as string for JSON precision safety
    return format(x, "f")


def _compact(d: Dict[str, Any]) -> Dict[str, Any]:
    return {k: v for k, v in d.items() if v is not None}


def _str_list(raw: Any) -> List[str]:
    if not isinstance(raw, list):
        return []
    return [str(x) for x in raw if x is not None]


# -------------------------
# Records
# -------------------------

def transaction_to_dict(tx: Transaction) -> Dict[str, Any]:
    meta = tx.metadata
    return _compact({
        "id": tx.id,
        "txHash": tx.tx_hash,
        "blockNumber": tx.block_number,
        "blockTimestamp": tx.block_timestamp,
        "from": tx.from_address,
        "to": tx.to_address,
        "value": _dec_to_str(tx.value),
        "gasUsed": str(tx.gas_used),
        "gasPrice": _dec_to_str(tx.gas_price),
        "status": tx.status.value,
        "instructionType": tx.instruction_type.value,
        "agentId": tx.agent_id,
        "agentName": tx.agent_name,
        "settlementPipeline": (
            [
                _compact({
                    "step": s.step,
                    "action": s.action,
                    "contract": s.contract,
                    "status": s.status.value,
                    "gasUsed": str(s.gas_used) if s.gas_used is not None else None,
                    "timestamp": s.timestamp,
                })
                for s in tx.settlement_pipeline
            ]
            if tx.settlement_pipeline is not None else None
        ),
        "batchId": tx.batch_id,
        "parentTxHash": tx.parent_tx_hash,
        "childTxHashes": list(tx.child_tx_hashes) if tx.child_tx_hashes is not None else None,
        "metadata": (
            _compact({
                "description": meta.description,
                "tags": list(meta.tags),
                "protocol": meta.protocol,
                "category": meta.category.value if meta.category else None,
                "aiModel": meta.ai_model,
                "confidence": meta.confidence,
                "userIntent": meta.user_intent,
            })
            if meta is not None else None
        ),
        "executionTime": tx.execution_time,
        "errorReason": tx.error_reason,
        "relatedTransactions": list(tx.related_transactions),
    })


def transaction_from_dict(d: Dict[str, Any]) -> Transaction:
    """
    Best-effort parse of a wire transaction. Malformed numbers become zero,
    unknown enum values fall back to defaults; nothing is rejected.
    """
    pipeline = None
    if isinstance(d.get("settlementPipeline"), list):
        pipeline = [
            SettlementStep(
                step=to_int(s.get("step")),
                action=str(s.get("action") or ""),
                contract=str(s.get("contract") or ""),
                status=to_enum(StepStatus, s.get("status"), StepStatus.PENDING),
                gas_used=to_int(s["gasUsed"]) if s.get("gasUsed") is not None else None,
                timestamp=to_int(s["timestamp"]) if s.get("timestamp") is not None else None,
            )
            for s in d["settlementPipeline"]
            if isinstance(s, dict)
        ]

    meta = None
    raw_meta = d.get("metadata")
    if isinstance(raw_meta, dict):
        meta = TransactionMetadata(
            description=raw_meta.get("description"),
            tags=_str_list(raw_meta.get("tags")),
            protocol=raw_meta.get("protocol"),
            category=to_enum(TransactionCategory, raw_meta.get("category")),
            ai_model=raw_meta.get("aiModel"),
            confidence=to_float(raw_meta["confidence"]) if raw_meta.get("confidence") is not None else None,
            user_intent=raw_meta.get("userIntent"),
        )

    tx_hash = str(d.get("txHash") or d.get("hash") or "")
    return Transaction(
        id=str(d.get("id") or tx_hash),
        tx_hash=tx_hash,
        block_number=to_int(d.get("blockNumber")),
        block_timestamp=to_int(d.get("blockTimestamp")),
        from_address=str(d.get("from") or ""),
        to_address=str(d.get("to") or ""),
        value=to_decimal(d.get("value")),
        gas_used=to_int(d.get("gasUsed")),
        gas_price=to_decimal(d.get("gasPrice")),
        status=to_enum(TxStatus, d.get("status"), TxStatus.PENDING),
        instruction_type=to_enum(InstructionType, d.get("instructionType"), InstructionType.CONTRACT_CALL),
        agent_id=d.get("agentId"),
        agent_name=d.get("agentName"),
        settlement_pipeline=pipeline,
        batch_id=d.get("batchId"),
        parent_tx_hash=d.get("parentTxHash"),
        child_tx_hashes=_str_list(d["childTxHashes"]) if isinstance(d.get("childTxHashes"), list) else None,
        related_transactions=_str_list(d.get("relatedTransactions")),
        metadata=meta,
        execution_time=to_int(d["executionTime"]) if d.get("executionTime") is not None else None,
        error_reason=d.get("errorReason"),
    )


def agent_to_dict(a: Agent) -> Dict[str, Any]:
    return _compact({
        "id": a.id,
        "name": a.name,
        "address": a.address,
        "type": a.type.value,
        "owner": a.owner,
        "createdAt": a.created_at,
        "totalTransactions": a.total_transactions,
        "successRate": a.success_rate,
        "totalVolume": _dec_to_str(a.total_volume),
        "avgGasUsed": str(a.avg_gas_used),
        "primaryInstructions": [i.value for i in a.primary_instructions],
        "integrations": list(a.integrations),
        "isActive": a.is_active,
        "lastActivity": a.last_activity,
    })


def agent_from_dict(d: Dict[str, Any]) -> Agent:
    instructions = [
        i for i in (to_enum(InstructionType, x) for x in _str_list(d.get("primaryInstructions")))
        if i is not None
    ]
    return Agent(
        id=str(d.get("id") or d.get("address") or ""),
        name=str(d.get("name") or "Unknown"),
        address=str(d.get("address") or ""),
        type=to_enum(AgentType, d.get("type"), AgentType.CUSTOM),
        owner=str(d.get("owner") or ""),
        created_at=to_int(d.get("createdAt")),
        total_transactions=to_int(d.get("totalTransactions")),
        success_rate=to_float(d.get("successRate")),
        total_volume=to_decimal(d.get("totalVolume")),
        avg_gas_used=to_int(d.get("avgGasUsed")),
        primary_instructions=instructions,
        integrations=_str_list(d.get("integrations")),
        is_active=bool(d.get("isActive", True)),
        last_activity=to_int(d["lastActivity"]) if d.get("lastActivity") is not None else None,
    )


# -------------------------
# Graph
# -------------------------

def node_to_dict(n: GraphNode) -> Dict[str, Any]:
    return _compact({
        "id": n.id,
        "type": n.node_type.value,
        "name": n.name,
        "address": n.address,
        "timestamp": n.timestamp,
        "txHash": n.tx_hash,
        "instructionType": n.instruction_type.value if n.instruction_type else None,
        "value": _dec_to_str(n.value) if n.value is not None else None,
        "status": n.status.value if n.status else None,
        "category": n.category.value if n.category else None,
        "protocol": n.protocol,
        "agentId": n.agent_id,
        "agentType": n.agent_type.value if n.agent_type else None,
        "connectionCount": n.connection_count,
        "incomingCount": n.incoming_count,
        "outgoingCount": n.outgoing_count,
        "totalVolume": _dec_to_str(n.total_volume),
        "gasEfficiency": n.gas_efficiency,
    })


def edge_to_dict(e: GraphEdge) -> Dict[str, Any]:
    return _compact({
        "source": e.source,
        "target": e.target,
        "type": e.edge_type.value,
        "txHash": e.tx_hash,
        "value": _dec_to_str(e.value) if e.value is not None else None,
        "timestamp": e.timestamp,
    })


def graph_to_dict(g: Graph) -> Dict[str, Any]:
    return {
        "nodes": [node_to_dict(n) for n in g.nodes.values()],
        "edges": [edge_to_dict(e) for e in g.edges],
    }


def graph_from_dict(d: Dict[str, Any]) -> Graph:
    g = Graph()
    for raw in d.get("nodes") or []:
        node = GraphNode(
            id=str(raw.get("id") or ""),
            node_type=to_enum(NodeType, raw.get("type"), NodeType.WALLET),
            name=str(raw.get("name") or ""),
            timestamp=to_int(raw.get("timestamp")),
            address=raw.get("address"),
            tx_hash=raw.get("txHash"),
            instruction_type=to_enum(InstructionType, raw.get("instructionType")),
            value=to_decimal(raw["value"]) if raw.get("value") is not None else None,
            status=to_enum(TxStatus, raw.get("status")),
            category=to_enum(TransactionCategory, raw.get("category")),
            protocol=raw.get("protocol"),
            agent_id=raw.get("agentId"),
            agent_type=to_enum(AgentType, raw.get("agentType")),
            connection_count=to_int(raw.get("connectionCount")),
            incoming_count=to_int(raw.get("incomingCount")),
            outgoing_count=to_int(raw.get("outgoingCount")),
            total_volume=to_decimal(raw.get("totalVolume")),
            gas_efficiency=to_float(raw["gasEfficiency"]) if raw.get("gasEfficiency") is not None else None,
        )
        g.nodes[node.id] = node
    for raw in d.get("edges") or []:
        g.edges.append(
            GraphEdge(
                source=str(raw.get("source") or ""),
                target=str(raw.get("target") or ""),
                edge_type=to_enum(EdgeType, raw.get("type"), EdgeType.FLOW),
                tx_hash=raw.get("txHash"),
                value=to_decimal(raw["value"]) if raw.get("value") is not None else None,
                timestamp=to_int(raw["timestamp"]) if raw.get("timestamp") is not None else None,
            )
        )
    return g


def metrics_to_dict(m: GraphMetrics) -> Dict[str, Any]:
    return {
        "totalNodes": m.total_nodes,
        "totalEdges": m.total_edges,
        "totalTransactions": m.total_transactions,
        "totalAgents": m.total_agents,
        "totalWallets": m.total_wallets,
        "totalContracts": m.total_contracts,
        "avgDegree": round(m.avg_degree, 4),
        "maxDepth": m.max_depth,
        "isolatedNodes": m.isolated_nodes,
    }


def insights_to_dict(i: NetworkInsights) -> Dict[str, Any]:
    return {
        "density": round(i.density, 4),
        "mostActive": _compact({
            "id": i.most_active_id,
            "name": i.most_active_name,
            "degree": i.most_active_degree,
        }),
        "successCount": i.success_count,
        "successRate": round(i.success_rate, 2),
        "avgTransactionValue": _dec_to_str(i.avg_transaction_value),
        "avgPipelineDepth": round(i.avg_pipeline_depth, 2),
        "maxPipelineDepth": i.max_pipeline_depth,
    }


def tree_to_dict(t: TreeNode, max_depth: Optional[int] = None) -> Dict[str, Any]:
    """
    Nested wire form of a genealogy tree. Nodes deeper than `max_depth` are
    left out; their parent keeps its childCount and gets ``truncated: true``.
    """
    def shallow(n: TreeNode) -> Dict[str, Any]:
        return _compact({
            "id": n.id,
            "txHash": n.tx_hash,
            "name": n.name,
            "depth": n.depth,
            "timestamp": n.timestamp,
            "status": n.status.value,
            "instructionType": n.instruction_type.value,
            "parent": n.parent,
            "childCount": n.child_count,
        })

    root = shallow(t)
    stack = [(t, root)]
    while stack:
        node, out = stack.pop()
        if not node.children:
            continue
        if max_depth is not None and node.depth - t.depth >= max_depth:
            out["truncated"] = True
            continue
        out["children"] = [shallow(c) for c in node.children]
        stack.extend(zip(node.children, out["children"]))
    return root


# -------------------------
# Simulation / debug
# -------------------------

def simulation_to_dict(s: SimulationResult, native_symbol: str = "CRO") -> Dict[str, Any]:
    return {
        "instruction": s.instruction,
        "agentId": s.agent_id,
        "value": s.value,
        "gas": {
            "estimated": s.gas.estimated,
            "price": s.gas.price,
            f"cost{native_symbol}": _dec_to_str(s.gas.cost_native),
            "costUSD": _dec_to_str(s.gas.cost_usd),
        },
        "analysis": {
            "successProbability": f"{s.analysis.success_probability * 100:.1f}%",
            "executionTime": f"{s.analysis.execution_time_ms}ms",
            "issues": list(s.analysis.issues),
            "warnings": list(s.analysis.warnings),
            "safe": s.analysis.safe,
        },
        "simulation": {
            "timestamp": s.simulated_at,
            "networkConditions": s.network_conditions,
            "congestion": s.congestion,
        },
        "recommendations": list(s.recommendations),
    }


def debug_report_to_dict(r: DebugReport) -> Dict[str, Any]:
    return {
        "status": r.status,
        "issues": [{"severity": i.severity.value, "message": i.message} for i in r.issues],
        "trace": [{"step": t.step, "status": t.status, "details": t.details} for t in r.trace],
        "gas": {
            "used": _dec_to_str(r.gas.used),
            "price": _dec_to_str(r.gas.price),
            "total": _dec_to_str(r.gas.total),
            "efficiency": r.gas.efficiency,
            "suggestions": list(r.gas.suggestions),
        },
        "value": {
            "amount": _dec_to_str(r.value.amount),
            "instructionType": r.value.instruction_type,
            "warnings": list(r.value.warnings),
        },
        "recommendations": list(r.recommendations),
        "timestamp": r.analyzed_at,
    }


# -------------------------
# Analytics
# -------------------------

def stats_to_dict(s: TransactionStats) -> Dict[str, Any]:
    return {
        "totalTransactions": s.total_transactions,
        "successfulTransactions": s.successful_transactions,
        "failedTransactions": s.failed_transactions,
        "successRate": round(s.success_rate, 2),
        "totalVolume": f"{s.total_volume:.2f}",
        "avgTransactionValue": f"{s.avg_transaction_value:.4f}",
        "totalAgents": s.total_agents,
        "activeAgents": s.active_agents,
    }


def leaderboard_entry_to_dict(e: LeaderboardEntry) -> Dict[str, Any]:
    return {
        "agentId": e.agent_id,
        "name": e.name,
        "count": e.count,
        "volume": f"{e.volume:.2f}",
    }


def dashboard_to_dict(d: DashboardStats) -> Dict[str, Any]:
    out = stats_to_dict(d.stats)
    out.update({
        "totalGasUsed": d.total_gas_used,
        "instructionDistribution": dict(d.instruction_distribution),
        "categoryDistribution": dict(d.category_distribution),
        "protocolDistribution": dict(d.protocol_distribution),
        "topAgents": [leaderboard_entry_to_dict(e) for e in d.top_agents],
        "transactionsOverTime": list(d.transactions_over_time),
        "batchedTransactions": d.batched_transactions,
        "multiStepTransactions": d.multi_step_transactions,
    })
    return out
