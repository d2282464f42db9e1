from __future__ import annotations

from decimal import Decimal
from typing import Dict, Iterable, Optional

from crogentx.config import settings
from crogentx.core.enums import EdgeType, NodeType
from crogentx.core.models import Agent, Graph, GraphEdge, GraphNode, Transaction
from crogentx.logging.logger import get_logger

logger = get_logger(__name__)


class GraphBuilder:
    """
    Maps transaction and agent records to a node/edge graph.

    - Nodes: one per agent (keyed by address), one per transaction (keyed by
      hash), one per other address a transaction touches (wallet / contract)
    - Edges: sender -> tx -> recipient (flow), parent -> child (pipeline),
      tx -> batch mate (batch)

    Pure given its inputs: every build starts from an empty graph.
    """

    def build(
        self,
        transactions: Iterable[Transaction],
        agents: Optional[Iterable[Agent]] = None,
    ) -> Graph:
        txs = list(transactions)
        graph = Graph(nodes={}, edges=[])

        for agent in agents or []:
            graph.nodes[agent.address] = self._agent_node(agent)

        tx_by_id: Dict[str, Transaction] = {t.id: t for t in txs}
        tx_hashes = {t.tx_hash for t in txs}

        for tx in txs:
            graph.nodes[tx.tx_hash] = self._transaction_node(tx)

            sender = self._ensure_address_node(graph, tx.from_address, NodeType.WALLET, tx.block_timestamp)
            sender.outgoing_count += 1
            sender.total_volume += tx.value

            recipient = self._ensure_address_node(graph, tx.to_address, NodeType.CONTRACT, tx.block_timestamp)
            recipient.incoming_count += 1
            recipient.total_volume += tx.value

            graph.edges.append(self._flow_edge(tx, tx.from_address, tx.tx_hash))
            graph.edges.append(self._flow_edge(tx, tx.tx_hash, tx.to_address))

            # parent outside this build would leave a dangling edge
            if tx.parent_tx_hash and tx.parent_tx_hash in tx_hashes:
                graph.edges.append(
                    GraphEdge(
                        source=tx.parent_tx_hash,
                        target=tx.tx_hash,
                        edge_type=EdgeType.PIPELINE,
                        timestamp=tx.block_timestamp,
                    )
                )

            if tx.batch_id:
                for related_id in tx.related_transactions:
                    related = tx_by_id.get(related_id)
                    if related is None or related.batch_id != tx.batch_id:
                        continue
                    graph.edges.append(
                        GraphEdge(
                            source=tx.tx_hash,
                            target=related.tx_hash,
                            edge_type=EdgeType.BATCH,
                            timestamp=tx.block_timestamp,
                        )
                    )

        for node in graph.nodes.values():
            node.connection_count = node.incoming_count + node.outgoing_count

        logger.debug(
            "graph_built",
            transactions=len(txs),
            nodes=len(graph.nodes),
            edges=len(graph.edges),
        )
        return graph

    # -------------------------
    # Node builders
    # -------------------------

    @staticmethod
    def _agent_node(agent: Agent) -> GraphNode:
        return GraphNode(
            id=agent.address,
            node_type=NodeType.AGENT,
            name=agent.name,
            timestamp=agent.created_at,
            address=agent.address,
            agent_id=agent.id,
            agent_type=agent.type,
            total_volume=agent.total_volume,
            gas_efficiency=(
                agent.avg_gas_used / agent.total_transactions
                if agent.total_transactions > 0 else 0.0
            ),
        )

    @staticmethod
    def _transaction_node(tx: Transaction) -> GraphNode:
        meta = tx.metadata
        return GraphNode(
            id=tx.tx_hash,
            node_type=NodeType.TRANSACTION,
            name=f"{tx.instruction_type.value} - {format(tx.value, 'f')} {settings.NATIVE_SYMBOL}",
            timestamp=tx.block_timestamp,
            tx_hash=tx.tx_hash,
            instruction_type=tx.instruction_type,
            value=tx.value,
            status=tx.status,
            category=meta.category if meta else None,
            protocol=meta.protocol if meta else None,
            agent_id=tx.agent_id,
            incoming_count=1,   # from sender
            outgoing_count=1,   # to recipient
            total_volume=tx.value,
        )

    @staticmethod
    def _ensure_address_node(graph: Graph, address: str, node_type: NodeType, timestamp: int) -> GraphNode:
        node = graph.nodes.get(address)
        if node is not None:
            return node

        label = "Wallet" if node_type is NodeType.WALLET else "Contract"
        node = GraphNode(
            id=address,
            node_type=node_type,
            name=f"{label} {short_address(address)}",
            timestamp=timestamp,
            address=address,
            total_volume=Decimal("0"),
        )
        graph.nodes[address] = node
        return node

    @staticmethod
    def _flow_edge(tx: Transaction, source: str, target: str) -> GraphEdge:
        return GraphEdge(
            source=source,
            target=target,
            edge_type=EdgeType.FLOW,
            tx_hash=tx.tx_hash,
            value=tx.value,
            timestamp=tx.block_timestamp,
        )


def build_transaction_graph(
    transactions: Iterable[Transaction],
    agents: Optional[Iterable[Agent]] = None,
) -> Graph:
    return GraphBuilder().build(transactions, agents)


def short_address(addr: str) -> str:
    if len(addr) <= 12:
        return addr
    return f"{addr[:6]}...{addr[-4:]}"
