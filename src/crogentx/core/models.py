from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Dict, FrozenSet, List, Optional, Tuple

from crogentx.core.enums import (
    AgentType,
    EdgeType,
    InstructionType,
    NodeType,
    StepStatus,
    TransactionCategory,
    TxStatus,
)


# Record models

@dataclass
class SettlementStep:
    step: int
    action: str
    contract: str
    status: StepStatus
    gas_used: Optional[int] = None
    timestamp: Optional[int] = None


@dataclass
class TransactionMetadata:
    description: Optional[str] = None
    tags: List[str] = field(default_factory=list)
    protocol: Optional[str] = None
    category: Optional[TransactionCategory] = None
    ai_model: Optional[str] = None
    confidence: Optional[float] = None      # 0-1
    user_intent: Optional[str] = None


@dataclass
class Transaction:
    """
    One x402 instruction as seen on chain.
    """

    id: str
    tx_hash: str
    block_number: int
    block_timestamp: int
    from_address: str
    to_address: str
    value: Decimal                  # native units
    gas_used: int
    gas_price: Decimal              # gwei
    status: TxStatus
    instruction_type: InstructionType

    agent_id: Optional[str] = None
    agent_name: Optional[str] = None
    settlement_pipeline: Optional[List[SettlementStep]] = None
    batch_id: Optional[str] = None
    parent_tx_hash: Optional[str] = None
    child_tx_hashes: Optional[List[str]] = None
    related_transactions: List[str] = field(default_factory=list)   # transaction ids

    metadata: Optional[TransactionMetadata] = None
    execution_time: Optional[int] = None    # ms
    error_reason: Optional[str] = None


@dataclass
class Agent:

    id: str
    name: str
    address: str
    type: AgentType
    owner: str
    created_at: int

    total_transactions: int = 0
    success_rate: float = 0.0       # 0-100
    total_volume: Decimal = Decimal("0")
    avg_gas_used: int = 0

    primary_instructions: List[InstructionType] = field(default_factory=list)
    integrations: List[str] = field(default_factory=list)

    is_active: bool = True
    last_activity: Optional[int] = None


# Graph models

@dataclass
class GraphNode:

    id: str
    node_type: NodeType
    name: str
    timestamp: int
    address: Optional[str] = None

    # transaction nodes
    tx_hash: Optional[str] = None
    instruction_type: Optional[InstructionType] = None
    value: Optional[Decimal] = None
    status: Optional[TxStatus] = None
    category: Optional[TransactionCategory] = None
    protocol: Optional[str] = None

    # agent nodes (transactions carry agent_id too)
    agent_id: Optional[str] = None
    agent_type: Optional[AgentType] = None

    connection_count: int = 0
    incoming_count: int = 0
    outgoing_count: int = 0

    total_volume: Decimal = Decimal("0")
    gas_efficiency: Optional[float] = None


@dataclass
class GraphEdge:

    source: str
    target: str
    edge_type: EdgeType

    tx_hash: Optional[str] = None
    value: Optional[Decimal] = None
    timestamp: Optional[int] = None


@dataclass
class Graph:

    nodes: Dict[str, GraphNode] = field(default_factory=dict)
    edges: List[GraphEdge] = field(default_factory=list)


# Filter model

@dataclass(frozen=True)
class FilterOptions:
    """
    Conjunctive node predicates. Empty sets / None disable a predicate.
    """

    search_query: str = ""
    instruction_types: FrozenSet[InstructionType] = frozenset()
    agent_types: FrozenSet[AgentType] = frozenset()
    categories: FrozenSet[TransactionCategory] = frozenset()
    statuses: FrozenSet[TxStatus] = frozenset()
    date_range: Optional[Tuple[int, int]] = None    # (start, end) unix seconds, inclusive
    min_value: Optional[Decimal] = None
    max_value: Optional[Decimal] = None
    agent_ids: FrozenSet[str] = frozenset()
    protocols: FrozenSet[str] = frozenset()
    only_batched: bool = False
    only_multi_step: bool = False


# Metrics models

@dataclass(frozen=True)
class GraphMetrics:
    total_nodes: int
    total_edges: int
    total_transactions: int
    total_agents: int
    total_wallets: int
    total_contracts: int
    avg_degree: float
    max_depth: int
    isolated_nodes: int


@dataclass(frozen=True)
class NetworkInsights:
    density: float                  # percent
    most_active_id: Optional[str]
    most_active_name: Optional[str]
    most_active_degree: int
    success_count: int
    success_rate: float             # percent
    avg_transaction_value: Decimal
    avg_pipeline_depth: float
    max_pipeline_depth: int


# Genealogy

@dataclass
class TreeNode:
    id: str
    tx_hash: str
    name: str
    depth: int
    timestamp: int
    status: TxStatus
    instruction_type: InstructionType
    children: List["TreeNode"] = field(default_factory=list)
    parent: Optional[str] = None

    @property
    def child_count(self) -> int:
        return len(self.children)
