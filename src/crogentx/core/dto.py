from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, List, Optional

from crogentx.core.enums import IssueSeverity


# ---- Queries ----

@dataclass(frozen=True)
class TransactionQuery:
    limit: int = 100
    offset: int = 0
    status: Optional[str] = None
    agent_id: Optional[str] = None
    instruction_type: Optional[str] = None
    min_value: Optional[Decimal] = None
    max_value: Optional[Decimal] = None
    start_date: Optional[str] = None        # ISO-8601
    end_date: Optional[str] = None


@dataclass(frozen=True)
class AgentQuery:
    limit: int = 50
    type: Optional[str] = None
    min_balance: Optional[Decimal] = None
    active: Optional[bool] = None


@dataclass(frozen=True)
class GraphQuery:
    limit: int = 200
    agent_id: Optional[str] = None
    instruction_type: Optional[str] = None
    min_value: Optional[Decimal] = None


# ---- Simulation ----

@dataclass(frozen=True)
class SimulationRequest:
    instruction: str
    agent_id: str
    value: str
    target: Optional[str] = None
    data: Optional[Any] = None


@dataclass(frozen=True)
class GasEstimate:
    estimated: int
    price: int                  # gwei
    cost_native: Decimal
    cost_usd: Decimal


@dataclass(frozen=True)
class SimulationAnalysis:
    success_probability: float  # 0-1
    execution_time_ms: int
    issues: List[str]
    warnings: List[str]

    @property
    def safe(self) -> bool:
        return not self.issues


@dataclass(frozen=True)
class SimulationResult:
    instruction: str
    agent_id: str
    value: str
    gas: GasEstimate
    analysis: SimulationAnalysis
    recommendations: List[str]
    simulated_at: str           # ISO-8601
    network_conditions: str = "normal"
    congestion: str = "low"


# ---- Debugging ----

@dataclass(frozen=True)
class DebugIssue:
    severity: IssueSeverity
    message: str


@dataclass(frozen=True)
class TraceStep:
    step: str
    status: str
    details: str


@dataclass(frozen=True)
class GasAnalysis:
    used: Decimal
    price: Decimal
    total: Decimal
    efficiency: str             # optimal | fair | poor
    suggestions: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class ValueAnalysis:
    amount: Decimal
    instruction_type: str
    warnings: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class DebugReport:
    status: str
    issues: List[DebugIssue]
    trace: List[TraceStep]
    gas: GasAnalysis
    value: ValueAnalysis
    recommendations: List[str]
    analyzed_at: str


# ---- Analytics ----

@dataclass(frozen=True)
class TransactionStats:
    total_transactions: int
    successful_transactions: int
    failed_transactions: int
    success_rate: float
    total_volume: Decimal
    avg_transaction_value: Decimal
    total_agents: int
    active_agents: int


@dataclass(frozen=True)
class LeaderboardEntry:
    agent_id: str
    name: str
    count: int
    volume: Decimal


@dataclass(frozen=True)
class DashboardStats:
    stats: TransactionStats
    total_gas_used: int
    instruction_distribution: Dict[str, int]
    category_distribution: Dict[str, int]
    protocol_distribution: Dict[str, int]
    top_agents: List[LeaderboardEntry]
    transactions_over_time: List[Dict[str, Any]]
    batched_transactions: int
    multi_step_transactions: int
