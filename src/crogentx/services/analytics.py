from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Sequence

from crogentx.core.dto import DashboardStats, LeaderboardEntry, TransactionStats
from crogentx.core.enums import TxStatus
from crogentx.core.models import Agent, Transaction


def calculate_stats(transactions: Sequence[Transaction], agents: Sequence[Agent]) -> TransactionStats:
    total = len(transactions)
    successful = sum(1 for t in transactions if t.status is TxStatus.SUCCESS)
    failed = sum(1 for t in transactions if t.status is TxStatus.FAILED)
    volume = sum((t.value for t in transactions), Decimal("0"))

    return TransactionStats(
        total_transactions=total,
        successful_transactions=successful,
        failed_transactions=failed,
        success_rate=(successful / total) * 100 if total else 0.0,
        total_volume=volume,
        avg_transaction_value=(volume / total) if total else Decimal("0"),
        total_agents=len(agents),
        active_agents=len({t.agent_id for t in transactions if t.agent_id}),
    )


def calculate_leaderboard(transactions: Iterable[Transaction], limit: int = 10) -> List[LeaderboardEntry]:
    """Agents ranked by transaction count; ties keep first-seen order."""
    names: Dict[str, str] = {}
    counts: Dict[str, int] = {}
    volumes: Dict[str, Decimal] = {}

    for t in transactions:
        if not t.agent_id:
            continue
        names.setdefault(t.agent_id, t.agent_name or "Unknown")
        counts[t.agent_id] = counts.get(t.agent_id, 0) + 1
        volumes[t.agent_id] = volumes.get(t.agent_id, Decimal("0")) + t.value

    ranked = sorted(counts, key=lambda agent_id: counts[agent_id], reverse=True)
    return [
        LeaderboardEntry(agent_id=a, name=names[a], count=counts[a], volume=volumes[a])
        for a in ranked[:max(0, int(limit))]
    ]


def calculate_dashboard(transactions: Sequence[Transaction], agents: Sequence[Agent]) -> DashboardStats:
    instructions: Dict[str, int] = {}
    categories: Dict[str, int] = {}
    protocols: Dict[str, int] = {}
    per_day: Dict[str, int] = {}

    for t in transactions:
        _bump(instructions, t.instruction_type.value)
        meta = t.metadata
        _bump(categories, meta.category.value if meta and meta.category else "unknown")
        _bump(protocols, meta.protocol if meta and meta.protocol else "Unknown")
        day = datetime.fromtimestamp(t.block_timestamp, tz=timezone.utc).date().isoformat()
        _bump(per_day, day)

    over_time: List[Dict[str, Any]] = [
        {"date": day, "count": per_day[day]} for day in sorted(per_day)
    ]

    return DashboardStats(
        stats=calculate_stats(transactions, agents),
        total_gas_used=sum(t.gas_used for t in transactions),
        instruction_distribution=instructions,
        category_distribution=categories,
        protocol_distribution=protocols,
        top_agents=calculate_leaderboard(transactions, 10),
        transactions_over_time=over_time,
        batched_transactions=sum(1 for t in transactions if t.batch_id),
        multi_step_transactions=sum(1 for t in transactions if t.settlement_pipeline),
    )


def _bump(counter: Dict[str, int], key: str) -> None:
    counter[key] = counter.get(key, 0) + 1
