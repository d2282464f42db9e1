from __future__ import annotations

from typing import List, Optional, Tuple

from crogentx.config import settings
from crogentx.core.dto import AgentQuery, GraphQuery, TransactionQuery
from crogentx.core.errors import ValidationError
from crogentx.core.models import Agent, Graph, Transaction
from crogentx.core.parsing import parse_iso_timestamp
from crogentx.ports.record_source_port import RecordSourcePort
from crogentx.services.graph_builder import GraphBuilder


class RecordQueryService:
    """
    Read-side queries over a record source: filtering, pagination, lookups
    and graph snapshots. Stateless apart from the injected source.
    """

    def __init__(self, source: RecordSourcePort, builder: Optional[GraphBuilder] = None) -> None:
        self.source = source
        self.builder = builder or GraphBuilder()

    # -------------------------
    # Transactions
    # -------------------------

    def list_transactions(self, q: TransactionQuery) -> Tuple[List[Transaction], int]:
        """Returns (page, total matches before pagination)."""
        start_ts = _parse_date("startDate", q.start_date)
        end_ts = _parse_date("endDate", q.end_date)

        filtered = [
            t for t in self.source.get_transactions()
            if (q.status is None or t.status.value == q.status)
            and (q.agent_id is None or t.agent_id == q.agent_id)
            and (q.instruction_type is None or t.instruction_type.value == q.instruction_type)
            and (q.min_value is None or t.value >= q.min_value)
            and (q.max_value is None or t.value <= q.max_value)
            and (start_ts is None or t.block_timestamp >= start_ts)
            and (end_ts is None or t.block_timestamp <= end_ts)
        ]

        offset = max(0, int(q.offset))
        limit = _clamp_limit(q.limit)
        return filtered[offset:offset + limit], len(filtered)

    def find_transaction(self, tx_hash: str) -> Optional[Transaction]:
        for t in self.source.get_transactions():
            if t.tx_hash == tx_hash:
                return t
        return None

    def related_transactions(self, tx_hash: str) -> List[Transaction]:
        tx = self.find_transaction(tx_hash)
        if tx is None:
            return []
        related = set(tx.related_transactions)
        return [t for t in self.source.get_transactions() if t.id in related]

    # -------------------------
    # Agents
    # -------------------------

    def list_agents(self, q: AgentQuery) -> Tuple[List[Agent], int]:
        filtered = [
            a for a in self.source.get_agents()
            if (q.type is None or a.type.value == q.type)
            and (q.min_balance is None or a.total_volume >= q.min_balance)
            and (not q.active or a.is_active)
        ]
        return filtered[:_clamp_limit(q.limit)], len(filtered)

    def find_agent(self, agent_id_or_address: str) -> Optional[Agent]:
        key = agent_id_or_address.lower()
        for a in self.source.get_agents():
            if a.id == agent_id_or_address or a.address.lower() == key:
                return a
        return None

    # -------------------------
    # Graph
    # -------------------------

    def graph_snapshot(self, q: GraphQuery) -> Tuple[Graph, List[Transaction], List[Agent]]:
        """
        Graph over the first `limit` transactions, narrowed by agent /
        instruction / min value, with every agent as a node.
        """
        transactions = self.source.get_transactions()[:_clamp_limit(q.limit)]
        agents = self.source.get_agents()

        selected = [
            t for t in transactions
            if (q.agent_id is None or t.agent_id == q.agent_id)
            and (q.instruction_type is None or t.instruction_type.value == q.instruction_type)
            and (q.min_value is None or t.value >= q.min_value)
        ]
        return self.builder.build(selected, agents), selected, agents


def _clamp_limit(limit: int) -> int:
    return max(0, min(int(limit), settings.MAX_RECORDS))


def _parse_date(name: str, value: Optional[str]) -> Optional[int]:
    if not value:
        return None
    try:
        return parse_iso_timestamp(value)
    except ValueError as e:
        raise ValidationError(f"Invalid {name}: {value!r}", missing=[]) from e
