import unittest
from decimal import Decimal

from crogentx.adapters.records.static_record_adapter import StaticRecordSource
from crogentx.core.dto import AgentQuery, GraphQuery, TransactionQuery
from crogentx.core.enums import AgentType, InstructionType, NodeType, TxStatus
from crogentx.core.errors import ValidationError
from crogentx.core.models import Agent, Transaction
from crogentx.services.query_service import RecordQueryService

# 2024-01-01T00:00:00Z
JAN_1 = 1_704_067_200


def _tx(i, status=TxStatus.SUCCESS, value="1", agent_id="a1", **kw) -> Transaction:
    return Transaction(
        id=f"tx-{i}",
        tx_hash=f"0xhash{i}",
        block_number=i,
        block_timestamp=kw.pop("ts", JAN_1 + i * 86400),
        from_address=kw.pop("sender", "0xa1"),
        to_address="0xcontract",
        value=Decimal(value),
        gas_used=21000,
        gas_price=Decimal("10"),
        status=status,
        instruction_type=kw.pop("instruction_type", InstructionType.PAYMENT),
        agent_id=agent_id,
        **kw,
    )


class RecordQueryServiceTests(unittest.TestCase):
    def setUp(self) -> None:
        self.txs = [
            _tx(0, value="5"),
            _tx(1, status=TxStatus.FAILED, value="50"),
            _tx(2, value="500", agent_id="a2", sender="0xa2", instruction_type=InstructionType.SWAP),
            _tx(3, status=TxStatus.FAILED, value="5000", related_transactions=["tx-0", "tx-2"]),
            _tx(4, status=TxStatus.PENDING, value="0"),
        ]
        self.agents = [
            Agent(id="a1", name="One", address="0xA1", type=AgentType.TRADING_BOT, owner="0xo",
                  created_at=1, total_volume=Decimal("100")),
            Agent(id="a2", name="Two", address="0xa2", type=AgentType.NFT_SNIPER, owner="0xo",
                  created_at=1, total_volume=Decimal("10"), is_active=False),
        ]
        self.svc = RecordQueryService(StaticRecordSource(self.txs, self.agents))

    def test_status_filter_and_total(self) -> None:
        page, total = self.svc.list_transactions(TransactionQuery(status="failed"))
        self.assertEqual(total, 2)
        self.assertEqual([t.id for t in page], ["tx-1", "tx-3"])

    def test_pagination(self) -> None:
        page, total = self.svc.list_transactions(TransactionQuery(limit=2, offset=2))
        self.assertEqual(total, 5)
        self.assertEqual([t.id for t in page], ["tx-2", "tx-3"])

    def test_value_agent_and_instruction_filters(self) -> None:
        page, _ = self.svc.list_transactions(
            TransactionQuery(min_value=Decimal("50"), max_value=Decimal("5000"), agent_id="a1")
        )
        self.assertEqual([t.id for t in page], ["tx-1", "tx-3"])

        page, _ = self.svc.list_transactions(TransactionQuery(instruction_type="swap"))
        self.assertEqual([t.id for t in page], ["tx-2"])

    def test_date_filters(self) -> None:
        page, _ = self.svc.list_transactions(
            TransactionQuery(start_date="2024-01-02", end_date="2024-01-04T00:00:00Z")
        )
        self.assertEqual([t.id for t in page], ["tx-1", "tx-2", "tx-3"])

    def test_invalid_date_is_a_validation_error(self) -> None:
        with self.assertRaises(ValidationError):
            self.svc.list_transactions(TransactionQuery(start_date="yesterday"))

    def test_lookups(self) -> None:
        self.assertEqual(self.svc.find_transaction("0xhash2").id, "tx-2")
        self.assertIsNone(self.svc.find_transaction("0xmissing"))
        self.assertEqual([t.id for t in self.svc.related_transactions("0xhash3")], ["tx-0", "tx-2"])
        self.assertEqual(self.svc.related_transactions("0xmissing"), [])

        self.assertEqual(self.svc.find_agent("a2").name, "Two")
        self.assertEqual(self.svc.find_agent("0xa1").id, "a1")
        self.assertIsNone(self.svc.find_agent("nobody"))

    def test_agent_filters(self) -> None:
        page, total = self.svc.list_agents(AgentQuery(active=True))
        self.assertEqual([a.id for a in page], ["a1"])
        self.assertEqual(total, 1)

        page, _ = self.svc.list_agents(AgentQuery(min_balance=Decimal("50")))
        self.assertEqual([a.id for a in page], ["a1"])

        page, total = self.svc.list_agents(AgentQuery(limit=1))
        self.assertEqual(len(page), 1)
        self.assertEqual(total, 2)

        page, _ = self.svc.list_agents(AgentQuery(type="nft_sniper"))
        self.assertEqual([a.id for a in page], ["a2"])

    def test_graph_snapshot_limits_then_filters(self) -> None:
        graph, selected, agents = self.svc.graph_snapshot(GraphQuery(limit=3, agent_id="a1"))

        self.assertEqual([t.id for t in selected], ["tx-0", "tx-1"])
        self.assertEqual(len(agents), 2)
        tx_nodes = [n for n in graph.nodes.values() if n.node_type is NodeType.TRANSACTION]
        self.assertEqual(len(tx_nodes), 2)
        self.assertIn("0xA1", graph.nodes)


if __name__ == "__main__":
    unittest.main()
