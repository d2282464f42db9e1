import random
import unittest
from decimal import Decimal

from fastapi.testclient import TestClient

from crogentx.adapters.records.mock_record_adapter import MockRecordSource
from crogentx.adapters.records.static_record_adapter import StaticRecordSource
from crogentx.api.server import create_app
from crogentx.config import settings
from crogentx.core.enums import InstructionType, TxStatus
from crogentx.core.models import Transaction
from crogentx.services.simulator import TransactionSimulator


class ApiServerTests(unittest.TestCase):
    def setUp(self) -> None:
        self.source = MockRecordSource(transaction_count=150, seed=42, now_ts=1_700_000_000)
        app = create_app(source=self.source, simulator=TransactionSimulator(random.Random(0)))
        self.client = TestClient(app)

    def test_health(self) -> None:
        resp = self.client.get("/health")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json(), {"status": "ok"})

    # ---------- transactions ----------

    def test_transactions_default_page(self) -> None:
        body = self.client.get("/api/transactions").json()

        self.assertTrue(body["success"])
        self.assertEqual(len(body["data"]), 100)
        self.assertEqual(body["pagination"], {"total": 150, "limit": 100, "offset": 0, "hasMore": True})
        self.assertIn("timestamp", body["metadata"])

    def test_transactions_status_filter(self) -> None:
        body = self.client.get("/api/transactions", params={"status": "failed", "limit": 5}).json()

        self.assertLessEqual(len(body["data"]), 5)
        self.assertTrue(all(t["status"] == "failed" for t in body["data"]))
        self.assertEqual(body["metadata"]["queryParams"], {"limit": 5, "offset": 0, "status": "failed"})

    def test_transactions_last_page_has_no_more(self) -> None:
        body = self.client.get("/api/transactions", params={"limit": 100, "offset": 100}).json()

        self.assertEqual(len(body["data"]), 50)
        self.assertFalse(body["pagination"]["hasMore"])

    def test_transactions_invalid_date(self) -> None:
        resp = self.client.get("/api/transactions", params={"startDate": "not-a-date"})

        self.assertEqual(resp.status_code, 400)
        self.assertFalse(resp.json()["success"])

    def test_genealogy(self) -> None:
        tx = self.source.get_transactions()[0]
        body = self.client.get(f"/api/transactions/{tx.tx_hash}/genealogy").json()

        self.assertTrue(body["success"])
        self.assertEqual(body["data"]["txHash"], tx.tx_hash)
        self.assertGreaterEqual(body["depth"], 1)
        self.assertIsInstance(body["ancestors"], list)

        resp = self.client.get("/api/transactions/0xnope/genealogy")
        self.assertEqual(resp.status_code, 404)

    # ---------- agents ----------

    def test_agents(self) -> None:
        body = self.client.get("/api/agents", params={"limit": 3}).json()

        self.assertTrue(body["success"])
        self.assertEqual(body["count"], 3)
        self.assertEqual(len(body["data"]), 3)
        self.assertEqual(body["total"], len(self.source.get_agents()))

    def test_agents_active_filter(self) -> None:
        body = self.client.get("/api/agents", params={"active": "true", "limit": 100}).json()
        self.assertTrue(all(a["isActive"] for a in body["data"]))

    # ---------- simulate ----------

    def test_simulate_missing_fields(self) -> None:
        resp = self.client.post("/api/simulate", json={"instruction": "transfer"})
        body = resp.json()

        self.assertEqual(resp.status_code, 400)
        self.assertFalse(body["success"])
        self.assertEqual(body["error"], "Missing required fields")
        self.assertIn("agentId", body["missing"])
        self.assertIn("value", body["missing"])

    def test_simulate_zero_value_transfer(self) -> None:
        resp = self.client.post(
            "/api/simulate",
            json={"instruction": "transfer", "agentId": "agent-1", "value": "0", "target": "0xabc"},
        )
        sim = resp.json()["simulation"]

        self.assertEqual(resp.status_code, 200)
        self.assertFalse(sim["analysis"]["safe"])
        self.assertIn("Transaction value is 0 for value-transfer operation", sim["analysis"]["issues"])
        self.assertIn("costCRO", sim["gas"])
        self.assertTrue(sim["analysis"]["successProbability"].endswith("%"))

    def test_simulate_numeric_value_is_accepted(self) -> None:
        resp = self.client.post("/api/simulate", json={"instruction": "swap", "agentId": "agent-1", "value": 25})

        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["simulation"]["value"], "25")

    # ---------- debug ----------

    def test_debug_unknown_transaction(self) -> None:
        resp = self.client.post("/api/debug", json={"transactionHash": "0xunknown"})

        self.assertEqual(resp.status_code, 404)
        self.assertEqual(resp.json()["error"], "Transaction not found")

    def test_debug_known_transaction(self) -> None:
        tx = self.source.get_transactions()[3]
        resp = self.client.post("/api/debug", json={"transactionHash": tx.tx_hash})
        body = resp.json()

        self.assertEqual(resp.status_code, 200)
        self.assertEqual(body["transaction"]["txHash"], tx.tx_hash)
        self.assertEqual(body["debug"]["status"], tx.status.value)
        self.assertTrue(body["debug"]["trace"])

    def test_debug_missing_hash(self) -> None:
        resp = self.client.post("/api/debug", json={})

        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json()["missing"], ["transactionHash"])

    # ---------- graph ----------

    def test_graph_default(self) -> None:
        body = self.client.get("/api/graph").json()
        stats = body["stats"]

        self.assertTrue(body["success"])
        self.assertEqual(stats["nodes"], len(body["data"]["nodes"]))
        self.assertEqual(stats["edges"], len(body["data"]["edges"]))
        self.assertEqual(stats["transactions"], 150)
        self.assertIn("density", stats["insights"])
        self.assertEqual(body["metadata"]["filters"], {"limit": 200})

    def test_graph_only_batched(self) -> None:
        body = self.client.get("/api/graph", params={"onlyBatched": "true"}).json()
        node_ids = {n["id"] for n in body["data"]["nodes"]}

        for n in body["data"]["nodes"]:
            if n["type"] == "transaction":
                tx = next(t for t in self.source.get_transactions() if t.tx_hash == n["id"])
                self.assertIsNotNone(tx.batch_id)
        for e in body["data"]["edges"]:
            self.assertIn(e["source"], node_ids)
            self.assertIn(e["target"], node_ids)
        self.assertTrue(body["metadata"]["filters"]["onlyBatched"])

    def test_graph_invalid_agent_type(self) -> None:
        resp = self.client.get("/api/graph", params={"agentType": "wizard"})

        self.assertEqual(resp.status_code, 400)
        self.assertFalse(resp.json()["success"])


def _chain(n):
    return [
        Transaction(
            id=f"tx-{i}",
            tx_hash=f"0x{i:04x}",
            block_number=i,
            block_timestamp=1_700_000_000 + i,
            from_address="0xwallet",
            to_address="0xcontract",
            value=Decimal("1"),
            gas_used=21000,
            gas_price=Decimal("5000"),
            status=TxStatus.SUCCESS,
            instruction_type=InstructionType.SETTLEMENT,
            parent_tx_hash=f"0x{i - 1:04x}" if i else None,
        )
        for i in range(n)
    ]


class LongChainApiTests(unittest.TestCase):
    def setUp(self) -> None:
        self.client = TestClient(create_app(source=StaticRecordSource(_chain(1000), [])))

    def test_graph_over_long_chain(self) -> None:
        resp = self.client.get("/api/graph", params={"limit": 1000})
        body = resp.json()

        self.assertEqual(resp.status_code, 200)
        self.assertEqual(body["stats"]["transactions"], 1000)
        self.assertEqual(body["stats"]["metrics"]["maxDepth"], 1000)
        self.assertEqual(body["stats"]["insights"]["maxPipelineDepth"], 1000)

    def test_genealogy_over_long_chain(self) -> None:
        resp = self.client.get("/api/transactions/0x0000/genealogy")
        body = resp.json()

        self.assertEqual(resp.status_code, 200)
        self.assertEqual(body["depth"], 1000)
        self.assertEqual(len(body["descendants"]), 999)

        node = body["data"]
        while "children" in node:
            node = node["children"][0]
        self.assertEqual(node["depth"], settings.GENEALOGY_WIRE_DEPTH)
        self.assertTrue(node["truncated"])

        tail = self.client.get("/api/transactions/0x03e7/genealogy").json()
        self.assertEqual(len(tail["ancestors"]), 999)
        self.assertEqual(tail["depth"], 1)


if __name__ == "__main__":
    unittest.main()
