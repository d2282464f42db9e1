import io
import json
import os
import tempfile
import unittest
from contextlib import redirect_stderr, redirect_stdout
from decimal import Decimal
from unittest import mock

from crogentx.cli.main import build_arg_parser, main
from crogentx.core.dto import LeaderboardEntry, TransactionStats
from crogentx.core.errors import ApiRequestError

STATS = TransactionStats(
    total_transactions=4,
    successful_transactions=3,
    failed_transactions=1,
    success_rate=75.0,
    total_volume=Decimal("12.5"),
    avg_transaction_value=Decimal("3.125"),
    total_agents=2,
    active_agents=2,
)

GRAPH = {
    "success": True,
    "data": {
        "nodes": [
            {"id": "0xagent000000000000", "type": "agent", "name": "Bot", "connectionCount": 1},
            {"id": "tx-1", "type": "transaction", "name": "payment", "txHash": "0x1",
             "value": "5", "status": "success", "instructionType": "payment", "connectionCount": 1},
        ],
        "edges": [{"source": "0xagent000000000000", "target": "tx-1", "type": "trigger"}],
    },
    "stats": {
        "nodes": 2,
        "edges": 1,
        "transactions": 1,
        "agents": 1,
        "insights": {"mostActive": {"id": "0xagent000000000000", "name": "Bot", "degree": 1}},
    },
}


class CliTests(unittest.TestCase):
    def setUp(self) -> None:
        patcher = mock.patch("crogentx.cli.main.CrogentxClient")
        self.client_cls = patcher.start()
        self.addCleanup(patcher.stop)
        self.client = self.client_cls.return_value
        self.client.api_url = "http://api.test"

    def _run(self, argv):
        out, err = io.StringIO(), io.StringIO()
        with redirect_stdout(out), redirect_stderr(err):
            code = main(argv)
        return code, out.getvalue(), err.getvalue()

    def test_parser_alias(self) -> None:
        args = build_arg_parser().parse_args(["tx", "-l", "3", "-s", "failed"])
        self.assertEqual(args.command, "tx")
        self.assertEqual(args.limit, 3)
        self.assertEqual(args.status, "failed")

    def test_no_command_prints_help(self) -> None:
        code, out, _ = self._run([])
        self.assertEqual(code, 2)
        self.assertIn("usage", out)

    def test_transactions_listing(self) -> None:
        self.client.transactions.list.return_value = {
            "data": [{"txHash": "0xabcdef123456", "status": "failed", "instructionType": "swap",
                      "value": "2", "gasUsed": "21000"}]
        }

        code, out, _ = self._run(["--api-url", "http://other", "transactions", "-s", "failed"])

        self.assertEqual(code, 0)
        self.client_cls.assert_called_once_with("http://other")
        self.assertEqual(self.client.transactions.list.call_args.kwargs["status"], "failed")
        self.assertIn("Found 1 transactions", out)
        self.assertIn("0xabcdef12...", out)
        self.assertIn("Agent: Unknown", out)

    def test_api_error_exits_one(self) -> None:
        self.client.transactions.debug.side_effect = ApiRequestError("API request failed: 404 Transaction not found", 404)

        code, _, err = self._run(["debug", "-t", "0xmissing"])

        self.assertEqual(code, 1)
        self.assertIn("Error: API request failed: 404", err)

    def test_stats_json(self) -> None:
        self.client.analytics.stats.return_value = STATS

        code, out, _ = self._run(["stats", "--json"])

        self.assertEqual(code, 0)
        payload = json.loads(out)
        self.assertEqual(payload["totalTransactions"], 4)
        self.assertEqual(payload["successRate"], 75.0)
        self.assertEqual(payload["totalVolume"], "12.50")

    def test_leaderboard(self) -> None:
        self.client.analytics.leaderboard.return_value = [
            LeaderboardEntry(agent_id="a1", name="Alpha", count=7, volume=Decimal("3")),
        ]

        code, out, _ = self._run(["leaderboard", "-l", "1"])

        self.assertEqual(code, 0)
        self.client.analytics.leaderboard.assert_called_once_with(1)
        self.assertIn("1. Alpha", out)
        self.assertIn("Transactions: 7", out)

    def test_simulate_prints_issues(self) -> None:
        self.client.transactions.simulate.return_value = {
            "simulation": {
                "instruction": "transfer",
                "agentId": "a1",
                "value": "0",
                "gas": {"estimated": 21000, "price": 5000, "costCRO": "0.105", "costUSD": "0.02"},
                "analysis": {"successProbability": "80.0%", "executionTime": "2500ms", "safe": False,
                             "issues": ["Transaction value is 0 for value-transfer operation"], "warnings": []},
                "recommendations": ["Fix critical issues before executing"],
            }
        }

        code, out, _ = self._run(["simulate", "-i", "transfer", "-a", "a1", "-v", "0", "-t", "0xabc"])

        self.assertEqual(code, 0)
        self.assertIn("Safe to Execute: No", out)
        self.assertIn("0.105 CRO", out)
        self.assertIn("Fix critical issues before executing", out)

    def test_graph_writes_outputs(self) -> None:
        self.client.graph.get.return_value = GRAPH

        with tempfile.TemporaryDirectory() as tmp:
            code, out, _ = self._run(["graph", "--only-batched", "--out", tmp])

            self.assertEqual(code, 0)
            self.assertTrue(self.client.graph.get.call_args.kwargs["only_batched"])
            self.assertIn("Most active: Bot", out)
            with open(os.path.join(tmp, "graph.json"), encoding="utf-8") as f:
                self.assertEqual(len(json.load(f)["nodes"]), 2)
            self.assertTrue(os.path.exists(os.path.join(tmp, "summary.md")))

    def test_graph_forwards_every_filter(self) -> None:
        self.client.graph.get.return_value = GRAPH

        code, _, _ = self._run([
            "graph", "--min-value", "1", "--max-value", "50", "--category", "defi,payment",
            "--protocol", "x402", "--start-date", "2024-01-01T00:00:00Z", "--end-date", "2024-02-01",
            "--json",
        ])

        self.assertEqual(code, 0)
        kwargs = self.client.graph.get.call_args.kwargs
        self.assertEqual(kwargs["min_value"], "1")
        self.assertEqual(kwargs["max_value"], "50")
        self.assertEqual(kwargs["category"], "defi,payment")
        self.assertEqual(kwargs["protocol"], "x402")
        self.assertEqual(kwargs["start_date"], "2024-01-01T00:00:00Z")
        self.assertEqual(kwargs["end_date"], "2024-02-01")
        self.assertIsNone(kwargs["only_batched"])


if __name__ == "__main__":
    unittest.main()
