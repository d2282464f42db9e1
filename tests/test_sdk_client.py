import unittest
from decimal import Decimal
from unittest import mock

import requests

from crogentx.core.errors import ApiRequestError
from crogentx.sdk.client import CrogentxClient


def _response(payload, status=200, reason="OK"):
    resp = mock.Mock()
    resp.ok = status < 400
    resp.status_code = status
    resp.reason = reason
    resp.json.return_value = payload
    return resp


TXS = [
    {"id": "tx-1", "txHash": "0x1", "value": "10", "status": "success", "agentId": "a1", "agentName": "Alpha"},
    {"id": "tx-2", "txHash": "0x2", "value": "30", "status": "failed", "agentId": "a2", "agentName": "Beta"},
    {"id": "tx-3", "txHash": "0x3", "value": "20", "status": "success", "agentId": "a2", "agentName": "Beta"},
]
AGENTS = [{"id": "a1", "address": "0xA1"}, {"id": "a2", "address": "0xa2"}]


class CrogentxClientTests(unittest.TestCase):
    def setUp(self) -> None:
        self.session = mock.Mock()
        self.session.request.return_value = _response({"success": True, "data": []})
        self.client = CrogentxClient("http://api.test/", api_key="secret", timeout=2, session=self.session)

    def _last_call(self):
        args, kwargs = self.session.request.call_args
        return args, kwargs

    def test_list_sends_camel_case_params(self) -> None:
        self.client.transactions.list(limit=5, status="failed", agent_id="a1", min_value=Decimal("1.5"))

        args, kwargs = self._last_call()
        self.assertEqual(args, ("GET", "http://api.test/api/transactions"))
        self.assertEqual(kwargs["params"], {"limit": "5", "status": "failed", "agentId": "a1", "minValue": "1.5"})
        self.assertEqual(kwargs["headers"]["Authorization"], "Bearer secret")
        self.assertEqual(kwargs["timeout"], 2)

    def test_no_auth_header_without_key(self) -> None:
        client = CrogentxClient("http://api.test", session=self.session)
        client.agents.list(active=True)

        _, kwargs = self._last_call()
        self.assertNotIn("Authorization", kwargs["headers"])
        self.assertEqual(kwargs["params"], {"active": "true"})

    def test_graph_passes_extra_filters(self) -> None:
        self.client.graph.get(limit=50, only_batched=True, agent_type="trading_bot")

        _, kwargs = self._last_call()
        self.assertEqual(
            kwargs["params"],
            {"limit": "50", "onlyBatched": "true", "agentType": "trading_bot"},
        )

    def test_graph_range_filters_are_camel_cased(self) -> None:
        self.client.graph.get(max_value="50", start_date="2024-01-01", end_date="2024-02-01", category="defi")

        _, kwargs = self._last_call()
        self.assertEqual(
            kwargs["params"],
            {"maxValue": "50", "startDate": "2024-01-01", "endDate": "2024-02-01", "category": "defi"},
        )

    def test_simulate_and_debug_bodies(self) -> None:
        self.client.transactions.simulate("swap", "a1", 25, target="0xt")
        args, kwargs = self._last_call()
        self.assertEqual(args[0], "POST")
        self.assertEqual(kwargs["json"], {"instruction": "swap", "agentId": "a1", "value": "25", "target": "0xt"})

        self.client.transactions.debug("0xabc")
        args, kwargs = self._last_call()
        self.assertEqual(args[1], "http://api.test/api/debug")
        self.assertEqual(kwargs["json"], {"transactionHash": "0xabc"})

    def test_error_status_raises(self) -> None:
        self.session.request.return_value = _response(
            {"success": False, "error": "Transaction not found"}, status=404, reason="Not Found"
        )

        with self.assertRaises(ApiRequestError) as ctx:
            self.client.transactions.debug("0xmissing")
        self.assertEqual(ctx.exception.status_code, 404)
        self.assertIn("404 Transaction not found", str(ctx.exception))

    def test_transport_error_raises(self) -> None:
        self.session.request.side_effect = requests.ConnectionError("refused")

        with self.assertRaises(ApiRequestError) as ctx:
            self.client.agents.list()
        self.assertIsNone(ctx.exception.status_code)

    def test_get_by_hash_and_agent_address(self) -> None:
        self.session.request.return_value = _response({"success": True, "data": TXS})
        self.assertEqual(self.client.transactions.get("0x2")["id"], "tx-2")
        self.assertIsNone(self.client.transactions.get("0xnope"))

        self.session.request.return_value = _response({"success": True, "data": AGENTS})
        self.assertEqual(self.client.agents.get("0xa1")["id"], "a1")

    def test_analytics_computed_from_listed_records(self) -> None:
        def respond(method, url, **kwargs):
            if url.endswith("/api/transactions"):
                return _response({"success": True, "data": TXS})
            return _response({"success": True, "data": AGENTS})

        self.session.request.side_effect = respond

        stats = self.client.analytics.stats()
        self.assertEqual(stats.total_transactions, 3)
        self.assertEqual(stats.failed_transactions, 1)
        self.assertEqual(stats.total_volume, Decimal("60"))
        self.assertEqual(stats.total_agents, 2)

        board = self.client.analytics.leaderboard(1)
        self.assertEqual([(e.agent_id, e.name, e.count) for e in board], [("a2", "Beta", 2)])

        dashboard = self.client.analytics.dashboard()
        self.assertEqual(dashboard.stats.active_agents, 2)


if __name__ == "__main__":
    unittest.main()
