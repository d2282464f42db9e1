import unittest
from decimal import Decimal
from unittest import mock

import requests

from crogentx.adapters.records.facilitator_adapter import FacilitatorRecordSource
from crogentx.adapters.records.static_record_adapter import StaticRecordSource
from crogentx.core.enums import AgentType, InstructionType, TxStatus
from crogentx.core.models import Agent, Transaction


def _response(payload=None, status=200, bad_json=False):
    resp = mock.Mock()
    resp.status_code = status
    if status >= 400:
        resp.raise_for_status.side_effect = requests.HTTPError(f"{status} Error")
    if bad_json:
        resp.json.side_effect = ValueError("no json")
    else:
        resp.json.return_value = payload
    return resp


class _Fallback(StaticRecordSource):
    def __init__(self) -> None:
        super().__init__(
            transactions=[
                Transaction(
                    id="fallback-tx",
                    tx_hash="0xfb",
                    block_number=1,
                    block_timestamp=1,
                    from_address="0xa",
                    to_address="0xb",
                    value=Decimal("1"),
                    gas_used=1,
                    gas_price=Decimal("1"),
                    status=TxStatus.SUCCESS,
                    instruction_type=InstructionType.PAYMENT,
                )
            ],
            agents=[Agent(id="fallback-agent", name="F", address="0xf", type=AgentType.CUSTOM, owner="0xo", created_at=1)],
        )
        self.resets = 0

    def reset(self) -> None:
        self.resets += 1


class FacilitatorRecordSourceTests(unittest.TestCase):
    def setUp(self) -> None:
        self.session = mock.Mock()
        self.fallback = _Fallback()
        self.source = FacilitatorRecordSource(
            self.fallback, base_url="https://facilitator.test/", timeout=3, session=self.session
        )

    def _upstream(self, transactions=None, agents=None):
        """Route session.request by path; a value that is an exception is raised."""
        def respond(method, url, **kwargs):
            result = transactions if url.endswith("/transactions") else agents
            if isinstance(result, Exception):
                raise result
            return result
        self.session.request.side_effect = respond

    def test_records_are_parsed_from_upstream(self) -> None:
        self._upstream(
            transactions=_response({"transactions": [{"id": "tx-1", "txHash": "0x1", "value": "2.5"}]}),
            agents=_response([{"id": "a1", "name": "Bot", "type": "trading_bot"}]),
        )

        txs = self.source.get_transactions()
        agents = self.source.get_agents()

        self.assertEqual([t.id for t in txs], ["tx-1"])
        self.assertEqual(txs[0].value, Decimal("2.5"))
        self.assertEqual([a.id for a in agents], ["a1"])
        calls = [(c.args, c.kwargs) for c in self.session.request.call_args_list]
        self.assertEqual(calls[0][0], ("POST", "https://facilitator.test/transactions"))
        self.assertEqual(calls[0][1]["json"], {"limit": 1000})
        self.assertEqual(calls[0][1]["timeout"], 3)
        self.assertEqual(calls[1][0], ("GET", "https://facilitator.test/agents"))

    def test_transport_error_falls_back(self) -> None:
        self.session.request.side_effect = requests.ConnectionError("down")

        self.assertEqual([t.id for t in self.source.get_transactions()], ["fallback-tx"])
        self.assertEqual([a.id for a in self.source.get_agents()], ["fallback-agent"])

    def test_bad_status_or_payload_falls_back(self) -> None:
        agents = _response([{"id": "a1"}])
        for bad in (_response(status=503), _response({"unexpected": True}), _response(bad_json=True)):
            with self.subTest(response=bad):
                self._upstream(transactions=bad, agents=agents)
                self.assertEqual([t.id for t in self.source.get_transactions()], ["fallback-tx"])

    def test_agents_failure_falls_back_for_both_kinds(self) -> None:
        self._upstream(
            transactions=_response({"transactions": [{"id": "tx-1", "txHash": "0x1"}]}),
            agents=requests.Timeout("slow"),
        )

        self.assertEqual([t.id for t in self.source.get_transactions()], ["fallback-tx"])
        self.assertEqual([a.id for a in self.source.get_agents()], ["fallback-agent"])

    def test_results_are_cached_until_reset(self) -> None:
        self._upstream(
            transactions=_response({"data": [{"id": "tx-1", "txHash": "0x1"}]}),
            agents=_response({"agents": []}),
        )

        first = self.source.get_transactions()
        self.assertIs(first, self.source.get_transactions())
        self.source.get_agents()
        self.assertEqual(self.session.request.call_count, 2)

        self.source.reset()
        self.source.get_transactions()
        self.assertEqual(self.session.request.call_count, 4)
        self.assertEqual(self.fallback.resets, 1)

    def test_fallback_results_are_not_cached(self) -> None:
        self._upstream(transactions=requests.Timeout("slow"), agents=_response([]))
        self.assertEqual([t.id for t in self.source.get_transactions()], ["fallback-tx"])

        self._upstream(transactions=_response({"transactions": [{"id": "tx-2", "txHash": "0x2"}]}), agents=_response([]))
        self.assertEqual([t.id for t in self.source.get_transactions()], ["tx-2"])
        self.assertEqual(self.source.get_agents(), [])


if __name__ == "__main__":
    unittest.main()
