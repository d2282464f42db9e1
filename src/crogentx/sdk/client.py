"""
CrogentX SDK: a thin client for the CrogentX HTTP API.

    client = CrogentxClient("http://localhost:3000")
    page = client.transactions.list(limit=100, status="failed")
    top = client.analytics.leaderboard(5)

Endpoint methods return the decoded JSON body. Analytics are computed locally
from the listed records and return dataclasses. Transport failures and non-2xx
responses raise ApiRequestError.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

import requests

from crogentx.config import settings
from crogentx.core.dto import DashboardStats, LeaderboardEntry, TransactionStats
from crogentx.core.errors import ApiRequestError
from crogentx.io.schemas import agent_from_dict, transaction_from_dict
from crogentx.logging.logger import get_logger
from crogentx.services.analytics import calculate_dashboard, calculate_leaderboard, calculate_stats

logger = get_logger(__name__)

ANALYTICS_SAMPLE = 1000


def _query(params: Dict[str, Any]) -> Dict[str, str]:
    out: Dict[str, str] = {}
    for k, v in params.items():
        if v is None:
            continue
        if isinstance(v, bool):
            out[k] = "true" if v else "false"
        else:
            out[k] = str(v)
    return out


class CrogentxClient:

    def __init__(
        self,
        api_url: Optional[str] = None,
        api_key: Optional[str] = None,
        timeout: Optional[float] = None,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.api_url = (api_url or settings.CROGENTX_API_URL).rstrip("/")
        self.api_key = api_key
        self.timeout = settings.SDK_TIMEOUT_SEC if timeout is None else timeout
        self._session = session or requests.Session()

        self.transactions = _Transactions(self)
        self.agents = _Agents(self)
        self.graph = _Graph(self)
        self.analytics = _Analytics(self)

    def request(
        self,
        method: str,
        endpoint: str,
        query: Optional[Dict[str, Any]] = None,
        body: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"

        url = self.api_url + endpoint
        try:
            resp = self._session.request(
                method,
                url,
                params=_query(query or {}),
                json=body,
                headers=headers,
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.warning("api_request_failed", method=method, endpoint=endpoint, error=str(e))
            raise ApiRequestError(f"API request failed: {e}") from e

        if not resp.ok:
            detail = resp.reason or ""
            try:
                payload = resp.json()
                if isinstance(payload, dict) and payload.get("error"):
                    detail = str(payload["error"])
            except ValueError:
                pass
            raise ApiRequestError(
                f"API request failed: {resp.status_code} {detail}".rstrip(),
                status_code=resp.status_code,
            )

        try:
            return resp.json()
        except ValueError as e:
            raise ApiRequestError(f"Invalid JSON from {endpoint}", status_code=resp.status_code) from e


class _Transactions:
    def __init__(self, client: CrogentxClient) -> None:
        self._c = client

    def list(
        self,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
        status: Optional[str] = None,
        agent_id: Optional[str] = None,
        instruction_type: Optional[str] = None,
        min_value: Optional[Any] = None,
        max_value: Optional[Any] = None,
        start_date: Optional[str] = None,
        end_date: Optional[str] = None,
    ) -> Dict[str, Any]:
        return self._c.request("GET", "/api/transactions", query={
            "limit": limit,
            "offset": offset,
            "status": status,
            "agentId": agent_id,
            "instructionType": instruction_type,
            "minValue": min_value,
            "maxValue": max_value,
            "startDate": start_date,
            "endDate": end_date,
        })

    def get(self, tx_hash: str) -> Optional[Dict[str, Any]]:
        result = self.list(limit=ANALYTICS_SAMPLE)
        for tx in result.get("data", []):
            if tx.get("txHash") == tx_hash:
                return tx
        return None

    def simulate(
        self,
        instruction: str,
        agent_id: str,
        value: str,
        target: Optional[str] = None,
        data: Any = None,
    ) -> Dict[str, Any]:
        body: Dict[str, Any] = {"instruction": instruction, "agentId": agent_id, "value": str(value)}
        if target is not None:
            body["target"] = target
        if data is not None:
            body["data"] = data
        return self._c.request("POST", "/api/simulate", body=body)

    def debug(self, transaction_hash: str) -> Dict[str, Any]:
        return self._c.request("POST", "/api/debug", body={"transactionHash": transaction_hash})

    def genealogy(self, tx_hash: str) -> Dict[str, Any]:
        return self._c.request("GET", f"/api/transactions/{tx_hash}/genealogy")


class _Agents:
    def __init__(self, client: CrogentxClient) -> None:
        self._c = client

    def list(
        self,
        limit: Optional[int] = None,
        type: Optional[str] = None,
        active: Optional[bool] = None,
        min_balance: Optional[Any] = None,
    ) -> Dict[str, Any]:
        return self._c.request("GET", "/api/agents", query={
            "limit": limit,
            "type": type,
            "active": active,
            "minBalance": min_balance,
        })

    def get(self, agent_id: str) -> Optional[Dict[str, Any]]:
        """Look up by agent id or address."""
        result = self.list(limit=ANALYTICS_SAMPLE)
        key = agent_id.lower()
        for agent in result.get("data", []):
            if agent.get("id") == agent_id or str(agent.get("address", "")).lower() == key:
                return agent
        return None

    def transactions(self, agent_id: str, limit: int = 100) -> Dict[str, Any]:
        return self._c.transactions.list(agent_id=agent_id, limit=limit)


class _Graph:
    def __init__(self, client: CrogentxClient) -> None:
        self._c = client

    def get(
        self,
        limit: Optional[int] = None,
        agent_id: Optional[str] = None,
        instruction_type: Optional[str] = None,
        min_value: Optional[Any] = None,
        **filters: Any,
    ) -> Dict[str, Any]:
        """
        Extra keyword filters are passed through in camelCase, e.g.
        only_batched=True -> onlyBatched=true, agent_type="trading_bot".
        """
        query: Dict[str, Any] = {
            "limit": limit,
            "agentId": agent_id,
            "instructionType": instruction_type,
            "minValue": min_value,
        }
        for key, value in filters.items():
            query[_camel(key)] = value
        return self._c.request("GET", "/api/graph", query=query)


class _Analytics:
    def __init__(self, client: CrogentxClient) -> None:
        self._c = client

    def _transactions(self):
        data = self._c.transactions.list(limit=ANALYTICS_SAMPLE).get("data", [])
        return [transaction_from_dict(d) for d in data if isinstance(d, dict)]

    def _agents(self):
        data = self._c.agents.list(limit=ANALYTICS_SAMPLE).get("data", [])
        return [agent_from_dict(d) for d in data if isinstance(d, dict)]

    def stats(self) -> TransactionStats:
        return calculate_stats(self._transactions(), self._agents())

    def leaderboard(self, limit: int = 10) -> List[LeaderboardEntry]:
        return calculate_leaderboard(self._transactions(), limit)

    def dashboard(self) -> DashboardStats:
        return calculate_dashboard(self._transactions(), self._agents())


def _camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(p[:1].upper() + p[1:] for p in rest)
