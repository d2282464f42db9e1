from __future__ import annotations

import threading
from typing import Any, Dict, List, Optional, Tuple

import requests

from crogentx.config.settings import (
    FACILITATOR_TIMEOUT_SEC,
    MAX_RECORDS,
    X402_FACILITATOR_URL,
)
from crogentx.core.errors import DataSourceError
from crogentx.core.models import Agent, Transaction
from crogentx.io.schemas import agent_from_dict, transaction_from_dict
from crogentx.logging.logger import get_logger
from crogentx.ports.record_source_port import RecordSourcePort

logger = get_logger(__name__)


class FacilitatorRecordSource(RecordSourcePort):
    """
    Records from an x402 facilitator HTTP API.

    Transactions and agents are fetched together. Any upstream failure
    (transport, status, body shape) on either is logged and the fallback
    source answers for both. Successful fetches are cached until reset().
    """

    def __init__(
        self,
        fallback: RecordSourcePort,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        session: Optional[requests.Session] = None,
    ) -> None:
        self._fallback = fallback
        self._base_url = (base_url or X402_FACILITATOR_URL).rstrip("/")
        self._timeout = FACILITATOR_TIMEOUT_SEC if timeout is None else timeout
        self._session = session or requests.Session()

        self._lock = threading.Lock()
        self._records: Optional[Tuple[List[Transaction], List[Agent]]] = None

    # ---------- internal ----------

    def _call(self, method: str, path: str, body: Optional[Dict[str, Any]] = None) -> Any:
        url = f"{self._base_url}{path}"
        try:
            resp = self._session.request(
                method,
                url,
                json=body,
                headers={"Content-Type": "application/json"},
                timeout=self._timeout,
            )
            resp.raise_for_status()
            return resp.json()
        except (requests.RequestException, ValueError) as e:
            raise DataSourceError(f"Facilitator {method} {path} failed: {e}") from e

    @staticmethod
    def _rows(data: Any, key: str) -> List[Dict[str, Any]]:
        if isinstance(data, dict):
            data = data.get(key, data.get("data"))
        if not isinstance(data, list):
            raise DataSourceError(f"Unexpected facilitator payload for {key}")
        return [r for r in data if isinstance(r, dict)]

    # ---------- port methods ----------

    def get_transactions(self) -> List[Transaction]:
        return self._load()[0]

    def get_agents(self) -> List[Agent]:
        return self._load()[1]

    def reset(self) -> None:
        with self._lock:
            self._records = None
        self._fallback.reset()

    def _load(self) -> Tuple[List[Transaction], List[Agent]]:
        # both record kinds always come from the same side
        with self._lock:
            if self._records is not None:
                return self._records
            try:
                tx_rows = self._rows(self._call("POST", "/transactions", {"limit": MAX_RECORDS}), "transactions")
                agent_rows = self._rows(self._call("GET", "/agents"), "agents")
            except DataSourceError as e:
                logger.warning("facilitator_fallback", error=str(e))
                return self._fallback.get_transactions(), self._fallback.get_agents()
            self._records = (
                [transaction_from_dict(r) for r in tx_rows],
                [agent_from_dict(r) for r in agent_rows],
            )
            logger.info(
                "facilitator_records_loaded",
                transactions=len(self._records[0]),
                agents=len(self._records[1]),
            )
            return self._records
