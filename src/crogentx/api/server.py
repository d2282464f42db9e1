"""
FastAPI server for CrogentX analytics.

Serves transactions, agents, graph snapshots, genealogy, simulation and
debugging over a record source held on app.state. Every response carries a
``success`` flag; failures add ``error`` and ``message``.
"""

from __future__ import annotations

import sys
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, FrozenSet, List, Optional, Type, TypeVar

from fastapi import FastAPI, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from crogentx.adapters.records.facilitator_adapter import FacilitatorRecordSource
from crogentx.adapters.records.mock_record_adapter import MockRecordSource
from crogentx.api.schemas import DebugRequest, SimulateRequest
from crogentx.config import settings
from crogentx.core.dto import AgentQuery, GraphQuery, SimulationRequest, TransactionQuery
from crogentx.core.enums import AgentType, TransactionCategory, TxStatus
from crogentx.core.errors import NotFoundError, ValidationError
from crogentx.core.models import FilterOptions
from crogentx.core.parsing import parse_iso_timestamp, to_enum
from crogentx.io.schemas import (
    agent_to_dict,
    debug_report_to_dict,
    graph_to_dict,
    insights_to_dict,
    metrics_to_dict,
    simulation_to_dict,
    transaction_to_dict,
    tree_to_dict,
)
from crogentx.logging.logger import get_logger
from crogentx.ports.record_source_port import RecordSourcePort
from crogentx.services.debugger import TransactionDebugger
from crogentx.services.genealogy import (
    build_transaction_tree,
    calculate_tree_depth,
    get_ancestors,
    get_descendants,
)
from crogentx.services.graph_filter import filter_graph
from crogentx.services.graph_metrics import calculate_graph_metrics, calculate_network_insights
from crogentx.services.query_service import RecordQueryService
from crogentx.services.simulator import TransactionSimulator

logger = get_logger(__name__)

E = TypeVar("E", bound=Enum)

# pydantic error types reported as missing fields
_MISSING_TYPES = ("missing", "string_too_short")


def default_record_source() -> RecordSourcePort:
    mock = MockRecordSource(settings.MOCK_TRANSACTION_COUNT, seed=settings.MOCK_SEED)
    if settings.USE_MOCK_DATA:
        return mock
    return FacilitatorRecordSource(fallback=mock)


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _error(status_code: int, error: str, message: str, **extra: Any) -> JSONResponse:
    body = {"success": False, "error": error, "message": message}
    body.update(extra)
    return JSONResponse(status_code=status_code, content=body)


def _queries(request: Request) -> RecordQueryService:
    return request.app.state.queries


# -----------------------------------------------------------------------------
# Query parsing helpers
# -----------------------------------------------------------------------------

def _split(raw: Optional[str]) -> List[str]:
    if not raw:
        return []
    return [p.strip() for p in raw.split(",") if p.strip()]


def _enum_set(name: str, raw: Optional[str], enum_cls: Type[E]) -> FrozenSet[E]:
    out = set()
    for part in _split(raw):
        value = to_enum(enum_cls, part)
        if value is None:
            raise ValidationError(f"Invalid {name}: {part!r}")
        out.add(value)
    return frozenset(out)


def _date_range(start_date: Optional[str], end_date: Optional[str]) -> Optional[tuple]:
    if not start_date and not end_date:
        return None
    try:
        start = parse_iso_timestamp(start_date) if start_date else 0
        end = parse_iso_timestamp(end_date) if end_date else sys.maxsize
    except ValueError as e:
        raise ValidationError(f"Invalid date range: {start_date!r} - {end_date!r}") from e
    return start, end


# -----------------------------------------------------------------------------
# App factory
# -----------------------------------------------------------------------------

def create_app(
    source: Optional[RecordSourcePort] = None,
    simulator: Optional[TransactionSimulator] = None,
) -> FastAPI:
    app = FastAPI(
        title="CrogentX API",
        description="x402 transaction and AI agent analytics.",
        version="0.1.0",
    )
    app.state.queries = RecordQueryService(source or default_record_source())
    app.state.simulator = simulator or TransactionSimulator()
    app.state.debugger = TransactionDebugger()

    @app.exception_handler(RequestValidationError)
    def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        """Request validation failures become 400 with the offending field names."""
        missing: List[str] = []
        problems: List[str] = []
        for err in exc.errors():
            loc = [str(p) for p in err.get("loc", ()) if p not in ("body", "query", "path")]
            field = loc[-1] if loc else "body"
            if err.get("type") in _MISSING_TYPES:
                missing.append(field)
            problems.append(f"{field}: {err.get('msg', 'invalid')}")
        logger.info("request_validation_failed", path=request.url.path, missing=missing)
        error = "Missing required fields" if missing else "Invalid request"
        return _error(400, error, "; ".join(problems), missing=missing)

    @app.get("/health")
    def health() -> dict:
        return {"status": "ok"}

    # ---------- transactions ----------

    @app.get("/api/transactions")
    def list_transactions(
        request: Request,
        limit: int = Query(settings.DEFAULT_TRANSACTION_LIMIT, ge=0),
        offset: int = Query(0, ge=0),
        status: Optional[str] = Query(None),
        agent_id: Optional[str] = Query(None, alias="agentId"),
        instruction_type: Optional[str] = Query(None, alias="instructionType"),
        min_value: Optional[Decimal] = Query(None, alias="minValue"),
        max_value: Optional[Decimal] = Query(None, alias="maxValue"),
        start_date: Optional[str] = Query(None, alias="startDate"),
        end_date: Optional[str] = Query(None, alias="endDate"),
    ):
        q = TransactionQuery(
            limit=limit,
            offset=offset,
            status=status,
            agent_id=agent_id,
            instruction_type=instruction_type,
            min_value=min_value,
            max_value=max_value,
            start_date=start_date,
            end_date=end_date,
        )
        try:
            page, total = _queries(request).list_transactions(q)
        except ValidationError as e:
            return _error(400, "Invalid query", str(e), missing=e.missing)
        except Exception as e:
            logger.exception("transactions_fetch_failed", error=str(e))
            return _error(500, "Failed to fetch transactions", str(e))

        query_params = {
            "limit": limit,
            "offset": offset,
            "status": status,
            "agentId": agent_id,
            "instructionType": instruction_type,
            "minValue": str(min_value) if min_value is not None else None,
            "maxValue": str(max_value) if max_value is not None else None,
            "startDate": start_date,
            "endDate": end_date,
        }
        return {
            "success": True,
            "data": [transaction_to_dict(t) for t in page],
            "pagination": {
                "total": total,
                "limit": limit,
                "offset": offset,
                "hasMore": offset + len(page) < total,
            },
            "metadata": {
                "timestamp": _now_iso(),
                "queryParams": {k: v for k, v in query_params.items() if v is not None},
            },
        }

    @app.get("/api/transactions/{tx_hash}/genealogy")
    def transaction_genealogy(request: Request, tx_hash: str):
        queries = _queries(request)
        try:
            if queries.find_transaction(tx_hash) is None:
                raise NotFoundError(f"Transaction {tx_hash} not found")
            transactions = queries.source.get_transactions()
            tree = build_transaction_tree(tx_hash, transactions)
            ancestors = get_ancestors(tx_hash, transactions)
            descendants = get_descendants(tx_hash, transactions)
        except NotFoundError as e:
            return _error(404, "Transaction not found", str(e))
        except Exception as e:
            logger.exception("genealogy_failed", tx_hash=tx_hash, error=str(e))
            return _error(500, "Failed to build genealogy", str(e))

        return {
            "success": True,
            "data": tree_to_dict(tree, settings.GENEALOGY_WIRE_DEPTH),
            "ancestors": [transaction_to_dict(t) for t in ancestors],
            "descendants": [transaction_to_dict(t) for t in descendants],
            "depth": calculate_tree_depth(tree),
        }

    # ---------- agents ----------

    @app.get("/api/agents")
    def list_agents(
        request: Request,
        limit: int = Query(settings.DEFAULT_AGENT_LIMIT, ge=0),
        agent_type: Optional[str] = Query(None, alias="type"),
        min_balance: Optional[Decimal] = Query(None, alias="minBalance"),
        active: Optional[bool] = Query(None),
    ):
        q = AgentQuery(limit=limit, type=agent_type, min_balance=min_balance, active=active)
        try:
            page, total = _queries(request).list_agents(q)
        except Exception as e:
            logger.exception("agents_fetch_failed", error=str(e))
            return _error(500, "Failed to fetch agents", str(e))

        return {
            "success": True,
            "data": [agent_to_dict(a) for a in page],
            "count": len(page),
            "total": total,
            "metadata": {"timestamp": _now_iso()},
        }

    # ---------- simulate / debug ----------

    @app.post("/api/simulate")
    def simulate(request: Request, body: SimulateRequest):
        req = SimulationRequest(
            instruction=body.instruction,
            agent_id=body.agent_id,
            value=body.value,
            target=body.target,
            data=body.data,
        )
        try:
            result = request.app.state.simulator.simulate(req)
        except Exception as e:
            logger.exception("simulation_failed", instruction=body.instruction, error=str(e))
            return _error(500, "Simulation failed", str(e))
        return {"success": True, "simulation": simulation_to_dict(result, settings.NATIVE_SYMBOL)}

    @app.post("/api/debug")
    def debug(request: Request, body: DebugRequest):
        try:
            tx = _queries(request).find_transaction(body.transaction_hash)
            if tx is None:
                raise NotFoundError(f"Transaction {body.transaction_hash} not found")
            report = request.app.state.debugger.analyze(tx)
        except NotFoundError as e:
            return _error(404, "Transaction not found", str(e))
        except Exception as e:
            logger.exception("debug_failed", tx_hash=body.transaction_hash, error=str(e))
            return _error(500, "Debug failed", str(e))

        return {
            "success": True,
            "transaction": transaction_to_dict(tx),
            "debug": debug_report_to_dict(report),
        }

    # ---------- graph ----------

    @app.get("/api/graph")
    def graph(
        request: Request,
        limit: int = Query(settings.DEFAULT_GRAPH_LIMIT, ge=0),
        agent_id: Optional[str] = Query(None, alias="agentId"),
        instruction_type: Optional[str] = Query(None, alias="instructionType"),
        min_value: Optional[Decimal] = Query(None, alias="minValue"),
        max_value: Optional[Decimal] = Query(None, alias="maxValue"),
        search: str = Query(""),
        status: Optional[str] = Query(None),
        agent_type: Optional[str] = Query(None, alias="agentType"),
        category: Optional[str] = Query(None),
        protocol: Optional[str] = Query(None),
        start_date: Optional[str] = Query(None, alias="startDate"),
        end_date: Optional[str] = Query(None, alias="endDate"),
        only_batched: bool = Query(False, alias="onlyBatched"),
        only_multi_step: bool = Query(False, alias="onlyMultiStep"),
    ):
        try:
            filters = FilterOptions(
                search_query=search,
                statuses=_enum_set("status", status, TxStatus),
                agent_types=_enum_set("agentType", agent_type, AgentType),
                categories=_enum_set("category", category, TransactionCategory),
                protocols=frozenset(_split(protocol)),
                date_range=_date_range(start_date, end_date),
                max_value=max_value,
                only_batched=only_batched,
                only_multi_step=only_multi_step,
            )
            snapshot, _, agents = _queries(request).graph_snapshot(
                GraphQuery(limit=limit, agent_id=agent_id, instruction_type=instruction_type, min_value=min_value)
            )
            view = filter_graph(snapshot, filters)
            metrics = calculate_graph_metrics(view)
            insights = calculate_network_insights(view)
        except ValidationError as e:
            return _error(400, "Invalid query", str(e), missing=e.missing)
        except Exception as e:
            logger.exception("graph_failed", error=str(e))
            return _error(500, "Failed to generate graph", str(e))

        filters_echo = {
            "limit": limit,
            "agentId": agent_id,
            "instructionType": instruction_type,
            "minValue": str(min_value) if min_value is not None else None,
            "maxValue": str(max_value) if max_value is not None else None,
            "search": search or None,
            "status": status,
            "agentType": agent_type,
            "category": category,
            "protocol": protocol,
            "startDate": start_date,
            "endDate": end_date,
            "onlyBatched": only_batched or None,
            "onlyMultiStep": only_multi_step or None,
        }
        return {
            "success": True,
            "data": graph_to_dict(view),
            "stats": {
                "nodes": metrics.total_nodes,
                "edges": metrics.total_edges,
                "transactions": metrics.total_transactions,
                "agents": len(agents),
                "metrics": metrics_to_dict(metrics),
                "insights": insights_to_dict(insights),
            },
            "metadata": {
                "timestamp": _now_iso(),
                "filters": {k: v for k, v in filters_echo.items() if v is not None},
            },
        }

    return app


app = create_app()
