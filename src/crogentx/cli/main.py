from __future__ import annotations

import argparse
import datetime as dt
import json
import sys
import time
from typing import Any, List, Optional

from crogentx.config import settings
from crogentx.core.errors import ApiRequestError
from crogentx.io.output_writer import write_graph_json, write_summary_md
from crogentx.io.schemas import (
    dashboard_to_dict,
    graph_from_dict,
    leaderboard_entry_to_dict,
    stats_to_dict,
)
from crogentx.sdk.client import CrogentxClient
from crogentx.services.graph_builder import short_address

SYM = settings.NATIVE_SYMBOL


def build_arg_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="crogentx", description="CrogentX - Cronos x402 transaction analytics")
    p.add_argument("--api-url", default=None, help="API base URL (default: CROGENTX_API_URL)")
    sub = p.add_subparsers(dest="command", metavar="command")

    tx = sub.add_parser("transactions", aliases=["tx"], help="Query x402 transactions")
    tx.add_argument("-l", "--limit", type=int, default=10, help="Number of transactions to fetch")
    tx.add_argument("-s", "--status", help="Filter by status (success|failed|pending)")
    tx.add_argument("-a", "--agent", help="Filter by agent ID")
    tx.add_argument("-i", "--instruction", help="Filter by instruction type")
    tx.add_argument("--min-value", help="Minimum transaction value")
    tx.add_argument("--max-value", help="Maximum transaction value")
    tx.add_argument("--json", action="store_true", help="Output as JSON")

    ag = sub.add_parser("agents", help="Query AI agents")
    ag.add_argument("-l", "--limit", type=int, default=10, help="Number of agents to fetch")
    ag.add_argument("-t", "--type", help="Filter by agent type")
    ag.add_argument("--active", action="store_true", help="Only show active agents")
    ag.add_argument("--json", action="store_true", help="Output as JSON")

    sim = sub.add_parser("simulate", help="Simulate an x402 transaction")
    sim.add_argument("-i", "--instruction", required=True, help="Instruction type (transfer, swap, etc.)")
    sim.add_argument("-a", "--agent", required=True, help="Agent ID")
    sim.add_argument("-v", "--value", required=True, help=f"Transaction value in {SYM}")
    sim.add_argument("-t", "--target", help="Target address")
    sim.add_argument("--json", action="store_true", help="Output as JSON")

    dbg = sub.add_parser("debug", help="Debug a transaction")
    dbg.add_argument("-t", "--tx", required=True, help="Transaction hash")
    dbg.add_argument("--json", action="store_true", help="Output as JSON")

    st = sub.add_parser("stats", help="Get transaction statistics")
    st.add_argument("--full", action="store_true", help="Include distributions, top agents and daily counts")
    st.add_argument("--json", action="store_true", help="Output as JSON")

    lb = sub.add_parser("leaderboard", help="Show top agents by transaction count")
    lb.add_argument("-l", "--limit", type=int, default=10, help="Number of agents to show")
    lb.add_argument("--json", action="store_true", help="Output as JSON")

    gr = sub.add_parser("graph", help="Fetch the transaction graph and optionally write it to disk")
    gr.add_argument("-l", "--limit", type=int, default=settings.DEFAULT_GRAPH_LIMIT, help="Transactions to include")
    gr.add_argument("-a", "--agent", help="Filter by agent ID")
    gr.add_argument("-i", "--instruction", help="Filter by instruction type")
    gr.add_argument("--min-value", help="Minimum transaction value")
    gr.add_argument("--max-value", help="Maximum transaction value")
    gr.add_argument("--search", help="Substring of name, address or tx hash")
    gr.add_argument("--status", help="Comma-separated statuses")
    gr.add_argument("--agent-type", help="Comma-separated agent types")
    gr.add_argument("--category", help="Comma-separated transaction categories")
    gr.add_argument("--protocol", help="Comma-separated protocols")
    gr.add_argument("--start-date", help="Earliest transaction time (ISO 8601)")
    gr.add_argument("--end-date", help="Latest transaction time (ISO 8601)")
    gr.add_argument("--only-batched", action="store_true", help="Only batched transactions")
    gr.add_argument("--only-multi-step", action="store_true", help="Only multi-step transactions")
    gr.add_argument("--out", help="Output folder for graph.json and summary.md")
    gr.add_argument("--json", action="store_true", help="Output as JSON")
    return p


def _print_json(payload: Any) -> None:
    print(json.dumps(payload, indent=2))


def _ts() -> str:
    return dt.datetime.now().strftime("%H:%M:%S")


# ---------- commands ----------

def _cmd_transactions(client: CrogentxClient, args: argparse.Namespace) -> None:
    result = client.transactions.list(
        limit=args.limit,
        status=args.status,
        agent_id=args.agent,
        instruction_type=args.instruction,
        min_value=args.min_value,
        max_value=args.max_value,
    )
    if args.json:
        _print_json(result)
        return
    data = result.get("data", [])
    print(f"\nFound {len(data)} transactions:\n")
    for i, tx in enumerate(data, start=1):
        print(f"{i}. {str(tx.get('txHash', ''))[:10]}...")
        print(f"   Status: {tx.get('status')}")
        print(f"   Type: {tx.get('instructionType')}")
        print(f"   Value: {tx.get('value')} {SYM}")
        print(f"   Agent: {tx.get('agentName') or 'Unknown'}")
        print(f"   Gas: {tx.get('gasUsed')}\n")


def _cmd_agents(client: CrogentxClient, args: argparse.Namespace) -> None:
    result = client.agents.list(limit=args.limit, type=args.type, active=True if args.active else None)
    if args.json:
        _print_json(result)
        return
    data = result.get("data", [])
    print(f"\nFound {len(data)} agents:\n")
    for i, agent in enumerate(data, start=1):
        print(f"{i}. {agent.get('name')}")
        print(f"   Address: {agent.get('address')}")
        print(f"   Type: {agent.get('type')}")
        print(f"   Volume: {agent.get('totalVolume')} {SYM}")
        print(f"   Status: {'active' if agent.get('isActive') else 'inactive'}\n")


def _cmd_simulate(client: CrogentxClient, args: argparse.Namespace) -> None:
    result = client.transactions.simulate(
        instruction=args.instruction,
        agent_id=args.agent,
        value=args.value,
        target=args.target,
    )
    if args.json:
        _print_json(result)
        return
    sim = result.get("simulation", {})
    gas = sim.get("gas", {})
    analysis = sim.get("analysis", {})

    print("\nSimulation Results:\n")
    print(f"Instruction: {sim.get('instruction')}")
    print(f"Agent: {sim.get('agentId')}")
    print(f"Value: {sim.get('value')} {SYM}\n")

    print("Gas Estimation:")
    print(f"  Estimated Gas: {gas.get('estimated')}")
    print(f"  Gas Price: {gas.get('price')} Gwei")
    print(f"  Total Cost: {gas.get('cost' + SYM)} {SYM} (${gas.get('costUSD')})\n")

    print("Analysis:")
    print(f"  Success Probability: {analysis.get('successProbability')}")
    print(f"  Execution Time: {analysis.get('executionTime')}")
    print(f"  Safe to Execute: {'Yes' if analysis.get('safe') else 'No'}\n")

    if analysis.get("issues"):
        print("Issues:")
        for issue in analysis["issues"]:
            print(f"  - {issue}")
        print()
    if analysis.get("warnings"):
        print("Warnings:")
        for warning in analysis["warnings"]:
            print(f"  - {warning}")
        print()

    print("Recommendations:")
    for rec in sim.get("recommendations", []):
        print(f"  {rec}")
    print()


def _cmd_debug(client: CrogentxClient, args: argparse.Namespace) -> None:
    result = client.transactions.debug(args.tx)
    if args.json:
        _print_json(result)
        return
    debug = result.get("debug", {})
    print("\nDebug Information:\n")
    print(f"Transaction: {args.tx}")
    print(f"Status: {debug.get('status')}\n")

    if debug.get("issues"):
        print("Issues:")
        for issue in debug["issues"]:
            print(f"  [{str(issue.get('severity', '')).upper()}] {issue.get('message')}")
        print()

    print("Execution Trace:")
    for step in debug.get("trace", []):
        mark = {"success": "ok", "failed": "FAIL"}.get(step.get("status"), "..")
        print(f"  [{mark}] {step.get('step')}")
        print(f"     {step.get('details')}")
    print()

    gas = debug.get("gas", {})
    print("Gas Analysis:")
    print(f"  Used: {gas.get('used')}")
    print(f"  Efficiency: {gas.get('efficiency')}")
    for s in gas.get("suggestions", []):
        print(f"  * {s}")
    print()

    print("Recommendations:")
    for rec in debug.get("recommendations", []):
        print(f"  - {rec}")
    print()


def _cmd_stats(client: CrogentxClient, args: argparse.Namespace) -> None:
    if args.full:
        dash = client.analytics.dashboard()
        stats = dash.stats
    else:
        dash = None
        stats = client.analytics.stats()

    if args.json:
        _print_json(dashboard_to_dict(dash) if dash is not None else stats_to_dict(stats))
        return

    print("\nCrogentX Statistics:\n")
    print(f"Total Transactions: {stats.total_transactions}")
    print(f"Successful: {stats.successful_transactions}")
    print(f"Failed: {stats.failed_transactions}")
    print(f"Success Rate: {stats.success_rate:.2f}%\n")
    print(f"Total Volume: {stats.total_volume:.2f} {SYM}")
    print(f"Avg Transaction: {stats.avg_transaction_value:.4f} {SYM}\n")
    print(f"Total Agents: {stats.total_agents}")
    print(f"Active Agents: {stats.active_agents}\n")

    if dash is None:
        return
    print(f"Total Gas Used: {dash.total_gas_used}")
    print(f"Batched: {dash.batched_transactions} | Multi-step: {dash.multi_step_transactions}\n")
    print("By instruction:")
    for name, count in sorted(dash.instruction_distribution.items(), key=lambda x: x[1], reverse=True):
        print(f"  {name}: {count}")
    print("\nBy protocol:")
    for name, count in sorted(dash.protocol_distribution.items(), key=lambda x: x[1], reverse=True):
        print(f"  {name}: {count}")
    print("\nPer day:")
    for row in dash.transactions_over_time:
        print(f"  {row['date']}: {row['count']}")
    print()


def _cmd_leaderboard(client: CrogentxClient, args: argparse.Namespace) -> None:
    entries = client.analytics.leaderboard(args.limit)
    if args.json:
        _print_json([leaderboard_entry_to_dict(e) for e in entries])
        return
    print("\nTop Agents:\n")
    for i, e in enumerate(entries, start=1):
        print(f"{i}. {e.name}")
        print(f"   Transactions: {e.count}")
        print(f"   Volume: {e.volume:.2f} {SYM}\n")


def _cmd_graph(client: CrogentxClient, args: argparse.Namespace) -> None:
    started = time.time()
    if not args.json:
        print(f"[{_ts()}] Fetching graph from {client.api_url} (limit {args.limit})")
    result = client.graph.get(
        limit=args.limit,
        agent_id=args.agent,
        instruction_type=args.instruction,
        min_value=args.min_value,
        max_value=args.max_value,
        search=args.search,
        status=args.status,
        agent_type=args.agent_type,
        category=args.category,
        protocol=args.protocol,
        start_date=args.start_date,
        end_date=args.end_date,
        only_batched=True if args.only_batched else None,
        only_multi_step=True if args.only_multi_step else None,
    )
    if args.json:
        _print_json(result)
    else:
        stats = result.get("stats", {})
        insights = stats.get("insights", {})
        most_active = insights.get("mostActive", {})
        print(
            f"[{_ts()}] Done in {time.time() - started:.1f}s • "
            f"{stats.get('nodes', 0)} nodes • {stats.get('edges', 0)} edges"
        )
        print(f"Transactions: {stats.get('transactions', 0)} | Agents: {stats.get('agents', 0)}")
        if most_active.get("id"):
            print(
                f"Most active: {most_active.get('name')} "
                f"({short_address(most_active['id'])}, {most_active.get('degree', 0)} connections)"
            )

    if args.out:
        graph = graph_from_dict(result.get("data", {}))
        graph_path = write_graph_json(graph, args.out)
        summary_path = write_summary_md(graph, args.out)
        if not args.json:
            print(f"Wrote: {graph_path}")
            print(f"Wrote: {summary_path}")


COMMANDS = {
    "transactions": _cmd_transactions,
    "tx": _cmd_transactions,
    "agents": _cmd_agents,
    "simulate": _cmd_simulate,
    "debug": _cmd_debug,
    "stats": _cmd_stats,
    "leaderboard": _cmd_leaderboard,
    "graph": _cmd_graph,
}


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_arg_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 2

    client = CrogentxClient(args.api_url or settings.CROGENTX_API_URL)
    try:
        COMMANDS[args.command](client, args)
    except ApiRequestError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
