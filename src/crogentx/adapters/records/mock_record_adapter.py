from __future__ import annotations

import random
import threading
import time
from decimal import Decimal
from typing import Dict, List, Optional, Tuple

from crogentx.config import settings
from crogentx.core.enums import (
    AgentType,
    InstructionType,
    StepStatus,
    TransactionCategory,
    TxStatus,
)
from crogentx.core.models import Agent, SettlementStep, Transaction, TransactionMetadata
from crogentx.logging.logger import get_logger
from crogentx.ports.record_source_port import RecordSourcePort

logger = get_logger(__name__)

DAY_SEC = 86400

AGENT_NAMES: Dict[AgentType, List[str]] = {
    AgentType.TRADING_BOT: [
        "AlphaTrader Pro", "DeFi Arbitrage Bot", "Market Maker Elite", "Momentum Trader",
        "Grid Trading Bot", "Scalper AI", "Swing Trade Master", "Trend Follower",
    ],
    AgentType.PAYMENT_PROCESSOR: [
        "PayFlow Agent", "SettleMint Pro", "InstaPay Bot", "BatchPay Processor",
        "StreamPay Agent", "PayGate AI", "Swift Settle", "CashFlow Manager",
    ],
    AgentType.LIQUIDITY_MANAGER: [
        "LiquidityOpt Bot", "AMM Manager Pro", "Pool Rebalancer", "LP Optimizer",
        "Yield Harvester", "Range Manager", "Capital Allocator", "Liquidity Sniper",
    ],
    AgentType.PORTFOLIO_REBALANCER: [
        "PortfolioSync", "Asset Balancer Pro", "Risk Manager Bot", "Diversifier AI",
        "Index Rebalancer", "Tactical Allocator", "Portfolio Guardian", "Balance Keeper",
    ],
    AgentType.YIELD_OPTIMIZER: [
        "Yield Maximizer", "APY Hunter", "Compound Master", "Farm Rotator",
        "Staking Optimizer", "Rewards Harvester", "Yield Aggregator", "Farm Manager",
    ],
    AgentType.NFT_SNIPER: [
        "NFT Sniper Pro", "Mint Master", "Floor Sweeper", "Rare Hunter",
        "Collection Tracker", "Flip Master", "Mint Bot Elite", "NFT Trader AI",
    ],
    AgentType.GOVERNANCE_DELEGATE: [
        "DAO Voter", "Governance Bot", "Proposal Analyzer", "Vote Delegate",
        "Protocol Guardian", "Community Rep", "Stake Voter", "DAO Manager",
    ],
    AgentType.BRIDGE_OPERATOR: [
        "Bridge Master", "Cross-Chain Relay", "Bridge Arbitrage", "Chain Connector",
        "Multi-Chain Bot", "Bridge Optimizer", "Asset Bridger", "Chain Hopper",
    ],
}

PROTOCOLS = [
    "VVS Finance", "Moonlander", "Delphi", "Tectonic", "Ferro",
    "MM Finance", "Veno", "CronaSwap", "Fulcrom", "Single Finance",
]

# (type, weight, category)
INSTRUCTION_WEIGHTS: List[Tuple[InstructionType, int, TransactionCategory]] = [
    (InstructionType.PAYMENT, 25, TransactionCategory.PAYMENT),
    (InstructionType.SWAP, 20, TransactionCategory.DEFI),
    (InstructionType.SETTLEMENT, 15, TransactionCategory.PAYMENT),
    (InstructionType.LIQUIDITY_ADD, 10, TransactionCategory.DEFI),
    (InstructionType.LIQUIDITY_REMOVE, 8, TransactionCategory.DEFI),
    (InstructionType.STAKE, 7, TransactionCategory.DEFI),
    (InstructionType.BATCH_PAYMENT, 5, TransactionCategory.PAYMENT),
    (InstructionType.NFT_MINT, 3, TransactionCategory.NFT),
    (InstructionType.NFT_TRANSFER, 3, TransactionCategory.NFT),
    (InstructionType.CONDITIONAL_PAYMENT, 2, TransactionCategory.PAYMENT),
    (InstructionType.CROSS_CHAIN_BRIDGE, 1, TransactionCategory.BRIDGE),
    (InstructionType.GOVERNANCE_VOTE, 1, TransactionCategory.GOVERNANCE),
]

DESCRIPTIONS: Dict[InstructionType, List[str]] = {
    InstructionType.PAYMENT: [
        "Automated payment transaction executed by {agent}",
        "Direct transfer initiated by AI agent {agent}",
        "Settlement payment processed via x402 protocol",
    ],
    InstructionType.SETTLEMENT: [
        "Multi-party settlement coordinated by {agent}",
        "Batch settlement executed through x402 pipeline",
        "Automated settlement with royalty distribution",
    ],
    InstructionType.SWAP: [
        "Token swap executed on {protocol}",
        "Optimized swap route found and executed by {agent}",
        "DeFi swap with minimal slippage via x402",
    ],
    InstructionType.STAKE: [
        "Staking transaction on {protocol}",
        "Automated staking position opened by {agent}",
        "Yield farming deposit executed via x402",
    ],
    InstructionType.LIQUIDITY_ADD: [
        "Liquidity provision to {protocol} pool",
        "LP position created by {agent}",
        "Dual-sided liquidity added via x402 instruction",
    ],
    InstructionType.LIQUIDITY_REMOVE: [
        "Liquidity withdrawal from {protocol}",
        "LP position closed by {agent}",
        "Automated liquidity removal and claim",
    ],
    InstructionType.BATCH_PAYMENT: [
        "Batch payment to {recipients} recipients",
        "Payroll distribution executed by {agent}",
        "Multi-recipient settlement via x402 batching",
    ],
    InstructionType.CONDITIONAL_PAYMENT: [
        "Conditional payment executed on trigger by {agent}",
        "Event-based payment released via x402",
        "Smart payment with conditional logic",
    ],
    InstructionType.CROSS_CHAIN_BRIDGE: [
        "Cross-chain bridge operation initiated by {agent}",
        "Asset bridged via x402 bridge operator",
        "Multi-chain settlement coordinated",
    ],
    InstructionType.NFT_MINT: [
        "NFT minted by {agent}",
        "AI-triggered NFT creation via x402",
        "Generative NFT minted automatically",
    ],
    InstructionType.NFT_TRANSFER: [
        "NFT transferred by {agent}",
        "Automated NFT distribution via x402",
        "Collection transfer executed",
    ],
    InstructionType.GOVERNANCE_VOTE: [
        "Governance vote cast by {agent}",
        "DAO proposal vote via x402 delegate",
        "Automated governance participation",
    ],
}

PIPELINE_ACTIONS = ["Approve", "Swap", "Transfer", "Settle", "Claim"]
AI_MODELS = ["GPT-4", "Claude-3.5", "Llama-3", "Custom Model"]
USER_INTENTS = [
    "Optimize yield", "Rebalance portfolio", "Execute trade",
    "Process payment", "Manage liquidity", "Harvest rewards",
]
ERROR_REASONS = ["Gas limit exceeded", "Slippage too high", "Insufficient balance", "Contract reverted"]

GENERATED_AGENT_TYPES = [t for t in AgentType if t is not AgentType.CUSTOM]


class MockRecordSource(RecordSourcePort):
    """
    Synthetic agents and x402 transactions.

    Records are generated on first access and kept until reset(). With a seed
    and a fixed now_ts the corpus is fully reproducible.
    """

    def __init__(
        self,
        transaction_count: Optional[int] = None,
        seed: Optional[int] = None,
        now_ts: Optional[int] = None,
    ) -> None:
        self.transaction_count = int(transaction_count if transaction_count is not None
                                     else settings.MOCK_TRANSACTION_COUNT)
        self.seed = seed
        self.now_ts = now_ts

        self._lock = threading.Lock()
        self._agents: Optional[List[Agent]] = None
        self._transactions: Optional[List[Transaction]] = None

    # ---------- port methods ----------

    def get_agents(self) -> List[Agent]:
        self._ensure_generated()
        return self._agents or []

    def get_transactions(self) -> List[Transaction]:
        self._ensure_generated()
        return self._transactions or []

    def reset(self) -> None:
        with self._lock:
            self._agents = None
            self._transactions = None

    # ---------- generation ----------

    def _ensure_generated(self) -> None:
        if self._transactions is not None:
            return
        with self._lock:
            if self._transactions is not None:
                return
            rng = random.Random(self.seed)
            now = int(self.now_ts or time.time())
            agents = self._generate_agents(rng, now)
            transactions = self._generate_transactions(rng, now, agents)
            self._agents = agents
            self._transactions = transactions

    def _generate_agents(self, rng: random.Random, now: int) -> List[Agent]:
        one_year_ago = now - 365 * DAY_SEC
        agents: List[Agent] = []

        for i in range(rng.randint(20, 30)):
            agent_type = rng.choice(GENERATED_AGENT_TYPES)

            # power law transaction counts / volume
            tx_count = int((rng.random() ** 2) * 500) + 10
            volume = Decimal(rng.random() ** 1.5 * 100000).quantize(Decimal("0.01"))

            primary = rng.sample([w[0] for w in INSTRUCTION_WEIGHTS], rng.randint(2, 4))

            agents.append(
                Agent(
                    id=f"agent-{i}",
                    name=_agent_name(rng, agent_type),
                    address=_random_address(rng),
                    type=agent_type,
                    owner=_random_address(rng),
                    created_at=int(one_year_ago + rng.random() * 300 * DAY_SEC),
                    total_transactions=tx_count,
                    success_rate=round(85 + rng.random() * 14, 2),
                    total_volume=volume,
                    avg_gas_used=int(rng.random() * 100000 + 50000),
                    primary_instructions=primary,
                    integrations=PROTOCOLS[: rng.randint(2, 5)],
                    is_active=rng.random() > 0.1,
                    last_activity=int(now - rng.random() * 7 * DAY_SEC),
                )
            )

        logger.info("mock_agents_generated", count=len(agents))
        return agents

    def _generate_transactions(
        self,
        rng: random.Random,
        now: int,
        agents: List[Agent],
    ) -> List[Transaction]:
        one_month_ago = now - 30 * DAY_SEC
        transactions: List[Transaction] = []
        parents: List[Transaction] = []

        for i in range(self.transaction_count):
            instruction, category = _weighted_instruction(rng)
            agent = rng.choice(agents)
            is_success = rng.random() < 0.92
            timestamp = int(one_month_ago + rng.random() * 30 * DAY_SEC)

            batch_id = f"batch-{rng.randrange(100)}" if rng.random() < 0.2 else None

            pipeline = None
            if rng.random() < 0.15:
                steps = rng.randint(2, 4)
                pipeline = [
                    SettlementStep(
                        step=j + 1,
                        action=PIPELINE_ACTIONS[j % len(PIPELINE_ACTIONS)],
                        contract=_random_address(rng),
                        status=(
                            StepStatus.COMPLETED
                            if j < steps - 1 or is_success
                            else StepStatus.FAILED
                        ),
                        gas_used=int(rng.random() * 100000 + 30000),
                        timestamp=timestamp + j * 30,
                    )
                    for j in range(steps)
                ]

            has_children = rng.random() < 0.1 and i < self.transaction_count - 5
            protocol = rng.choice(PROTOCOLS)

            tx = Transaction(
                id=f"tx-{i}",
                tx_hash=_random_tx_hash(rng),
                block_number=5000000 + i * 3,
                block_timestamp=timestamp,
                from_address=agent.address,
                to_address=_random_address(rng),
                value=Decimal(rng.random() ** 2 * 10000).quantize(Decimal("0.0001")),
                gas_used=int(rng.random() * 200000 + 50000),
                gas_price=Decimal(rng.random() * 50 + 10).quantize(Decimal("0.000000001")),
                status=TxStatus.SUCCESS if is_success else TxStatus.FAILED,
                instruction_type=instruction,
                agent_id=agent.id,
                agent_name=agent.name,
                settlement_pipeline=pipeline,
                batch_id=batch_id,
                child_tx_hashes=[] if has_children else None,
                metadata=TransactionMetadata(
                    description=_description(rng, instruction, agent.name),
                    tags=[instruction.value, agent.type.value, category.value],
                    protocol=protocol,
                    category=category,
                    ai_model=rng.choice(AI_MODELS),
                    confidence=round(rng.random() * 0.3 + 0.7, 4),
                    user_intent=rng.choice(USER_INTENTS),
                ),
                execution_time=rng.randint(300, 1499),
                error_reason=None if is_success else rng.choice(ERROR_REASONS),
            )
            transactions.append(tx)
            if has_children:
                parents.append(tx)

        self._link_children(rng, transactions, parents)
        self._link_batches(transactions)

        logger.info(
            "mock_transactions_generated",
            count=len(transactions),
            successful=sum(1 for t in transactions if t.status is TxStatus.SUCCESS),
            failed=sum(1 for t in transactions if t.status is TxStatus.FAILED),
            batched=sum(1 for t in transactions if t.batch_id),
            multi_step=sum(1 for t in transactions if t.settlement_pipeline),
            parents=len(parents),
        )
        return transactions

    @staticmethod
    def _link_children(
        rng: random.Random,
        transactions: List[Transaction],
        parents: List[Transaction],
    ) -> None:
        # children land within one hour after their parent
        for parent in parents:
            wanted = rng.randint(1, 3)
            candidates = [
                t for t in transactions
                if t.parent_tx_hash is None
                and t.id != parent.id
                and parent.block_timestamp < t.block_timestamp < parent.block_timestamp + 3600
            ]
            rng.shuffle(candidates)
            for child in candidates[:wanted]:
                child.parent_tx_hash = parent.tx_hash
                parent.child_tx_hashes.append(child.tx_hash)
                parent.related_transactions.append(child.id)
                child.related_transactions.append(parent.id)

    @staticmethod
    def _link_batches(transactions: List[Transaction]) -> None:
        batches: Dict[str, List[Transaction]] = {}
        for tx in transactions:
            if tx.batch_id:
                batches.setdefault(tx.batch_id, []).append(tx)

        for members in batches.values():
            for tx in members:
                for other in members:
                    if other.id != tx.id and other.id not in tx.related_transactions:
                        tx.related_transactions.append(other.id)


def _random_address(rng: random.Random) -> str:
    return f"0x{rng.getrandbits(160):040x}"


def _random_tx_hash(rng: random.Random) -> str:
    return f"0x{rng.getrandbits(256):064x}"


def _weighted_instruction(rng: random.Random) -> Tuple[InstructionType, TransactionCategory]:
    total = sum(w for _, w, _ in INSTRUCTION_WEIGHTS)
    r = rng.random() * total
    for instruction, weight, category in INSTRUCTION_WEIGHTS:
        r -= weight
        if r <= 0:
            return instruction, category
    return INSTRUCTION_WEIGHTS[0][0], INSTRUCTION_WEIGHTS[0][2]


def _agent_name(rng: random.Random, agent_type: AgentType) -> str:
    base = rng.choice(AGENT_NAMES.get(agent_type, ["Custom Agent"]))
    if rng.random() > 0.7:
        return f"{base} #{rng.randint(1, 999)}"
    return base


def _description(rng: random.Random, instruction: InstructionType, agent_name: str) -> str:
    options = DESCRIPTIONS.get(instruction, ["Transaction executed"])
    return rng.choice(options).format(
        agent=agent_name,
        protocol=rng.choice(PROTOCOLS),
        recipients=rng.randint(2, 51),
    )
