from __future__ import annotations

from enum import Enum


class InstructionType(str, Enum):
    PAYMENT = "payment"
    SETTLEMENT = "settlement"
    SWAP = "swap"
    STAKE = "stake"
    LIQUIDITY_ADD = "liquidity_add"
    LIQUIDITY_REMOVE = "liquidity_remove"
    BATCH_PAYMENT = "batch_payment"
    CONDITIONAL_PAYMENT = "conditional_payment"
    RECURRING_PAYMENT = "recurring_payment"
    CROSS_CHAIN_BRIDGE = "cross_chain_bridge"
    NFT_MINT = "nft_mint"
    NFT_TRANSFER = "nft_transfer"
    CONTRACT_CALL = "contract_call"
    MULTI_SIG = "multi_sig"
    GOVERNANCE_VOTE = "governance_vote"


class AgentType(str, Enum):
    TRADING_BOT = "trading_bot"
    PAYMENT_PROCESSOR = "payment_processor"
    LIQUIDITY_MANAGER = "liquidity_manager"
    PORTFOLIO_REBALANCER = "portfolio_rebalancer"
    YIELD_OPTIMIZER = "yield_optimizer"
    NFT_SNIPER = "nft_sniper"
    GOVERNANCE_DELEGATE = "governance_delegate"
    BRIDGE_OPERATOR = "bridge_operator"
    CUSTOM = "custom"


class TransactionCategory(str, Enum):
    DEFI = "defi"
    NFT = "nft"
    PAYMENT = "payment"
    BRIDGE = "bridge"
    GOVERNANCE = "governance"
    GAMING = "gaming"
    SOCIAL = "social"


class TxStatus(str, Enum):
    SUCCESS = "success"
    FAILED = "failed"
    PENDING = "pending"


class StepStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


class NodeType(str, Enum):
    TRANSACTION = "transaction"
    AGENT = "agent"
    CONTRACT = "contract"
    WALLET = "wallet"


class EdgeType(str, Enum):
    FLOW = "flow"
    TRIGGER = "trigger"
    BATCH = "batch"
    PIPELINE = "pipeline"


class IssueSeverity(str, Enum):
    CRITICAL = "critical"
    WARNING = "warning"
    INFO = "info"
