from __future__ import annotations

import random
from datetime import datetime, timezone
from decimal import Decimal
from typing import Dict, List, Optional

from crogentx.config import settings
from crogentx.core.dto import GasEstimate, SimulationAnalysis, SimulationRequest, SimulationResult
from crogentx.core.parsing import to_decimal
from crogentx.logging.logger import get_logger

logger = get_logger(__name__)

GWEI_PER_NATIVE = Decimal("1000000000")

BASE_GAS: Dict[str, int] = {
    "transfer": 21000,
    "swap": 150000,
    "approve": 45000,
    "stake": 120000,
    "borrow": 250000,
    "repay": 180000,
    "claim": 80000,
    "delegate": 60000,
    "bridge": 200000,
    "wrap": 50000,
    "unwrap": 45000,
    "mint": 100000,
    "burn": 75000,
    "vote": 65000,
    "execute": 300000,
}
DEFAULT_GAS = 100000
GAS_VARIANCE = 20000

VALUE_TRANSFER_OPS = ("transfer", "swap", "stake")
TARGET_REQUIRED_OPS = ("transfer", "approve", "delegate")

LARGE_VALUE = Decimal("10000")
HIGH_GAS = 500000


class TransactionSimulator:
    """
    Heuristic pre-flight check for an x402 instruction.

    Nothing is sent to the chain: gas comes from a per-instruction table plus
    random variance, and issues/warnings come from a handful of value, gas and
    target checks. Pass a seeded random.Random for reproducible results.
    """

    def __init__(self, rng: Optional[random.Random] = None) -> None:
        self.rng = rng or random.Random()

    def simulate(self, req: SimulationRequest) -> SimulationResult:
        instruction = req.instruction
        estimated_gas = BASE_GAS.get(instruction, DEFAULT_GAS) + self.rng.randrange(GAS_VARIANCE)
        gas_price = settings.SIMULATION_GAS_PRICE_GWEI

        cost_native = (Decimal(estimated_gas) * Decimal(gas_price) / GWEI_PER_NATIVE).quantize(Decimal("0.000001"))
        cost_usd = (cost_native * settings.NATIVE_USD_PRICE).quantize(Decimal("0.01"))

        issues: List[str] = []
        warnings: List[str] = []

        value = to_decimal(req.value)
        if value == 0 and instruction in VALUE_TRANSFER_OPS:
            issues.append("Transaction value is 0 for value-transfer operation")
        if value > LARGE_VALUE:
            warnings.append("Large transaction value - verify amount")
        if estimated_gas > HIGH_GAS:
            warnings.append("High gas usage detected - consider optimizing")
        if instruction in TARGET_REQUIRED_OPS and not req.target:
            issues.append("Target address required for this operation")

        probability = 0.95 - 0.15 * len(issues) - 0.05 * len(warnings)
        probability = max(0.1, min(1.0, probability))

        result = SimulationResult(
            instruction=instruction,
            agent_id=req.agent_id,
            value=req.value,
            gas=GasEstimate(
                estimated=estimated_gas,
                price=gas_price,
                cost_native=cost_native,
                cost_usd=cost_usd,
            ),
            analysis=SimulationAnalysis(
                success_probability=probability,
                execution_time_ms=2000 + self.rng.randrange(3000),
                issues=issues,
                warnings=warnings,
            ),
            recommendations=recommendations_for(instruction, issues, warnings),
            simulated_at=datetime.now(timezone.utc).isoformat(),
        )
        logger.info(
            "transaction_simulated",
            instruction=instruction,
            agent_id=req.agent_id,
            issues=len(issues),
            warnings=len(warnings),
        )
        return result


def recommendations_for(instruction: str, issues: List[str], warnings: List[str]) -> List[str]:
    out: List[str] = []
    if issues:
        out.append("Fix critical issues before executing")
    if warnings:
        out.append("Review warnings and proceed with caution")
    if instruction in ("swap", "borrow"):
        out.append("Consider setting slippage tolerance")
    if instruction in ("stake", "delegate"):
        out.append("Verify lock-up period before committing")
    if not issues and not warnings:
        out.append("Transaction looks good - safe to execute")
    return out
