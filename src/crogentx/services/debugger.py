from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal
from typing import List

from crogentx.core.dto import DebugIssue, DebugReport, GasAnalysis, TraceStep, ValueAnalysis
from crogentx.core.enums import InstructionType, IssueSeverity, StepStatus, TxStatus
from crogentx.core.models import Transaction

POOR_GAS = 500000
FAIR_GAS = 300000
HIGH_GAS_PRICE = Decimal("10000")
LARGE_VALUE = Decimal("10000")

ZERO_VALUE_SENSITIVE = (InstructionType.PAYMENT,)


class TransactionDebugger:
    """
    Explains a recorded transaction: what went wrong (if anything), an
    execution trace reconstructed from its status, and gas / value notes.
    """

    def analyze(self, tx: Transaction) -> DebugReport:
        issues: List[DebugIssue] = []
        trace: List[TraceStep] = []

        if tx.status is TxStatus.FAILED:
            issues.append(DebugIssue(IssueSeverity.CRITICAL, "Transaction failed - check error details below"))
            if tx.gas_used > POOR_GAS:
                issues.append(DebugIssue(IssueSeverity.WARNING, "High gas usage may indicate inefficient execution"))
            trace.append(TraceStep("1. Transaction submitted", "success", f"Submitted to network at block {tx.block_number}"))
            trace.append(TraceStep("2. Gas estimation", "success", f"Estimated gas: {tx.gas_used}"))
            trace.append(TraceStep("3. Execution", "failed", tx.error_reason or "Execution reverted"))

        elif tx.status is TxStatus.PENDING:
            issues.append(DebugIssue(IssueSeverity.INFO, "Transaction is pending confirmation"))
            trace.append(TraceStep("1. Transaction submitted", "success", "Waiting for network confirmation"))
            trace.append(TraceStep("2. Mempool", "pending", "Transaction in mempool"))

        else:
            trace.append(TraceStep("1. Transaction submitted", "success", f"Block {tx.block_number}"))
            trace.append(TraceStep("2. Gas used", "success", f"{tx.gas_used} gas"))
            trace.append(TraceStep("3. Execution", "success", "Transaction executed successfully"))
            if tx.settlement_pipeline:
                done = sum(1 for s in tx.settlement_pipeline if s.status is StepStatus.COMPLETED)
                trace.append(TraceStep(
                    "4. Settlement",
                    "success",
                    f"Settled: {done}/{len(tx.settlement_pipeline)} pipeline steps completed",
                ))

        return DebugReport(
            status=tx.status.value,
            issues=issues,
            trace=trace,
            gas=analyze_gas(tx),
            value=analyze_value(tx),
            recommendations=_recommendations(tx, issues),
            analyzed_at=datetime.now(timezone.utc).isoformat(),
        )


def analyze_gas(tx: Transaction) -> GasAnalysis:
    used = Decimal(tx.gas_used)
    efficiency = "optimal"
    suggestions: List[str] = []

    if tx.gas_used > POOR_GAS:
        efficiency = "poor"
        suggestions.append("Consider breaking transaction into smaller operations")
    elif tx.gas_used > FAIR_GAS:
        efficiency = "fair"
        suggestions.append("Gas usage is moderate - optimization possible")

    if tx.gas_price > HIGH_GAS_PRICE:
        suggestions.append("High gas price - consider waiting for lower network congestion")

    return GasAnalysis(
        used=used,
        price=tx.gas_price,
        total=used * tx.gas_price,
        efficiency=efficiency,
        suggestions=suggestions,
    )


def analyze_value(tx: Transaction) -> ValueAnalysis:
    warnings: List[str] = []
    if tx.value == 0 and tx.instruction_type in ZERO_VALUE_SENSITIVE:
        warnings.append("Zero value transfer - verify if intentional")
    if tx.value > LARGE_VALUE:
        warnings.append("Large value transfer - double check recipient")
    return ValueAnalysis(amount=tx.value, instruction_type=tx.instruction_type.value, warnings=warnings)


def _recommendations(tx: Transaction, issues: List[DebugIssue]) -> List[str]:
    out: List[str] = []
    if tx.status is TxStatus.FAILED:
        out.append("Review transaction parameters and try again")
        out.append("Check agent balance and permissions")
        out.append("Verify target contract is correct")
    if tx.status is TxStatus.PENDING:
        out.append("Wait for network confirmation (typically 1-2 blocks)")
        out.append("Check transaction status on the Cronos explorer")
    if any(i.severity is IssueSeverity.CRITICAL for i in issues):
        out.append("Address critical issues before retrying")
    return out
