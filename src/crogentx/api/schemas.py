"""
Request bodies for the CrogentX HTTP API.

Wire keys are camelCase; models also accept the snake_case field names.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class SimulateRequest(BaseModel):
    """POST /api/simulate body."""

    model_config = ConfigDict(populate_by_name=True, coerce_numbers_to_str=True)

    instruction: str = Field(..., min_length=1, description="Instruction name, e.g. transfer or swap")
    agent_id: str = Field(..., alias="agentId", min_length=1, description="Issuing agent id")
    value: str = Field(..., min_length=1, description="Amount in native units, as a decimal string")
    target: str | None = Field(None, description="Target address")
    data: Any = Field(None, description="Opaque call data")


class DebugRequest(BaseModel):
    """POST /api/debug body."""

    model_config = ConfigDict(populate_by_name=True)

    transaction_hash: str = Field(..., alias="transactionHash", min_length=1, description="Transaction hash")
