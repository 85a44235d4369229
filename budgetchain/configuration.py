"""Mini README: Centralised configuration models and helpers for budgetchain.

Structure:
    * BudgetchainSettings - Pydantic model describing runtime configuration.
    * get_settings - cached accessor for environment-aware settings.

Usage:
    Import ``get_settings`` to read environment variables (prefixed with
    ``BUDGETCHAIN_``), select the ledger gateway, and bound ledger gas and
    timeouts. The configuration is cached so validation runs once per process.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field, validator
from pydantic_settings import BaseSettings


class BudgetchainSettings(BaseSettings):
    """Runtime configuration for the budgetchain service."""

    environment: str = Field(
        "development",
        description="Environment label controlling debug toggles and logging levels.",
    )
    log_level: str = Field("INFO", description="Root logging level name.")
    interface_host: str = Field(
        "0.0.0.0",
        description="Network interface for the HTTP service to bind to.",
    )
    interface_port: int = Field(
        8000,
        description="Port the HTTP service exposes.",
        ge=1,
        le=65535,
    )
    ledger_gateway: str = Field(
        "simulated",
        description="Identifier of the ledger gateway adapter ('simulated' or 'web3').",
    )
    ledger_provider_url: str = Field(
        "http://127.0.0.1:7545",
        description="JSON-RPC endpoint of the ledger node.",
    )
    contract_artifacts_directory: Path = Field(
        Path("blockchain/build/contracts"),
        description="Directory holding the compiled contract artifacts (ABI and network addresses).",
    )
    ledger_gas_headroom: int = Field(
        100_000,
        description="Gas added on top of the node's estimate before sending.",
        ge=0,
    )
    ledger_gas_ceiling: int = Field(
        6_000_000,
        description="Hard upper bound on the gas attached to any ledger write.",
        gt=0,
    )
    ledger_timeout_seconds: float = Field(
        30.0,
        description="Timeout for ledger RPC requests and receipt polling.",
        gt=0,
    )
    ledger_amount_decimals: int = Field(
        18,
        description="Decimal places of the ledger's native integer amount unit.",
        ge=0,
    )
    officials_file: Optional[Path] = Field(
        None,
        description=(
            "Optional JSON roster of officials used to resolve request actors."
            " Leave unset to use the built-in demo roster."
        ),
    )

    class Config:
        env_prefix = "BUDGETCHAIN_"
        env_file = ".env"
        case_sensitive = False

    @validator("contract_artifacts_directory", "officials_file", pre=True)
    def expand_path(cls, value: Optional[str | Path]) -> Optional[Path]:
        """Expand user directories in configured paths."""

        if value is None or value == "":
            return None
        return Path(value).expanduser()

    @validator("ledger_gateway")
    def normalise_gateway(cls, value: str) -> str:
        return value.strip().lower()


@lru_cache()
def get_settings() -> BudgetchainSettings:
    """Return cached settings, ensuring consistent configuration across modules."""

    return BudgetchainSettings()
