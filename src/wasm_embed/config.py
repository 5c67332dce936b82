"""Engine configuration read from the environment.

All settings can be overridden via environment variables with the
WASM_EMBED_ prefix, e.g. WASM_EMBED_OPT_LEVEL=none.
"""

from enum import Enum
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class OptLevel(str, Enum):
    """Code generator optimization levels."""

    NONE = "none"
    SPEED = "speed"
    SPEED_AND_SIZE = "speed_and_size"


class EngineSettings(BaseSettings):
    """Settings used to build the underlying WebAssembly engine."""

    model_config = SettingsConfigDict(
        env_prefix="WASM_EMBED_", env_file=".env", extra="ignore"
    )

    OPT_LEVEL: OptLevel = Field(
        default=OptLevel.SPEED,
        description="Optimization level used when compiling modules",
    )
    DEBUG_INFO: bool = Field(
        default=False,
        description="Emit native debug information for compiled code",
    )
    CONSUME_FUEL: bool = Field(
        default=False,
        description="Meter execution with fuel; calls trap when it runs out",
    )
    FUEL: int = Field(
        default=0,
        ge=0,
        description="Fuel granted to each new instance when CONSUME_FUEL is on",
    )


_settings: Optional[EngineSettings] = None


def get_settings() -> EngineSettings:
    """Get or create the singleton settings instance."""
    global _settings
    if _settings is None:
        _settings = EngineSettings()
    return _settings


def reset_settings() -> None:
    """Reset settings (useful for testing)."""
    global _settings
    _settings = None
