"""Central configuration for the storefront controller service."""
from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Dict, Optional

from pydantic import BaseModel, Field, SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

ROOT_DIR = Path(__file__).resolve().parents[2]
DEFAULT_ENV_FILE = ROOT_DIR / ".env"


# ============================================================
# Nested Configuration Classes
# ============================================================

class MotionSettings(BaseModel):
    """Shake classification and motion permission configuration."""
    acc_threshold: float = Field(25.0, description="Linear acceleration magnitude that counts as a shake (~2.5 g)")
    gravity_threshold: float = Field(800.0, description="Empirical speed trigger level for gravity-inclusive samples")
    speed_scale: float = Field(10000.0, description="Multiplier applied to the fallback delta-sum / dt heuristic")
    throttle_ms: int = Field(100, description="Minimum gap between fallback evaluations (ms)")
    startup_guard_ms: int = Field(2000, description="Ignore all samples for this long after startup (ms)")
    requires_permission: bool = Field(False, description="Host must grant motion access before samples are read")
    permission_timeout_s: float = Field(30.0, description="Pending permission requests are treated as denied after this")


class SelectionSettings(BaseModel):
    """Chef-decides shuffle timing."""
    ticks: int = Field(20, description="Number of shuffle displays before settling")
    tick_interval_ms: int = Field(80, description="Delay between shuffle displays (ms)")
    settle_ms: int = Field(800, description="How long the winner is held before delivery (ms)")
    seed: Optional[int] = Field(None, description="Seed for the shuffle RNG (None = nondeterministic)")


class IdleSettings(BaseModel):
    """Idle attention hint configuration."""
    quiet_period_ms: int = Field(10000, description="Quiet period before the idle hint is shown (ms)")


class AdminSettings(BaseModel):
    """Owner mode configuration."""
    pin: SecretStr = Field(SecretStr("812356"), description="Owner PIN")
    pin_length: int = Field(6, description="Number of digits in the owner PIN")
    storage_key: str = Field("jp_specials", description="Key holding the custom specials list")

    @model_validator(mode="after")
    def _check_pin(self) -> "AdminSettings":
        secret = self.pin.get_secret_value()
        if len(secret) != self.pin_length or not secret.isdigit():
            raise ValueError(f"ADMIN__PIN must be exactly {self.pin_length} digits")
        return self


class ViewSettings(BaseModel):
    """Host view timers mirrored by the controller."""
    add_confirm_ms: int = Field(1500, description="Detail view stays open this long after 'add to order' (ms)")
    order_reset_ms: int = Field(300, description="Delay before the 'order placed' state resets after closing the cart (ms)")


class PerformanceSettings(BaseModel):
    """Queue tuning."""
    ui_event_queue_size: int = Field(16, description="Max buffered UI events per subscriber")


class Settings(BaseSettings):
    """Environment-driven settings for controller subsystems."""

    # Controller HTTP Server
    controller_host: str = Field("0.0.0.0", description="Host interface for local FastAPI server")
    controller_port: int = Field(5000, description="Port for FastAPI server")

    # Data
    data_directory: Path = Field(ROOT_DIR / "data", description="Directory holding the persisted key-value store")
    menu_catalog_path: Optional[Path] = Field(None, description="JSON file with the static menu categories")

    # Logging
    log_level: str = Field("INFO", description="Logging level")
    log_directory: Path = Field(ROOT_DIR / "logs", description="Log directory path")
    log_retention_days: int = Field(14, description="Number of log files to retain")
    log_module_levels: Dict[str, str] = Field(
        default_factory=dict,
        description="Per-logger level overrides as JSON, e.g. {\"storefront.app.sensors\": \"DEBUG\"}",
    )

    # Nested Configuration Objects
    motion: MotionSettings = Field(default_factory=MotionSettings, description="Shake detection settings")
    selection: SelectionSettings = Field(default_factory=SelectionSettings, description="Shuffle timing settings")
    idle: IdleSettings = Field(default_factory=IdleSettings, description="Idle hint settings")
    admin: AdminSettings = Field(default_factory=AdminSettings, description="Owner mode settings")
    views: ViewSettings = Field(default_factory=ViewSettings, description="Detail/cart view timers")
    performance: PerformanceSettings = Field(default_factory=PerformanceSettings, description="Performance tuning")

    model_config = SettingsConfigDict(
        env_file=str(DEFAULT_ENV_FILE),
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    @property
    def store_path(self) -> Path:
        return Path(self.data_directory) / "storefront-store.json"


@lru_cache()
def get_settings(override_env_file: Optional[Path] = None) -> Settings:
    """Cached Settings instance; accepts optional env override for tests."""

    if override_env_file:
        return Settings(_env_file=str(override_env_file))
    return Settings()
