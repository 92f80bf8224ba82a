# src/config/settings.py
from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from src.flows.settings import FlowSettings
from src.journal.models import TradeLoggingMode
from src.journal.settings import JournalSettings


class SystemConfig(BaseModel):
    name: str = "TradeVision Journal"
    version: str = "1.0.0"
    mode: TradeLoggingMode = TradeLoggingMode.REAL
    timezone: str = "Asia/Kolkata"


class EnvOverrides(BaseSettings):
    """Values read from ``TRADEVISION_*`` environment variables."""

    model_config = SettingsConfigDict(env_prefix="TRADEVISION_")

    data_dir: Optional[str] = None
    fee_per_order: Optional[float] = None
    mode: Optional[TradeLoggingMode] = None


class Settings(BaseModel):
    system: SystemConfig = Field(default_factory=SystemConfig)
    journal: JournalSettings = Field(default_factory=JournalSettings)
    flows: FlowSettings = Field(default_factory=FlowSettings)

    @classmethod
    def from_yaml(cls, path: Path) -> "Settings":
        """Load settings from YAML file with env var overrides."""
        with open(path) as f:
            data = yaml.safe_load(f) or {}

        return cls.from_dict(data)

    @classmethod
    def from_dict(cls, data: dict) -> "Settings":
        """Build settings from a plain dict, applying env var overrides."""
        data = dict(data)
        env = EnvOverrides()

        journal = dict(data.get("journal") or {})
        if env.data_dir is not None:
            journal["data_dir"] = env.data_dir
        if env.fee_per_order is not None:
            journal["fee_per_order"] = env.fee_per_order
        data["journal"] = journal

        if env.mode is not None:
            system = dict(data.get("system") or {})
            system["mode"] = env.mode
            data["system"] = system

        return cls(**data)
