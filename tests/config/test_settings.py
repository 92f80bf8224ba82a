# tests/config/test_settings.py
import pytest
from pydantic import ValidationError

from src.journal.models import PeriodType, TradeLoggingMode


class TestSettings:
    def test_load_settings_from_yaml(self, tmp_path):
        config_content = """
system:
  name: "Test Journal"
  mode: "theoretical"

journal:
  data_dir: "/tmp/journal"
  fee_per_order: 20
  default_period: "daily"
  week_start_day: "Sunday"

flows:
  use_index: false
"""
        config_file = tmp_path / "settings.yaml"
        config_file.write_text(config_content)

        from src.config.settings import Settings
        settings = Settings.from_yaml(config_file)

        assert settings.system.name == "Test Journal"
        assert settings.system.mode == TradeLoggingMode.THEORETICAL
        assert settings.journal.data_dir == "/tmp/journal"
        assert settings.journal.fee_per_order == 20.0
        assert settings.journal.default_period == PeriodType.DAILY
        assert settings.journal.week_start_index == 6
        assert settings.flows.use_index is False

    def test_settings_defaults(self, tmp_path):
        config_file = tmp_path / "settings.yaml"
        config_file.write_text("")

        from src.config.settings import Settings
        settings = Settings.from_yaml(config_file)

        assert settings.system.name == "TradeVision Journal"
        assert settings.system.mode == TradeLoggingMode.REAL
        assert settings.journal.fee_per_order == 30.0
        assert settings.journal.backup_filename == "tradevision_backup.json"
        assert settings.flows.use_index is True

    def test_env_override(self, tmp_path, monkeypatch):
        config_content = """
journal:
  data_dir: "from-yaml"
  fee_per_order: 20
"""
        config_file = tmp_path / "settings.yaml"
        config_file.write_text(config_content)

        monkeypatch.setenv("TRADEVISION_DATA_DIR", "from-env")
        monkeypatch.setenv("TRADEVISION_FEE_PER_ORDER", "45")
        monkeypatch.setenv("TRADEVISION_MODE", "both")

        from src.config.settings import Settings
        settings = Settings.from_yaml(config_file)

        assert settings.journal.data_dir == "from-env"
        assert settings.journal.fee_per_order == 45.0
        assert settings.system.mode == TradeLoggingMode.BOTH

    def test_invalid_journal_section_rejected(self):
        from src.config.settings import Settings

        with pytest.raises(ValidationError):
            Settings.from_dict({"journal": {"fee_per_order": -1}})
