# tests/flows/test_flow_settings.py
import pytest
from pydantic import ValidationError

from src.flows.edge_entries import SPECIAL_EDGE_NAME
from src.flows.settings import FlowSettings


class TestFlowSettings:
    def test_default_values(self):
        settings = FlowSettings()
        assert settings.flows_filename == "logical_edge_flows.json"
        assert settings.special_edge_name == SPECIAL_EDGE_NAME
        assert settings.use_index is True
        assert "S(3) FORMED ONLY" in settings.opposite_enabled_structures

    def test_custom_values(self):
        settings = FlowSettings(special_edge_name="My Edge", use_index=False)
        assert settings.special_edge_name == "My Edge"
        assert settings.use_index is False

    def test_blank_special_edge_name_rejected(self):
        with pytest.raises(ValidationError):
            FlowSettings(special_edge_name="   ")
