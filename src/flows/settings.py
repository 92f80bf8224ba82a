# src/flows/settings.py
"""Settings for Logical Edge Flow matching."""
from pydantic import BaseModel, Field, field_validator

from src.flows.edge_entries import OPPOSITE_ENABLED_STRUCTURES, SPECIAL_EDGE_NAME


class FlowSettings(BaseModel):
    """Configuration for the condition matcher.

    Attributes:
        flows_filename: File name of a flow export to load, inside the
            journal data directory.
        special_edge_name: Edge whose entries depend on the T3 condition.
        use_index: Pre-index flows by their enum conditions.
        opposite_enabled_structures: Opposite-side structures that allow
            picking an opposite edge.
    """

    flows_filename: str = "logical_edge_flows.json"
    special_edge_name: str = SPECIAL_EDGE_NAME
    use_index: bool = True
    opposite_enabled_structures: list[str] = Field(
        default_factory=lambda: list(OPPOSITE_ENABLED_STRUCTURES)
    )

    @field_validator("special_edge_name")
    @classmethod
    def validate_special_edge_name(cls, v: str) -> str:
        """Reject a blank special edge name."""
        if not v.strip():
            raise ValueError("special_edge_name must not be blank")
        return v
