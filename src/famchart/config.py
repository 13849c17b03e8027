"""Tunable constants for layout, connector geometry and styling."""

from dataclasses import dataclass, fields

OVERLAY_MODES = ("document", "fixed")


@dataclass(frozen=True)
class ConnectorStyle:
    color: str
    width: float
    alpha: float = 1.0
    glow: float = 0.0  # extra stroke width of the soft halo, 0 for none
    glow_color: str | None = None


ACTIVE_STYLE = ConnectorStyle(color="#FFD700", width=3.0, glow=10.0, glow_color="#FFD700")
INACTIVE_STYLE = ConnectorStyle(color="#FFFFFF", width=2.0, alpha=0.2)
LINEAGE_STYLE = ConnectorStyle(color="#8b7355", width=2.5, glow=5.0, glow_color="#8b7355")


@dataclass
class ChartConfig:
    overlay: str = "document"
    snap_threshold: float = 20.0
    radius_inset: float = 2.0
    curve_steps: int = 40
    curve_jitter: float = 20.0
    reveal_buffer: float = 100.0
    progressive_reveal: bool = True
    frame_interval_ms: int = 16
    init_delay_ms: int = 500
    scroll_step: float = 60.0
    viewport_width: int = 1200
    viewport_height: int = 800
    seed: int | None = None
    active_style: ConnectorStyle = ACTIVE_STYLE
    inactive_style: ConnectorStyle = INACTIVE_STYLE
    lineage_style: ConnectorStyle = LINEAGE_STYLE
    background: str = "#1b1712"

    def __post_init__(self):
        if self.overlay not in OVERLAY_MODES:
            raise ValueError(f"Unknown overlay mode '{self.overlay}', expected one of {OVERLAY_MODES}")
        if self.curve_steps < 1:
            raise ValueError("curve_steps must be at least 1")

    @property
    def document_space(self) -> bool:
        return self.overlay == "document"

    @classmethod
    def from_args(cls, args) -> "ChartConfig":
        """Build a config from an argparse namespace; options left as None keep their defaults."""
        names = {f.name for f in fields(cls)}
        values = {
            name: value
            for name, value in vars(args).items()
            if name in names and value is not None
        }
        return cls(**values)
