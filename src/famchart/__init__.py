"""Public API for famchart."""
from .graph import build_graph, resolve
from .models import Entity, Relationships
from .parsing import load_records

__all__ = ["Entity", "Relationships", "build_graph", "load_records", "resolve"]
