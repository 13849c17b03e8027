"""Data classes for family chart entities and derived geometry."""

from dataclasses import dataclass, field
import re


@dataclass
class Entity:
    id: str
    name: str
    birth_date: str | None = None  # free-form, e.g. "12.03.1921" or "ABT 1850"
    death_date: str | None = None
    ledigname: str | None = None  # maiden name
    generation: int = 0
    photo: str | None = None
    parents: list[str] = field(default_factory=list)
    partners: list[str] = field(default_factory=list)

    @property
    def display_name(self) -> str:
        """Name as shown on a card: a cross for the deceased, maiden name in parentheses."""
        label = self.name
        if self.death_date:
            label += " †"
        if self.ledigname:
            label += f" ({self.ledigname})"
        return label

    @property
    def year_span(self) -> str:
        span = extract_year(self.birth_date)
        death_year = extract_year(self.death_date)
        if death_year:
            span += f" - {death_year}"
        return span

    @property
    def initials(self) -> str:
        return "".join(part[0] for part in self.name.split()[:2])


def extract_year(date_str: str | None) -> str:
    """Return the first 4-digit year in a free-form date, or the string itself if none."""
    if not date_str:
        return ""
    match = re.search(r"\d{4}", date_str)
    return match.group(0) if match else date_str


@dataclass
class Relationships:
    partners: list[str] = field(default_factory=list)
    parents: list[str] = field(default_factory=list)
    children: list[str] = field(default_factory=list)
    siblings: list[str] = field(default_factory=list)

    def is_empty(self) -> bool:
        return not (self.partners or self.parents or self.children or self.siblings)


@dataclass(frozen=True)
class Point:
    x: float
    y: float

    def offset(self, dx: float, dy: float) -> "Point":
        return Point(self.x + dx, self.y + dy)


@dataclass(frozen=True)
class Rect:
    left: float
    top: float
    width: float
    height: float

    @property
    def right(self) -> float:
        return self.left + self.width

    @property
    def bottom(self) -> float:
        return self.top + self.height

    @property
    def center(self) -> Point:
        return Point(self.left + self.width / 2, self.top + self.height / 2)

    @property
    def top_center(self) -> Point:
        return Point(self.left + self.width / 2, self.top)

    @property
    def bottom_center(self) -> Point:
        return Point(self.left + self.width / 2, self.bottom)

    def is_empty(self) -> bool:
        return self.width == 0 and self.height == 0

    def contains(self, x: float, y: float) -> bool:
        return self.left <= x <= self.right and self.top <= y <= self.bottom

    def offset(self, dx: float, dy: float) -> "Rect":
        return Rect(self.left + dx, self.top + dy, self.width, self.height)


@dataclass
class Connector:
    kind: str  # "partner" or "lineage"
    entity_ids: tuple[str, ...]
    points: list[Point]
    active: bool = False
    reached: bool = False
