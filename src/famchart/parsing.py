"""Loading person records from JSON or GEDCOM files."""

from pathlib import Path
import json
import logging

from ged4py import GedcomReader

from .graph import build_graph, compute_generations
from .models import Entity

logger = logging.getLogger(__name__)


def normalize_xref(xref_id: str) -> str:
    """Turn a GEDCOM xref like '@I_347421849@' into a bare id 'I_347421849'."""
    ident = xref_id.strip().strip("@")
    if not ident:
        raise ValueError(f"Empty xref id: {xref_id!r}")
    return ident


def _as_id_list(value, field_name: str, entity_id: str) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [part.strip() for part in value.split(",") if part.strip()]
    if not isinstance(value, list):
        raise ValueError(f"Field '{field_name}' of '{entity_id}' must be a list of ids")
    return [str(v) for v in value]


def entity_from_record(record: dict) -> Entity:
    """Build an Entity from one JSON person record (camelCase keys as exported by the web chart)."""
    if not isinstance(record, dict):
        raise ValueError(f"Person record must be an object: {record!r}")
    if "id" not in record or "name" not in record:
        raise ValueError(f"Person record needs 'id' and 'name': {record!r}")

    entity_id = str(record["id"])
    parents = _as_id_list(record.get("parents"), "parents", entity_id)
    if len(parents) > 2:
        raise ValueError(f"'{entity_id}' lists {len(parents)} parents; at most 2 are allowed")

    return Entity(
        id=entity_id,
        name=str(record["name"]),
        birth_date=record.get("birthDate") or None,
        death_date=record.get("deathDate") or None,
        ledigname=record.get("ledigname") or None,
        generation=int(record.get("generation") or 0),
        photo=record.get("photo") or None,
        parents=parents,
        partners=_as_id_list(record.get("partners"), "partners", entity_id),
    )


def load_json(filepath: Path) -> list[Entity]:
    """Load person records from a JSON list, or an object holding the list under 'people'."""
    with open(filepath, encoding="utf-8") as fh:
        data = json.load(fh)

    if isinstance(data, dict):
        data = data.get("people")
    if not isinstance(data, list):
        raise ValueError(f"{filepath}: expected a list of person records")

    entities = [entity_from_record(record) for record in data]

    # Records without a generation take their depth from the parent links
    missing = {e.id for e, record in zip(entities, data) if record.get("generation") is None}
    if missing:
        generations = compute_generations(build_graph(entities))
        for entity in entities:
            if entity.id in missing:
                entity.generation = generations.get(entity.id, 0)
    return entities


def extract_name(indi) -> str:
    """Extract the full name from an individual record."""
    name_rec = indi.sub_tag("NAME")
    if name_rec is None or name_rec.value is None:
        return "Unknown"

    name_value = name_rec.value

    # ged4py returns NAME as tuple: (given, surname, suffix)
    if isinstance(name_value, tuple):
        parts = [p for p in name_value if p]
        return " ".join(parts) if parts else "Unknown"

    return str(name_value).replace("/", "").strip() or "Unknown"


def extract_event_date(indi, tag: str) -> str | None:
    """Extract the date of an event tag (BIRT, DEAT) as a free-form string."""
    date_rec = indi.sub_tag(f"{tag}/DATE")
    if date_rec is None or not date_rec.value:
        return None
    # ged4py may return DateValue objects
    return str(date_rec.value)


def extract_photo(indi) -> str | None:
    file_rec = indi.sub_tag("OBJE/FILE")
    if file_rec is None or not file_rec.value:
        return None
    return str(file_rec.value)


def load_gedcom(filepath: Path) -> list[Entity]:
    """
    Extract entities from a GEDCOM file.

    FAM records make husband and wife partners of each other and parents of
    every child. Generations are computed from the resulting parent links.
    """
    entities: dict[str, Entity] = {}

    with GedcomReader(str(filepath)) as reader:
        # First pass: individuals
        for rec in reader.records0("INDI"):
            if rec.xref_id is None:
                continue
            indi_id = normalize_xref(rec.xref_id)
            entities[indi_id] = Entity(
                id=indi_id,
                name=extract_name(rec),
                birth_date=extract_event_date(rec, "BIRT"),
                death_date=extract_event_date(rec, "DEAT"),
                photo=extract_photo(rec),
            )

        # Second pass: families
        for rec in reader.records0("FAM"):
            husb = rec.sub_tag("HUSB")
            wife = rec.sub_tag("WIFE")
            spouses = [normalize_xref(s.xref_id) for s in (husb, wife) if s and s.xref_id]
            spouses = [s for s in spouses if s in entities]

            if len(spouses) == 2:
                a, b = spouses
                if b not in entities[a].partners:
                    entities[a].partners.append(b)
                if a not in entities[b].partners:
                    entities[b].partners.append(a)

            for child in rec.sub_tags("CHIL"):
                if not child.xref_id:
                    continue
                child_id = normalize_xref(child.xref_id)
                if child_id not in entities:
                    logger.warning("Family %s lists unknown child %s", rec.xref_id, child_id)
                    continue
                for parent_id in spouses:
                    if parent_id not in entities[child_id].parents:
                        entities[child_id].parents.append(parent_id)

    records = list(entities.values())
    generations = compute_generations(build_graph(records))
    for entity in records:
        entity.generation = generations.get(entity.id, 0)
    return records


def load_records(filepath: Path) -> list[Entity]:
    """Load entities, choosing the reader by file extension."""
    suffix = filepath.suffix.lower()
    if suffix == ".json":
        return load_json(filepath)
    if suffix in (".ged", ".gedcom"):
        return load_gedcom(filepath)
    raise ValueError(f"Unsupported record file type: {filepath.suffix or filepath.name}")


def filtered_out_ids(entities: list[Entity], name_contains: str | None) -> set[str]:
    """Ids of entities hidden by the load-time name filter (no filter hides nobody)."""
    if not name_contains:
        return set()
    return {e.id for e in entities if name_contains not in e.name}
