"""
Roster loading for JSON-defined households.

A roster is a JSON list (or an object with an ``agents`` list) of devices to
register with the orchestrator:

```json
[
  {
    "agent_id": "thermostat",
    "position": {"x": 0, "y": 0, "z": 0},
    "personality": {"primary_traits": ["anxious"], "socialness": 0.4, ...}
  },
  {"agent_id": "speaker", "archetype": "eager_helper"}
]
```

``personality`` follows ``PersonalityProfile``. ``archetype`` names one of the
``PersonalityArchetypes`` factories and may be combined with ``personality``
overrides. Out-of-range scalars are clamped by the schema, not rejected.

Usage:
    loader = RosterLoader()
    entries = loader.load("smart_home")
    orchestrator.add_roster(entries)
"""

import json
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, Field, ValidationError

from .config import Config
from .personality import PersonalityArchetypes
from .schemas import PersonalityProfile, Position


class RosterValidationError(Exception):
    """Raised when a roster file cannot be turned into devices."""

    def __init__(self, *, path: Union[str, Path], reason: str) -> None:
        self.path = str(path)
        self.reason = reason
        message = (
            f"Invalid roster {self.path}: {reason}\n\n"
            "Remediation tips:\n"
            "  - Each entry needs an 'agent_id' and a 'personality' or 'archetype'\n"
            "  - Agent ids must be unique within a roster\n"
            "  - Archetype names match PersonalityArchetypes methods, e.g. 'eager_helper'"
        )
        super().__init__(message)


class RosterEntry(BaseModel):
    agent_id: str = Field(..., min_length=1)
    position: Position = Field(default_factory=Position)
    personality: PersonalityProfile = Field(default_factory=PersonalityProfile)


def _archetype(name: str) -> Optional[PersonalityProfile]:
    factory = getattr(PersonalityArchetypes, name, None)
    if factory is None or name.startswith("_") or not callable(factory):
        return None
    return factory()


class RosterLoader:
    """Load and validate rosters from a directory of JSON files.

    Default directory is ``Config.ROSTERS_DIR`` ({PROJECT_ROOT}/examples/rosters).
    """

    def __init__(self, rosters_dir: Optional[Path] = None):
        self.rosters_dir = rosters_dir or Config.ROSTERS_DIR

    def load(self, roster_name: str) -> List[RosterEntry]:
        """Load ``{roster_name}.json`` from the rosters directory.

        Raises:
            FileNotFoundError: If the roster file does not exist
            RosterValidationError: If the roster is malformed
        """
        return load_roster(self.rosters_dir / f"{roster_name}.json")

    def list_rosters(self) -> List[str]:
        if not self.rosters_dir.exists():
            return []
        return sorted(p.stem for p in self.rosters_dir.glob("*.json"))


def parse_roster(data: Any, source: Union[str, Path] = "<memory>") -> List[RosterEntry]:
    """Validate already-decoded roster data."""
    if isinstance(data, dict):
        data = data.get("agents")
    if not isinstance(data, list):
        raise RosterValidationError(path=source, reason="expected a list of agents")
    if not data:
        raise RosterValidationError(path=source, reason="roster must contain at least one agent")

    entries: List[RosterEntry] = []
    seen = set()
    for index, raw in enumerate(data):
        if not isinstance(raw, dict):
            raise RosterValidationError(path=source, reason=f"entry {index} is not an object")

        fields: Dict[str, Any] = dict(raw)
        archetype = fields.pop("archetype", None)
        if archetype is not None:
            base = _archetype(str(archetype))
            if base is None:
                raise RosterValidationError(path=source, reason=f"entry {index}: unknown archetype '{archetype}'")
            merged = base.model_dump()
            merged.update(fields.get("personality") or {})
            fields["personality"] = merged

        try:
            entry = RosterEntry.model_validate(fields)
        except ValidationError as exc:
            raise RosterValidationError(path=source, reason=f"entry {index}: {exc}") from exc

        if entry.agent_id in seen:
            raise RosterValidationError(path=source, reason=f"duplicate agent_id '{entry.agent_id}'")
        seen.add(entry.agent_id)
        entries.append(entry)
    return entries


def load_roster(path: Union[str, Path]) -> List[RosterEntry]:
    """Read a roster JSON file into ``RosterEntry`` models."""
    roster_path = Path(path)
    if not roster_path.exists():
        raise FileNotFoundError(f"Roster not found at {roster_path}")
    try:
        data = json.loads(roster_path.read_text())
    except json.JSONDecodeError as exc:
        raise RosterValidationError(path=roster_path, reason=f"invalid JSON ({exc})") from exc
    return parse_roster(data, roster_path)
