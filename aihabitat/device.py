"""Registry entry for one simulated device."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List

from .behavior import DeviceBehavior
from .schemas import CooperationRecord, PersonalityProfile, Position


@dataclass
class SimulatedDevice:
    """A device registered with the orchestrator.

    Only the orchestrator mutates ``discovered``, ``cooperation``,
    ``position``, and ``active``. The decision engine in ``behavior`` owns
    mood, modifiers, trust, and histories.
    """

    agent_id: str
    personality: PersonalityProfile
    behavior: DeviceBehavior
    position: Position = field(default_factory=Position)
    active: bool = True
    # peer id -> time of discovery; a dict keeps iteration order stable
    discovered: Dict[str, float] = field(default_factory=dict)
    cooperation: Dict[str, CooperationRecord] = field(default_factory=dict)

    @property
    def mood(self):
        return self.behavior.mood

    def discovered_ids(self) -> List[str]:
        return list(self.discovered)

    def forget_peer(self, peer_id: str) -> None:
        self.discovered.pop(peer_id, None)
        self.cooperation.pop(peer_id, None)
        self.behavior.forget_peer(peer_id)
