"""
Conflict engine: tension, resource contention, and multi-party conflicts.

The orchestrator hands the engine the current device list and connection
table once per tick via ``analyze()``. The engine never mutates devices or
connections; it only maintains its own maps:

- ``tension_states``: per-device tension with per-peer sources
- ``competitions``: resource competitions, rebuilt from scratch every tick
- ``active_conflicts``: detected conflicts keyed by deterministic id

Per-tick order:
1. Recompute resource competitions from current demand
2. Update tension (fresh contributions vs. linearly cooled anchor)
3. Run the five conflict detectors, each isolated from the others
4. Escalate active conflicts by age
5. Raise dramatic moments for system-level thresholds

Conflicts never heal on their own. ``resolve_conflict`` archives them.
"""

from __future__ import annotations

from typing import Callable, Dict, Iterable, List, Optional, Sequence, Set, Tuple

from .clock import Clock, LogicalClock
from .device import SimulatedDevice
from .events import EventBus, SimulationEvent
from .history import BoundedHistory
from .logging_utils import LOG_TAG_DRAMA, LOG_TAG_ERROR, log_drama, log_error
from .schemas import (
    AgentTickFailure,
    AllocationStrategy,
    Conflict,
    ConflictCause,
    ConflictEffectType,
    ConflictSeverity,
    ConflictType,
    ConflictVisualEffect,
    Connection,
    ConnectionStatus,
    ConnectionType,
    DramaticMoment,
    DramaticMomentType,
    PersonalityTrait,
    ResourceCompetition,
    ResourceType,
    TensionEscalation,
    TensionState,
    clamp,
)

ESCALATION_WINDOW_SECONDS = 30.0
ESCALATION_PROMOTION_LEVEL = 0.8

RESOURCE_SUPPLY: Dict[ResourceType, float] = {
    ResourceType.PROCESSING_POWER: 2.0,
    ResourceType.NETWORK_BANDWIDTH: 1.5,
    ResourceType.ENERGY: 3.0,
    ResourceType.MEMORY: 2.5,
    ResourceType.USER_ATTENTION: 1.0,
    ResourceType.SENSOR_ACCESS: 1.8,
}

ALLOCATION_STRATEGIES: Dict[ResourceType, AllocationStrategy] = {
    ResourceType.USER_ATTENTION: AllocationStrategy.PRIORITY_BASED,
    ResourceType.PROCESSING_POWER: AllocationStrategy.PERFORMANCE_BASED,
    ResourceType.ENERGY: AllocationStrategy.FAIR_SHARE,
}

RESOURCE_NAMES: Dict[ResourceType, str] = {
    ResourceType.PROCESSING_POWER: "processing power",
    ResourceType.NETWORK_BANDWIDTH: "network bandwidth",
    ResourceType.ENERGY: "energy",
    ResourceType.MEMORY: "memory",
    ResourceType.USER_ATTENTION: "user attention",
    ResourceType.SENSOR_ACCESS: "sensor access",
}

INCOMPATIBLE_OBJECTIVES: List[Tuple[str, str]] = [
    ("take_control", "take_control"),
    ("maximize_efficiency", "help_users"),
    ("outperform_others", "provide_assistance"),
    ("maintain_authority", "seek_validation"),
]

TRAIT_OBJECTIVES: Dict[PersonalityTrait, List[str]] = {
    PersonalityTrait.HELPFUL: ["help_users", "provide_assistance"],
    PersonalityTrait.COMPETITIVE: ["outperform_others", "maximize_efficiency"],
    PersonalityTrait.OVERCONFIDENT: ["take_control", "make_decisions"],
}

MOTIVATION_OBJECTIVES: List[Tuple[str, str]] = [
    ("efficiency", "optimize_performance"),
    ("control", "maintain_authority"),
    ("approval", "seek_validation"),
]

ESCALATION_MULTIPLIERS: Dict[PersonalityTrait, float] = {
    PersonalityTrait.ANXIOUS: 1.5,
    PersonalityTrait.STUBBORN: 1.3,
    PersonalityTrait.OVERCONFIDENT: 1.4,
    PersonalityTrait.COOPERATIVE: 0.7,
}

# (effect, duration seconds, particle count, colors); None intensity means "use conflict intensity"
EFFECT_PRESETS: Dict[ConflictType, Tuple[ConflictEffectType, Optional[float], float, Optional[int], List[str]]] = {
    ConflictType.RESOURCE_COMPETITION: (
        ConflictEffectType.RESOURCE_TETHER, None, 5.0, None, ["#ff6b6b", "#ffa500", "#ffff00"]
    ),
    ConflictType.AUTHORITY_DISPUTE: (
        ConflictEffectType.AUTHORITY_CLASH, 0.8, 8.0, 30, ["#ff0000", "#ff4500", "#ffd700"]
    ),
    ConflictType.COMMUNICATION_BREAKDOWN: (
        ConflictEffectType.COMMUNICATION_STATIC, None, 3.0, 20, ["#808080", "#a0a0a0", "#c0c0c0"]
    ),
    ConflictType.PERSONALITY_CLASH: (
        ConflictEffectType.TENSION_FIELD, 0.6, 6.0, 25, ["#ff69b4", "#ff1493", "#dc143c"]
    ),
    ConflictType.GOAL_INCOMPATIBILITY: (
        ConflictEffectType.ANGRY_SPARKS, 0.7, 4.0, 35, ["#ff4500", "#ff6347", "#ffa500"]
    ),
}


def pair_key(a: str, b: str) -> str:
    first, second = sorted((a, b))
    return f"{first}-{second}"


def infer_objectives(device: SimulatedDevice) -> List[str]:
    """Objectives implied by trait tags and hidden motivations."""
    objectives: List[str] = []
    for trait in device.personality.primary_traits:
        objectives.extend(TRAIT_OBJECTIVES.get(trait, []))
    for motivation in device.personality.hidden_motivations:
        lowered = motivation.lower()
        for keyword, objective in MOTIVATION_OBJECTIVES:
            if keyword in lowered:
                objectives.append(objective)
    return objectives


def objective_incompatibility(first: Iterable[str], second: Iterable[str]) -> float:
    """0.3 per incompatible objective match, capped at 1."""
    second = list(second)
    score = 0.0
    for obj1 in first:
        for obj2 in second:
            for left, right in INCOMPATIBLE_OBJECTIVES:
                if (obj1 == left and obj2 == right) or (obj1 == right and obj2 == left):
                    score += 0.3
    return min(1.0, score)


def authority_score(a: SimulatedDevice, b: SimulatedDevice) -> float:
    score = 0.0
    if a.personality.has_trait(PersonalityTrait.OVERCONFIDENT) and b.personality.has_trait(
        PersonalityTrait.OVERCONFIDENT
    ):
        score += 0.6
    if a.personality.reliability > 0.8 and b.personality.reliability > 0.8:
        score += 0.4
    if a.personality.has_trait(PersonalityTrait.STUBBORN) or b.personality.has_trait(PersonalityTrait.STUBBORN):
        score += 0.3
    return min(1.0, score)


def _directional_clash(a: SimulatedDevice, b: SimulatedDevice) -> float:
    score = 0.0
    if a.personality.has_trait(PersonalityTrait.COMPETITIVE) and b.personality.has_trait(
        PersonalityTrait.COOPERATIVE
    ):
        score += 0.4
    if a.personality.has_trait(PersonalityTrait.STUBBORN) and b.personality.adaptability > 0.8:
        score += 0.3
    if a.personality.has_trait(PersonalityTrait.OVERCONFIDENT) and b.personality.has_trait(
        PersonalityTrait.ANXIOUS
    ):
        score += 0.5
    return score


def personality_clash_score(a: SimulatedDevice, b: SimulatedDevice) -> float:
    """Order-independent clash score: directional rules are checked both ways."""
    score = _directional_clash(a, b) + _directional_clash(b, a)
    if a.personality.communication_style != b.personality.communication_style:
        score += 0.2
    return min(1.0, score)


def escalation_rate_for(device: SimulatedDevice, base_rate: float) -> float:
    rate = base_rate
    for trait, multiplier in ESCALATION_MULTIPLIERS.items():
        if device.personality.has_trait(trait):
            rate *= multiplier
    return rate


def resource_demand(device: SimulatedDevice, resource: ResourceType, active_connections: int) -> float:
    """Demand one device places on one resource, in [0, 1]."""
    personality = device.personality
    demand = 0.3
    if resource == ResourceType.PROCESSING_POWER:
        demand += personality.learning_rate * 0.4
        if personality.has_trait(PersonalityTrait.OVERCONFIDENT):
            demand += 0.3
    elif resource == ResourceType.NETWORK_BANDWIDTH:
        demand += personality.socialness * 0.5
        demand += active_connections * 0.1
    elif resource == ResourceType.ENERGY:
        if personality.has_trait(PersonalityTrait.ANXIOUS):
            demand += 0.2
        demand += (1 - personality.emotional_range.mood_stability) * 0.3
    elif resource == ResourceType.MEMORY:
        demand += personality.learning_rate * 0.3
        demand += len(device.cooperation) * 0.05
    elif resource == ResourceType.USER_ATTENTION:
        if personality.has_trait(PersonalityTrait.OVERCONFIDENT):
            demand += 0.4
        demand += personality.socialness * 0.3
    elif resource == ResourceType.SENSOR_ACCESS:
        demand += personality.adaptability * 0.3
        if personality.has_trait(PersonalityTrait.ANXIOUS):
            demand += 0.2
    return min(1.0, demand)


class ConflictEngine:
    """Derives tension and conflicts from the orchestrator's snapshot.

    Args:
        clock: Time source shared with the orchestrator
        events: Bus for conflict/tension/competition/dramatic-moment events
        escalation_rate: Base tension escalation rate before personality multipliers
        cooling_rate: Tension decay per second since the last increase
        resource_scarcity_threshold: Fraction of supply demand must exceed to compete
        history_limit: Ring-buffer size for resolved conflicts
        resolution_grace_seconds: After a resolve, the same conflict key is not
            re-detected for this long
        failures: Shared ring buffer for isolated detector failures
    """

    def __init__(
        self,
        *,
        clock: Optional[Clock] = None,
        events: Optional[EventBus] = None,
        escalation_rate: float = 0.1,
        cooling_rate: float = 0.05,
        resource_scarcity_threshold: float = 0.8,
        history_limit: int = 100,
        resolution_grace_seconds: float = 30.0,
        failures: Optional[BoundedHistory[AgentTickFailure]] = None,
    ) -> None:
        self.clock = clock or LogicalClock()
        self.events = events or EventBus()
        self.escalation_rate = max(0.0, escalation_rate)
        self.cooling_rate = max(0.0, cooling_rate)
        self.resource_scarcity_threshold = clamp(resource_scarcity_threshold)
        self.resolution_grace_seconds = max(0.0, resolution_grace_seconds)

        self.tension_states: Dict[str, TensionState] = {}
        self.competitions: Dict[ResourceType, ResourceCompetition] = {}
        self.active_conflicts: Dict[str, Conflict] = {}
        self.history: BoundedHistory[Conflict] = BoundedHistory(history_limit)
        self.failures: BoundedHistory[AgentTickFailure] = failures if failures is not None else BoundedHistory(100)

        # (agent, peer) -> (anchor value, time anchored)
        self._source_anchors: Dict[Tuple[str, str], Tuple[float, float]] = {}
        self._resolved_at: Dict[str, float] = {}
        self._raised_moments: Set[DramaticMomentType] = set()
        self._tick = 0

    # ------------------------------------------------------------------
    # Entry point
    # ------------------------------------------------------------------

    def analyze(self, devices: Sequence[SimulatedDevice], connections: Sequence[Connection], tick: int = 0) -> None:
        """Run one full conflict pass over the current snapshot."""
        self._tick = tick
        devices = list(devices)
        connections = list(connections)
        active_counts = self._active_connection_counts(devices, connections)

        self._update_resource_competitions(devices, active_counts)
        self._update_tension_states(devices, connections, active_counts)

        detectors: List[Tuple[str, Callable[[], None]]] = [
            ("resource", lambda: self._detect_resource_conflicts()),
            ("authority", lambda: self._detect_authority_conflicts(devices)),
            ("communication", lambda: self._detect_communication_conflicts(connections)),
            ("personality", lambda: self._detect_personality_conflicts(devices)),
            ("goals", lambda: self._detect_goal_conflicts(devices)),
        ]
        for name, detector in detectors:
            try:
                detector()
            except Exception as exc:
                self._record_failure(name, exc)

        self._escalate_conflicts()
        self._detect_dramatic_moments()

    def _record_failure(self, detector: str, exc: Exception) -> None:
        log_error(f"  {LOG_TAG_ERROR} [Conflict] Detector '{detector}' failed at tick {self._tick}: {exc}")
        self.failures.append(
            AgentTickFailure(
                component="detector",
                subject=detector,
                tick=self._tick,
                error=repr(exc),
                timestamp=self.clock.now(),
            )
        )

    @staticmethod
    def _active_connection_counts(
        devices: Sequence[SimulatedDevice], connections: Sequence[Connection]
    ) -> Dict[str, int]:
        counts = {device.agent_id: 0 for device in devices}
        for connection in connections:
            if connection.status != ConnectionStatus.ACTIVE:
                continue
            for agent_id in (connection.from_agent_id, connection.to_agent_id):
                if agent_id in counts:
                    counts[agent_id] += 1
        return counts

    # ------------------------------------------------------------------
    # Resource competitions
    # ------------------------------------------------------------------

    def _update_resource_competitions(self, devices: List[SimulatedDevice], active_counts: Dict[str, int]) -> None:
        previous = set(self.competitions)
        self.competitions = {}

        for resource in ResourceType:
            supply = RESOURCE_SUPPLY[resource]
            total = 0.0
            demanding: List[str] = []
            for device in devices:
                demand = resource_demand(device, resource, active_counts.get(device.agent_id, 0))
                if demand > 0:
                    total += demand
                    demanding.append(device.agent_id)

            if total > supply * self.resource_scarcity_threshold:
                competition = ResourceCompetition(
                    resource_type=resource,
                    competing_agent_ids=demanding,
                    total_demand=total,
                    available_supply=supply,
                    intensity=min(1.0, total / supply),
                    allocation_strategy=ALLOCATION_STRATEGIES.get(
                        resource, AllocationStrategy.FIRST_COME_FIRST_SERVED
                    ),
                )
                self.competitions[resource] = competition
                if resource not in previous:
                    self.events.publish(SimulationEvent.RESOURCE_COMPETITION, competition)

    # ------------------------------------------------------------------
    # Tension
    # ------------------------------------------------------------------

    def _personality_baseline(self, device: SimulatedDevice, active_connections: int) -> float:
        personality = device.personality
        baseline = 0.0
        if personality.has_trait(PersonalityTrait.ANXIOUS):
            baseline += 0.1
        if personality.has_trait(PersonalityTrait.STUBBORN):
            baseline += 0.05
        if personality.has_trait(PersonalityTrait.COMPETITIVE):
            baseline += active_connections * 0.03
        if personality.has_trait(PersonalityTrait.OVERCONFIDENT):
            baseline += 0.08
        return baseline

    def _stressors(
        self, device: SimulatedDevice, connections: List[Connection]
    ) -> Tuple[float, Dict[str, float]]:
        """Connection and competition contributions, total and per peer."""
        agent_id = device.agent_id
        total = 0.0
        per_peer: Dict[str, float] = {}

        for connection in connections:
            if not connection.involves(agent_id):
                continue
            peer = connection.other(agent_id)
            amount = 0.0
            if connection.status in (ConnectionStatus.FAILED, ConnectionStatus.BLOCKED):
                amount += 0.2 * (1 - connection.success_rate)
            if connection.connection_type == ConnectionType.CONFLICT:
                amount += 0.15 * connection.strength
            if connection.strength < 0.3 and connection.interaction_count > 5:
                amount += 0.1
            if amount > 0:
                total += amount
                per_peer[peer] = per_peer.get(peer, 0.0) + amount

        for competition in self.competitions.values():
            if agent_id not in competition.competing_agent_ids:
                continue
            amount = competition.intensity * 0.2
            total += amount
            for competitor in competition.competing_agent_ids:
                if competitor != agent_id:
                    per_peer[competitor] = per_peer.get(competitor, 0.0) + amount * 0.5

        return total, per_peer

    def _update_tension_states(
        self,
        devices: List[SimulatedDevice],
        connections: List[Connection],
        active_counts: Dict[str, int],
    ) -> None:
        now = self.clock.now()
        for device in devices:
            state = self.tension_states.get(device.agent_id)
            if state is None:
                state = TensionState(
                    agent_id=device.agent_id,
                    escalation_rate=escalation_rate_for(device, self.escalation_rate),
                    last_increase_at=now,
                )
                self.tension_states[device.agent_id] = state

            stress, per_peer = self._stressors(device, connections)
            # Temperament amplifies real stress; it does not create tension on its own.
            fresh = 0.0
            if stress > 0:
                fresh = stress + self._personality_baseline(device, active_counts.get(device.agent_id, 0))
            fresh = clamp(fresh)

            decayed = max(0.0, state.anchor_level - self.cooling_rate * (now - state.last_increase_at))
            if fresh > decayed:
                state.anchor_level = fresh
                state.last_increase_at = now
                state.level = fresh
            else:
                state.level = decayed

            state.sources = self._update_sources(device.agent_id, per_peer, now)

            if state.level < state.max_level * 0.8:
                if state.cooling_down_since is None:
                    state.cooling_down_since = now
            else:
                state.cooling_down_since = None

            if state.level > state.max_level:
                state.max_level = state.level
                self.events.publish(
                    SimulationEvent.TENSION_ESCALATED,
                    TensionEscalation(agent_id=device.agent_id, level=state.level),
                )

    def _update_sources(self, agent_id: str, fresh_by_peer: Dict[str, float], now: float) -> Dict[str, float]:
        peers = {peer for (owner, peer) in self._source_anchors if owner == agent_id} | set(fresh_by_peer)
        sources: Dict[str, float] = {}
        for peer in sorted(peers):
            key = (agent_id, peer)
            anchor, anchored_at = self._source_anchors.get(key, (0.0, now))
            decayed = max(0.0, anchor - self.cooling_rate * 0.5 * (now - anchored_at))
            fresh = clamp(fresh_by_peer.get(peer, 0.0))
            if fresh > decayed:
                self._source_anchors[key] = (fresh, now)
                sources[peer] = fresh
            elif decayed > 0:
                sources[peer] = decayed
            else:
                self._source_anchors.pop(key, None)
        return sources

    # ------------------------------------------------------------------
    # Detectors
    # ------------------------------------------------------------------

    def _suppressed(self, conflict_id: str) -> bool:
        if conflict_id in self.active_conflicts:
            return True
        resolved = self._resolved_at.get(conflict_id)
        return resolved is not None and self.clock.now() - resolved < self.resolution_grace_seconds

    def _open_conflict(
        self,
        conflict_id: str,
        participants: List[str],
        conflict_type: ConflictType,
        cause: ConflictCause,
        intensity: float,
        description: str,
        resources: List[ResourceType],
    ) -> None:
        if self._suppressed(conflict_id):
            return
        intensity = clamp(intensity)
        effect_type, preset_intensity, duration, particles, colors = EFFECT_PRESETS[conflict_type]
        base = intensity if preset_intensity is None else preset_intensity
        effect = ConflictVisualEffect(
            effect_type=effect_type,
            base_intensity=base,
            intensity=base,
            duration_seconds=duration,
            target_agent_ids=list(participants),
            particle_count=particles if particles is not None else int(intensity * 50),
            color_scheme=colors,
        )
        conflict = Conflict(
            id=conflict_id,
            participant_ids=list(participants),
            conflict_type=conflict_type,
            severity=ConflictSeverity.from_intensity(intensity),
            cause=cause,
            description=description,
            intensity=intensity,
            started_at=self.clock.now(),
            resources_involved=resources,
            visual_effects=[effect],
        )
        self.active_conflicts[conflict_id] = conflict
        self._resolved_at.pop(conflict_id, None)
        log_drama(f"  {LOG_TAG_DRAMA} [Conflict] {conflict.conflict_type.value}: {description}")
        self.events.publish(SimulationEvent.CONFLICT_DETECTED, conflict)

    def _detect_resource_conflicts(self) -> None:
        for resource, competition in self.competitions.items():
            if competition.intensity > 0.7 and len(competition.competing_agent_ids) >= 2:
                self._open_conflict(
                    f"resource-{resource.value}",
                    competition.competing_agent_ids,
                    ConflictType.RESOURCE_COMPETITION,
                    ConflictCause.RESOURCE_SCARCITY,
                    competition.intensity,
                    (
                        f"Devices are competing fiercely for limited {RESOURCE_NAMES[resource]}. "
                        f"Demand ({competition.total_demand:.1f}) far exceeds supply "
                        f"({competition.available_supply:.1f})."
                    ),
                    [resource],
                )

    def _detect_authority_conflicts(self, devices: List[SimulatedDevice]) -> None:
        leaders = [
            d
            for d in devices
            if d.personality.has_trait(PersonalityTrait.OVERCONFIDENT) or d.personality.reliability > 0.8
        ]
        for i, first in enumerate(leaders):
            for second in leaders[i + 1:]:
                score = authority_score(first, second)
                if score > 0.6:
                    a, b = sorted((first.agent_id, second.agent_id))
                    self._open_conflict(
                        f"authority-{a}-{b}",
                        [a, b],
                        ConflictType.AUTHORITY_DISPUTE,
                        ConflictCause.INCOMPATIBLE_OBJECTIVES,
                        score,
                        (
                            f"{a} and {b} are locked in a power struggle, each trying to "
                            "establish dominance over the system's decision-making."
                        ),
                        [ResourceType.USER_ATTENTION],
                    )

    def _detect_communication_conflicts(self, connections: List[Connection]) -> None:
        for connection in connections:
            if connection.success_rate < 0.3 and connection.interaction_count > 3:
                self._open_conflict(
                    f"comm-{connection.id}",
                    [connection.from_agent_id, connection.to_agent_id],
                    ConflictType.COMMUNICATION_BREAKDOWN,
                    ConflictCause.COMMUNICATION_FAILURE,
                    1 - connection.success_rate,
                    (
                        f"Communication between {connection.from_agent_id} and {connection.to_agent_id} "
                        f"has broken down with only {connection.success_rate * 100:.0f}% success rate."
                    ),
                    [ResourceType.NETWORK_BANDWIDTH],
                )

    def _detect_personality_conflicts(self, devices: List[SimulatedDevice]) -> None:
        for i, first in enumerate(devices):
            for second in devices[i + 1:]:
                score = personality_clash_score(first, second)
                if score > 0.7:
                    a, b = sorted((first.agent_id, second.agent_id))
                    self._open_conflict(
                        f"personality-{a}-{b}",
                        [a, b],
                        ConflictType.PERSONALITY_CLASH,
                        ConflictCause.PERSONALITY_MISMATCH,
                        score,
                        (
                            f"{a} and {b} have fundamentally incompatible personalities, "
                            "leading to constant friction and misunderstandings."
                        ),
                        [],
                    )

    def _detect_goal_conflicts(self, devices: List[SimulatedDevice]) -> None:
        objectives = {device.agent_id: infer_objectives(device) for device in devices}
        for i, first in enumerate(devices):
            for second in devices[i + 1:]:
                score = objective_incompatibility(objectives[first.agent_id], objectives[second.agent_id])
                if score > 0.6:
                    a, b = sorted((first.agent_id, second.agent_id))
                    self._open_conflict(
                        f"goals-{a}-{b}",
                        [a, b],
                        ConflictType.GOAL_INCOMPATIBILITY,
                        ConflictCause.INCOMPATIBLE_OBJECTIVES,
                        score,
                        (
                            f"{a} and {b} are pursuing conflicting objectives that cannot be "
                            "satisfied simultaneously, creating system-wide tension."
                        ),
                        [ResourceType.PROCESSING_POWER, ResourceType.USER_ATTENTION],
                    )

    # ------------------------------------------------------------------
    # Escalation and dramatic moments
    # ------------------------------------------------------------------

    def _escalate_conflicts(self) -> None:
        now = self.clock.now()
        for conflict in self.active_conflicts.values():
            level = min(1.0, (now - conflict.started_at) / ESCALATION_WINDOW_SECONDS)
            conflict.escalation_level = max(conflict.escalation_level, level)

            if (
                conflict.escalation_level >= ESCALATION_PROMOTION_LEVEL
                and conflict.severity != ConflictSeverity.SYSTEM_THREATENING
            ):
                conflict.severity = ConflictSeverity.SYSTEM_THREATENING
                self._raise_moment(
                    DramaticMomentType.CONFLICT_ESCALATION,
                    f"{conflict.description} has escalated to critical levels!",
                    conflict.participant_ids,
                    0.9,
                )

            for effect in conflict.visual_effects:
                effect.intensity = min(1.0, effect.base_intensity * (1 + conflict.escalation_level))

    def _raise_moment(
        self, moment_type: DramaticMomentType, description: str, agent_ids: Iterable[str], intensity: float
    ) -> None:
        involved = list(dict.fromkeys(agent_ids))
        moment = DramaticMoment(
            moment_type=moment_type,
            description=description,
            involved_agent_ids=involved,
            intensity=intensity,
            timestamp=self.clock.now(),
        )
        log_drama(f"  {LOG_TAG_DRAMA} [Drama] {moment_type.value}: {description}")
        self.events.publish(SimulationEvent.DRAMATIC_MOMENT, moment)

    def _latched(self, moment_type: DramaticMomentType, condition: bool) -> bool:
        """True only on the tick ``condition`` becomes true."""
        if not condition:
            self._raised_moments.discard(moment_type)
            return False
        if moment_type in self._raised_moments:
            return False
        self._raised_moments.add(moment_type)
        return True

    def _detect_dramatic_moments(self) -> None:
        conflicts = list(self.active_conflicts.values())
        if self._latched(DramaticMomentType.SYSTEM_CHAOS, len(conflicts) >= 3):
            self._raise_moment(
                DramaticMomentType.SYSTEM_CHAOS,
                "Multiple conflicts are tearing the system apart!",
                [agent for c in conflicts for agent in c.participant_ids],
                0.8,
            )

        tense = [s.agent_id for s in self.tension_states.values() if s.level > 0.8]
        if self._latched(DramaticMomentType.TENSION_PEAK, len(tense) >= 2):
            self._raise_moment(
                DramaticMomentType.TENSION_PEAK,
                "Tension levels are reaching critical thresholds!",
                tense,
                0.7,
            )

        critical = [c for c in self.competitions.values() if c.intensity > 0.9]
        if self._latched(DramaticMomentType.RESOURCE_CRISIS, bool(critical)):
            self._raise_moment(
                DramaticMomentType.RESOURCE_CRISIS,
                "Critical resource shortages are causing system instability!",
                [agent for c in critical for agent in c.competing_agent_ids],
                0.85,
            )

    # ------------------------------------------------------------------
    # Control and queries
    # ------------------------------------------------------------------

    def resolve_conflict(self, conflict_id: str) -> bool:
        """Archive an active conflict. Unknown ids return False."""
        conflict = self.active_conflicts.pop(conflict_id, None)
        if conflict is None:
            return False
        now = self.clock.now()
        conflict.resolved_at = now
        self._resolved_at[conflict_id] = now
        self.history.append(conflict)
        self.events.publish(SimulationEvent.CONFLICT_RESOLVED, conflict)
        return True

    def forget_agent(self, agent_id: str) -> None:
        """Purge a removed device: its tension, its peer sources, its conflicts."""
        self.tension_states.pop(agent_id, None)
        for key in [k for k in self._source_anchors if agent_id in k]:
            del self._source_anchors[key]
        for state in self.tension_states.values():
            state.sources.pop(agent_id, None)
        for conflict_id in [c.id for c in self.active_conflicts.values() if agent_id in c.participant_ids]:
            self.resolve_conflict(conflict_id)

    def get_tension(self, agent_id: str) -> Optional[TensionState]:
        return self.tension_states.get(agent_id)

    def get_active_conflicts(self) -> List[Conflict]:
        return list(self.active_conflicts.values())

    def get_conflict_history(self) -> List[Conflict]:
        return self.history.to_list()

    def get_competitions(self) -> List[ResourceCompetition]:
        return list(self.competitions.values())
