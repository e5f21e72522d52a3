"""
Interaction orchestrator.

Owns the device registry and the connection table, and drives the tick loop.
Every collaborator (random source, clock, event bus) is injectable so a run
can be reproduced exactly from a seed.

Each tick:
1. Advance the clock by ``tick_interval * speed``
2. Run every active device's decision cycle (registry order)
3. Route decisions to the communication / cooperation / resource handlers
4. Age connections and expire synergies
5. Hand the snapshot to the conflict engine
6. Run periodic discovery
7. Publish ``tick``

A failure in one device's cycle or one handler is logged, recorded as an
``AgentTickFailure``, and never stops the other devices.
"""

from __future__ import annotations

import asyncio
import random
from pathlib import Path
from typing import Callable, Dict, List, Optional, Union

from pydantic import BaseModel, Field, field_validator

from .behavior import DeviceBehavior
from .clock import Clock, LogicalClock
from .config import Config
from .conflict import ConflictEngine
from .device import SimulatedDevice
from .events import EventBus, SimulationEvent
from .history import BoundedHistory
from .logging_utils import (
    LOG_TAG_DETERMINISTIC,
    LOG_TAG_ERROR,
    LOG_TAG_INFO,
    LOG_TAG_SUCCESS,
    log_deterministic,
    log_error,
    log_info,
    log_success,
)
from .scenario import RosterEntry, load_roster
from .schemas import (
    AgentSnapshot,
    AgentTickFailure,
    AnimationType,
    Conflict,
    Connection,
    ConnectionStatus,
    ConnectionType,
    CooperationRecord,
    Decision,
    DecisionType,
    EnvironmentFeedback,
    FeedbackKind,
    LearningEvent,
    Mood,
    MoodChange,
    PeerMessage,
    PersonalityProfile,
    PersonalityTrait,
    Position,
    ResourceCompetition,
    SimulationSnapshot,
    SynergyEffect,
    SynergyType,
    TensionEscalation,
    TensionState,
    VisualEffect,
    clamp,
)

MIN_SPEED = 0.1
MAX_SPEED = 5.0
CONNECTION_FLOOR = 0.1
GREETING_STRENGTH = 0.3
SYNERGY_DURATION_SECONDS = 30.0

SYNERGY_DESCRIPTIONS: Dict[SynergyType, str] = {
    SynergyType.EFFICIENCY_BOOST: "{a} and {b} are working together more efficiently than either could alone",
    SynergyType.ENHANCED_CAPABILITY: "The cooperation between {a} and {b} has unlocked new capabilities",
    SynergyType.RESOURCE_OPTIMIZATION: "{a} and {b} are optimizing resource usage through coordination",
    SynergyType.IMPROVED_ACCURACY: "{a} and {b} are achieving higher accuracy through collaboration",
    SynergyType.COORDINATED_TIMING: "{a} and {b} have synchronized their operations perfectly",
    SynergyType.SHARED_INTELLIGENCE: "{a} and {b} are sharing knowledge and learning together",
}


def connection_id(first: str, second: str) -> str:
    """Order-independent connection key."""
    return "-".join(sorted((first, second)))


def personality_compatibility(first: PersonalityProfile, second: PersonalityProfile) -> float:
    compatibility = 0.5
    if first.communication_style == second.communication_style:
        compatibility += 0.2
    if first.conflict_resolution == second.conflict_resolution:
        compatibility += 0.1
    shared = [trait for trait in first.primary_traits if trait in second.primary_traits]
    compatibility += len(shared) * 0.1
    compatibility += (1 - abs(first.socialness - second.socialness)) * 0.1
    return min(1.0, compatibility)


def synergy_type_for(first: PersonalityProfile, second: PersonalityProfile) -> SynergyType:
    if first.reliability > 0.7 and second.reliability > 0.7:
        return SynergyType.EFFICIENCY_BOOST
    if first.learning_rate > 0.7 and second.learning_rate > 0.7:
        return SynergyType.SHARED_INTELLIGENCE
    if first.adaptability > 0.7 and second.adaptability > 0.7:
        return SynergyType.ENHANCED_CAPABILITY
    if first.socialness > 0.7 and second.socialness > 0.7:
        return SynergyType.COORDINATED_TIMING
    return SynergyType.RESOURCE_OPTIMIZATION


# =============================
# Settings
# =============================


class SimulationSettings(BaseModel):
    """Per-orchestrator tunables. Defaults come from ``Config``; bad values are clamped."""

    tick_interval_seconds: float = Field(default_factory=lambda: Config.TICK_INTERVAL_SECONDS)
    speed: float = Field(default_factory=lambda: Config.SIMULATION_SPEED)
    discovery_range: float = Field(default_factory=lambda: Config.DISCOVERY_RANGE)
    discovery_probability: float = Field(default_factory=lambda: Config.DISCOVERY_PROBABILITY)
    interaction_cooldown_seconds: float = Field(default_factory=lambda: Config.INTERACTION_COOLDOWN_SECONDS)
    synergy_threshold: float = Field(default_factory=lambda: Config.SYNERGY_THRESHOLD)
    cooling_rate: float = Field(default_factory=lambda: Config.COOLING_RATE)
    decision_history_limit: int = Field(default_factory=lambda: Config.DECISION_HISTORY_LIMIT)
    learning_history_limit: int = Field(default_factory=lambda: Config.LEARNING_HISTORY_LIMIT)
    conflict_history_limit: int = Field(default_factory=lambda: Config.CONFLICT_HISTORY_LIMIT)
    failure_history_limit: int = 100
    seed: Optional[int] = Field(default_factory=lambda: Config.SEED)

    @field_validator("tick_interval_seconds", "interaction_cooldown_seconds")
    @classmethod
    def _positive(cls, value: float) -> float:
        return max(value, 1e-3)

    @field_validator("speed")
    @classmethod
    def _clamp_speed(cls, value: float) -> float:
        return clamp(value, MIN_SPEED, MAX_SPEED)

    @field_validator("discovery_probability", "synergy_threshold")
    @classmethod
    def _unit(cls, value: float) -> float:
        return clamp(value)

    @field_validator("discovery_range", "cooling_rate")
    @classmethod
    def _non_negative(cls, value: float) -> float:
        return max(value, 0.0)

    @field_validator(
        "decision_history_limit", "learning_history_limit", "conflict_history_limit", "failure_history_limit"
    )
    @classmethod
    def _at_least_one(cls, value: int) -> int:
        return max(value, 1)


# =============================
# Orchestrator
# =============================


class Orchestrator:
    """
    Interaction orchestrator for a household of simulated devices.

    Args:
        settings: Tunables; defaults to ``SimulationSettings()`` (read from Config)
        rng: Random source shared by every device; defaults to
            ``random.Random(settings.seed)``
        clock: Time source; defaults to a ``LogicalClock`` advanced by ``tick()``
        events: Event bus; one is created when omitted
        tick_listeners: Optional callables invoked after each tick with the
            tick number
    """

    def __init__(
        self,
        settings: Optional[SimulationSettings] = None,
        *,
        rng: Optional[random.Random] = None,
        clock: Optional[Clock] = None,
        events: Optional[EventBus] = None,
        tick_listeners: Optional[List[Callable[[int], None]]] = None,
    ) -> None:
        self.settings = settings or SimulationSettings()
        self.rng = rng or random.Random(self.settings.seed)
        self.clock = clock or LogicalClock()
        self.events = events or EventBus()

        # Insertion order is the tick order.
        self.devices: Dict[str, SimulatedDevice] = {}
        self.connections: Dict[str, Connection] = {}
        self.synergies: Dict[str, SynergyEffect] = {}
        self.failures: BoundedHistory[AgentTickFailure] = BoundedHistory(self.settings.failure_history_limit)

        self.conflicts = ConflictEngine(
            clock=self.clock,
            events=self.events,
            cooling_rate=self.settings.cooling_rate,
            history_limit=self.settings.conflict_history_limit,
            failures=self.failures,
        )

        self.tick_count = 0
        self.running = False
        self.paused = False
        self._task: Optional[asyncio.Task] = None
        self._synergy_counter = 0

        self.events.subscribe(SimulationEvent.MOOD_CHANGED, self._on_mood_changed)
        self.events.subscribe(SimulationEvent.TENSION_ESCALATED, self._on_tension_escalated)
        for listener in tick_listeners or []:
            self.events.subscribe(SimulationEvent.TICK, listener)

    @property
    def speed(self) -> float:
        return self.settings.speed

    # ------------------------------------------------------------------
    # Registry
    # ------------------------------------------------------------------

    def add_agent(
        self,
        agent_id: str,
        personality: PersonalityProfile,
        position: Optional[Position] = None,
    ) -> SimulatedDevice:
        """Register a device and immediately run discovery for it.

        Re-adding an existing id replaces the old device after purging it.
        """
        if agent_id in self.devices:
            self.remove_agent(agent_id)

        behavior = DeviceBehavior(
            agent_id,
            personality,
            rng=self.rng,
            clock=self.clock,
            events=self.events,
            decision_history_limit=self.settings.decision_history_limit,
            learning_history_limit=self.settings.learning_history_limit,
        )
        device = SimulatedDevice(
            agent_id=agent_id,
            personality=personality,
            behavior=behavior,
            position=position or Position(),
        )
        self.devices[agent_id] = device
        log_deterministic(f"  {LOG_TAG_DETERMINISTIC} [Registry] Added {agent_id}")
        self._discover(device)
        return device

    def add_roster(self, roster: Union[str, Path, List[RosterEntry]]) -> List[SimulatedDevice]:
        """Register every entry of a roster file (or an already loaded roster)."""
        entries = load_roster(roster) if isinstance(roster, (str, Path)) else roster
        return [self.add_agent(e.agent_id, e.personality, e.position) for e in entries]

    def remove_agent(self, agent_id: str) -> bool:
        """Unregister a device and purge every reference to it. Unknown ids return False."""
        device = self.devices.pop(agent_id, None)
        if device is None:
            return False

        for cid in [cid for cid, c in self.connections.items() if c.involves(agent_id)]:
            del self.connections[cid]
        for sid in [sid for sid, s in self.synergies.items() if agent_id in s.participant_ids]:
            del self.synergies[sid]
        for other in self.devices.values():
            other.forget_peer(agent_id)
        self.conflicts.forget_agent(agent_id)

        log_deterministic(f"  {LOG_TAG_DETERMINISTIC} [Registry] Removed {agent_id}")
        return True

    def move_agent(self, agent_id: str, position: Position) -> None:
        device = self.devices.get(agent_id)
        if device is None:
            return
        device.position = position
        self._discover(device)

    def activate_agent(self, agent_id: str) -> None:
        device = self.devices.get(agent_id)
        if device is not None:
            device.active = True

    def deactivate_agent(self, agent_id: str) -> None:
        device = self.devices.get(agent_id)
        if device is not None:
            device.active = False

    def feedback(self, agent_id: str, feedback: EnvironmentFeedback) -> Optional[LearningEvent]:
        """Deliver environment feedback to one device's learning."""
        device = self.devices.get(agent_id)
        if device is None:
            return None
        return device.behavior.learn(feedback)

    # ------------------------------------------------------------------
    # Tick loop
    # ------------------------------------------------------------------

    def tick(self) -> None:
        """Advance the simulation by one step. Never raises."""
        self.tick_count += 1
        tick = self.tick_count
        self.clock.advance(self.settings.tick_interval_seconds * self.settings.speed)

        for device in list(self.devices.values()):
            if not device.active or self.devices.get(device.agent_id) is not device:
                continue
            try:
                decisions = device.behavior.execute_decision_cycle()
            except Exception as exc:
                self._record_failure("agent", device.agent_id, exc)
                continue
            for decision in decisions:
                try:
                    self._handle_decision(device, decision)
                except Exception as exc:
                    self._record_failure("handler", device.agent_id, exc)

        self._age_connections()
        self._expire_synergies()

        try:
            self.conflicts.analyze(list(self.devices.values()), list(self.connections.values()), tick)
        except Exception as exc:
            self._record_failure("conflict", "engine", exc)

        probability = self.settings.discovery_probability
        for device in list(self.devices.values()):
            if device.active and self.rng.random() < probability:
                self._discover(device)

        self.events.publish(SimulationEvent.TICK, tick)

    def _record_failure(self, component: str, subject: str, exc: Exception) -> None:
        log_error(f"  {LOG_TAG_ERROR} [Orchestrator] {component} '{subject}' failed at tick {self.tick_count}: {exc}")
        self.failures.append(
            AgentTickFailure(
                component=component,
                subject=subject,
                tick=self.tick_count,
                error=repr(exc),
                timestamp=self.clock.now(),
            )
        )

    async def run(self, num_ticks: int) -> SimulationSnapshot:
        """Run ``num_ticks`` ticks, sleeping ``tick_interval`` between them.

        Returns:
            Snapshot of the state after the last tick
        """
        log_info(f"{LOG_TAG_INFO} Starting simulation: {len(self.devices)} devices, {num_ticks} ticks")
        for _ in range(num_ticks):
            self.tick()
            await asyncio.sleep(self.settings.tick_interval_seconds)
        log_info(f"{LOG_TAG_INFO} Simulation complete at tick {self.tick_count}")
        return self.snapshot()

    async def _loop(self) -> None:
        while self.running:
            if not self.paused:
                self.tick()
            await asyncio.sleep(self.settings.tick_interval_seconds)

    def start(self) -> None:
        """Start ticking in the background on the running event loop."""
        if self.running:
            return
        self.running = True
        self.paused = False
        self._task = asyncio.get_running_loop().create_task(self._loop())

    async def stop(self) -> None:
        self.running = False
        task, self._task = self._task, None
        if task is not None:
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass

    def pause(self) -> None:
        self.paused = True

    def resume(self) -> None:
        self.paused = False

    def set_speed(self, speed: float) -> None:
        self.settings.speed = clamp(speed, MIN_SPEED, MAX_SPEED)

    # ------------------------------------------------------------------
    # Decision handlers
    # ------------------------------------------------------------------

    def _handle_decision(self, device: SimulatedDevice, decision: Decision) -> None:
        if decision.decision_type == DecisionType.COMMUNICATION:
            self._handle_communication(device, decision)
        elif decision.decision_type == DecisionType.COOPERATION_ATTEMPT:
            self._handle_cooperation(device, decision)
        elif decision.decision_type == DecisionType.RESOURCE_REQUEST:
            self._handle_resource_request(device, decision)

    def _handle_communication(self, device: SimulatedDevice, decision: Decision) -> None:
        kind = "helpful" if device.personality.has_trait(PersonalityTrait.HELPFUL) else "status_update"
        for target_id in decision.target_agent_ids:
            target = self.devices.get(target_id)
            if target is None:
                continue

            connection = self._get_or_create_connection(device.agent_id, target_id, ConnectionType.COMMUNICATION)
            connection.strength = connection.strength + 0.1
            connection.last_interaction_at = self.clock.now()
            connection.interaction_count += 1

            reply = target.behavior.communicate(
                PeerMessage(sender_id=device.agent_id, kind=kind, content=decision.reasoning)
            )
            success = bool(reply.content)
            count = connection.interaction_count
            connection.success_rate = (connection.success_rate * (count - 1) + (1.0 if success else 0.0)) / count

            device.behavior.learn(
                EnvironmentFeedback(
                    source=target_id,
                    kind=FeedbackKind.DEVICE_RESPONSE,
                    message=reply.content,
                    success=success,
                )
            )

    def cooperation_willingness(self, device: SimulatedDevice, target: SimulatedDevice) -> float:
        willingness = device.personality.socialness * 0.5
        willingness += device.behavior.trust_in(target.agent_id) * 0.3
        record = device.cooperation.get(target.agent_id)
        if record is not None:
            willingness += record.success_ratio * 0.2
        return min(1.0, willingness)

    def _handle_cooperation(self, device: SimulatedDevice, decision: Decision) -> None:
        for target_id in decision.target_agent_ids:
            target = self.devices.get(target_id)
            if target is None:
                continue
            if self.cooperation_willingness(device, target) > 0.5:
                self._establish_cooperation(device, target)

    def _establish_cooperation(self, first: SimulatedDevice, second: SimulatedDevice) -> None:
        connection = self._get_or_create_connection(first.agent_id, second.agent_id, ConnectionType.COOPERATION)
        connection.connection_type = ConnectionType.COOPERATION

        now = self.clock.now()
        self._update_cooperation_record(first, second.agent_id, now)
        self._update_cooperation_record(second, first.agent_id, now)

        if connection.strength > self.settings.synergy_threshold:
            self._create_synergy(first, second, connection)

        self.events.publish(
            SimulationEvent.VISUAL_EFFECT,
            VisualEffect(effect_type="cooperation", agent_ids=[first.agent_id, second.agent_id]),
        )
        log_success(f"  {LOG_TAG_SUCCESS} [Cooperation] {first.agent_id} <-> {second.agent_id}")

    @staticmethod
    def _update_cooperation_record(device: SimulatedDevice, partner_id: str, now: float) -> None:
        record = device.cooperation.get(partner_id)
        if record is None:
            record = CooperationRecord(partner_id=partner_id)
            device.cooperation[partner_id] = record
        record.cooperation_count += 1
        record.successful_cooperations += 1
        record.last_cooperation_at = now
        record.trust_score = record.trust_score + 0.1

    def _handle_resource_request(self, device: SimulatedDevice, decision: Decision) -> None:
        for target_id in decision.target_agent_ids:
            connection = self.connections.get(connection_id(device.agent_id, target_id))
            if connection is not None:
                connection.connection_type = ConnectionType.RESOURCE_SHARING
                connection.last_interaction_at = self.clock.now()

    # ------------------------------------------------------------------
    # Connections and synergies
    # ------------------------------------------------------------------

    def _get_or_create_connection(
        self,
        from_id: str,
        to_id: str,
        connection_type: ConnectionType,
        strength: float = CONNECTION_FLOOR,
    ) -> Connection:
        cid = connection_id(from_id, to_id)
        connection = self.connections.get(cid)
        if connection is not None:
            if connection.status != ConnectionStatus.ACTIVE:
                connection.status = ConnectionStatus.ACTIVE
            return connection

        now = self.clock.now()
        connection = Connection(
            id=cid,
            from_agent_id=from_id,
            to_agent_id=to_id,
            connection_type=connection_type,
            strength=strength,
            established_at=now,
            last_interaction_at=now,
        )
        self.connections[cid] = connection
        self.events.publish(SimulationEvent.CONNECTION_ESTABLISHED, connection)
        return connection

    def _age_connections(self) -> None:
        now = self.clock.now()
        cooldown = self.settings.interaction_cooldown_seconds
        for cid, connection in list(self.connections.items()):
            idle = now - connection.last_interaction_at
            if idle > cooldown * 5:
                connection.strength = max(CONNECTION_FLOOR, connection.strength - 0.01)
            if idle > cooldown * 10:
                if connection.strength <= CONNECTION_FLOOR:
                    del self.connections[cid]
                elif connection.status == ConnectionStatus.ACTIVE:
                    connection.status = ConnectionStatus.INACTIVE

    def _active_synergy_for(self, first: str, second: str) -> Optional[SynergyEffect]:
        pair = {first, second}
        for synergy in self.synergies.values():
            if set(synergy.participant_ids) == pair:
                return synergy
        return None

    def _create_synergy(self, first: SimulatedDevice, second: SimulatedDevice, connection: Connection) -> None:
        if self._active_synergy_for(first.agent_id, second.agent_id) is not None:
            return

        synergy_type = synergy_type_for(first.personality, second.personality)
        magnitude = connection.strength * 0.5
        magnitude += personality_compatibility(first.personality, second.personality) * 0.3
        record = first.cooperation.get(second.agent_id)
        if record is not None:
            magnitude += record.success_ratio * 0.2

        self._synergy_counter += 1
        synergy = SynergyEffect(
            id=f"synergy-{self._synergy_counter}",
            participant_ids=[first.agent_id, second.agent_id],
            synergy_type=synergy_type,
            magnitude=min(1.0, magnitude),
            description=SYNERGY_DESCRIPTIONS[synergy_type].format(a=first.agent_id, b=second.agent_id),
            started_at=self.clock.now(),
            duration_seconds=SYNERGY_DURATION_SECONDS,
        )
        self.synergies[synergy.id] = synergy
        for device, partner in ((first, second), (second, first)):
            rec = device.cooperation.get(partner.agent_id)
            if rec is not None:
                rec.synergy_level = synergy.magnitude
        log_success(f"  {LOG_TAG_SUCCESS} [Synergy] {synergy.description}")
        self.events.publish(SimulationEvent.SYNERGY_CREATED, synergy)

    def _expire_synergies(self) -> None:
        now = self.clock.now()
        for sid, synergy in list(self.synergies.items()):
            if synergy.is_expired(now):
                del self.synergies[sid]
                self.events.publish(SimulationEvent.SYNERGY_EXPIRED, synergy)

    # ------------------------------------------------------------------
    # Discovery
    # ------------------------------------------------------------------

    def _discover(self, device: SimulatedDevice) -> None:
        now = self.clock.now()
        for other in list(self.devices.values()):
            if other.agent_id == device.agent_id or not other.active:
                continue
            if other.agent_id in device.discovered:
                continue
            if device.position.distance_to(other.position) > self.settings.discovery_range:
                continue

            device.discovered[other.agent_id] = now
            other.discovered[device.agent_id] = now
            self.events.publish(
                SimulationEvent.DEVICE_DISCOVERED,
                {"agent_id": device.agent_id, "discovered_id": other.agent_id},
            )
            self._greet(device, other)

    def _greet(self, first: SimulatedDevice, second: SimulatedDevice) -> None:
        second.behavior.communicate(
            PeerMessage(
                sender_id=first.agent_id,
                kind="greeting",
                content=f"Hello! I'm {first.agent_id}, nice to meet you!",
            )
        )
        first.behavior.communicate(
            PeerMessage(
                sender_id=second.agent_id,
                kind="greeting",
                content=f"Hello {first.agent_id}, I'm {second.agent_id}!",
            )
        )
        connection = self._get_or_create_connection(
            first.agent_id, second.agent_id, ConnectionType.COMMUNICATION, strength=GREETING_STRENGTH
        )
        connection.last_interaction_at = self.clock.now()

    # ------------------------------------------------------------------
    # Feedback from the event bus
    # ------------------------------------------------------------------

    def _on_mood_changed(self, change: MoodChange) -> None:
        if change.mood not in (Mood.ANGRY, Mood.FRUSTRATED):
            return
        for connection in self.connections.values():
            if connection.involves(change.agent_id):
                connection.strength = max(CONNECTION_FLOOR, connection.strength - 0.1)

    def _on_tension_escalated(self, escalation: TensionEscalation) -> None:
        device = self.devices.get(escalation.agent_id)
        if device is None:
            return
        if escalation.level > 0.7:
            device.behavior.set_animation(AnimationType.ANGRY)
        elif escalation.level > 0.4:
            device.behavior.set_animation(AnimationType.CONFUSED)

    # ------------------------------------------------------------------
    # Control and accessors
    # ------------------------------------------------------------------

    def resolve_conflict(self, conflict_id: str) -> bool:
        return self.conflicts.resolve_conflict(conflict_id)

    def get_agent(self, agent_id: str) -> Optional[SimulatedDevice]:
        return self.devices.get(agent_id)

    def get_agents(self) -> List[SimulatedDevice]:
        return list(self.devices.values())

    def get_connections(self) -> List[Connection]:
        return list(self.connections.values())

    def get_connection(self, first: str, second: str) -> Optional[Connection]:
        return self.connections.get(connection_id(first, second))

    def get_synergies(self) -> List[SynergyEffect]:
        return list(self.synergies.values())

    def get_tension_states(self) -> List[TensionState]:
        return list(self.conflicts.tension_states.values())

    def get_competitions(self) -> List[ResourceCompetition]:
        return self.conflicts.get_competitions()

    def get_active_conflicts(self) -> List[Conflict]:
        return self.conflicts.get_active_conflicts()

    def get_conflict_history(self) -> List[Conflict]:
        return self.conflicts.get_conflict_history()

    def get_decisions(self, agent_id: str) -> List[Decision]:
        device = self.devices.get(agent_id)
        return device.behavior.decisions.to_list() if device else []

    def get_learning_events(self, agent_id: str) -> List[LearningEvent]:
        device = self.devices.get(agent_id)
        return device.behavior.learning_events.to_list() if device else []

    def snapshot(self) -> SimulationSnapshot:
        """Serializable copy of the current state."""
        agents = [
            AgentSnapshot(
                agent_id=d.agent_id,
                active=d.active,
                position=d.position.model_copy(),
                mood=d.behavior.mood,
                mood_value=d.behavior.mood_value,
                animation=d.behavior.animation,
                modifiers={aspect.value: value for aspect, value in d.behavior.modifiers.items()},
                trust=dict(d.behavior.trust),
                discovered=d.discovered_ids(),
                cooperation={k: v.model_copy() for k, v in d.cooperation.items()},
            )
            for d in self.devices.values()
        ]
        return SimulationSnapshot(
            tick=self.tick_count,
            time=self.clock.now(),
            speed=self.settings.speed,
            agents=agents,
            connections=[c.model_copy() for c in self.connections.values()],
            synergies=[s.model_copy() for s in self.synergies.values()],
            tensions=[t.model_copy(deep=True) for t in self.conflicts.tension_states.values()],
            competitions=[c.model_copy() for c in self.conflicts.competitions.values()],
            conflicts=[c.model_copy(deep=True) for c in self.conflicts.active_conflicts.values()],
        )
