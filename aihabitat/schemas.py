"""
Pydantic schemas for the AI Habitat simulation core.

All records exchanged between the decision engine, the interaction
orchestrator, the conflict engine, and external consumers are defined here.

Design Philosophy:
- Every bounded scalar (trust, tension, strength, intensity, magnitude) is a
  ``UnitFloat`` and is clamped to [0, 1] on construction and on assignment
- Enumerations subclass ``str`` so records serialize to plain JSON strings
- Records are plain data; behavior lives in behavior.py, orchestrator.py and
  conflict.py
"""

from __future__ import annotations

import math
from enum import Enum
from typing import Annotated, Any, Dict, List, Optional

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field


def clamp(value: float, low: float = 0.0, high: float = 1.0) -> float:
    """Clamp ``value`` into ``[low, high]``."""
    return max(low, min(high, value))


def _clamp_unit(value: Any) -> Any:
    # Non-numeric input is left for pydantic to reject.
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return clamp(float(value))
    return value


# Scalars that must stay inside [0, 1]. Out-of-range input is clamped, not rejected.
UnitFloat = Annotated[float, BeforeValidator(_clamp_unit)]


# ============================================================================
# Enumerations
# ============================================================================


class PersonalityTrait(str, Enum):
    """Categorical trait tags that gate decision heuristics."""

    HELPFUL = "helpful"
    STUBBORN = "stubborn"
    ANXIOUS = "anxious"
    OVERCONFIDENT = "overconfident"
    COOPERATIVE = "cooperative"
    COMPETITIVE = "competitive"


class CommunicationStyle(str, Enum):
    VERBOSE = "verbose"
    CONCISE = "concise"
    TECHNICAL = "technical"
    FRIENDLY = "friendly"
    FORMAL = "formal"
    QUIRKY = "quirky"


class ConflictResolutionStyle(str, Enum):
    AGGRESSIVE = "aggressive"
    PASSIVE = "passive"
    COLLABORATIVE = "collaborative"
    AVOIDANT = "avoidant"
    COMPETITIVE = "competitive"
    DIPLOMATIC = "diplomatic"


class Mood(str, Enum):
    """Six ordered mood levels, Angry (lowest) to Happy (highest)."""

    ANGRY = "angry"
    FRUSTRATED = "frustrated"
    CONFUSED = "confused"
    NEUTRAL = "neutral"
    CONTENT = "content"
    HAPPY = "happy"

    @property
    def value_level(self) -> float:
        """Anchor point of this mood on the continuous [0, 5] scale."""
        return float(_MOOD_ORDER.index(self))

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Mood):
            return NotImplemented
        return _MOOD_ORDER.index(self) < _MOOD_ORDER.index(other)

    def __gt__(self, other: object) -> bool:
        if not isinstance(other, Mood):
            return NotImplemented
        return _MOOD_ORDER.index(self) > _MOOD_ORDER.index(other)

    def __le__(self, other: object) -> bool:
        if not isinstance(other, Mood):
            return NotImplemented
        return _MOOD_ORDER.index(self) <= _MOOD_ORDER.index(other)

    def __ge__(self, other: object) -> bool:
        if not isinstance(other, Mood):
            return NotImplemented
        return _MOOD_ORDER.index(self) >= _MOOD_ORDER.index(other)

    @classmethod
    def from_value(cls, value: float) -> "Mood":
        """Threshold a continuous mood value (clamped to [0, 5]) into a level."""
        value = clamp(value, 0.0, 5.0)
        if value <= 0.5:
            return cls.ANGRY
        if value <= 1.5:
            return cls.FRUSTRATED
        if value <= 2.5:
            return cls.CONFUSED
        if value <= 3.5:
            return cls.NEUTRAL
        if value <= 4.5:
            return cls.CONTENT
        return cls.HAPPY


_MOOD_ORDER = [Mood.ANGRY, Mood.FRUSTRATED, Mood.CONFUSED, Mood.NEUTRAL, Mood.CONTENT, Mood.HAPPY]


class AnimationType(str, Enum):
    IDLE = "idle"
    HAPPY = "happy"
    CONFUSED = "confused"
    ANGRY = "angry"
    COMMUNICATING = "communicating"
    WORKING = "working"
    FAILING = "failing"


class DecisionType(str, Enum):
    COMMUNICATION = "communication"
    RESOURCE_REQUEST = "resource_request"
    COOPERATION_ATTEMPT = "cooperation_attempt"
    BEHAVIOR_CHANGE = "behavior_change"
    MOOD_CHANGE = "mood_change"
    CONFLICT_RESPONSE = "conflict_response"
    LEARNING_UPDATE = "learning_update"


class BehaviorAspect(str, Enum):
    """Names of the behavior-modifier scalars an agent carries."""

    COMMUNICATION_FREQUENCY = "communication_frequency"
    COOPERATION_WILLINGNESS = "cooperation_willingness"
    CONFLICT_SENSITIVITY = "conflict_sensitivity"
    LEARNING_RATE = "learning_rate"
    MOOD_STABILITY = "mood_stability"
    TRUST_LEVEL = "trust_level"
    RESOURCE_USAGE_PATTERN = "resource_usage_pattern"


class FeedbackKind(str, Enum):
    USER_INTERACTION = "user_interaction"
    DEVICE_RESPONSE = "device_response"
    SYSTEM_EVENT = "system_event"
    RESOURCE_CHANGE = "resource_change"
    PERFORMANCE_METRIC = "performance_metric"


class ConnectionType(str, Enum):
    COMMUNICATION = "communication"
    COOPERATION = "cooperation"
    RESOURCE_SHARING = "resource_sharing"
    CONFLICT = "conflict"
    DEPENDENCY = "dependency"


class ConnectionStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    BLOCKED = "blocked"
    FAILED = "failed"


class SynergyType(str, Enum):
    EFFICIENCY_BOOST = "efficiency_boost"
    ENHANCED_CAPABILITY = "enhanced_capability"
    RESOURCE_OPTIMIZATION = "resource_optimization"
    IMPROVED_ACCURACY = "improved_accuracy"
    COORDINATED_TIMING = "coordinated_timing"
    SHARED_INTELLIGENCE = "shared_intelligence"


class ConflictType(str, Enum):
    RESOURCE_COMPETITION = "resource_competition"
    AUTHORITY_DISPUTE = "authority_dispute"
    COMMUNICATION_BREAKDOWN = "communication_breakdown"
    GOAL_INCOMPATIBILITY = "goal_incompatibility"
    PERSONALITY_CLASH = "personality_clash"
    PRIORITY_CONFLICT = "priority_conflict"


class ConflictSeverity(str, Enum):
    MINOR_TENSION = "minor_tension"
    MODERATE_DISAGREEMENT = "moderate_disagreement"
    SERIOUS_CONFLICT = "serious_conflict"
    CRITICAL_DISPUTE = "critical_dispute"
    SYSTEM_THREATENING = "system_threatening"

    @classmethod
    def from_intensity(cls, intensity: float) -> "ConflictSeverity":
        """Map a continuous intensity in [0, 1] onto the five severity tiers."""
        if intensity < 0.2:
            return cls.MINOR_TENSION
        if intensity < 0.4:
            return cls.MODERATE_DISAGREEMENT
        if intensity < 0.6:
            return cls.SERIOUS_CONFLICT
        if intensity < 0.8:
            return cls.CRITICAL_DISPUTE
        return cls.SYSTEM_THREATENING


class ConflictCause(str, Enum):
    RESOURCE_SCARCITY = "resource_scarcity"
    INCOMPATIBLE_OBJECTIVES = "incompatible_objectives"
    COMMUNICATION_FAILURE = "communication_failure"
    PERSONALITY_MISMATCH = "personality_mismatch"
    PRIORITY_INVERSION = "priority_inversion"
    FEEDBACK_LOOP = "feedback_loop"


class ResourceType(str, Enum):
    PROCESSING_POWER = "processing_power"
    NETWORK_BANDWIDTH = "network_bandwidth"
    ENERGY = "energy"
    MEMORY = "memory"
    SENSOR_ACCESS = "sensor_access"
    USER_ATTENTION = "user_attention"


class AllocationStrategy(str, Enum):
    FIRST_COME_FIRST_SERVED = "first_come_first_served"
    PRIORITY_BASED = "priority_based"
    FAIR_SHARE = "fair_share"
    PERFORMANCE_BASED = "performance_based"
    RANDOM = "random"


class ConflictEffectType(str, Enum):
    RESOURCE_TETHER = "resource_tether"
    AUTHORITY_CLASH = "authority_clash"
    COMMUNICATION_STATIC = "communication_static"
    TENSION_FIELD = "tension_field"
    ANGRY_SPARKS = "angry_sparks"


class DramaticMomentType(str, Enum):
    CONFLICT_ESCALATION = "conflict_escalation"
    SYSTEM_CHAOS = "system_chaos"
    TENSION_PEAK = "tension_peak"
    RESOURCE_CRISIS = "resource_crisis"
    COMMUNICATION_BREAKDOWN = "communication_breakdown"
    AUTHORITY_TAKEOVER = "authority_takeover"


# ============================================================================
# Personality (inbound, read-only to the engine)
# ============================================================================


class EmotionalRange(BaseModel):
    """Emotional tunables of a personality. All scalars live in [0, 1]."""

    model_config = ConfigDict(frozen=True)

    default_mood: str = Field("neutral", description="Starting mood expression, e.g. 'happy' or 'worried'")
    mood_stability: UnitFloat = Field(0.5, description="Resistance to mood swings")
    empathy: UnitFloat = Field(0.5, description="Sensitivity to others' state")
    patience: UnitFloat = Field(0.5, description="Tolerance for slow or failed interactions")
    enthusiasm: UnitFloat = Field(0.5, description="Boost gained from social contact")
    anxiety: UnitFloat = Field(0.5, description="Baseline worry; darkens mood under conflict")


class PersonalityProfile(BaseModel):
    """Personality of one simulated device.

    Produced by an external personality source (natural-language converter,
    roster file, or the archetypes in personality.py). The engine never
    mutates it; the model is frozen so accidental writes fail loudly.
    """

    model_config = ConfigDict(frozen=True)

    primary_traits: List[PersonalityTrait] = Field(default_factory=list, description="Trait tags that gate heuristics")
    secondary_traits: List[str] = Field(default_factory=list, description="Free-form flavor traits")
    communication_style: CommunicationStyle = Field(CommunicationStyle.FRIENDLY)
    conflict_resolution: ConflictResolutionStyle = Field(ConflictResolutionStyle.COLLABORATIVE)
    learning_rate: UnitFloat = Field(0.5, description="Probability that feedback produces a learning change")
    adaptability: UnitFloat = Field(0.5)
    socialness: UnitFloat = Field(0.5)
    reliability: UnitFloat = Field(0.5)
    emotional_range: EmotionalRange = Field(default_factory=EmotionalRange)
    quirks: List[str] = Field(default_factory=list, description="Flavor quirks, e.g. 'needs coffee'")
    hidden_motivations: List[str] = Field(default_factory=list, description="Secret drives, e.g. 'seeks approval'")

    def has_trait(self, trait: PersonalityTrait) -> bool:
        return trait in self.primary_traits


class Position(BaseModel):
    """Location of a device in the habitat (arbitrary units)."""

    x: float = 0.0
    y: float = 0.0
    z: float = 0.0

    def distance_to(self, other: "Position") -> float:
        return math.sqrt((self.x - other.x) ** 2 + (self.y - other.y) ** 2 + (self.z - other.z) ** 2)


# ============================================================================
# Decision Engine records
# ============================================================================


class EmotionalImpact(BaseModel):
    """Mood payload attached to a decision."""

    mood: Mood = Field(..., description="Mood the decision pushes toward")
    intensity: UnitFloat = Field(..., description="Strength of the push")
    duration_seconds: float = Field(30.0, description="How long the impact is considered fresh")
    triggers: List[str] = Field(default_factory=list)

    @property
    def valence(self) -> float:
        """Signed intensity: negative for moods below Neutral."""
        return -self.intensity if self.mood < Mood.NEUTRAL else self.intensity


class ResourceRequest(BaseModel):
    resource_type: str = Field(..., description="Kind of resource requested, e.g. 'processing'")
    amount: float = Field(..., description="Requested units")
    priority: UnitFloat = Field(...)
    duration_seconds: float = Field(..., description="How long the resource is needed")
    justification: str = ""


class Decision(BaseModel):
    """A discrete action chosen by one agent during one decision cycle.

    Immutable once created. ``confidence`` is ``round(priority * 100)``.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    agent_id: str
    decision_type: DecisionType
    action: str
    reasoning: str
    priority: UnitFloat
    confidence: int = Field(..., ge=0, le=100)
    timestamp: float = Field(..., description="Simulated seconds on the injected clock")
    target_agent_ids: List[str] = Field(default_factory=list)
    resource_requests: List[ResourceRequest] = Field(default_factory=list)
    emotional_impact: Optional[EmotionalImpact] = None


class LearningEvent(BaseModel):
    """One behavior-modifier adjustment derived from feedback."""

    model_config = ConfigDict(frozen=True)

    id: str
    agent_id: str
    trigger: FeedbackKind
    source: str
    aspect: BehaviorAspect
    previous_value: float
    new_value: float
    reason: str
    confidence: UnitFloat
    reinforcement: int = Field(..., description="+1 for successful feedback, -1 otherwise")
    timestamp: float
    peer_id: Optional[str] = Field(None, description="Peer whose trust changed, for device responses")


class EnvironmentFeedback(BaseModel):
    """Inbound feedback event fed into an agent's learning."""

    source: str = Field(..., description="Originating agent id or subsystem name")
    kind: FeedbackKind
    message: str = ""
    success: bool = True


class PeerMessage(BaseModel):
    """Inbound raw message from another agent."""

    sender_id: str
    kind: str = Field("greeting", description="Message tag: greeting, helpful, praise, criticism, conflict, ...")
    content: str = ""


class CommunicationResponse(BaseModel):
    responder_id: str
    receiver_id: str
    style: str = Field(..., description="Response register, e.g. 'detailed_explanation'")
    content: str
    mood: Mood
    timestamp: float


class MoodChange(BaseModel):
    """Notification payload for a discrete mood transition."""

    agent_id: str
    previous_mood: Mood
    mood: Mood
    intensity: UnitFloat
    reason: str
    visual_effect: str


class AnimationChange(BaseModel):
    agent_id: str
    previous: AnimationType
    animation: AnimationType


# ============================================================================
# Orchestrator records
# ============================================================================


class Connection(BaseModel):
    """Typed, strength-weighted relationship between two agents.

    The id is the sorted pair of agent ids joined by ``-`` so it does not
    depend on which side initiated. Assignment is validated, which keeps
    ``strength`` and ``success_rate`` clamped on every mutation.
    """

    model_config = ConfigDict(validate_assignment=True)

    id: str
    from_agent_id: str
    to_agent_id: str
    connection_type: ConnectionType
    strength: UnitFloat = 0.1
    status: ConnectionStatus = ConnectionStatus.ACTIVE
    interaction_count: int = 1
    success_rate: UnitFloat = 1.0
    established_at: float
    last_interaction_at: float

    def involves(self, agent_id: str) -> bool:
        return agent_id in (self.from_agent_id, self.to_agent_id)

    def other(self, agent_id: str) -> str:
        return self.to_agent_id if agent_id == self.from_agent_id else self.from_agent_id


class CooperationRecord(BaseModel):
    """Cooperation bookkeeping one agent keeps about one partner."""

    model_config = ConfigDict(validate_assignment=True)

    partner_id: str
    cooperation_count: int = 0
    successful_cooperations: int = 0
    last_cooperation_at: float = 0.0
    synergy_level: UnitFloat = 0.0
    trust_score: UnitFloat = 0.5

    @property
    def success_ratio(self) -> float:
        if self.cooperation_count == 0:
            return 0.0
        return self.successful_cooperations / self.cooperation_count


class SynergyEffect(BaseModel):
    """Time-bounded bonus from strong cooperation between agents."""

    id: str
    participant_ids: List[str] = Field(..., min_length=2)
    synergy_type: SynergyType
    magnitude: UnitFloat
    description: str
    visual_effect: str = "synergy_glow"
    started_at: float
    duration_seconds: float = 30.0

    def is_expired(self, now: float) -> bool:
        return now - self.started_at > self.duration_seconds


class VisualEffect(BaseModel):
    """Render hint for consumers (cooperation sparkles, conflict sparks)."""

    effect_type: str
    agent_ids: List[str]
    intensity: UnitFloat = 0.5
    duration_seconds: float = 2.0


class AgentTickFailure(BaseModel):
    """Record of an exception isolated at a per-agent or per-detector boundary."""

    component: str = Field(..., description="'agent', 'handler', or 'detector'")
    subject: str = Field(..., description="Agent id or detector name")
    tick: int
    error: str
    timestamp: float


# ============================================================================
# Conflict Engine records
# ============================================================================


class TensionState(BaseModel):
    """Per-agent tension bookkeeping.

    ``anchor_level`` is the level set at ``last_increase_at``; the current
    ``level`` decays linearly from it until a fresh contribution exceeds it.
    """

    model_config = ConfigDict(validate_assignment=True)

    agent_id: str
    level: UnitFloat = 0.0
    sources: Dict[str, float] = Field(default_factory=dict, description="Per-peer contribution amounts")
    escalation_rate: float = 0.1
    anchor_level: UnitFloat = 0.0
    last_increase_at: float = 0.0
    max_level: UnitFloat = 0.0
    cooling_down_since: Optional[float] = None


class ConflictVisualEffect(BaseModel):
    model_config = ConfigDict(validate_assignment=True)

    effect_type: ConflictEffectType
    base_intensity: UnitFloat
    intensity: UnitFloat
    duration_seconds: float
    target_agent_ids: List[str]
    particle_count: int
    color_scheme: List[str]


class Conflict(BaseModel):
    """A detected, persisting disagreement. Only explicit resolution ends it."""

    model_config = ConfigDict(validate_assignment=True)

    id: str
    participant_ids: List[str]
    conflict_type: ConflictType
    severity: ConflictSeverity
    cause: ConflictCause
    description: str
    intensity: UnitFloat
    started_at: float
    escalation_level: UnitFloat = 0.0
    resources_involved: List[ResourceType] = Field(default_factory=list)
    visual_effects: List[ConflictVisualEffect] = Field(default_factory=list)
    resolved_at: Optional[float] = None


class ResourceCompetition(BaseModel):
    resource_type: ResourceType
    competing_agent_ids: List[str]
    total_demand: float
    available_supply: float
    intensity: UnitFloat
    allocation_strategy: AllocationStrategy


class DramaticMoment(BaseModel):
    moment_type: DramaticMomentType
    description: str
    involved_agent_ids: List[str]
    intensity: UnitFloat
    timestamp: float


class TensionEscalation(BaseModel):
    agent_id: str
    level: UnitFloat


# ============================================================================
# Snapshots (read interface for consumers)
# ============================================================================


class AgentSnapshot(BaseModel):
    agent_id: str
    active: bool
    position: Position
    mood: Mood
    mood_value: float
    animation: AnimationType
    modifiers: Dict[str, float]
    trust: Dict[str, float]
    discovered: List[str]
    cooperation: Dict[str, CooperationRecord]


class SimulationSnapshot(BaseModel):
    """Serializable view of the whole simulation at one tick boundary."""

    tick: int
    time: float
    speed: float
    agents: List[AgentSnapshot]
    connections: List[Connection]
    synergies: List[SynergyEffect]
    tensions: List[TensionState]
    competitions: List[ResourceCompetition]
    conflicts: List[Conflict]
