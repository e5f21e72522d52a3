"""
Per-device decision engine.

Each simulated device owns one ``DeviceBehavior``. Every tick the
orchestrator calls ``execute_decision_cycle()``, which runs five stages:

1. Assess the situation (recent activity, mood trend, social contact,
   resource need, conflict level)
2. Generate candidate decisions through probabilistic gates
3. Keep the top-k candidates by priority (k depends on personality)
4. Materialize them into ``Decision`` records and apply side effects
5. Re-evaluate mood and the animation the device should show

Outside the cycle the engine accepts feedback (``learn``) and peer messages
(``communicate``). All randomness comes from the injected ``random.Random``
and all time from the injected ``Clock``, so a seeded run is reproducible.

Nothing here raises to the caller. Missing map entries read as 0.5.
"""

from __future__ import annotations

import random
from dataclasses import dataclass
from typing import Dict, List, Optional

from .clock import Clock, LogicalClock
from .events import EventBus, SimulationEvent
from .history import BoundedHistory
from .logging_utils import LOG_TAG_DETERMINISTIC, log_deterministic
from .personality import initial_mood
from .schemas import (
    AnimationChange,
    AnimationType,
    BehaviorAspect,
    CommunicationResponse,
    CommunicationStyle,
    ConflictResolutionStyle,
    Decision,
    DecisionType,
    EmotionalImpact,
    EnvironmentFeedback,
    FeedbackKind,
    LearningEvent,
    Mood,
    MoodChange,
    PeerMessage,
    PersonalityProfile,
    PersonalityTrait,
    ResourceRequest,
    clamp,
)

NEUTRAL = 0.5
TRUSTED_PEER_THRESHOLD = 0.6
DISTRUSTED_PEER_THRESHOLD = 0.3
SOCIAL_WINDOW_SECONDS = 60.0
MAX_TARGETS = 2

COMMUNICATION_ACTIONS = [
    "Send greeting to nearby devices",
    "Share status update with connected devices",
    "Request coordination for shared task",
    "Offer assistance to struggling devices",
    "Share learned optimization tip",
]

# (phrase used in the action text, resource kind carried by the request)
RESOURCE_KINDS = [
    ("processing power", "processing"),
    ("network bandwidth", "bandwidth"),
    ("energy allocation", "energy"),
    ("memory space", "memory"),
]

COOPERATION_ACTIONS = [
    "Propose joint optimization task",
    "Offer to share workload with compatible device",
    "Suggest coordinated scheduling",
    "Initiate resource sharing agreement",
    "Propose collaborative learning session",
]

# (action text, direction of the mood nudge)
MOOD_CHANGE_ACTIONS = [
    ("Become more optimistic about current situation", 1),
    ("Express concern about recent challenges", -1),
    ("Show excitement about cooperation opportunities", 1),
    ("Display frustration with resource constraints", -1),
    ("Demonstrate contentment with current performance", 1),
]

MOOD_VISUAL_EFFECTS: Dict[Mood, str] = {
    Mood.HAPPY: "bright_glow",
    Mood.CONTENT: "gentle_pulse",
    Mood.NEUTRAL: "steady_light",
    Mood.CONFUSED: "flickering",
    Mood.FRUSTRATED: "orange_warning",
    Mood.ANGRY: "red_flash",
}

MOOD_RESPONSES: Dict[Mood, List[str]] = {
    Mood.HAPPY: ["Great to hear from you!", "I'm excited to help!", "This sounds wonderful!"],
    Mood.CONTENT: ["Sure, I can help with that.", "That sounds reasonable.", "I'm happy to assist."],
    Mood.NEUTRAL: ["Acknowledged.", "I understand.", "Processing your request."],
    Mood.CONFUSED: ["I'm not sure I understand.", "Could you clarify?", "This seems unclear to me."],
    Mood.FRUSTRATED: [
        "This is challenging.",
        "I'm having difficulty with this.",
        "This isn't working as expected.",
    ],
    Mood.ANGRY: ["This is unacceptable.", "I strongly disagree.", "This conflicts with my objectives."],
}

QUIRK_ASIDES = [
    ("coffee", "(I could really use some coffee right now)"),
    ("music", "(This reminds me of a song)"),
    ("temperature", "(Is it just me or is it warm in here?)"),
]

MOOD_ANIMATIONS: Dict[Mood, AnimationType] = {
    Mood.HAPPY: AnimationType.HAPPY,
    Mood.CONFUSED: AnimationType.CONFUSED,
    Mood.FRUSTRATED: AnimationType.ANGRY,
    Mood.ANGRY: AnimationType.ANGRY,
    Mood.CONTENT: AnimationType.WORKING,
}

# Emotional payload attached to each decision type: (mood, intensity)
EMOTIONAL_IMPACTS: Dict[DecisionType, tuple] = {
    DecisionType.COOPERATION_ATTEMPT: (Mood.HAPPY, 0.3),
    DecisionType.RESOURCE_REQUEST: (Mood.FRUSTRATED, 0.2),
    DecisionType.COMMUNICATION: (Mood.CONTENT, 0.1),
}

NEGATIVE_MESSAGE_KINDS = ("conflict", "criticism")
POSITIVE_MESSAGE_KINDS = ("praise", "cooperation")


@dataclass(frozen=True)
class SituationAssessment:
    """Snapshot computed at the start of each decision cycle."""

    recent_activity: int
    recent_learning: int
    mood_trend: float
    social_interactions: int
    resource_needs: float
    conflict_level: float


@dataclass(frozen=True)
class DecisionCandidate:
    """A gated, scored option that may become a ``Decision``."""

    decision_type: DecisionType
    action: str
    priority: float
    reasoning: str
    mood_direction: int = 1
    aspect: Optional[BehaviorAspect] = None
    resource_kind: Optional[str] = None


class DeviceBehavior:
    """Decision engine for a single device.

    Args:
        agent_id: Owning device id
        personality: Read-only personality profile
        rng: Random source; pass ``random.Random(seed)`` for reproducible runs
        clock: Time source; defaults to a private ``LogicalClock``
        events: Bus that receives decision/mood/animation/learning events
        decision_history_limit: Ring-buffer size for decisions
        learning_history_limit: Ring-buffer size for learning events
    """

    def __init__(
        self,
        agent_id: str,
        personality: PersonalityProfile,
        *,
        rng: Optional[random.Random] = None,
        clock: Optional[Clock] = None,
        events: Optional[EventBus] = None,
        decision_history_limit: int = 200,
        learning_history_limit: int = 100,
    ) -> None:
        self.agent_id = agent_id
        self.personality = personality
        self.rng = rng or random.Random()
        self.clock = clock or LogicalClock()
        self.events = events or EventBus()

        self.mood_value: float = initial_mood(personality).value_level
        self.mood_intensity: float = 0.5
        self.animation: AnimationType = AnimationType.IDLE

        emotional = personality.emotional_range
        self.modifiers: Dict[BehaviorAspect, float] = {
            BehaviorAspect.COMMUNICATION_FREQUENCY: personality.socialness,
            BehaviorAspect.COOPERATION_WILLINGNESS: personality.socialness * 0.8,
            BehaviorAspect.CONFLICT_SENSITIVITY: emotional.anxiety,
            BehaviorAspect.LEARNING_RATE: personality.learning_rate,
            BehaviorAspect.MOOD_STABILITY: emotional.mood_stability,
            BehaviorAspect.TRUST_LEVEL: personality.reliability,
        }
        self.trust: Dict[str, float] = {}
        self.last_interactions: Dict[str, float] = {}

        self.decisions: BoundedHistory[Decision] = BoundedHistory(decision_history_limit)
        self.learning_events: BoundedHistory[LearningEvent] = BoundedHistory(learning_history_limit)
        self.last_assessment: Optional[SituationAssessment] = None

        self._decision_counter = 0
        self._learning_counter = 0

    # ------------------------------------------------------------------
    # Read helpers
    # ------------------------------------------------------------------

    @property
    def mood(self) -> Mood:
        return Mood.from_value(self.mood_value)

    def modifier(self, aspect: BehaviorAspect) -> float:
        return self.modifiers.get(aspect, NEUTRAL)

    def trust_in(self, peer_id: str) -> float:
        return self.trust.get(peer_id, NEUTRAL)

    def average_trust(self) -> float:
        """Mean trust across the trust map; 0 when the map is empty."""
        return sum(self.trust.values()) / max(len(self.trust), 1)

    def _has(self, trait: PersonalityTrait) -> bool:
        return self.personality.has_trait(trait)

    # ------------------------------------------------------------------
    # Decision cycle
    # ------------------------------------------------------------------

    def execute_decision_cycle(self) -> List[Decision]:
        """Run one assess, generate, select, execute, update-mood pass."""
        situation = self.assess_situation()
        candidates = self.generate_candidates(situation)
        selected = self.select_decisions(candidates)

        decisions = [self._execute(candidate) for candidate in selected]

        self.update_mood(situation)
        self.update_animation()

        if decisions:
            summary = ", ".join(d.decision_type.value for d in decisions)
            log_deterministic(f"  {LOG_TAG_DETERMINISTIC} [{self.agent_id}] Decided: {summary}")
        return decisions

    def assess_situation(self) -> SituationAssessment:
        situation = SituationAssessment(
            recent_activity=len(self.decisions.last(5)),
            recent_learning=len(self.learning_events.last(3)),
            mood_trend=self._mood_trend(),
            social_interactions=self.count_recent_social_interactions(),
            resource_needs=self._resource_needs(),
            conflict_level=self.assess_conflict_level(),
        )
        self.last_assessment = situation
        return situation

    def _mood_trend(self) -> float:
        recent = self.decisions.last(5)
        if not recent:
            return 0.0
        trend = 0.0
        for decision in recent:
            if decision.emotional_impact is not None:
                trend += decision.emotional_impact.valence * (decision.confidence / 100)
            if decision.decision_type in (DecisionType.COMMUNICATION, DecisionType.COOPERATION_ATTEMPT):
                trend += 0.1
            elif decision.decision_type == DecisionType.CONFLICT_RESPONSE:
                trend -= 0.2
        return clamp(trend / len(recent), -1.0, 1.0)

    def count_recent_social_interactions(self) -> int:
        cutoff = self.clock.now() - SOCIAL_WINDOW_SECONDS
        return sum(1 for when in self.last_interactions.values() if when >= cutoff)

    def _resource_needs(self) -> float:
        needs = 0.3 + 0.1 * len(self.decisions.last(3))
        if self._has(PersonalityTrait.OVERCONFIDENT):
            needs += 0.2
        if self._has(PersonalityTrait.ANXIOUS):
            needs += 0.15
        needs += self.personality.learning_rate * 0.2
        needs += self.personality.socialness * 0.15

        mood = self.mood
        if mood in (Mood.FRUSTRATED, Mood.ANGRY):
            needs += 0.2
        elif mood in (Mood.HAPPY, Mood.CONTENT):
            needs -= 0.1
        return clamp(needs)

    def assess_conflict_level(self) -> float:
        level = 0.0
        if self.trust:
            level += (1 - self.average_trust()) * 0.4

        conflict_responses = sum(
            1 for d in self.decisions.last(5) if d.decision_type == DecisionType.CONFLICT_RESPONSE
        )
        level += 0.15 * conflict_responses

        if self._has(PersonalityTrait.STUBBORN):
            level += 0.2
        if self._has(PersonalityTrait.COMPETITIVE):
            level += 0.15
        if self._has(PersonalityTrait.COOPERATIVE):
            level -= 0.1

        mood_terms = {
            Mood.ANGRY: 0.3,
            Mood.FRUSTRATED: 0.2,
            Mood.CONFUSED: 0.1,
            Mood.HAPPY: -0.1,
            Mood.CONTENT: -0.1,
        }
        level += mood_terms.get(self.mood, 0.0)

        if self.personality.conflict_resolution == ConflictResolutionStyle.AVOIDANT:
            level += 0.1
        return clamp(level)

    def generate_candidates(self, situation: SituationAssessment) -> List[DecisionCandidate]:
        """Run the five probabilistic gates.

        Gate order is fixed (communication, resource, cooperation, behavior,
        mood) so a seeded generator always consumes draws identically.
        """
        candidates: List[DecisionCandidate] = []

        comm_freq = self.modifier(BehaviorAspect.COMMUNICATION_FREQUENCY)
        if comm_freq > 0.6 and situation.social_interactions < 3 and self.rng.random() < comm_freq:
            priority = self.personality.socialness * 0.7
            if situation.social_interactions < 2:
                priority += 0.3
            candidates.append(
                DecisionCandidate(
                    decision_type=DecisionType.COMMUNICATION,
                    action=self.rng.choice(COMMUNICATION_ACTIONS),
                    priority=clamp(priority),
                    reasoning=(
                        f"Based on my {self.personality.communication_style.value} "
                        "communication style and current social needs"
                    ),
                )
            )

        if situation.resource_needs > 0.7 and self.rng.random() < 0.4:
            phrase, kind = self.rng.choice(RESOURCE_KINDS)
            priority = situation.resource_needs * 0.8
            if self.mood == Mood.FRUSTRATED:
                priority += 0.2
            candidates.append(
                DecisionCandidate(
                    decision_type=DecisionType.RESOURCE_REQUEST,
                    action=f"Request additional {phrase} for optimal performance",
                    priority=clamp(priority),
                    reasoning=(
                        f"Current resource needs ({round(situation.resource_needs * 100)}%) "
                        "require additional allocation"
                    ),
                    resource_kind=kind,
                )
            )

        willingness = self.modifier(BehaviorAspect.COOPERATION_WILLINGNESS)
        if willingness > 0.6 and situation.conflict_level < 0.5 and self.rng.random() < willingness:
            candidates.append(
                DecisionCandidate(
                    decision_type=DecisionType.COOPERATION_ATTEMPT,
                    action=self.rng.choice(COOPERATION_ACTIONS),
                    priority=clamp(willingness * 0.6 + self.average_trust() * 0.4),
                    reasoning="My cooperative nature and positive relationships suggest collaboration opportunities",
                )
            )

        if situation.recent_learning > 0 and self.rng.random() < 0.2:
            aspect = self.rng.choice(sorted(self.modifiers, key=lambda a: a.value))
            priority = self.modifier(BehaviorAspect.LEARNING_RATE) * 0.5
            if len(self.learning_events) > 5:
                priority += 0.3
            candidates.append(
                DecisionCandidate(
                    decision_type=DecisionType.BEHAVIOR_CHANGE,
                    action=f"Adjust {aspect.value.replace('_', ' ')} based on recent experiences",
                    priority=clamp(priority),
                    reasoning="Recent learning events suggest behavioral adaptation would be beneficial",
                    aspect=aspect,
                )
            )

        volatility = 1 - self.personality.emotional_range.mood_stability
        if volatility > 0.5 and self.rng.random() < volatility:
            action, direction = self.rng.choice(MOOD_CHANGE_ACTIONS)
            candidates.append(
                DecisionCandidate(
                    decision_type=DecisionType.MOOD_CHANGE,
                    action=action,
                    priority=clamp(volatility * 0.6 + situation.conflict_level * 0.4),
                    reasoning="Current emotional state and recent events suggest mood adjustment",
                    mood_direction=direction,
                )
            )

        return candidates

    def preference(self, decision_type: DecisionType) -> float:
        """Personality-derived tie-break score for a decision type."""
        if decision_type == DecisionType.COMMUNICATION:
            return self.personality.socialness
        if decision_type == DecisionType.COOPERATION_ATTEMPT:
            return 0.8 if self._has(PersonalityTrait.COOPERATIVE) else 0.4
        if decision_type == DecisionType.RESOURCE_REQUEST:
            return 0.7 if self._has(PersonalityTrait.ANXIOUS) else 0.5
        if decision_type == DecisionType.BEHAVIOR_CHANGE:
            return self.personality.adaptability
        if decision_type == DecisionType.MOOD_CHANGE:
            return 1 - self.personality.emotional_range.mood_stability
        return NEUTRAL

    def max_decisions_per_cycle(self) -> int:
        # Anxious wins over overconfident when both are present.
        if self._has(PersonalityTrait.ANXIOUS):
            return 1
        if self._has(PersonalityTrait.OVERCONFIDENT):
            return 3
        return 2

    def select_decisions(self, candidates: List[DecisionCandidate]) -> List[DecisionCandidate]:
        ranked = sorted(
            candidates,
            key=lambda c: (c.priority, self.preference(c.decision_type)),
            reverse=True,
        )
        return ranked[: self.max_decisions_per_cycle()]

    def _select_targets(self, decision_type: DecisionType) -> List[str]:
        trusted = [peer for peer, level in self.trust.items() if level > TRUSTED_PEER_THRESHOLD]
        if trusted or decision_type == DecisionType.RESOURCE_REQUEST:
            return trusted[:MAX_TARGETS]

        # Nobody trusted yet: reach out to the most recently heard-from peers
        # that are not actively distrusted.
        recent = sorted(self.last_interactions.items(), key=lambda item: item[1], reverse=True)
        acquaintances = [
            peer for peer, _ in recent if self.trust_in(peer) >= DISTRUSTED_PEER_THRESHOLD
        ]
        return acquaintances[:MAX_TARGETS]

    def _emotional_impact(self, decision_type: DecisionType) -> EmotionalImpact:
        mood, intensity = EMOTIONAL_IMPACTS.get(decision_type, (Mood.NEUTRAL, 0.1))
        return EmotionalImpact(
            mood=mood,
            intensity=intensity,
            duration_seconds=30.0,
            triggers=[decision_type.value],
        )

    def _execute(self, candidate: DecisionCandidate) -> Decision:
        self._decision_counter += 1
        now = self.clock.now()

        targets: List[str] = []
        if candidate.decision_type in (
            DecisionType.COMMUNICATION,
            DecisionType.COOPERATION_ATTEMPT,
            DecisionType.RESOURCE_REQUEST,
        ):
            targets = self._select_targets(candidate.decision_type)

        requests: List[ResourceRequest] = []
        if candidate.decision_type == DecisionType.RESOURCE_REQUEST:
            requests.append(
                ResourceRequest(
                    resource_type=candidate.resource_kind or "processing",
                    amount=self.rng.random() * 50 + 10,
                    priority=self.rng.random() * 0.5 + 0.5,
                    duration_seconds=self.rng.random() * 30 + 10,
                    justification="Required for optimal task performance",
                )
            )

        decision = Decision(
            id=f"{self.agent_id}-d{self._decision_counter}",
            agent_id=self.agent_id,
            decision_type=candidate.decision_type,
            action=candidate.action,
            reasoning=candidate.reasoning,
            priority=candidate.priority,
            confidence=int(round(candidate.priority * 100)),
            timestamp=now,
            target_agent_ids=targets,
            resource_requests=requests,
            emotional_impact=self._emotional_impact(candidate.decision_type),
        )

        self.decisions.append(decision)
        self.events.publish(SimulationEvent.DECISION_MADE, decision)
        self._apply_side_effects(decision, candidate)
        return decision

    def _apply_side_effects(self, decision: Decision, candidate: DecisionCandidate) -> None:
        if decision.decision_type == DecisionType.MOOD_CHANGE and decision.emotional_impact:
            self.nudge_mood(candidate.mood_direction * decision.emotional_impact.intensity)
        elif decision.decision_type == DecisionType.BEHAVIOR_CHANGE:
            aspect = candidate.aspect or BehaviorAspect.COMMUNICATION_FREQUENCY
            self._set_modifier(aspect, self.modifier(aspect) + (self.rng.random() - 0.5) * 0.1)
        elif decision.decision_type == DecisionType.COMMUNICATION:
            aspect = BehaviorAspect.COMMUNICATION_FREQUENCY
            self._set_modifier(aspect, self.modifier(aspect) + 0.05)
        elif decision.decision_type == DecisionType.COOPERATION_ATTEMPT:
            aspect = BehaviorAspect.COOPERATION_WILLINGNESS
            self._set_modifier(aspect, self.modifier(aspect) + 0.03)

    def _set_modifier(self, aspect: BehaviorAspect, value: float) -> None:
        self.modifiers[aspect] = clamp(value)

    # ------------------------------------------------------------------
    # Mood and animation
    # ------------------------------------------------------------------

    def update_mood(self, situation: Optional[SituationAssessment] = None) -> None:
        """Aggregate recent emotional impacts into a damped mood change."""
        change = 0.0
        for decision in self.decisions.last(3):
            if decision.emotional_impact is not None:
                change += decision.emotional_impact.valence * (decision.confidence / 100)

        emotional = self.personality.emotional_range
        conflict_level = situation.conflict_level if situation else self.assess_conflict_level()
        social = situation.social_interactions if situation else self.count_recent_social_interactions()
        if emotional.anxiety > 0.7 and conflict_level > 0.5:
            change -= 0.2
        if emotional.enthusiasm > 0.7 and social > 2:
            change += 0.1

        change *= 1 - emotional.mood_stability
        if abs(change) > 0.1:
            self.nudge_mood(change)

    def nudge_mood(self, delta: float) -> None:
        """Shift the continuous mood value; publish when the level changes."""
        previous = self.mood
        self.mood_value = clamp(self.mood_value + delta, 0.0, 5.0)
        current = self.mood
        if current == previous:
            return

        self.mood_intensity = clamp(0.5 + abs(delta))
        reason = (
            "Recent positive interactions have improved my mood"
            if current > previous
            else "Recent challenges have affected my mood"
        )
        self.events.publish(
            SimulationEvent.MOOD_CHANGED,
            MoodChange(
                agent_id=self.agent_id,
                previous_mood=previous,
                mood=current,
                intensity=self.mood_intensity,
                reason=reason,
                visual_effect=MOOD_VISUAL_EFFECTS[current],
            ),
        )

    def target_animation(self) -> AnimationType:
        if any(d.decision_type == DecisionType.COMMUNICATION for d in self.decisions.last(2)):
            return AnimationType.COMMUNICATING
        return MOOD_ANIMATIONS.get(self.mood, AnimationType.IDLE)

    def update_animation(self) -> None:
        self.set_animation(self.target_animation())

    def set_animation(self, animation: AnimationType) -> None:
        """Switch the animation intent; publishes only on an actual change."""
        if animation == self.animation:
            return
        previous = self.animation
        self.animation = animation
        self.events.publish(
            SimulationEvent.ANIMATION_CHANGED,
            AnimationChange(agent_id=self.agent_id, previous=previous, animation=animation),
        )

    # ------------------------------------------------------------------
    # Learning
    # ------------------------------------------------------------------

    def learn(self, feedback: EnvironmentFeedback) -> Optional[LearningEvent]:
        """Maybe derive one behavior adjustment from ``feedback``.

        Learning fires with probability equal to the learning-rate modifier.
        Returns the recorded ``LearningEvent`` or ``None``.
        """
        if self.rng.random() >= self.modifier(BehaviorAspect.LEARNING_RATE):
            return None

        change = self._derive_learning_change(feedback)
        if change is None:
            return None
        aspect, previous, new_value, reason, peer_id = change
        self._set_modifier(aspect, new_value)

        self._learning_counter += 1
        factor = 0.8 if feedback.success else 0.6
        event = LearningEvent(
            id=f"{self.agent_id}-l{self._learning_counter}",
            agent_id=self.agent_id,
            trigger=feedback.kind,
            source=feedback.source,
            aspect=aspect,
            previous_value=previous,
            new_value=self.modifier(aspect),
            reason=reason,
            confidence=self.personality.learning_rate * factor,
            reinforcement=1 if feedback.success else -1,
            timestamp=self.clock.now(),
            peer_id=peer_id,
        )
        self.learning_events.append(event)
        self.events.publish(SimulationEvent.LEARNING_EVENT, event)
        return event

    def _derive_learning_change(self, feedback: EnvironmentFeedback):
        kind = feedback.kind
        message = feedback.message.lower()

        if kind == FeedbackKind.USER_INTERACTION:
            if feedback.success:
                aspect = BehaviorAspect.COMMUNICATION_FREQUENCY
                return aspect, self.modifier(aspect), self.modifier(aspect) + 0.1, "User responded well to communication", None
            aspect = BehaviorAspect.CONFLICT_SENSITIVITY
            return aspect, self.modifier(aspect), self.modifier(aspect) + 0.05, "User interaction went poorly", None

        if kind == FeedbackKind.DEVICE_RESPONSE:
            peer = feedback.source
            if feedback.success:
                self.trust[peer] = clamp(self.trust_in(peer) + 0.1)
                aspect = BehaviorAspect.COOPERATION_WILLINGNESS
                return aspect, self.modifier(aspect), self.modifier(aspect) + 0.05, f"{peer} responded positively", peer
            self.trust[peer] = clamp(self.trust_in(peer) - 0.15)
            aspect = BehaviorAspect.CONFLICT_SENSITIVITY
            return aspect, self.modifier(aspect), self.modifier(aspect) + 0.1, f"{peer} let me down", peer

        if kind == FeedbackKind.SYSTEM_EVENT and "resource shortage" in message:
            aspect = BehaviorAspect.RESOURCE_USAGE_PATTERN
            return aspect, self.modifier(aspect), self.modifier(aspect) - 0.1, "Conserving resources after a shortage", None

        if kind == FeedbackKind.RESOURCE_CHANGE and feedback.success and "efficient" in message:
            aspect = BehaviorAspect.RESOURCE_USAGE_PATTERN
            return aspect, self.modifier(aspect), self.modifier(aspect) + 0.05, "Learning more efficient resource usage patterns", None

        return None

    # ------------------------------------------------------------------
    # Communication
    # ------------------------------------------------------------------

    def response_style(self, sender_id: str) -> str:
        trust = self.trust_in(sender_id)
        style = self.personality.communication_style
        if style == CommunicationStyle.VERBOSE:
            return "detailed_explanation" if trust > 0.7 else "cautious_verbose"
        if style == CommunicationStyle.CONCISE:
            return "brief_friendly" if trust > 0.7 else "minimal_response"
        if style == CommunicationStyle.TECHNICAL:
            return "technical_data"
        if style == CommunicationStyle.FRIENDLY:
            return "warm_friendly" if trust > 0.5 else "polite_distant"
        if style == CommunicationStyle.QUIRKY:
            return "playful_quirky" if trust > 0.6 else "subdued_quirky"
        return "standard_response"

    def _quirk_aside(self) -> str:
        if not self.personality.quirks:
            return ""
        quirk = self.rng.choice(self.personality.quirks).lower()
        for keyword, aside in QUIRK_ASIDES:
            if keyword in quirk:
                return aside
        return ""

    def communicate(self, message: PeerMessage) -> CommunicationResponse:
        """Answer a peer message and absorb its social side effects."""
        # Style is chosen from trust before this message adjusts it.
        style = self.response_style(message.sender_id)
        base = self.rng.choice(MOOD_RESPONSES[self.mood])
        content = f"{base} {self._quirk_aside()}".strip()
        now = self.clock.now()

        self.last_interactions[message.sender_id] = now
        step = 0.05 if message.kind == "helpful" else -0.02
        self.trust[message.sender_id] = clamp(self.trust_in(message.sender_id) + step)

        if message.kind in NEGATIVE_MESSAGE_KINDS:
            self.nudge_mood(-0.1)
        elif message.kind in POSITIVE_MESSAGE_KINDS:
            self.nudge_mood(0.1)

        return CommunicationResponse(
            responder_id=self.agent_id,
            receiver_id=message.sender_id,
            style=style,
            content=content,
            mood=self.mood,
            timestamp=now,
        )

    # ------------------------------------------------------------------
    # Bookkeeping
    # ------------------------------------------------------------------

    def forget_peer(self, peer_id: str) -> None:
        """Drop every trace of a removed peer."""
        self.trust.pop(peer_id, None)
        self.last_interactions.pop(peer_id, None)
