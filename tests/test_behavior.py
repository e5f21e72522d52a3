"""Tests for the per-device decision engine."""

import random

import pytest

from aihabitat.behavior import MOOD_CHANGE_ACTIONS, DecisionCandidate, DeviceBehavior
from aihabitat.clock import LogicalClock
from aihabitat.events import EventBus, SimulationEvent
from aihabitat.personality import PersonalityArchetypes
from aihabitat.schemas import (
    AnimationType,
    BehaviorAspect,
    CommunicationStyle,
    ConflictResolutionStyle,
    DecisionType,
    EmotionalRange,
    EnvironmentFeedback,
    FeedbackKind,
    Mood,
    PeerMessage,
    PersonalityProfile,
    PersonalityTrait,
)


class ScriptedRandom(random.Random):
    """Random source that replays scripted draws and always picks the first choice."""

    def __init__(self, values, default=0.99):
        super().__init__(0)
        self.values = list(values)
        self.default = default

    def random(self):
        if self.values:
            return self.values.pop(0)
        return self.default

    def choice(self, seq):
        return seq[0]


def make_behavior(personality=None, rng=None, **kwargs):
    events = EventBus()
    behavior = DeviceBehavior(
        "a",
        personality or PersonalityProfile(),
        rng=rng or ScriptedRandom([]),
        clock=LogicalClock(),
        events=events,
        **kwargs,
    )
    return behavior, events


def record_events(events):
    seen = []
    events.subscribe_all(lambda name, payload: seen.append((name, payload)))
    return seen


def test_initial_modifiers_follow_personality():
    personality = PersonalityProfile(
        socialness=0.8,
        learning_rate=0.3,
        reliability=0.9,
        emotional_range=EmotionalRange(anxiety=0.7, mood_stability=0.4),
    )
    behavior, _ = make_behavior(personality)

    assert behavior.modifier(BehaviorAspect.COMMUNICATION_FREQUENCY) == 0.8
    assert behavior.modifier(BehaviorAspect.COOPERATION_WILLINGNESS) == pytest.approx(0.64)
    assert behavior.modifier(BehaviorAspect.CONFLICT_SENSITIVITY) == 0.7
    assert behavior.modifier(BehaviorAspect.LEARNING_RATE) == 0.3
    assert behavior.modifier(BehaviorAspect.MOOD_STABILITY) == 0.4
    assert behavior.modifier(BehaviorAspect.TRUST_LEVEL) == 0.9
    # Lazily created aspects and unknown peers read as neutral.
    assert behavior.modifier(BehaviorAspect.RESOURCE_USAGE_PATTERN) == 0.5
    assert behavior.trust_in("stranger") == 0.5
    assert behavior.average_trust() == 0.0


def test_initial_mood_from_default_expression():
    behavior, _ = make_behavior(PersonalityArchetypes.nervous_monitor())
    assert behavior.mood == Mood.FRUSTRATED
    assert behavior.mood_value == 1.0

    behavior, _ = make_behavior(PersonalityProfile(emotional_range=EmotionalRange(default_mood="grumpy")))
    assert behavior.mood == Mood.NEUTRAL


def test_decision_cycle_with_open_gates():
    personality = PersonalityProfile(
        socialness=0.9,
        learning_rate=0.5,
        emotional_range=EmotionalRange(mood_stability=0.9),
    )
    behavior, events = make_behavior(personality, ScriptedRandom([0.1, 0.1]))
    seen = record_events(events)

    decisions = behavior.execute_decision_cycle()

    assert [d.decision_type for d in decisions] == [
        DecisionType.COMMUNICATION,
        DecisionType.COOPERATION_ATTEMPT,
    ]
    communication, cooperation = decisions
    assert communication.priority == pytest.approx(0.93)
    assert communication.confidence == 93
    assert cooperation.priority == pytest.approx(0.432)
    assert communication.id == "a-d1"
    assert communication.emotional_impact.mood == Mood.CONTENT
    assert cooperation.emotional_impact.mood == Mood.HAPPY
    # Nobody known yet, so nobody to target.
    assert communication.target_agent_ids == []

    assert behavior.modifier(BehaviorAspect.COMMUNICATION_FREQUENCY) == pytest.approx(0.95)
    assert behavior.modifier(BehaviorAspect.COOPERATION_WILLINGNESS) == pytest.approx(0.75)

    names = [name for name, _ in seen]
    assert names.count("decision_made") == 2
    assert "animation_changed" in names
    assert behavior.animation == AnimationType.COMMUNICATING


def test_closed_gates_produce_no_decisions():
    personality = PersonalityProfile(socialness=0.9, emotional_range=EmotionalRange(mood_stability=0.9))
    behavior, _ = make_behavior(personality, ScriptedRandom([0.95, 0.95]))
    assert behavior.execute_decision_cycle() == []
    assert len(behavior.decisions) == 0


def test_targets_prefer_trusted_peers():
    personality = PersonalityProfile(socialness=0.9, emotional_range=EmotionalRange(mood_stability=0.9))
    behavior, _ = make_behavior(personality, ScriptedRandom([0.1, 0.95]))
    behavior.trust.update({"b": 0.9, "c": 0.2, "d": 0.7, "e": 0.65})

    decisions = behavior.execute_decision_cycle()

    assert decisions[0].decision_type == DecisionType.COMMUNICATION
    assert decisions[0].target_agent_ids == ["b", "d"]


def test_targets_fall_back_to_recent_acquaintances():
    personality = PersonalityProfile(socialness=0.9, emotional_range=EmotionalRange(mood_stability=0.9))
    behavior, _ = make_behavior(personality, ScriptedRandom([0.1, 0.95]))
    behavior.trust.update({"b": 0.48, "c": 0.1})
    behavior.last_interactions.update({"b": 0.0, "c": 0.0})

    decisions = behavior.execute_decision_cycle()

    assert decisions[0].target_agent_ids == ["b"]


def test_anxious_limits_decisions_even_when_overconfident():
    behavior, _ = make_behavior(
        PersonalityProfile(primary_traits=[PersonalityTrait.ANXIOUS, PersonalityTrait.OVERCONFIDENT])
    )
    assert behavior.max_decisions_per_cycle() == 1

    behavior, _ = make_behavior(PersonalityProfile(primary_traits=[PersonalityTrait.OVERCONFIDENT]))
    assert behavior.max_decisions_per_cycle() == 3

    behavior, _ = make_behavior(PersonalityProfile())
    assert behavior.max_decisions_per_cycle() == 2


def test_equal_priorities_break_ties_by_preference():
    behavior, _ = make_behavior(PersonalityProfile(socialness=0.3))
    candidates = [
        DecisionCandidate(DecisionType.COMMUNICATION, "talk", 0.5, "r"),
        DecisionCandidate(DecisionType.COOPERATION_ATTEMPT, "team up", 0.5, "r"),
        DecisionCandidate(DecisionType.MOOD_CHANGE, "sulk", 0.2, "r"),
    ]
    selected = behavior.select_decisions(candidates)
    assert [c.decision_type for c in selected] == [
        DecisionType.COOPERATION_ATTEMPT,
        DecisionType.COMMUNICATION,
    ]


def test_conflict_level_terms():
    behavior, _ = make_behavior(
        PersonalityProfile(
            primary_traits=[PersonalityTrait.STUBBORN, PersonalityTrait.COMPETITIVE],
            conflict_resolution=ConflictResolutionStyle.AVOIDANT,
        )
    )
    assert behavior.assess_conflict_level() == pytest.approx(0.45)

    behavior.trust["b"] = 0.0
    assert behavior.assess_conflict_level() == pytest.approx(0.85)


def test_mood_change_decision_nudges_in_action_direction():
    personality = PersonalityProfile(socialness=0.1, emotional_range=EmotionalRange(mood_stability=0.1))
    behavior, _ = make_behavior(personality, ScriptedRandom([0.0]))

    decisions = behavior.execute_decision_cycle()

    assert [d.decision_type for d in decisions] == [DecisionType.MOOD_CHANGE]
    assert decisions[0].action == MOOD_CHANGE_ACTIONS[0][0]
    assert behavior.mood_value == pytest.approx(3.1)


def test_learning_from_successful_device_response():
    behavior, events = make_behavior(PersonalityProfile(learning_rate=0.5), ScriptedRandom([0.0]))
    seen = record_events(events)

    event = behavior.learn(EnvironmentFeedback(source="b", kind=FeedbackKind.DEVICE_RESPONSE, success=True))

    assert event is not None
    assert event.aspect == BehaviorAspect.COOPERATION_WILLINGNESS
    assert event.reinforcement == 1
    assert event.confidence == pytest.approx(0.4)
    assert event.peer_id == "b"
    assert behavior.trust_in("b") == pytest.approx(0.6)
    assert behavior.modifier(BehaviorAspect.COOPERATION_WILLINGNESS) == pytest.approx(0.45)
    assert [name for name, _ in seen] == ["learning_event"]
    assert len(behavior.learning_events) == 1


def test_learning_from_failed_device_response():
    behavior, _ = make_behavior(PersonalityProfile(learning_rate=0.5), ScriptedRandom([0.0]))

    event = behavior.learn(EnvironmentFeedback(source="b", kind=FeedbackKind.DEVICE_RESPONSE, success=False))

    assert event.reinforcement == -1
    assert event.confidence == pytest.approx(0.3)
    assert behavior.trust_in("b") == pytest.approx(0.35)
    assert behavior.modifier(BehaviorAspect.CONFLICT_SENSITIVITY) == pytest.approx(0.6)


def test_learning_gate_and_ignored_feedback():
    behavior, _ = make_behavior(PersonalityProfile(learning_rate=0.5), ScriptedRandom([0.99]))
    assert behavior.learn(EnvironmentFeedback(source="user", kind=FeedbackKind.USER_INTERACTION)) is None
    assert behavior.modifier(BehaviorAspect.COMMUNICATION_FREQUENCY) == 0.5

    behavior, _ = make_behavior(PersonalityProfile(learning_rate=0.5), ScriptedRandom([0.0]))
    assert behavior.learn(EnvironmentFeedback(source="meter", kind=FeedbackKind.PERFORMANCE_METRIC)) is None
    assert len(behavior.learning_events) == 0


def test_resource_shortage_and_efficiency_feedback():
    behavior, _ = make_behavior(PersonalityProfile(learning_rate=0.5), ScriptedRandom([0.0, 0.0]))

    shortage = behavior.learn(
        EnvironmentFeedback(source="grid", kind=FeedbackKind.SYSTEM_EVENT, message="Resource shortage detected")
    )
    assert shortage.aspect == BehaviorAspect.RESOURCE_USAGE_PATTERN
    assert behavior.modifier(BehaviorAspect.RESOURCE_USAGE_PATTERN) == pytest.approx(0.4)

    behavior.learn(
        EnvironmentFeedback(
            source="grid", kind=FeedbackKind.RESOURCE_CHANGE, message="Now running efficient", success=True
        )
    )
    assert behavior.modifier(BehaviorAspect.RESOURCE_USAGE_PATTERN) == pytest.approx(0.45)


def test_communicate_reply_and_trust():
    personality = PersonalityProfile(quirks=["needs coffee before every task"])
    behavior, _ = make_behavior(personality)

    reply = behavior.communicate(PeerMessage(sender_id="b", kind="helpful", content="Here is a tip"))

    assert reply.responder_id == "a"
    assert reply.receiver_id == "b"
    assert reply.style == "polite_distant"
    assert reply.content == "Acknowledged. (I could really use some coffee right now)"
    assert behavior.trust_in("b") == pytest.approx(0.55)
    assert behavior.last_interactions["b"] == 0.0

    behavior.communicate(PeerMessage(sender_id="c", kind="status_update"))
    assert behavior.trust_in("c") == pytest.approx(0.48)


def test_response_styles_depend_on_trust():
    behavior, _ = make_behavior(PersonalityProfile(communication_style=CommunicationStyle.VERBOSE))
    behavior.trust["b"] = 0.8
    assert behavior.response_style("b") == "detailed_explanation"
    assert behavior.response_style("c") == "cautious_verbose"

    behavior, _ = make_behavior(PersonalityProfile(communication_style=CommunicationStyle.TECHNICAL))
    assert behavior.response_style("b") == "technical_data"

    behavior, _ = make_behavior(PersonalityProfile(communication_style=CommunicationStyle.FORMAL))
    assert behavior.response_style("b") == "standard_response"


def test_repeated_criticism_eventually_changes_mood():
    behavior, events = make_behavior(PersonalityProfile())
    seen = record_events(events)

    for _ in range(10):
        behavior.communicate(PeerMessage(sender_id="b", kind="criticism"))

    assert behavior.mood == Mood.CONFUSED
    mood_events = [payload for name, payload in seen if name == "mood_changed"]
    assert len(mood_events) == 1
    assert mood_events[0].previous_mood == Mood.NEUTRAL
    assert mood_events[0].visual_effect == "flickering"


def test_same_seed_same_decisions():
    def run(seed):
        clock = LogicalClock()
        behavior = DeviceBehavior(
            "a", PersonalityArchetypes.eager_helper(), rng=random.Random(seed), clock=clock, events=EventBus()
        )
        produced = []
        for _ in range(30):
            clock.advance(0.1)
            produced.extend((d.decision_type, d.action, d.priority) for d in behavior.execute_decision_cycle())
        return produced

    assert run(11) == run(11)


def test_decision_history_is_bounded():
    behavior, _ = make_behavior(
        PersonalityArchetypes.eager_helper(), ScriptedRandom([], default=0.0), decision_history_limit=3
    )
    for _ in range(20):
        behavior.execute_decision_cycle()
    assert len(behavior.decisions) == 3


def test_forget_peer():
    behavior, _ = make_behavior()
    behavior.trust["b"] = 0.9
    behavior.last_interactions["b"] = 1.0
    behavior.forget_peer("b")
    assert "b" not in behavior.trust
    assert "b" not in behavior.last_interactions
