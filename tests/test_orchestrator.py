"""Tests covering the orchestrator registry, tick loop, and interaction handlers."""

import asyncio
import contextlib
import io
import random

import pytest

from aihabitat.clock import LogicalClock
from aihabitat.events import SimulationEvent
from aihabitat.orchestrator import (
    Orchestrator,
    SimulationSettings,
    connection_id,
    personality_compatibility,
    synergy_type_for,
)
from aihabitat.personality import PersonalityArchetypes
from aihabitat.schemas import (
    AnimationType,
    ConnectionStatus,
    ConnectionType,
    Decision,
    DecisionType,
    EnvironmentFeedback,
    FeedbackKind,
    Mood,
    MoodChange,
    PersonalityProfile,
    Position,
    SynergyType,
    TensionEscalation,
)


def make_orchestrator(seed=1, **overrides):
    settings = SimulationSettings(seed=seed, **overrides)
    orchestrator = Orchestrator(settings, clock=LogicalClock())
    seen = []
    orchestrator.events.subscribe_all(lambda name, payload: seen.append((name, payload)))
    return orchestrator, seen


def payloads(seen, event):
    return [payload for name, payload in seen if name == event.value]


def decision(agent_id, decision_type, targets):
    return Decision(
        id=f"{agent_id}-test",
        agent_id=agent_id,
        decision_type=decision_type,
        action="scripted",
        reasoning="scripted for test",
        priority=0.5,
        confidence=50,
        timestamp=0.0,
        target_agent_ids=targets,
    )


def add_pair(orchestrator, first=None, second=None):
    a = orchestrator.add_agent("a", first or PersonalityArchetypes.eager_helper(), Position(x=0, y=0, z=0))
    b = orchestrator.add_agent("b", second or PersonalityArchetypes.eager_helper(), Position(x=1, y=0, z=0))
    return a, b


def test_connection_id_is_order_independent():
    assert connection_id("b", "a") == connection_id("a", "b") == "a-b"


def test_add_agent_discovers_nearby_devices():
    orchestrator, seen = make_orchestrator()
    a, b = add_pair(orchestrator)
    far = orchestrator.add_agent("far", PersonalityProfile(), Position(x=50, y=0, z=0))

    assert list(a.discovered) == ["b"]
    assert list(b.discovered) == ["a"]
    assert far.discovered == {}

    connection = orchestrator.get_connection("b", "a")
    assert connection.connection_type == ConnectionType.COMMUNICATION
    assert connection.strength == pytest.approx(0.3)
    assert len(payloads(seen, SimulationEvent.DEVICE_DISCOVERED)) == 1
    assert len(payloads(seen, SimulationEvent.CONNECTION_ESTABLISHED)) == 1

    # Greeting goes both ways.
    assert "a" in b.behavior.last_interactions
    assert "b" in a.behavior.last_interactions


def test_move_agent_reruns_discovery():
    orchestrator, _ = make_orchestrator()
    orchestrator.add_agent("a", PersonalityProfile(), Position(x=0, y=0, z=0))
    b = orchestrator.add_agent("b", PersonalityProfile(), Position(x=20, y=0, z=0))
    assert b.discovered == {}

    orchestrator.move_agent("b", Position(x=3, y=4, z=0))
    assert "a" in b.discovered
    orchestrator.move_agent("ghost", Position())


def test_tick_advances_clock_by_interval_times_speed():
    orchestrator, seen = make_orchestrator(tick_interval_seconds=0.1, speed=2.0)
    for _ in range(3):
        orchestrator.tick()
    assert orchestrator.clock.now() == pytest.approx(0.6)
    assert orchestrator.tick_count == 3
    assert payloads(seen, SimulationEvent.TICK) == [1, 2, 3]


def test_set_speed_is_clamped():
    orchestrator, _ = make_orchestrator()
    orchestrator.set_speed(10)
    assert orchestrator.speed == 5.0
    orchestrator.set_speed(0)
    assert orchestrator.speed == 0.1
    orchestrator.set_speed(2.5)
    assert orchestrator.speed == 2.5


def test_remove_agent_purges_every_reference():
    orchestrator, _ = make_orchestrator()
    a, b = add_pair(orchestrator)
    orchestrator.tick()
    assert orchestrator.conflicts.get_tension("b") is not None

    assert orchestrator.remove_agent("b") is True
    assert orchestrator.get_agent("b") is None
    assert orchestrator.get_connections() == []
    assert "b" not in a.discovered
    assert "b" not in a.behavior.trust
    assert "b" not in a.behavior.last_interactions
    assert orchestrator.conflicts.get_tension("b") is None

    assert orchestrator.remove_agent("b") is False


def test_re_adding_an_agent_replaces_it():
    orchestrator, _ = make_orchestrator()
    first = orchestrator.add_agent("a", PersonalityProfile())
    second = orchestrator.add_agent("a", PersonalityArchetypes.team_player())
    assert orchestrator.get_agents() == [second]
    assert first is not second


def test_failing_agent_cycle_does_not_stop_others():
    orchestrator, _ = make_orchestrator()
    a, b = add_pair(orchestrator)

    def boom():
        raise RuntimeError("cycle exploded")

    calls = []
    original = b.behavior.execute_decision_cycle

    def counting():
        calls.append(1)
        return original()

    a.behavior.execute_decision_cycle = boom
    b.behavior.execute_decision_cycle = counting

    buffer = io.StringIO()
    with contextlib.redirect_stdout(buffer):
        orchestrator.tick()
        orchestrator.tick()

    assert len(calls) == 2
    failures = orchestrator.failures.to_list()
    assert [f.subject for f in failures] == ["a", "a"]
    assert failures[0].component == "agent"
    assert "cycle exploded" in buffer.getvalue()


def test_failing_subscriber_does_not_break_tick():
    orchestrator, _ = make_orchestrator()
    add_pair(orchestrator)
    heard = []

    def broken(_tick):
        raise RuntimeError("ui bug")

    orchestrator.events.subscribe(SimulationEvent.TICK, broken)
    orchestrator.events.subscribe(SimulationEvent.TICK, heard.append)

    with contextlib.redirect_stdout(io.StringIO()):
        orchestrator.tick()

    assert heard == [1]
    assert orchestrator.tick_count == 1


def test_communication_decision_strengthens_connection():
    orchestrator, _ = make_orchestrator()
    a, b = add_pair(orchestrator)

    orchestrator._handle_decision(a, decision("a", DecisionType.COMMUNICATION, ["b", "ghost"]))

    connection = orchestrator.get_connection("a", "b")
    assert connection.strength == pytest.approx(0.4)
    assert connection.interaction_count == 2
    assert connection.success_rate == 1.0
    assert b.behavior.last_interactions["a"] == orchestrator.clock.now()


def test_repeated_communication_saturates_then_cooperation_retypes():
    orchestrator, seen = make_orchestrator()
    a, b = add_pair(orchestrator)

    for _ in range(10):
        orchestrator._handle_decision(a, decision("a", DecisionType.COMMUNICATION, ["b"]))

    connection = orchestrator.get_connection("a", "b")
    assert connection.strength == 1.0
    assert connection.success_rate == 1.0
    assert connection.interaction_count == 11
    assert connection.connection_type == ConnectionType.COMMUNICATION

    orchestrator._handle_decision(a, decision("a", DecisionType.COOPERATION_ATTEMPT, ["b"]))

    assert connection.connection_type == ConnectionType.COOPERATION
    assert len(orchestrator.get_synergies()) == 1
    assert len(payloads(seen, SimulationEvent.SYNERGY_CREATED)) == 1


def test_cooperation_creates_records_and_single_synergy():
    orchestrator, seen = make_orchestrator()
    a, b = add_pair(orchestrator)
    # Greetings leave trust at 0.48; eager helpers still clear the 0.5 willingness bar.
    assert orchestrator.cooperation_willingness(a, b) == pytest.approx(0.544)

    orchestrator.get_connection("a", "b").strength = 0.8
    orchestrator._handle_decision(a, decision("a", DecisionType.COOPERATION_ATTEMPT, ["b"]))
    orchestrator._handle_decision(a, decision("a", DecisionType.COOPERATION_ATTEMPT, ["b"]))

    connection = orchestrator.get_connection("a", "b")
    assert connection.connection_type == ConnectionType.COOPERATION
    assert a.cooperation["b"].cooperation_count == 2
    assert b.cooperation["a"].successful_cooperations == 2
    assert a.cooperation["b"].trust_score == pytest.approx(0.7)

    synergies = orchestrator.get_synergies()
    assert len(synergies) == 1
    assert synergies[0].synergy_type == SynergyType.EFFICIENCY_BOOST
    assert synergies[0].participant_ids == ["a", "b"]
    assert len(payloads(seen, SimulationEvent.SYNERGY_CREATED)) == 1
    effects = payloads(seen, SimulationEvent.VISUAL_EFFECT)
    assert [e.effect_type for e in effects] == ["cooperation", "cooperation"]

    orchestrator.clock.advance(31)
    orchestrator._expire_synergies()
    assert orchestrator.get_synergies() == []
    assert len(payloads(seen, SimulationEvent.SYNERGY_EXPIRED)) == 1


def test_unwilling_partner_is_left_alone():
    orchestrator, _ = make_orchestrator()
    loner = PersonalityProfile(socialness=0.1)
    a, b = add_pair(orchestrator, first=loner)

    orchestrator._handle_decision(a, decision("a", DecisionType.COOPERATION_ATTEMPT, ["b"]))

    assert a.cooperation == {}
    assert orchestrator.get_connection("a", "b").connection_type == ConnectionType.COMMUNICATION


def test_resource_request_retypes_existing_connection():
    orchestrator, _ = make_orchestrator()
    a, _ = add_pair(orchestrator)
    orchestrator.clock.advance(3)

    orchestrator._handle_decision(a, decision("a", DecisionType.RESOURCE_REQUEST, ["b", "ghost"]))

    connection = orchestrator.get_connection("a", "b")
    assert connection.connection_type == ConnectionType.RESOURCE_SHARING
    assert connection.last_interaction_at == 3.0


def test_connection_aging_decays_then_prunes():
    orchestrator, _ = make_orchestrator(interaction_cooldown_seconds=1.0)
    add_pair(orchestrator)
    connection = orchestrator.get_connection("a", "b")

    orchestrator.clock.advance(6)
    orchestrator._age_connections()
    assert connection.strength == pytest.approx(0.29)
    assert connection.status == ConnectionStatus.ACTIVE

    orchestrator.clock.advance(5)
    orchestrator._age_connections()
    assert connection.strength == pytest.approx(0.28)
    assert connection.status == ConnectionStatus.INACTIVE

    connection.strength = 0.1
    orchestrator._age_connections()
    assert orchestrator.get_connection("a", "b") is None


def test_bad_mood_weakens_connections():
    orchestrator, _ = make_orchestrator()
    add_pair(orchestrator)
    orchestrator.events.publish(
        SimulationEvent.MOOD_CHANGED,
        MoodChange(
            agent_id="a",
            previous_mood=Mood.NEUTRAL,
            mood=Mood.ANGRY,
            intensity=0.7,
            reason="test",
            visual_effect="red_flash",
        ),
    )
    assert orchestrator.get_connection("a", "b").strength == pytest.approx(0.2)


def test_tension_escalation_sets_animation_hint():
    orchestrator, _ = make_orchestrator()
    a, b = add_pair(orchestrator)
    orchestrator.events.publish(SimulationEvent.TENSION_ESCALATED, TensionEscalation(agent_id="a", level=0.9))
    orchestrator.events.publish(SimulationEvent.TENSION_ESCALATED, TensionEscalation(agent_id="b", level=0.5))
    assert a.behavior.animation == AnimationType.ANGRY
    assert b.behavior.animation == AnimationType.CONFUSED


def test_inactive_agents_skip_their_cycle():
    orchestrator, _ = make_orchestrator()
    a, _ = add_pair(orchestrator)
    orchestrator.deactivate_agent("a")
    for _ in range(50):
        orchestrator.tick()
    assert orchestrator.get_decisions("a") == []

    orchestrator.activate_agent("a")
    assert a.active


def test_feedback_routes_to_learning():
    orchestrator, _ = make_orchestrator()
    orchestrator.add_agent("a", PersonalityProfile(learning_rate=1.0))
    event = orchestrator.feedback(
        "a", EnvironmentFeedback(source="user", kind=FeedbackKind.USER_INTERACTION, success=True)
    )
    assert event is not None
    assert orchestrator.get_learning_events("a") == [event]
    assert orchestrator.feedback("ghost", EnvironmentFeedback(source="x", kind=FeedbackKind.SYSTEM_EVENT)) is None


def test_histories_respect_limits():
    orchestrator, _ = make_orchestrator(decision_history_limit=5)
    add_pair(orchestrator)
    for _ in range(200):
        orchestrator.tick()
    assert len(orchestrator.get_decisions("a")) <= 5


def test_same_seed_same_run():
    def run():
        orchestrator = Orchestrator(SimulationSettings(seed=5), clock=LogicalClock())
        orchestrator.add_agent("speaker", PersonalityArchetypes.eager_helper(), Position(x=0, y=0, z=0))
        orchestrator.add_agent("hub", PersonalityArchetypes.know_it_all(), Position(x=1, y=0, z=0))
        orchestrator.add_agent("vacuum", PersonalityArchetypes.stubborn_rival(), Position(x=2, y=1, z=0))
        orchestrator.add_agent("camera", PersonalityArchetypes.nervous_monitor(), Position(x=0, y=2, z=0))
        with contextlib.redirect_stdout(io.StringIO()):
            for _ in range(150):
                orchestrator.tick()
        return orchestrator.snapshot().model_dump()

    assert run() == run()


def test_snapshot_is_serializable():
    orchestrator, _ = make_orchestrator()
    add_pair(orchestrator)
    orchestrator.tick()

    snapshot = orchestrator.snapshot()
    assert snapshot.tick == 1
    assert [agent.agent_id for agent in snapshot.agents] == ["a", "b"]
    assert "communication_frequency" in snapshot.agents[0].modifiers
    payload = snapshot.model_dump_json()
    assert '"agent_id":"a"' in payload


def test_compatibility_and_synergy_typing():
    helper = PersonalityArchetypes.eager_helper()
    assert personality_compatibility(helper, helper) == pytest.approx(1.0)
    assert synergy_type_for(helper, helper) == SynergyType.EFFICIENCY_BOOST

    learners = PersonalityProfile(learning_rate=0.9)
    assert synergy_type_for(learners, learners) == SynergyType.SHARED_INTELLIGENCE
    assert synergy_type_for(PersonalityProfile(), PersonalityProfile()) == SynergyType.RESOURCE_OPTIMIZATION


def test_settings_clamp_bad_values():
    settings = SimulationSettings(
        speed=12,
        discovery_probability=3,
        decision_history_limit=0,
        tick_interval_seconds=-1,
        seed=None,
    )
    assert settings.speed == 5.0
    assert settings.discovery_probability == 1.0
    assert settings.decision_history_limit == 1
    assert settings.tick_interval_seconds > 0


@pytest.mark.asyncio
async def test_run_returns_final_snapshot():
    orchestrator, _ = make_orchestrator(tick_interval_seconds=0.001)
    add_pair(orchestrator)

    with contextlib.redirect_stdout(io.StringIO()):
        snapshot = await orchestrator.run(num_ticks=3)

    assert orchestrator.tick_count == 3
    assert snapshot.tick == 3


@pytest.mark.asyncio
async def test_speed_scales_clock_not_wall_cadence(monkeypatch):
    orchestrator, _ = make_orchestrator(tick_interval_seconds=0.05, speed=2.0)
    delays = []
    real_sleep = asyncio.sleep

    async def recording_sleep(delay):
        delays.append(delay)
        await real_sleep(0)

    monkeypatch.setattr(asyncio, "sleep", recording_sleep)
    with contextlib.redirect_stdout(io.StringIO()):
        await orchestrator.run(num_ticks=4)

    assert delays == [0.05] * 4
    # Two simulated seconds per wall second at speed 2.
    assert orchestrator.clock.now() / sum(delays) == pytest.approx(2.0)


@pytest.mark.asyncio
async def test_start_pause_resume_stop():
    orchestrator, _ = make_orchestrator(tick_interval_seconds=0.001)
    add_pair(orchestrator)

    orchestrator.start()
    await asyncio.sleep(0.05)
    orchestrator.pause()
    paused_at = orchestrator.tick_count
    await asyncio.sleep(0.02)
    assert orchestrator.tick_count == paused_at
    assert paused_at > 0

    orchestrator.resume()
    await asyncio.sleep(0.02)
    await orchestrator.stop()

    assert orchestrator.tick_count > paused_at
    assert not orchestrator.running
    stopped_at = orchestrator.tick_count
    await asyncio.sleep(0.01)
    assert orchestrator.tick_count == stopped_at


def test_seeded_rng_is_shared_by_devices():
    rng = random.Random(3)
    orchestrator = Orchestrator(SimulationSettings(seed=None), rng=rng, clock=LogicalClock())
    device = orchestrator.add_agent("a", PersonalityProfile())
    assert device.behavior.rng is rng
    assert device.behavior.clock is orchestrator.clock
