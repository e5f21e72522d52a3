"""
AI Habitat - personality-driven smart-device simulation core.

Simulates a household of autonomous devices that decide, talk, cooperate,
compete for resources, and drift into conflict or synergy.

All collaborators (random source, clock, event bus) are injectable; a seeded
run with a LogicalClock is fully reproducible.
"""

__version__ = "0.1.0"

# Main simulation components
from .orchestrator import Orchestrator, SimulationSettings, connection_id
from .behavior import DeviceBehavior
from .conflict import ConflictEngine
from .device import SimulatedDevice

# Infrastructure
from .clock import Clock, LogicalClock, WallClock
from .events import EventBus, SimulationEvent
from .history import BoundedHistory
from .config import Config

# Personalities and rosters
from .personality import PersonalityArchetypes
from .scenario import RosterEntry, RosterLoader, RosterValidationError, load_roster

# Core schemas
from .schemas import (
    AnimationType,
    Conflict,
    ConflictSeverity,
    ConflictType,
    Connection,
    ConnectionStatus,
    ConnectionType,
    Decision,
    DecisionType,
    DramaticMoment,
    EmotionalRange,
    EnvironmentFeedback,
    FeedbackKind,
    LearningEvent,
    Mood,
    PeerMessage,
    PersonalityProfile,
    PersonalityTrait,
    Position,
    ResourceCompetition,
    ResourceType,
    SimulationSnapshot,
    SynergyEffect,
    TensionState,
)

__all__ = [
    # Main classes
    "Orchestrator",
    "SimulationSettings",
    "DeviceBehavior",
    "ConflictEngine",
    "SimulatedDevice",
    "connection_id",
    # Infrastructure
    "Clock",
    "LogicalClock",
    "WallClock",
    "EventBus",
    "SimulationEvent",
    "BoundedHistory",
    "Config",
    # Personalities and rosters
    "PersonalityArchetypes",
    "RosterEntry",
    "RosterLoader",
    "RosterValidationError",
    "load_roster",
    # Schemas
    "AnimationType",
    "Conflict",
    "ConflictSeverity",
    "ConflictType",
    "Connection",
    "ConnectionStatus",
    "ConnectionType",
    "Decision",
    "DecisionType",
    "DramaticMoment",
    "EmotionalRange",
    "EnvironmentFeedback",
    "FeedbackKind",
    "LearningEvent",
    "Mood",
    "PeerMessage",
    "PersonalityProfile",
    "PersonalityTrait",
    "Position",
    "ResourceCompetition",
    "ResourceType",
    "SimulationSnapshot",
    "SynergyEffect",
    "TensionState",
]
