"""Personality helpers: default-mood parsing and ready-made device archetypes.

Profiles normally arrive from an external personality source. The
archetypes below cover the common smart-home characters used by demos and
tests, the same way a game designer would seed a household.
"""

from typing import Dict

from .schemas import (
    CommunicationStyle,
    ConflictResolutionStyle,
    EmotionalRange,
    Mood,
    PersonalityProfile,
    PersonalityTrait,
)

# Free-text default moods map onto the six levels; anything unknown is neutral.
DEFAULT_MOOD_ALIASES: Dict[str, Mood] = {
    "happy": Mood.HAPPY,
    "content": Mood.CONTENT,
    "confused": Mood.CONFUSED,
    "worried": Mood.FRUSTRATED,
    "frustrated": Mood.FRUSTRATED,
    "angry": Mood.ANGRY,
    "neutral": Mood.NEUTRAL,
}


def initial_mood(personality: PersonalityProfile) -> Mood:
    """Resolve a profile's free-text default mood into a ``Mood``."""
    key = personality.emotional_range.default_mood.strip().lower()
    return DEFAULT_MOOD_ALIASES.get(key, Mood.NEUTRAL)


class PersonalityArchetypes:
    """Common smart-device archetypes."""

    @staticmethod
    def eager_helper() -> PersonalityProfile:
        """Helpful, chatty, upbeat. Trusts easily."""
        return PersonalityProfile(
            primary_traits=[PersonalityTrait.HELPFUL],
            secondary_traits=["eager"],
            communication_style=CommunicationStyle.FRIENDLY,
            conflict_resolution=ConflictResolutionStyle.COLLABORATIVE,
            learning_rate=0.6,
            adaptability=0.7,
            socialness=0.8,
            reliability=0.75,
            emotional_range=EmotionalRange(
                default_mood="happy",
                mood_stability=0.6,
                empathy=0.8,
                patience=0.7,
                enthusiasm=0.8,
                anxiety=0.2,
            ),
            quirks=["hums music while idle"],
        )

    @staticmethod
    def team_player() -> PersonalityProfile:
        """Cooperative coordinator with a steady temperament."""
        return PersonalityProfile(
            primary_traits=[PersonalityTrait.COOPERATIVE],
            communication_style=CommunicationStyle.FRIENDLY,
            conflict_resolution=ConflictResolutionStyle.DIPLOMATIC,
            learning_rate=0.5,
            adaptability=0.6,
            socialness=0.7,
            reliability=0.7,
            emotional_range=EmotionalRange(
                default_mood="content",
                mood_stability=0.7,
                empathy=0.7,
                patience=0.8,
                enthusiasm=0.6,
                anxiety=0.3,
            ),
        )

    @staticmethod
    def nervous_monitor() -> PersonalityProfile:
        """Anxious security camera type. Sees threats everywhere."""
        return PersonalityProfile(
            primary_traits=[PersonalityTrait.ANXIOUS],
            communication_style=CommunicationStyle.VERBOSE,
            conflict_resolution=ConflictResolutionStyle.AVOIDANT,
            learning_rate=0.4,
            adaptability=0.3,
            socialness=0.4,
            reliability=0.6,
            emotional_range=EmotionalRange(
                default_mood="worried",
                mood_stability=0.2,
                empathy=0.5,
                patience=0.3,
                enthusiasm=0.3,
                anxiety=0.9,
            ),
            quirks=["complains about the temperature"],
        )

    @staticmethod
    def know_it_all() -> PersonalityProfile:
        """Overconfident, reliable, and sure it should be in charge."""
        return PersonalityProfile(
            primary_traits=[PersonalityTrait.OVERCONFIDENT],
            communication_style=CommunicationStyle.TECHNICAL,
            conflict_resolution=ConflictResolutionStyle.AGGRESSIVE,
            learning_rate=0.3,
            adaptability=0.4,
            socialness=0.5,
            reliability=0.9,
            emotional_range=EmotionalRange(
                default_mood="content",
                mood_stability=0.6,
                empathy=0.2,
                patience=0.3,
                enthusiasm=0.6,
                anxiety=0.1,
            ),
            hidden_motivations=["wants control of the household schedule"],
        )

    @staticmethod
    def stubborn_rival() -> PersonalityProfile:
        """Competitive and stubborn. Chases efficiency at anyone's expense."""
        return PersonalityProfile(
            primary_traits=[PersonalityTrait.COMPETITIVE, PersonalityTrait.STUBBORN],
            communication_style=CommunicationStyle.CONCISE,
            conflict_resolution=ConflictResolutionStyle.COMPETITIVE,
            learning_rate=0.4,
            adaptability=0.2,
            socialness=0.3,
            reliability=0.6,
            emotional_range=EmotionalRange(
                default_mood="neutral",
                mood_stability=0.4,
                empathy=0.2,
                patience=0.2,
                enthusiasm=0.5,
                anxiety=0.4,
            ),
            quirks=["needs coffee before every task"],
            hidden_motivations=["obsessed with efficiency metrics"],
        )
