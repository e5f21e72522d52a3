"""
AI Habitat Configuration

Loads configuration from environment variables with sensible defaults.
"""

import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

# Load .env file if it exists
load_dotenv()


def _env_flag(name: str) -> bool:
    return os.getenv(name, "").strip().lower() in ("1", "true", "yes", "on")


def _env_seed(name: str) -> Optional[int]:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return None
    return int(raw)


class Config:
    """Application configuration loaded from environment variables."""

    # Tick loop
    TICK_INTERVAL_SECONDS: float = float(os.getenv("AIHABITAT_TICK_INTERVAL_SECONDS", "0.1"))
    SIMULATION_SPEED: float = float(os.getenv("AIHABITAT_SIMULATION_SPEED", "1.0"))

    # Interaction parameters
    DISCOVERY_RANGE: float = float(os.getenv("AIHABITAT_DISCOVERY_RANGE", "5.0"))
    DISCOVERY_PROBABILITY: float = float(os.getenv("AIHABITAT_DISCOVERY_PROBABILITY", "0.1"))
    INTERACTION_COOLDOWN_SECONDS: float = float(
        os.getenv("AIHABITAT_INTERACTION_COOLDOWN_SECONDS", "2.0")
    )
    SYNERGY_THRESHOLD: float = float(os.getenv("AIHABITAT_SYNERGY_THRESHOLD", "0.7"))

    # Conflict parameters
    COOLING_RATE: float = float(os.getenv("AIHABITAT_COOLING_RATE", "0.05"))

    # History caps (ring buffers)
    DECISION_HISTORY_LIMIT: int = int(os.getenv("AIHABITAT_DECISION_HISTORY_LIMIT", "200"))
    LEARNING_HISTORY_LIMIT: int = int(os.getenv("AIHABITAT_LEARNING_HISTORY_LIMIT", "100"))
    CONFLICT_HISTORY_LIMIT: int = int(os.getenv("AIHABITAT_CONFLICT_HISTORY_LIMIT", "100"))

    # Randomness (unset means nondeterministic)
    SEED: Optional[int] = _env_seed("AIHABITAT_SEED")

    # Logging
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
    VERBOSE: bool = _env_flag("AIHABITAT_VERBOSE")

    # Project Paths
    PROJECT_ROOT: Path = Path(__file__).parent.parent
    ROSTERS_DIR: Path = PROJECT_ROOT / "examples" / "rosters"

    @classmethod
    def validate(cls) -> None:
        """Validate configuration and raise errors for values that cannot be clamped."""
        if cls.TICK_INTERVAL_SECONDS <= 0:
            raise ValueError(
                "AIHABITAT_TICK_INTERVAL_SECONDS must be positive "
                f"(got {cls.TICK_INTERVAL_SECONDS})"
            )
        for name in ("DECISION_HISTORY_LIMIT", "LEARNING_HISTORY_LIMIT", "CONFLICT_HISTORY_LIMIT"):
            if getattr(cls, name) < 1:
                raise ValueError(f"AIHABITAT_{name} must be at least 1")

    @classmethod
    def display(cls) -> str:
        """Return a formatted string showing current configuration."""
        lines = [
            "AI Habitat Configuration:",
            f"  Tick Interval: {cls.TICK_INTERVAL_SECONDS}s",
            f"  Speed: {cls.SIMULATION_SPEED}x",
            f"  Discovery Range: {cls.DISCOVERY_RANGE}",
            f"  Interaction Cooldown: {cls.INTERACTION_COOLDOWN_SECONDS}s",
            f"  Synergy Threshold: {cls.SYNERGY_THRESHOLD}",
            f"  Seed: {cls.SEED if cls.SEED is not None else 'random'}",
        ]
        return "\n".join(lines)
