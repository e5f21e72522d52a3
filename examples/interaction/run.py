"""Friendly household: discovery, conversation, cooperation and synergy.

Run:

    python -m examples.interaction.run --ticks 200 --seed 7

Add ``--verbose`` to see every engine step.
"""

from __future__ import annotations

import argparse
import asyncio
import os
from collections import Counter

from aihabitat import Config, LogicalClock, Orchestrator, SimulationEvent, SimulationSettings
from aihabitat.scenario import RosterLoader


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Smart-home interaction demo")
    parser.add_argument("--ticks", type=int, default=200, help="Number of ticks to simulate")
    parser.add_argument("--seed", type=int, default=7, help="Random seed")
    parser.add_argument("--roster", default="smart_home", help="Roster name under examples/rosters")
    parser.add_argument("--verbose", action="store_true", help="Print engine steps")
    return parser.parse_args()


async def main(args: argparse.Namespace) -> None:
    if args.verbose:
        os.environ["AIHABITAT_VERBOSE"] = "1"
    print(Config.display())

    # Speed 5 advances the logical clock 0.5s per 0.1s tick.
    settings = SimulationSettings(seed=args.seed, speed=5.0, tick_interval_seconds=0.1)
    orchestrator = Orchestrator(settings, clock=LogicalClock())

    counts: Counter = Counter()
    orchestrator.events.subscribe_all(lambda name, _payload: counts.update([name]))
    orchestrator.events.subscribe(
        SimulationEvent.SYNERGY_CREATED,
        lambda synergy: print(f"  [Synergy] {synergy.description} ({synergy.magnitude:.2f})"),
    )
    orchestrator.events.subscribe(
        SimulationEvent.MOOD_CHANGED,
        lambda change: print(f"  [Mood] {change.agent_id}: {change.previous_mood.value} -> {change.mood.value}"),
    )

    orchestrator.add_roster(RosterLoader().load(args.roster))
    snapshot = await orchestrator.run(args.ticks)

    print("\nConnections:")
    for conn in snapshot.connections:
        print(
            f"  {conn.from_agent_id} <-> {conn.to_agent_id}: {conn.connection_type.value} "
            f"(strength {conn.strength:.2f}, success {conn.success_rate:.0%})"
        )
    print("\nDevices:")
    for agent in snapshot.agents:
        trust = ", ".join(f"{peer}={level:.2f}" for peer, level in agent.trust.items()) or "-"
        print(f"  {agent.agent_id}: {agent.mood.value}, {agent.animation.value}, trust [{trust}]")
    print("\nEvents:")
    for name, count in sorted(counts.items()):
        print(f"  {name}: {count}")


if __name__ == "__main__":
    asyncio.run(main(parse_args()))
