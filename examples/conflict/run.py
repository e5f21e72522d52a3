"""Rivalry household: tension, resource competition, conflicts and escalation.

Run:

    python -m examples.conflict.run --ticks 400

Conflicts persist until resolved; ``--resolve-after`` resolves every active
conflict once that many ticks have passed.
"""

from __future__ import annotations

import argparse
import asyncio

from aihabitat import Orchestrator, SimulationEvent, SimulationSettings
from aihabitat.scenario import RosterLoader


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Device conflict demo")
    parser.add_argument("--ticks", type=int, default=400, help="Number of ticks to simulate")
    parser.add_argument("--seed", type=int, default=42, help="Random seed")
    parser.add_argument("--resolve-after", type=int, default=0, help="Resolve all conflicts after N ticks (0 = never)")
    return parser.parse_args()


class ConflictReporter:
    """Tick listener that prints a compact conflict summary every 50 ticks."""

    def __init__(self, orchestrator: Orchestrator, resolve_after: int) -> None:
        self.orchestrator = orchestrator
        self.resolve_after = resolve_after

    def __call__(self, tick: int) -> None:
        if self.resolve_after and tick == self.resolve_after:
            for conflict in self.orchestrator.get_active_conflicts():
                self.orchestrator.resolve_conflict(conflict.id)
                print(f"  [Resolved] {conflict.id}")
        if tick % 50:
            return
        tensions = ", ".join(
            f"{t.agent_id}={t.level:.2f}" for t in self.orchestrator.get_tension_states()
        )
        print(f"--- tick {tick}: {len(self.orchestrator.get_active_conflicts())} conflicts; tension [{tensions}]")


async def main(args: argparse.Namespace) -> None:
    # 20ms wall-clock ticks; speed 5 advances the logical clock 0.1s per tick.
    settings = SimulationSettings(seed=args.seed, speed=5.0, tick_interval_seconds=0.02)
    orchestrator = Orchestrator(settings)

    events = orchestrator.events
    events.subscribe(
        SimulationEvent.CONFLICT_DETECTED,
        lambda c: print(f"  [Conflict] {c.conflict_type.value} ({c.severity.value}): {c.description}"),
    )
    events.subscribe(
        SimulationEvent.RESOURCE_COMPETITION,
        lambda c: print(f"  [Competition] {c.resource_type.value}: demand {c.total_demand:.2f} / supply {c.available_supply:.2f}"),
    )
    events.subscribe(
        SimulationEvent.DRAMATIC_MOMENT,
        lambda m: print(f"  [Drama] {m.moment_type.value}: {m.description}"),
    )
    events.subscribe(SimulationEvent.TICK, ConflictReporter(orchestrator, args.resolve_after))

    orchestrator.add_roster(RosterLoader().load("rivalry"))
    await orchestrator.run(args.ticks)

    print("\nActive conflicts:")
    for conflict in orchestrator.get_active_conflicts():
        print(
            f"  {conflict.id}: {conflict.severity.value}, escalation {conflict.escalation_level:.2f}, "
            f"participants {', '.join(conflict.participant_ids)}"
        )
    print(f"Resolved: {len(orchestrator.get_conflict_history())}")
    print(f"Isolated failures: {len(orchestrator.failures)}")


if __name__ == "__main__":
    asyncio.run(main(parse_args()))
