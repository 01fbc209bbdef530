"""
Fast-forward a scripted player to check economy balance.

Drives the state machine directly, one production tick per simulated
second, without wall-clock timers. Progress is printed every --report-every
seconds; --save writes the final state through the configured record store.
"""

import argparse
import asyncio
import logging
import time

from config import CONFIG
from economy import UPGRADE_DEFINITIONS, cost_of, producer_cost
from game import GameStateMachine
from notifications import LoggingNotifier, dispatch_unlocks
from persistence import PersistenceSynchronizer, create_store


def buy_cheapest(machine: GameStateMachine) -> int:
    """Greedy strategy: keep buying the cheapest affordable offer."""
    bought = 0
    while True:
        state = machine.state
        offers = [(producer_cost(state.producer_count), None)]
        for key, definition in UPGRADE_DEFINITIONS.items():
            offers.append((cost_of(definition, state.upgrades.get(key, 0)), key))
        cost, key = min(offers, key=lambda offer: offer[0])
        if state.points < cost:
            return bought
        result = machine.buy_producer() if key is None else machine.buy_upgrade(key)
        if not result.changed:
            return bought
        bought += 1


def simulate(seconds: int, clicks_per_second: int, report_every: int, greedy: bool = True) -> GameStateMachine:
    machine = GameStateMachine(config=CONFIG)
    notifier = LoggingNotifier()

    for second in range(1, seconds + 1):
        for _ in range(clicks_per_second):
            dispatch_unlocks(notifier, machine.click().unlocked)
        machine.expire_feedback()
        if greedy:
            buy_cheapest(machine)
        dispatch_unlocks(notifier, machine.tick_production().unlocked)

        if report_every and second % report_every == 0:
            state = machine.state
            print(f"{second:6d}s | points {state.points:12.1f} | click {state.click_power:6.1f} | "
                  f"producers {state.producer_count:4d} ({state.producer_power:8.1f}/s)")
    return machine


def main(seconds: int, clicks_per_second: int, report_every: int, greedy: bool, save: bool):
    print("=" * 80)
    print(f"CLICKER BALANCE RUN ({seconds}s, {clicks_per_second} clicks/s, greedy={greedy})")
    print("=" * 80)

    start = time.time()
    machine = simulate(seconds, clicks_per_second, report_every, greedy)
    elapsed = time.time() - start
    state = machine.state

    print()
    print(f"Total clicks:  {state.total_clicks:,}")
    print(f"Points:        {state.points:,.1f}")
    print(f"Click power:   {state.click_power}")
    print(f"Producers:     {state.producer_count} ({state.producer_power:.1f}/s)")
    print(f"Upgrades:      {state.upgrades}")
    print(f"Achievements:  {', '.join(state.achievements) or '-'}")
    print(f"Run time:      {elapsed:.2f} seconds")

    if save:
        synchronizer = PersistenceSynchronizer(create_store(CONFIG.persistence))
        saved = asyncio.run(synchronizer.save(state))
        print(f"Saved:         {saved} (record {synchronizer.record_id})")


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    parser = argparse.ArgumentParser(description="Fast-forward a scripted clicker session.")
    parser.add_argument("--seconds", type=int, default=600, help="Simulated play time")
    parser.add_argument("--clicks-per-second", type=int, default=5, help="Manual clicks per simulated second")
    parser.add_argument("--report-every", type=int, default=60, help="Progress interval (seconds)")
    parser.add_argument("--no-buy", action="store_true", help="Never purchase anything")
    parser.add_argument("--save", action="store_true", help="Persist the final state")
    args = parser.parse_args()

    main(
        seconds=args.seconds,
        clicks_per_second=args.clicks_per_second,
        report_every=args.report_every,
        greedy=not args.no_buy,
        save=args.save,
    )
