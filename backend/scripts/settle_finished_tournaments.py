#!/usr/bin/env python3
import argparse
import asyncio

from heliclockter import datetime_utc

from fairway.database import database
from fairway.logic.payouts import settle_finished_tournaments


async def async_main() -> None:
    parser = argparse.ArgumentParser(
        description=(
            "Pay out prizes for every tournament that has finished and is still active, "
            "then mark those tournaments finished."
        )
    )
    parser.add_argument(
        "--now",
        type=str,
        default=None,
        help="Timezone-aware ISO timestamp to settle as of, defaults to the current time.",
    )
    args = parser.parse_args()
    now = datetime_utc.fromisoformat(args.now) if args.now else datetime_utc.now()

    await database.connect()
    try:
        settled = await settle_finished_tournaments(now)
        print(f"Settled tournaments: {[int(tournament_id) for tournament_id in settled]}")
    finally:
        await database.disconnect()


if __name__ == "__main__":
    asyncio.run(async_main())
