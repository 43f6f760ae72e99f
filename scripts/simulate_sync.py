#!/usr/bin/env python3
"""
Run one Fitcoin sync end to end against the configured database.
Registers a throwaway user for the given provider, starts a sync job and
polls it at the documented cadence until it finishes.
"""

import argparse
import asyncio
import uuid

from app.core.config import get_settings
from app.core.database import async_session_maker, init_db
from app.models.database import User
from app.services.jobs import JobState, get_sync_service


async def main(provider: str):
    settings = get_settings()
    await init_db()
    service = get_sync_service()

    async with async_session_maker() as session:
        user = User(
            user_id=str(uuid.uuid4()),
            display_name="Sync Simulator",
            email=f"simulator+{uuid.uuid4().hex[:8]}@example.com",
            primary_provider=provider,
        )
        session.add(user)
        await session.commit()

        wallet = await service.ledger.get_or_create(session, user.user_id)
        print(f"User {user.user_id} ({provider}) starts with {wallet.balance} FIT")

        job = service.start(user.user_id)
        print(f"Started {job.job_id}")

        while True:
            await asyncio.sleep(settings.sync_poll_interval_seconds)
            status = await service.poll(session, job.job_id)
            print(f"  {status.status.value} {status.progress}%")
            if status.status in (JobState.COMPLETED, JobState.FAILED):
                break

        if status.status == JobState.FAILED:
            print(f"Sync failed: {status.error}")
            return

        for activity in status.result.generated_activities:
            print(f"  {activity.icon:<10} {activity.title:<32} {activity.metric:<24} +{activity.fitcoin} FIT")
        print(f"Earned {status.result.fitcoin_delta} FIT, new balance {status.result.new_balance} FIT")
        print(f"Next sync in {service.cooldown.remaining_seconds(user.user_id)}s")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--provider", default="strava", help="Primary provider of the simulated user")
    args = parser.parse_args()
    asyncio.run(main(args.provider))
