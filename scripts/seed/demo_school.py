"""Seed a demo school for local development.

Seeds:
- School "Angels Surf" (slug angels-surf) with two coaches
- A week of morning lessons starting tomorrow

Safe to re-run: an existing angels-surf school is left alone.
"""

import asyncio
import os
import sys
from datetime import datetime, time, timedelta, timezone

# Add backend root to path so we can import modules
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "../..")))

from libs.db.config import create_database
from services.lessons_service.models import Difficulty
from services.lessons_service.services import lesson_ops
from services.schools_service.services import school_ops

SCHOOL_NAME = "Angels Surf"
COACHES = [("Rita Lopes", "rita@angels-surf.pt"), ("Tiago Melo", "tiago@angels-surf.pt")]
LEVELS = [Difficulty.BEGINNER, Difficulty.INTERMEDIATE, Difficulty.ADVANCED]


async def seed_demo_school():
    db = create_database()
    try:
        async with db.session() as session:
            if await school_ops.find_school(session, "angels-surf"):
                print("  angels-surf already exists, skipping")
                return

            school = await school_ops.create_school(
                session, name=SCHOOL_NAME, contact_email="hello@angels-surf.pt"
            )
            coaches = [
                await school_ops.create_coach(
                    session, school_ref=school.slug, name=name, email=email
                )
                for name, email in COACHES
            ]

            first_day = datetime.now(timezone.utc).date() + timedelta(days=1)
            for offset in range(7):
                day = first_day + timedelta(days=offset)
                await lesson_ops.create_lesson(
                    session,
                    school_ref=school.slug,
                    start_at=datetime.combine(day, time(9, 0), tzinfo=timezone.utc),
                    duration_min=90,
                    difficulty=LEVELS[offset % len(LEVELS)],
                    place="Praia do Norte",
                    capacity=8,
                    coach_ids=[coaches[offset % len(coaches)].id],
                )
            print(f"  Seeded {SCHOOL_NAME} with {len(coaches)} coaches and 7 lessons")
    finally:
        await db.dispose()


if __name__ == "__main__":
    asyncio.run(seed_demo_school())
