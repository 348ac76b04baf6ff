"""Contract tests for the lesson listing shapes.

The booking UI and the staff schedule read these fields directly. If a field
is renamed or removed, these fail first.
"""

import pytest
from tests.factories import CoachFactory, LessonCoachFactory, LessonFactory, SchoolFactory

LISTING_FIELDS = [
    "id",
    "school_id",
    "start_at",
    "duration_min",
    "difficulty",
    "place",
    "capacity",
    "coaches",
    "coach_names",
    "booked_count",
    "spots_left",
]


async def _seed(db):
    school = SchoolFactory.create(slug="angels-surf")
    coach = CoachFactory.create(school_id=school.id, name="Rita Lopes")
    lesson = LessonFactory.create(school_id=school.id, capacity=6)
    db.add_all([school, coach, lesson])
    await db.commit()
    db.add(LessonCoachFactory.create(lesson.id, coach.id))
    await db.commit()
    return lesson, coach


@pytest.mark.asyncio
@pytest.mark.contract
@pytest.mark.parametrize("path", ["/lessons?school=angels-surf", "/public/lessons?school=angels-surf"])
async def test_lesson_listing_contract(client, db_session, path):
    lesson, coach = await _seed(db_session)

    response = await client.get(path)
    assert response.status_code == 200
    body = response.json()
    assert body["ok"] is True
    item = body["data"][0]

    for field in LISTING_FIELDS:
        assert field in item, f"Missing contract field '{field}' in lesson listing."
    assert item["id"] == str(lesson.id)
    assert item["difficulty"] == "Beginner"
    assert item["coaches"] == [{"id": str(coach.id), "name": "Rita Lopes"}]
    assert item["spots_left"] == 6


@pytest.mark.asyncio
@pytest.mark.contract
async def test_booking_response_contract(client, db_session):
    lesson, _ = await _seed(db_session)

    response = await client.post(
        f"/lessons/{lesson.id}/book", json={"email": "a@x.com", "name": "Ana"}
    )
    assert response.status_code == 200
    data = response.json()["data"]

    for field in ["lesson_id", "booking_id", "email", "name", "status", "outcome", "booked_count", "spots_left"]:
        assert field in data, f"Missing contract field '{field}' in booking response."
    assert data["status"] == "booked"
    assert data["outcome"] == "created"


@pytest.mark.asyncio
@pytest.mark.contract
async def test_error_envelope_contract(client, db_session):
    response = await client.get("/lessons")

    assert response.status_code == 400
    body = response.json()
    assert set(body) >= {"ok", "error", "code"}
    assert body["ok"] is False
