"""Integration tests for schools and coaches."""

from datetime import timedelta

import pytest
from libs.common.datetime_utils import utc_now
from libs.common.errors import ConflictError, NotFoundError, ValidationError
from services.schools_service.services import school_ops
from tests.factories import CoachFactory, SchoolFactory


@pytest.mark.asyncio
@pytest.mark.integration
async def test_create_school_derives_slug(db_session):
    school = await school_ops.create_school(db_session, name="Angels Surf")

    assert school.slug == "angels-surf"
    assert (await school_ops.resolve_school(db_session, "angels-surf")).id == school.id
    assert (await school_ops.resolve_school(db_session, str(school.id))).id == school.id


@pytest.mark.asyncio
@pytest.mark.integration
async def test_duplicate_slug_is_a_conflict(db_session):
    await school_ops.create_school(db_session, name="Angels Surf")

    with pytest.raises(ConflictError) as exc_info:
        await school_ops.create_school(db_session, name="Angels  SURF!")
    assert exc_info.value.message == "Slug already exists."


@pytest.mark.asyncio
@pytest.mark.integration
async def test_slug_of_deleted_school_stays_taken(db_session):
    db_session.add(SchoolFactory.create(slug="angels-surf", deleted_at=utc_now()))
    await db_session.commit()

    with pytest.raises(ConflictError):
        await school_ops.create_school(db_session, name="Angels Surf")


@pytest.mark.asyncio
@pytest.mark.integration
async def test_update_school(db_session):
    school = await school_ops.create_school(db_session, name="Angels Surf")

    renamed = await school_ops.update_school(db_session, "angels-surf", {"name": "Angels"})
    assert renamed.name == "Angels"
    assert renamed.slug == "angels-surf"

    moved = await school_ops.update_school(db_session, str(school.id), {"slug": "angels"})
    assert moved.slug == "angels"

    with pytest.raises(ValidationError):
        await school_ops.update_school(db_session, "angels", {"slug": "Not A Slug"})
    with pytest.raises(ValidationError) as exc_info:
        await school_ops.update_school(db_session, "angels", {})
    assert exc_info.value.message == "No updates provided."


@pytest.mark.asyncio
@pytest.mark.integration
async def test_deleted_school_does_not_resolve(db_session):
    await school_ops.create_school(db_session, name="Angels Surf")

    await school_ops.soft_delete_school(db_session, "angels-surf")

    assert await school_ops.find_school(db_session, "angels-surf") is None
    with pytest.raises(NotFoundError):
        await school_ops.resolve_school(db_session, "angels-surf")
    assert await school_ops.list_schools(db_session) == []


@pytest.mark.asyncio
@pytest.mark.integration
async def test_list_schools_newest_first(db_session):
    now = utc_now()
    older = SchoolFactory.create(created_at=now - timedelta(days=1))
    newer = SchoolFactory.create(created_at=now)
    db_session.add_all([older, newer])
    await db_session.commit()

    schools = await school_ops.list_schools(db_session)

    assert [s.id for s in schools] == [newer.id, older.id]


@pytest.mark.asyncio
@pytest.mark.integration
async def test_coach_lifecycle(db_session):
    school = SchoolFactory.create(slug="angels-surf")
    db_session.add(school)
    await db_session.commit()

    coach = await school_ops.create_coach(
        db_session, school_ref="angels-surf", name="  Rita Lopes ", email="rita@angels.pt"
    )
    assert coach.name == "Rita Lopes"
    assert coach.school_id == school.id

    updated = await school_ops.update_coach(db_session, coach.id, {"name": "Rita"})
    assert updated.name == "Rita"

    await school_ops.soft_delete_coach(db_session, coach.id)
    assert await school_ops.list_coaches(db_session, "angels-surf") == []
    with pytest.raises(NotFoundError):
        await school_ops.get_coach(db_session, coach.id)


@pytest.mark.asyncio
@pytest.mark.integration
async def test_coach_requires_name_and_known_school(db_session):
    with pytest.raises(ValidationError):
        await school_ops.create_coach(db_session, school_ref="angels-surf", name="  ")
    with pytest.raises(NotFoundError):
        await school_ops.create_coach(db_session, school_ref="nowhere", name="Rita")


# ---------------------------------------------------------------------------
# HTTP
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.integration
async def test_schools_api(client, db_session):
    created = await client.post("/schools", json={"name": "Angels Surf"})
    assert created.status_code == 201
    assert created.json()["data"]["slug"] == "angels-surf"

    duplicate = await client.post("/schools", json={"name": "Angels Surf"})
    assert duplicate.status_code == 409
    assert duplicate.json() == {
        "ok": False,
        "error": "Slug already exists.",
        "code": "SLUG_TAKEN",
    }

    bad_slug = await client.patch("/schools/angels-surf", json={"slug": "Bad Slug"})
    assert bad_slug.status_code == 400

    deleted = await client.delete("/schools/angels-surf")
    assert deleted.json()["data"]["deleted"] is True

    missing = await client.get("/schools/angels-surf")
    assert missing.status_code == 404


@pytest.mark.asyncio
@pytest.mark.integration
async def test_coaches_api(client, db_session):
    school = SchoolFactory.create(slug="angels-surf")
    other = CoachFactory.create(school_id=school.id, name="Old", created_at=utc_now() - timedelta(days=1))
    db_session.add_all([school, other])
    await db_session.commit()

    created = await client.post("/coaches", json={"school": "angels-surf", "name": "Rita Lopes"})
    assert created.status_code == 201

    listing = await client.get("/coaches?school=angels-surf")
    assert [c["name"] for c in listing.json()["data"]] == ["Rita Lopes", "Old"]

    missing_school = await client.get("/coaches")
    assert missing_school.status_code == 400
