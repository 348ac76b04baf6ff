"""Unit tests for shared helpers: slugs, capacity, datetimes and settings."""

from datetime import date, datetime, timedelta, timezone

import pytest
from libs.common.config import Settings
from pydantic import ValidationError as PydanticValidationError
from libs.common.datetime_utils import ensure_utc, start_of_day_utc, start_of_next_day_utc
from libs.common.errors import ValidationError
from libs.common.slug import MAX_SLUG_LENGTH, is_valid_slug, slugify
from services.bookings_service.services.capacity import is_full, spots_left

# ---------------------------------------------------------------------------
# Slugs
# ---------------------------------------------------------------------------


@pytest.mark.unit
@pytest.mark.parametrize(
    "name, slug",
    [
        ("Angels Surf", "angels-surf"),
        ("  Ondas Açores!! ", "ondas-acores"),
        ("Surf & Turf -- Peniche", "surf-turf-peniche"),
        ("Écola Ñandú 2", "ecola-nandu-2"),
        ("!!!", ""),
    ],
)
def test_slugify(name, slug):
    assert slugify(name) == slug


@pytest.mark.unit
def test_slugify_truncates_without_trailing_dash():
    slug = slugify("a" * 119 + " bcd")
    assert len(slug) <= MAX_SLUG_LENGTH
    assert not slug.endswith("-")


@pytest.mark.unit
def test_is_valid_slug():
    assert is_valid_slug("angels-surf")
    assert not is_valid_slug("Angels Surf")
    assert not is_valid_slug("-leading")
    assert not is_valid_slug("double--dash")
    assert not is_valid_slug("")


# ---------------------------------------------------------------------------
# Capacity
# ---------------------------------------------------------------------------


@pytest.mark.unit
def test_spots_left_never_negative():
    assert spots_left(8, 3) == 5
    assert spots_left(2, 5) == 0
    assert spots_left(None, 5) is None


@pytest.mark.unit
def test_is_full():
    assert is_full(2, 2)
    assert not is_full(2, 1)
    assert not is_full(None, 100)
    assert is_full(0, 0)


# ---------------------------------------------------------------------------
# Datetimes
# ---------------------------------------------------------------------------


@pytest.mark.unit
def test_ensure_utc_treats_naive_as_utc():
    assert ensure_utc(datetime(2025, 3, 1, 9)) == datetime(2025, 3, 1, 9, tzinfo=timezone.utc)


@pytest.mark.unit
def test_ensure_utc_converts_offsets():
    value = datetime(2025, 3, 1, 9, tzinfo=timezone(timedelta(hours=-1)))
    assert ensure_utc(value) == datetime(2025, 3, 1, 10, tzinfo=timezone.utc)


@pytest.mark.unit
def test_ensure_utc_error_names_the_field():
    with pytest.raises(ValidationError) as exc_info:
        ensure_utc("yesterday-ish", field="starts")
    assert "starts" in exc_info.value.message
    assert exc_info.value.details["field"] == "starts"


@pytest.mark.unit
def test_day_bounds():
    assert start_of_day_utc(date(2025, 12, 31)) == datetime(2025, 12, 31, tzinfo=timezone.utc)
    assert start_of_next_day_utc(date(2025, 12, 31)) == datetime(2026, 1, 1, tzinfo=timezone.utc)
    assert start_of_next_day_utc(date.max) is None


@pytest.mark.unit
def test_ensure_utc_out_of_range_offset_is_a_validation_error():
    with pytest.raises(ValidationError) as exc_info:
        ensure_utc("0001-01-01T00:00:00+05:00", field="from")
    assert exc_info.value.message == "from out of range"


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------


@pytest.mark.unit
@pytest.mark.parametrize(
    "url",
    ["postgresql://u:p@db:5432/surf", "postgres://u:p@db:5432/surf"],
)
def test_database_url_is_rewritten_to_psycopg(url):
    settings = Settings(DATABASE_URL=url, _env_file=None)
    assert settings.DATABASE_URL == "postgresql+psycopg://u:p@db:5432/surf"


@pytest.mark.unit
def test_postgres_url_alias(monkeypatch):
    monkeypatch.delenv("DATABASE_URL", raising=False)
    monkeypatch.setenv("POSTGRES_URL", "postgresql://u:p@neon/surf")
    settings = Settings(_env_file=None)
    assert settings.DATABASE_URL == "postgresql+psycopg://u:p@neon/surf"


@pytest.mark.unit
def test_cors_origins_list():
    settings = Settings(CORS_ORIGINS="https://a.test, https://b.test,", _env_file=None)
    assert settings.cors_origins_list == ["https://a.test", "https://b.test"]


@pytest.mark.unit
def test_overlap_policy_is_validated():
    with pytest.raises(PydanticValidationError):
        Settings(LESSON_OVERLAP_POLICY="ignore", _env_file=None)


# ---------------------------------------------------------------------------
# Request plumbing
# ---------------------------------------------------------------------------


def _request(headers=None):
    from starlette.requests import Request

    raw = [(k.lower().encode(), v.encode()) for k, v in (headers or {}).items()]
    return Request({"type": "http", "headers": raw, "client": ("10.0.0.9", 5000)})


@pytest.mark.unit
def test_client_key_prefers_first_forwarded_hop():
    from libs.common.rate_limit import client_key

    assert client_key(_request({"X-Forwarded-For": "203.0.113.7, 10.0.0.1"})) == "203.0.113.7"
    assert client_key(_request()) == "10.0.0.9"


@pytest.mark.asyncio
@pytest.mark.unit
async def test_middleware_echoes_request_id_and_timing():
    from fastapi import FastAPI
    from httpx import ASGITransport, AsyncClient
    from libs.common.middleware import add_observability_middleware

    app = FastAPI()
    add_observability_middleware(app)

    @app.get("/ping")
    async def ping():
        return {"ok": True}

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        response = await ac.get("/ping", headers={"X-Request-ID": "req-123"})

    assert response.headers["X-Request-ID"] == "req-123"
    assert float(response.headers["X-Response-Time-Ms"]) >= 0
