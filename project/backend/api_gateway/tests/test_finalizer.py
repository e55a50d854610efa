"""
Tests for the record finalizer.
"""

import pytest
from datetime import datetime, timezone

from api_gateway.services.finalizer import finalize_failure, finalize_success
from shared.database import CHARACTERS_TABLE
from shared.errors import NotFoundError

NOW = datetime(2025, 1, 2, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def db(fake_db, character_row):
    fake_db.tables[CHARACTERS_TABLE] = [character_row]
    return fake_db


def _stored(db):
    return db.tables[CHARACTERS_TABLE][0]


@pytest.mark.asyncio
async def test_success_merges_into_generation_params(db, analysis_payload):
    character = await finalize_success(db, "char-1", "https://cdn/gen1.png", now=NOW)

    row = _stored(db)
    assert row["generated_image_url"] == "https://cdn/gen1.png"
    params = row["generation_params"]
    assert params["status"] == "completed"
    assert params["generated_at"] == NOW.isoformat()
    assert params["features"] == analysis_payload["features"]
    assert params["roast_content"]["title"] == "Nose Knows"
    assert row["og_title"].startswith("Nose Knows")
    assert "Smell you later!" in row["og_description"]
    assert row["updated_at"] == NOW.isoformat()
    assert character.status == "completed"


@pytest.mark.asyncio
async def test_failure_clears_image_and_records_error(db):
    _stored(db)["generated_image_url"] = "https://cdn/old.png"

    character = await finalize_failure(db, "char-1", "NSFW content detected", now=NOW)

    row = _stored(db)
    assert row["generated_image_url"] is None
    assert row["generation_params"]["status"] == "failed"
    assert row["generation_params"]["error"] == "NSFW content detected"
    assert row["generation_params"]["failed_at"] == NOW.isoformat()
    assert row["generation_params"]["character_style"] == "pixar"
    assert character.generated_image_url is None


@pytest.mark.asyncio
async def test_success_after_failure_drops_error(db):
    await finalize_failure(db, "char-1", "boom", now=NOW)
    await finalize_success(db, "char-1", "https://cdn/gen2.png", now=NOW)

    params = _stored(db)["generation_params"]
    assert params["status"] == "completed"
    assert "error" not in params
    assert "failed_at" not in params


@pytest.mark.asyncio
async def test_finalize_is_idempotent(db):
    await finalize_success(db, "char-1", "https://cdn/gen1.png", now=NOW)
    await finalize_success(db, "char-1", "https://cdn/gen1.png")
    assert len(db.writes(CHARACTERS_TABLE, "update")) == 1

    await finalize_failure(db, "char-1", "boom", now=NOW)
    await finalize_failure(db, "char-1", "boom")
    assert len(db.writes(CHARACTERS_TABLE, "update")) == 2


@pytest.mark.asyncio
async def test_extra_params_are_merged(db):
    await finalize_success(db, "char-1", "https://cdn/gen3.png", extra_params={"attempt": 3}, now=NOW)
    assert _stored(db)["generation_params"]["attempt"] == 3


@pytest.mark.asyncio
async def test_unknown_character(fake_db):
    with pytest.raises(NotFoundError):
        await finalize_success(fake_db, "missing", "https://cdn/gen1.png")
