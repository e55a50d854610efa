"""
Tests for the generation pipeline orchestration.
"""

import pytest
from unittest.mock import AsyncMock, patch

from api_gateway.dependencies import Identity
from api_gateway.orchestrator import run_generation_pipeline
from shared.database import CHARACTERS_TABLE, IMAGE_UPLOADS_TABLE, USERS_TABLE
from shared.errors import AnalysisError, GenerationError, InsufficientCreditsError, ValidationError
from shared.models.character import ImageAnalysisResult, RoastContent


@pytest.fixture
def identity():
    return Identity(anon_id="anon-token-1")


@pytest.fixture
def pipeline_mocks(analysis_payload, roast_payload):
    """Patch the external AI calls made by the pipeline."""
    analyze = AsyncMock(return_value=ImageAnalysisResult.model_validate(analysis_payload))
    roast = AsyncMock(return_value=RoastContent.model_validate(roast_payload))
    generate = AsyncMock(return_value="https://cdn/gen1.png")
    with patch("api_gateway.orchestrator.analyze_image_features", analyze), \
            patch("api_gateway.orchestrator.write_roast", roast), \
            patch("api_gateway.orchestrator.generate_character_image", generate):
        yield {"analyze": analyze, "roast": roast, "generate": generate}


@pytest.mark.asyncio
async def test_pipeline_end_to_end(identity, fake_db, fake_storage, settings, pipeline_mocks):
    """Image URL in, completed character with the generated image out."""
    character = await run_generation_pipeline(
        identity, fake_db, fake_storage, settings, image_url="https://example.com/a.jpg"
    )

    assert character.status == "completed"
    assert character.generated_image_url == "https://cdn/gen1.png"
    assert character.anon_id == "anon-token-1"
    assert character.user_id is None
    assert character.generation_params.character_style == "pixar"
    assert character.generation_params.roast_content.title == "Nose Knows"

    stored = fake_db.tables[CHARACTERS_TABLE][0]
    assert stored["generation_params"]["status"] == "completed"
    assert fake_db.tables[IMAGE_UPLOADS_TABLE][0]["status"] == "completed"
    assert fake_db.tables[USERS_TABLE][0]["credits"] == settings.free_starting_credits - 1
    pipeline_mocks["analyze"].assert_awaited_once_with("https://example.com/a.jpg", settings)
    assert pipeline_mocks["generate"].call_args.args[1] == "https://example.com/a.jpg"


@pytest.mark.asyncio
async def test_generation_failure_ends_in_failed_character(identity, fake_db, fake_storage, settings, pipeline_mocks):
    """A generator failure is recorded, not raised."""
    pipeline_mocks["generate"].side_effect = GenerationError("NSFW content detected")

    character = await run_generation_pipeline(
        identity, fake_db, fake_storage, settings, image_url="https://example.com/a.jpg"
    )

    assert character.status == "failed"
    assert character.generated_image_url is None
    assert character.generation_params.error == "NSFW content detected"
    assert fake_db.tables[CHARACTERS_TABLE][0]["generation_params"]["status"] == "failed"


@pytest.mark.asyncio
async def test_analysis_failure_marks_upload_failed(identity, fake_db, fake_storage, settings, pipeline_mocks):
    pipeline_mocks["analyze"].side_effect = AnalysisError("Vision analysis returned no features")

    with pytest.raises(AnalysisError):
        await run_generation_pipeline(identity, fake_db, fake_storage, settings, image_url="https://example.com/a.jpg")

    assert fake_db.tables[IMAGE_UPLOADS_TABLE][0]["status"] == "failed"
    assert CHARACTERS_TABLE not in fake_db.tables
    pipeline_mocks["generate"].assert_not_awaited()


@pytest.mark.asyncio
async def test_out_of_credits_stops_before_ingress(identity, fake_db, fake_storage, settings, pipeline_mocks):
    fake_db.tables[USERS_TABLE] = [{"id": identity.key, "credits": 0, "plan": "free", "images_created": 3}]

    with pytest.raises(InsufficientCreditsError):
        await run_generation_pipeline(identity, fake_db, fake_storage, settings, image_url="https://example.com/a.jpg")

    assert IMAGE_UPLOADS_TABLE not in fake_db.tables
    pipeline_mocks["analyze"].assert_not_awaited()


@pytest.mark.asyncio
async def test_no_image_creates_nothing(identity, fake_db, fake_storage, settings, pipeline_mocks):
    with pytest.raises(ValidationError, match="No image provided"):
        await run_generation_pipeline(identity, fake_db, fake_storage, settings)

    assert IMAGE_UPLOADS_TABLE not in fake_db.tables
    assert CHARACTERS_TABLE not in fake_db.tables
