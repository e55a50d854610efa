"""
Unit tests for roast copy generation.
"""

import json
import pytest
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

from modules.roast_writer import fallback_roast, write_roast
from shared.models.character import ImageAnalysisResult


@pytest.fixture
def analysis(analysis_payload):
    return ImageAnalysisResult.model_validate(analysis_payload)


def _openai_client(create):
    client = MagicMock()
    client.chat.completions.create = create
    return client


@pytest.mark.asyncio
async def test_write_roast_uses_provider_copy(settings, analysis, roast_payload):
    create = AsyncMock(return_value=SimpleNamespace(
        choices=[SimpleNamespace(message=SimpleNamespace(content=json.dumps(roast_payload)))]
    ))
    with patch("modules.roast_writer.writer.AsyncOpenAI", return_value=_openai_client(create)):
        roast = await write_roast(analysis, settings)

    assert roast.title == "Nose Knows"
    assert roast.figurine_name == "Captain Schnoz"
    assert create.call_args.kwargs["model"] == settings.roast_model
    assert "Nose: Prominent nose" in create.call_args.kwargs["messages"][1]["content"]


@pytest.mark.asyncio
async def test_write_roast_fills_missing_fields(settings, analysis):
    create = AsyncMock(return_value=SimpleNamespace(
        choices=[SimpleNamespace(message=SimpleNamespace(content=json.dumps({"title": "Big Nose"})))]
    ))
    with patch("modules.roast_writer.writer.AsyncOpenAI", return_value=_openai_client(create)):
        roast = await write_roast(analysis, settings)

    assert roast.title == "Big Nose"
    assert roast.punchline == fallback_roast(analysis).punchline


@pytest.mark.asyncio
async def test_write_roast_falls_back_on_provider_error(settings, analysis):
    create = AsyncMock(side_effect=RuntimeError("rate limited"))
    with patch("modules.roast_writer.writer.AsyncOpenAI", return_value=_openai_client(create)):
        roast = await write_roast(analysis, settings)

    assert roast == fallback_roast(analysis)
    assert "Nose" in roast.roast_text


@pytest.mark.asyncio
async def test_write_roast_mock_mode_skips_provider(settings, analysis):
    with patch("modules.roast_writer.writer.AsyncOpenAI") as mock_openai:
        roast = await write_roast(analysis, settings.model_copy(update={"ai_mock_mode": True}))
    mock_openai.assert_not_called()
    assert roast.title == "The Roastee"
