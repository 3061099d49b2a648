"""Tests for speech evaluation."""
import json
from unittest.mock import patch

import httpx
import pytest

from conftest import json_response
from mandarinpath.models.speech_models import ReadType, SpeechEvaluation, WordScore, WordScores
from mandarinpath.services.speech_service import (
    FALLBACK_FEEDBACK,
    SpeechService,
    generate_feedback,
    get_word_issues,
    score_class,
    word_score_class,
)

AUDIO = b"ID3 mock audio"


def evaluation(overall: float, words: list) -> SpeechEvaluation:
    return SpeechEvaluation.from_dict({"overall_scores": {"pronunciation": overall}, "words": words})


def success_body() -> dict:
    return {
        "success": True,
        "data": {
            "overall_scores": {"pronunciation": 92},
            "words": [
                {"word": "你好", "pinyin": "nǐ hǎo", "scores": {"pronunciation": 90, "tone": 94}, "read_type": 0},
            ],
        },
    }


@pytest.mark.asyncio
async def test_process_recording_success(make_client) -> None:
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["path"] = request.url.path
        seen["body"] = request.content
        return json_response(200, success_body())

    service = SpeechService(make_client(handler))
    attempt = await service.process_recording(AUDIO, "你好", "nǐ hǎo", recording_url="blob:1")

    assert attempt.score == 92
    assert "Excellent pronunciation" in attempt.feedback
    assert attempt.recording_url == "blob:1"
    assert not attempt.is_fallback
    assert attempt.evaluation.words[0].scores.tone == 94
    assert seen["path"] == "/api/speech/evaluate"
    assert b'name="audio"' in seen["body"]
    assert b'name="sample_rate"' in seen["body"]


@pytest.mark.asyncio
async def test_evaluate_sends_reference_params(make_client) -> None:
    captured = {}

    def handler(request: httpx.Request) -> httpx.Response:
        captured["body"] = request.content.decode("utf-8", errors="replace")
        return json_response(200, success_body())

    service = SpeechService(make_client(handler))
    await service.evaluate(AUDIO, "你好", "nǐ hǎo")

    body = captured["body"]
    start = body.index("{", body.index('name="params"'))
    params = json.loads(body[start:body.index("}", start) + 1])
    assert params == {
        "ref_text": "你好",
        "lang": "cn",
        "core": "sent",
        "ref_pinyin": "nǐ hǎo",
        "phoneme_output": False,
    }


@pytest.mark.asyncio
async def test_network_error_falls_back(make_client) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("Network error", request=request)

    attempt = await SpeechService(make_client(handler)).process_recording(AUDIO, "你好")

    assert attempt.score == 75
    assert "Unable to analyze" in attempt.feedback
    assert attempt.is_fallback


@pytest.mark.asyncio
async def test_unsuccessful_response_falls_back(make_client) -> None:
    client = make_client(lambda r: json_response(200, {"success": False, "error": "Invalid audio format"}))
    attempt = await SpeechService(client).process_recording(AUDIO, "你好")

    assert attempt.score == 75
    assert attempt.feedback == FALLBACK_FEEDBACK


@pytest.mark.asyncio
async def test_malformed_response_falls_back(make_client) -> None:
    client = make_client(lambda r: json_response(200, None))
    attempt = await SpeechService(client).process_recording(AUDIO, "你好")
    assert "Unable to analyze" in attempt.feedback


@pytest.mark.parametrize(
    "data",
    [
        {"words": [{"word": "你好", "scores": [90, 80]}]},
        {"overall_scores": [90]},
        {"words": {"你好": {}}},
        {"words": ["你好"]},
    ],
)
@pytest.mark.asyncio
async def test_wrongly_shaped_data_falls_back(make_client, data) -> None:
    client = make_client(lambda r: json_response(200, {"success": True, "data": data}))
    attempt = await SpeechService(client).process_recording(AUDIO, "你好")

    assert attempt.score == 75
    assert attempt.feedback == FALLBACK_FEEDBACK
    assert attempt.is_fallback


@pytest.mark.asyncio
async def test_server_error_falls_back(make_client) -> None:
    client = make_client(lambda r: json_response(500, {"error": "Internal server error"}))
    attempt = await SpeechService(client).process_recording(AUDIO, "你好")
    assert attempt.score == 75


@pytest.mark.asyncio
async def test_empty_audio_falls_back_without_request(make_client) -> None:
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return json_response(200, success_body())

    attempt = await SpeechService(make_client(handler)).process_recording(b"", "你好")
    assert attempt.score == 75
    assert calls == []


def test_feedback_for_high_scores() -> None:
    result = evaluation(95, [{"word": "你好", "scores": {"pronunciation": 95, "tone": 93}, "read_type": 0}])
    assert "Excellent pronunciation" in generate_feedback(result)


def test_feedback_for_low_scores() -> None:
    result = evaluation(65, [{"word": "你好", "scores": {"pronunciation": 65, "tone": 60}, "read_type": 0}])
    feedback = generate_feedback(result)
    assert "Keep practicing" in feedback
    assert "你好" in feedback


def test_feedback_mentions_tone_issues() -> None:
    result = evaluation(80, [{"word": "你好", "scores": {"pronunciation": 85, "tone": 65}, "read_type": 0}])
    assert "tone accuracy" in generate_feedback(result)


def test_feedback_without_words() -> None:
    assert generate_feedback(evaluation(80, [])) == "Good attempt! Keep practicing your pronunciation."


def test_word_issues() -> None:
    def word(pronunciation, tone, read_type=0):
        return WordScore(
            word="你好",
            scores=WordScores(pronunciation=pronunciation, tone=tone),
            read_type=ReadType(read_type),
        )

    assert "Pronunciation" in get_word_issues(word(65, 85))
    assert "Tone" in get_word_issues(word(85, 65))
    assert get_word_issues(word(85, 85, 1)) == ["Extra word"]
    assert get_word_issues(word(85, 85, 2)) == ["Missing word"]
    assert get_word_issues(word(85, 85)) == []


def test_score_classes() -> None:
    assert score_class(95) == "excellent"
    assert score_class(85) == "good"
    assert score_class(75) == "fair"
    assert score_class(65) == "needs-work"
    assert word_score_class(95) == "word-excellent"
    assert word_score_class(85) == "word-good"
    assert word_score_class(75) == "word-fair"
    assert word_score_class(65) == "word-needs-work"


def test_generate_pronunciation(tmp_path) -> None:
    with patch("mandarinpath.services.speech_service.gTTS") as mock_tts:
        path = SpeechService.generate_pronunciation("你好", output_dir=tmp_path)

    mock_tts.assert_called_once_with(text="你好", lang="zh-CN")
    mock_tts.return_value.save.assert_called_once_with(path)
    assert path.startswith(str(tmp_path))
    assert path.endswith(".mp3")


def test_generate_pronunciation_failure_returns_empty(tmp_path) -> None:
    with patch("mandarinpath.services.speech_service.gTTS", side_effect=ValueError("Language not supported")):
        assert SpeechService.generate_pronunciation("你好", output_dir=tmp_path) == ""


def test_pronunciation_score_falls_back_to_word_average() -> None:
    assert evaluation(88, []).pronunciation == 88
    overall = SpeechEvaluation.from_dict({"overall_scores": {"overall": 81}})
    assert overall.pronunciation == 81
    averaged = SpeechEvaluation.from_dict({
        "words": [
            {"word": "你", "scores": {"pronunciation": 80}},
            {"word": "好", "scores": {"pronunciation": 90}},
            {"word": "吗", "scores": {}},
        ],
    })
    assert averaged.pronunciation == 85
    assert SpeechEvaluation().pronunciation is None
