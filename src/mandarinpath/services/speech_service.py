"""Speech evaluation of recorded pronunciation attempts."""
import json
import logging
import re
from pathlib import Path
from typing import List, Optional

from gtts import gTTS, gTTSError

from mandarinpath import monitoring
from mandarinpath.config import settings
from mandarinpath.models.speech_models import (
    ReadType,
    SpeakingAttempt,
    SpeechEvaluation,
    WordScore,
)
from mandarinpath.services.api_client import ApiClient, ApiError

logger = logging.getLogger(__name__)

ISSUE_THRESHOLD = 70
FALLBACK_FEEDBACK = "Unable to analyze your pronunciation right now. Keep practicing!"
NO_WORDS_FEEDBACK = "Good attempt! Keep practicing your pronunciation."


class SpeechEvaluationError(Exception):
    """The backend could not evaluate a recording."""


def score_class(score: float) -> str:
    """Bucket an overall score for display."""
    if score >= 90:
        return "excellent"
    if score >= 80:
        return "good"
    if score >= 70:
        return "fair"
    return "needs-work"


def word_score_class(score: float) -> str:
    return f"word-{score_class(score)}"


def get_word_issues(word: WordScore) -> List[str]:
    """Short labels for what went wrong with one word."""
    issues = []
    if word.read_type == ReadType.INSERTION:
        issues.append("Extra word")
    elif word.read_type == ReadType.OMISSION:
        issues.append("Missing word")
    if word.scores.pronunciation is not None and word.scores.pronunciation < ISSUE_THRESHOLD:
        issues.append("Pronunciation")
    if word.scores.tone is not None and word.scores.tone < ISSUE_THRESHOLD:
        issues.append("Tone")
    return issues


def generate_feedback(evaluation: SpeechEvaluation) -> str:
    """Turn an evaluation into a short message for the learner."""
    if not evaluation.words:
        return NO_WORDS_FEEDBACK

    score = evaluation.pronunciation or 0
    if score >= 90:
        parts = ["Excellent pronunciation!"]
    elif score >= 80:
        parts = ["Good pronunciation!"]
    elif score >= 70:
        parts = ["Fair attempt, you're getting there."]
    else:
        parts = ["Keep practicing! Listen to the example and try again."]

    spoken = [w for w in evaluation.words if w.read_type == ReadType.NORMAL]
    tone_issues = [w.word for w in spoken if "Tone" in get_word_issues(w)]
    pronunciation_issues = [w.word for w in spoken if "Pronunciation" in get_word_issues(w)]
    missing = [w.word for w in evaluation.words if w.read_type == ReadType.OMISSION]

    if tone_issues:
        parts.append(f"Focus on tone accuracy for: {', '.join(tone_issues)}.")
    if pronunciation_issues:
        parts.append(f"Work on pronouncing: {', '.join(pronunciation_issues)}.")
    if missing:
        parts.append(f"Don't skip: {', '.join(missing)}.")
    return " ".join(parts)


class SpeechService:
    """Sends recordings to the backend evaluator and interprets the result."""

    def __init__(self, api_client: ApiClient):
        self.api_client = api_client

    async def evaluate(
        self,
        audio: bytes,
        ref_text: str,
        ref_pinyin: Optional[str] = None,
        phoneme_output: bool = False,
        filename: str = "recording.mp3",
    ) -> SpeechEvaluation:
        """Upload a recording and return the evaluator's scores.

        Raises:
            SpeechEvaluationError: when the backend reports a failure or the
                response cannot be understood.
            ApiError: when the request itself fails.
        """
        speech = settings.speech
        params = {
            "ref_text": ref_text,
            "lang": speech.language,
            "core": speech.core,
            "ref_pinyin": ref_pinyin,
            "phoneme_output": phoneme_output,
        }
        data = {
            "params": json.dumps(params, ensure_ascii=False),
            "encoding": speech.audio_encoding,
            "sample_rate": str(speech.sample_rate),
            "channels": str(speech.channels),
            "bit_depth": str(speech.bit_depth),
        }
        files = {"audio": (filename, audio, "application/octet-stream")}

        body = await self.api_client.post_form("/speech/evaluate", data=data, files=files)

        if not isinstance(body, dict):
            raise SpeechEvaluationError("Malformed evaluation response")
        if not body.get("success"):
            raise SpeechEvaluationError(body.get("error") or "Evaluation failed")
        if not isinstance(body.get("data"), dict):
            raise SpeechEvaluationError("Evaluation response has no data")

        try:
            return SpeechEvaluation.from_dict(body["data"])
        except (KeyError, TypeError, ValueError) as e:
            raise SpeechEvaluationError(f"Malformed evaluation data: {e}") from e

    async def process_recording(
        self,
        audio: bytes,
        ref_text: str,
        ref_pinyin: Optional[str] = None,
        recording_url: Optional[str] = None,
    ) -> SpeakingAttempt:
        """Evaluate a recording, degrading to a fixed score when evaluation fails."""
        if not audio:
            logger.warning(f"Empty recording for {ref_text}")
            return self._fallback_attempt(recording_url)

        try:
            evaluation = await self.evaluate(audio, ref_text, ref_pinyin)
        except (ApiError, SpeechEvaluationError) as e:
            logger.error(f"Speech evaluation failed for {ref_text}: {e}")
            return self._fallback_attempt(recording_url)

        score = evaluation.pronunciation
        if score is None:
            logger.error(f"Speech evaluation for {ref_text} returned no scores")
            return self._fallback_attempt(recording_url)

        monitoring.speech_evaluations.labels(outcome="scored").inc()
        return SpeakingAttempt(
            score=round(score),
            feedback=generate_feedback(evaluation),
            recording_url=recording_url,
            evaluation=evaluation,
        )

    @staticmethod
    def _fallback_attempt(recording_url: Optional[str]) -> SpeakingAttempt:
        monitoring.speech_evaluations.labels(outcome="fallback").inc()
        return SpeakingAttempt(
            score=settings.speech.fallback_score,
            feedback=FALLBACK_FEEDBACK,
            recording_url=recording_url,
        )

    @staticmethod
    def generate_pronunciation(text: str, output_dir: Optional[Path] = None) -> str:
        """Generate a reference audio file for text, returning its path or "" on failure."""
        output_dir = output_dir or settings.paths.pronunciations_dir
        filename = f"{_sanitize_filename(text)}.mp3"
        path = Path(output_dir) / filename
        if path.exists():
            return str(path)
        try:
            tts = gTTS(text=text, lang=settings.speech.tts_language)
            tts.save(str(path))
            logger.info(f"Pronunciation generated for {text}, file: {path}")
            return str(path)
        except (gTTSError, ValueError, OSError) as e:
            logger.error(f"Error generating pronunciation for {text}, error: {e}")
            return ""


def _sanitize_filename(text: str) -> str:
    """Hex-encode anything outside ASCII letters and digits."""
    return re.sub(r"[^a-zA-Z0-9]", lambda m: f"{ord(m.group()):x}", text.lower())
