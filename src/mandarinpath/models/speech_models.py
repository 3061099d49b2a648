"""Models for speech evaluation results."""
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any, Dict, List, Optional


class ReadType(IntEnum):
    """How the evaluator aligned a word with the reference text."""
    NORMAL = 0
    INSERTION = 1  # extra word the learner said
    OMISSION = 2  # reference word the learner skipped


@dataclass
class WordScores:
    overall: Optional[float] = None
    pronunciation: Optional[float] = None
    tone: Optional[float] = None
    prominence: Optional[float] = None


@dataclass
class WordScore:
    """Evaluation of a single word of the reference text."""
    word: str
    scores: WordScores
    read_type: ReadType = ReadType.NORMAL
    pinyin: Optional[str] = None
    tone: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "WordScore":
        if not isinstance(data, dict):
            raise TypeError(f"word entry must be an object, got {type(data).__name__}")
        scores = data.get("scores") or {}
        if not isinstance(scores, dict):
            raise TypeError(f"word scores must be an object, got {type(scores).__name__}")
        return cls(
            word=data["word"],
            scores=WordScores(
                overall=scores.get("overall"),
                pronunciation=scores.get("pronunciation"),
                tone=scores.get("tone"),
                prominence=scores.get("prominence"),
            ),
            read_type=ReadType(int(data.get("read_type", 0))),
            pinyin=data.get("pinyin"),
            tone=data.get("tone"),
        )


@dataclass
class SpeechEvaluation:
    """Scores for a whole recording."""
    overall_scores: Dict[str, float] = field(default_factory=dict)
    words: List[WordScore] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def pronunciation(self) -> Optional[float]:
        """Overall pronunciation score, falling back to the per-word average."""
        for key in ("pronunciation", "overall"):
            if key in self.overall_scores:
                return self.overall_scores[key]
        scored = [w.scores.pronunciation for w in self.words if w.scores.pronunciation is not None]
        if scored:
            return sum(scored) / len(scored)
        return None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SpeechEvaluation":
        overall = data.get("overall_scores") or {}
        if not isinstance(overall, dict):
            raise TypeError(f"overall_scores must be an object, got {type(overall).__name__}")
        words = data.get("words") or []
        if not isinstance(words, list):
            raise TypeError(f"words must be a list, got {type(words).__name__}")
        return cls(
            overall_scores={k: float(v) for k, v in overall.items()},
            words=[WordScore.from_dict(w) for w in words],
            error=data.get("error"),
        )


@dataclass
class SpeakingAttempt:
    """Outcome shown to the learner after recording a word."""
    score: float
    feedback: str
    recording_url: Optional[str] = None
    evaluation: Optional[SpeechEvaluation] = None

    @property
    def is_fallback(self) -> bool:
        return self.evaluation is None
