"""FinBERT sentiment scorer with GPU auto-detect.

The model is loaded once per process and reused for every document:

    scorer = get_scorer("ProsusAI/finbert")
    result = scorer.score("Bitcoin rallies past resistance")
    result.score  # in [0, 1], 0.5 is neutral

Any `transformers` text-classification checkpoint whose labels include
positive/negative (and optionally neutral) can be used as model location.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from functools import lru_cache
from typing import Any

import torch
from transformers import AutoModelForSequenceClassification, AutoTokenizer, pipeline

from coin_sentiment.exceptions import ModelLoadError, ScoringError

logger = logging.getLogger(__name__)

# FinBERT model configuration
FINBERT_MODEL = "ProsusAI/finbert"
FINBERT_MAX_LENGTH = 512

NEUTRAL_SCORE = 0.5

Classifier = Callable[[list[str]], list[list[dict[str, Any]]]]


@dataclass(frozen=True)
class SentimentScore:
    """Sentiment of a single text.

    Attributes:
        score: Sentiment in [0, 1]; 0 is fully negative, 1 fully positive
        label: Winning label ("positive", "negative", "neutral"), if known
        p_pos: Probability of positive sentiment
        p_neg: Probability of negative sentiment
        p_neu: Probability of neutral sentiment
    """

    score: float
    label: str | None = None
    p_pos: float | None = None
    p_neg: float | None = None
    p_neu: float | None = None

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "score": self.score,
            "label": self.label,
            "p_pos": self.p_pos,
            "p_neg": self.p_neg,
            "p_neu": self.p_neu,
        }

    @classmethod
    def from_dict(cls, data: dict) -> SentimentScore:
        """Create from dictionary."""
        return cls(
            score=data["score"],
            label=data.get("label"),
            p_pos=data.get("p_pos"),
            p_neg=data.get("p_neg"),
            p_neu=data.get("p_neu"),
        )


NEUTRAL_SENTIMENT = SentimentScore(score=NEUTRAL_SCORE, label="neutral")


def get_device(use_gpu: bool | None = None) -> str:
    """Detect the best available compute device.

    Priority order: MPS (Apple Silicon), CUDA, CPU.

    Args:
        use_gpu: False forces CPU. None or True auto-detects.

    Returns:
        Device string: "mps", "cuda", or "cpu"
    """
    if use_gpu is False:
        return "cpu"

    if hasattr(torch.backends, "mps") and torch.backends.mps.is_available():
        try:
            # Verify MPS is actually functional
            _ = torch.zeros(1, device="mps")
            return "mps"
        except Exception:
            logger.debug("[FinBERT] MPS reported available but is not functional")

    if torch.cuda.is_available():
        return "cuda"

    return "cpu"


def to_sentiment_score(label_scores: list[dict[str, Any]]) -> SentimentScore:
    """Convert per-label classifier output into a SentimentScore.

    Args:
        label_scores: Items like {"label": "positive", "score": 0.81}

    Returns:
        SentimentScore with score = 0.5 + (p_pos - p_neg) / 2

    Raises:
        ScoringError: If the output has neither a positive nor a negative label
    """
    probs: dict[str, float] = {}
    for item in label_scores:
        probs[str(item["label"]).lower()] = float(item["score"])

    if "positive" not in probs and "negative" not in probs:
        raise ScoringError(f"Unrecognized sentiment labels: {sorted(probs)}")

    p_pos = probs.get("positive", 0.0)
    p_neg = probs.get("negative", 0.0)
    p_neu = probs.get("neutral", 0.0)

    # Determine winning label
    if p_pos >= p_neg and p_pos >= p_neu:
        label = "positive"
    elif p_neg >= p_pos and p_neg >= p_neu:
        label = "negative"
    else:
        label = "neutral"

    score = min(1.0, max(0.0, NEUTRAL_SCORE + (p_pos - p_neg) / 2))

    return SentimentScore(
        score=round(score, 4),
        label=label,
        p_pos=round(p_pos, 4),
        p_neg=round(p_neg, 4),
        p_neu=round(p_neu, 4),
    )


class FinBERTScorer:
    """Pretrained sentiment scorer.

    Scoring is deterministic for a loaded model: inference runs in eval mode
    with no sampling. Empty text is scored as neutral without touching the
    model.
    """

    def __init__(
        self,
        model_location: str = FINBERT_MODEL,
        use_gpu: bool | None = None,
        classifier: Classifier | None = None,
    ):
        """Create a scorer.

        Args:
            model_location: Hub id or local directory of the model
            use_gpu: Force GPU usage. None = auto-detect.
            classifier: Ready text-classification callable (skips model loading)
        """
        self.model_location = model_location
        self._use_gpu = use_gpu
        self._pipeline: Classifier | None = classifier
        self._device = "cpu"

    @property
    def is_loaded(self) -> bool:
        return self._pipeline is not None

    @property
    def device(self) -> str:
        """Return the device being used."""
        return self._device

    def load(self) -> FinBERTScorer:
        """Load model and tokenizer. Calling it again is a no-op.

        Returns:
            self, ready to score

        Raises:
            ModelLoadError: If the model artifact is missing or corrupt, or
                the model cannot be placed on the selected device
        """
        if self._pipeline is not None:
            return self

        self._device = get_device(self._use_gpu)
        logger.info(
            f"[FinBERT] Loading model {self.model_location} on {self._device}"
        )

        try:
            tokenizer = AutoTokenizer.from_pretrained(self.model_location)
            model = AutoModelForSequenceClassification.from_pretrained(
                self.model_location
            )

            if self._device != "cpu":
                model = model.to(self._device)

            # Determine device parameter for pipeline
            if self._device == "cuda":
                device_param = 0
            elif self._device == "cpu":
                device_param = -1
            else:
                device_param = self._device  # "mps"

            classifier = pipeline(
                "sentiment-analysis",
                model=model,
                tokenizer=tokenizer,
                top_k=None,
                truncation=True,
                max_length=FINBERT_MAX_LENGTH,
                device=device_param,
            )
        except Exception as e:
            raise ModelLoadError(
                f"Failed to load sentiment model '{self.model_location}': {e}",
                model_location=self.model_location,
            ) from e

        self._pipeline = classifier
        return self

    def _classify(self, texts: list[str]) -> list[list[dict[str, Any]]]:
        if self._pipeline is None:
            self.load()
        return self._pipeline(texts)

    def score(self, text: str) -> SentimentScore:
        """Score the sentiment of a single text.

        Args:
            text: Text to analyze (may be empty)

        Returns:
            SentimentScore with score in [0, 1]

        Raises:
            ScoringError: If the model fails on this text
        """
        if not text or not text.strip():
            return NEUTRAL_SENTIMENT

        try:
            outputs = self._classify([text])
        except ModelLoadError:
            raise
        except Exception as e:
            raise ScoringError(f"Model failed to score text: {e}") from e

        return to_sentiment_score(outputs[0])

    def score_batch(self, texts: list[str]) -> list[SentimentScore | ScoringError]:
        """Score many texts with a single model call.

        If the batched call fails, each text is scored on its own so one bad
        document does not take down the others.

        Args:
            texts: Texts to analyze

        Returns:
            One SentimentScore or ScoringError per input text, in order
        """
        results: list[SentimentScore | ScoringError | None] = [None] * len(texts)
        pending: list[tuple[int, str]] = []

        for i, text in enumerate(texts):
            if not text or not text.strip():
                results[i] = NEUTRAL_SENTIMENT
            else:
                pending.append((i, text))

        if pending:
            try:
                outputs = self._classify([t for _, t in pending])
            except ModelLoadError:
                raise
            except Exception:
                logger.warning(
                    f"[FinBERT] Batch of {len(pending)} failed, scoring one by one"
                )
                outputs = None

            for position, (i, text) in enumerate(pending):
                try:
                    if outputs is None:
                        results[i] = self.score(text)
                    else:
                        results[i] = to_sentiment_score(outputs[position])
                except ScoringError as e:
                    results[i] = e

        return [r for r in results if r is not None]


@lru_cache(maxsize=4)
def get_scorer(model_location: str = FINBERT_MODEL, use_gpu: bool | None = None) -> FinBERTScorer:
    """Return a loaded scorer, shared across the process.

    Raises:
        ModelLoadError: If the model cannot be loaded
    """
    return FinBERTScorer(model_location=model_location, use_gpu=use_gpu).load()
