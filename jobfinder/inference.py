"""
Hosted inference client for sentence embeddings and zero-shot classification.
"""

from dataclasses import dataclass
from typing import Any, List, Optional, Sequence, Tuple

import numpy as np
import requests
from rich.console import Console

from .config import get_config_manager
from .errors import InferenceError, TransientServiceError
from .retry import RETRY_STATUS, call_with_retries

console = Console()

RETRYABLE_ERRORS = (requests.ConnectionError, requests.Timeout, TransientServiceError)


@dataclass
class ClassificationResult:
    """Zero-shot classification output, labels ordered by descending score."""
    labels: List[str]
    scores: List[float]

    def top(self) -> Tuple[Optional[str], float]:
        """Best label and its score."""
        if not self.labels:
            return None, 0.0
        return self.labels[0], self.scores[0]


class InferenceClient:
    """Client for the hosted inference API (feature extraction and zero-shot classification)."""

    def __init__(self,
                 api_key: Optional[str] = None,
                 base_url: Optional[str] = None,
                 embedding_model: Optional[str] = None,
                 classification_model: Optional[str] = None,
                 timeout: Optional[float] = None,
                 max_retries: Optional[int] = None,
                 backoff_base: Optional[float] = None,
                 session: Optional[requests.Session] = None):
        config = get_config_manager()

        # Use config values if not explicitly provided
        if api_key is None:
            api_key = config.get('huggingface', 'api_key')
        if base_url is None:
            base_url = config.get('huggingface', 'base_url')
        if embedding_model is None:
            embedding_model = config.get('huggingface', 'embedding_model')
        if classification_model is None:
            classification_model = config.get('huggingface', 'classification_model')
        if timeout is None:
            timeout = config.get('huggingface', 'timeout')
        if max_retries is None:
            max_retries = config.get('huggingface', 'max_retries')
        if backoff_base is None:
            backoff_base = config.get('huggingface', 'backoff_base')

        self.base_url = base_url.rstrip('/')
        self.embedding_model = embedding_model
        self.classification_model = classification_model
        self.timeout = timeout
        self.max_retries = max_retries
        self.backoff_base = backoff_base
        self.max_chars = config.get('huggingface', 'max_chars') or 8000

        self.session = session or requests.Session()
        self.session.headers.update({
            'User-Agent': 'jobfinder/0.1',
            'Accept': 'application/json'
        })
        if api_key:
            self.session.headers['Authorization'] = f"Bearer {api_key}"
        else:
            console.print("[yellow]Warning: HF_API_KEY is not set; inference requests will likely be rejected[/yellow]")

    def _post(self, url: str, payload: dict) -> Any:
        """POST JSON to the API with retry/backoff on network errors and 429/5xx."""
        def send():
            response = self.session.post(url, json=payload, timeout=self.timeout)
            if response.status_code in RETRY_STATUS:
                raise TransientServiceError(response.status_code, url)
            response.raise_for_status()
            return response.json()

        try:
            return call_with_retries(
                send,
                retries=self.max_retries,
                backoff_base=self.backoff_base,
                retry_on=RETRYABLE_ERRORS,
                description=f"Inference request to {url}"
            )
        except (requests.RequestException, TransientServiceError, ValueError) as e:
            raise InferenceError(f"Inference request failed: {e}") from e

    def _clean_text(self, text: str) -> str:
        """Collapse whitespace and truncate to the model's practical input size."""
        if not text:
            return ""

        cleaned = " ".join(text.split())
        if len(cleaned) > self.max_chars:
            cleaned = cleaned[:self.max_chars]
            console.print(f"[yellow]Text truncated to {self.max_chars} characters[/yellow]")

        return cleaned

    def embed(self, texts: Sequence[str]) -> List[np.ndarray]:
        """
        Generate one embedding per input text.

        Args:
            texts: Texts to embed

        Returns:
            float32 vectors in the same order as `texts`
        """
        if not texts:
            return []

        url = f"{self.base_url}/{self.embedding_model}/pipeline/feature-extraction"
        inputs = [self._clean_text(text) for text in texts]
        response = self._post(url, {"inputs": inputs})

        if not isinstance(response, list) or len(response) != len(inputs):
            received = len(response) if isinstance(response, list) else type(response).__name__
            raise InferenceError(f"Expected {len(inputs)} embeddings, got {received}")

        return [self._to_vector(item) for item in response]

    def embed_one(self, text: str) -> np.ndarray:
        """Generate the embedding for a single text."""
        return self.embed([text])[0]

    def _to_vector(self, item: Any) -> np.ndarray:
        try:
            vector = np.asarray(item, dtype=np.float32)
        except (TypeError, ValueError) as e:
            raise InferenceError(f"Malformed embedding in response: {e}") from e

        # Token-level output: mean-pool down to one sentence vector
        while vector.ndim > 1:
            vector = vector.mean(axis=0)

        if vector.ndim == 0 or vector.size == 0:
            raise InferenceError("Empty embedding in response")
        return vector

    def classify(self, text: str, labels: Sequence[str]) -> ClassificationResult:
        """
        Zero-shot classify `text` against candidate `labels`.

        Scores are independent probabilities (multi-label), so they need not sum to 1.
        """
        url = f"{self.base_url}/{self.classification_model}"
        payload = {
            "inputs": text,
            "parameters": {"candidate_labels": list(labels), "multi_label": True}
        }
        response = self._post(url, payload)
        return self._parse_classification(response)

    def _parse_classification(self, response: Any) -> ClassificationResult:
        # Either {"labels": [...], "scores": [...]} or [{"label": ..., "score": ...}, ...]
        if isinstance(response, dict) and 'labels' in response and 'scores' in response:
            pairs = list(zip(response['labels'], response['scores']))
        elif isinstance(response, list) and all(isinstance(p, dict) and 'label' in p for p in response):
            pairs = [(p['label'], p.get('score', 0.0)) for p in response]
        else:
            raise InferenceError(f"Unexpected classification response: {response!r}")

        pairs.sort(key=lambda pair: pair[1], reverse=True)
        return ClassificationResult(
            labels=[label for label, _ in pairs],
            scores=[float(score) for _, score in pairs]
        )

    def get_status(self) -> dict:
        """Check that the embedding model answers."""
        status = {
            "base_url": self.base_url,
            "embedding_model": self.embedding_model,
            "classification_model": self.classification_model,
            "connection": False,
            "error": None
        }

        try:
            embedding = self.embed_one("connection test")
            status["connection"] = True
            status["dimensions"] = int(embedding.shape[0])
        except InferenceError as e:
            status["error"] = str(e)

        return status


def get_inference_client() -> InferenceClient:
    """Get an inference client instance."""
    return InferenceClient()
