"""Voyage AI embeddings for note text."""

import numpy as np
import voyageai

DEFAULT_MODEL = "voyage-3"


class VoyageEmbedder:
    """Embeds a note's title and body as a Voyage "document" input.

    Retries are disabled: callers bound each request with their own timeout and
    treat a failure as a missing embedding.
    """

    def __init__(self, api_key: str, model: str = DEFAULT_MODEL, timeout: float | None = None):
        self.model = model
        self.client = voyageai.Client(api_key=api_key, max_retries=0, timeout=timeout)

    def embed(self, text: str) -> np.ndarray:
        result = self.client.embed(
            texts=[text], model=self.model, input_type="document", truncation=True
        )
        if not result.embeddings:
            return np.empty(0, dtype=np.float32)
        return np.asarray(result.embeddings[0], dtype=np.float32)
