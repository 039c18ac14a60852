import numpy as np
from openai import OpenAI

DEFAULT_MODEL = "text-embedding-3-large"


class OpenAIEmbedder:
    """Embeds note text with the OpenAI embeddings endpoint, without client-side retries."""

    def __init__(self, api_key: str, model: str = DEFAULT_MODEL, timeout: float | None = None):
        self.model = model
        self.client = OpenAI(api_key=api_key, timeout=timeout, max_retries=0)

    def embed(self, text: str) -> np.ndarray:
        response = self.client.embeddings.create(input=text, model=self.model)
        if not response.data:
            return np.empty(0, dtype=np.float32)
        return np.asarray(response.data[0].embedding, dtype=np.float32)
