from typing import Protocol

import numpy as np


class Embedder(Protocol):
    """Turns text into a vector; an empty array means the provider returned nothing."""

    def embed(self, text: str) -> np.ndarray: ...
