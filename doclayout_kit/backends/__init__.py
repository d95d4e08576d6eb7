"""
Inference backends for doclayout_kit.

Backends are kept in a separate module so pre/post-processing stays importable
without an inference runtime installed.
"""

from __future__ import annotations

from typing import Dict, Mapping, Protocol, Sequence

import numpy as np


class InferenceBackend(Protocol):
    """
    What the pipeline needs from a runtime: the declared input names and one
    synchronous forward pass returning named outputs (primary output first).
    """

    @property
    def input_names(self) -> Sequence[str]:
        ...

    def run(self, feeds: Mapping[str, np.ndarray]) -> Dict[str, np.ndarray]:
        ...


__all__ = ["InferenceBackend"]
