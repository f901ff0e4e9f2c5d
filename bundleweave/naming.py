"""Bundle name generators.

A generator is any zero-argument callable returning a fresh name. The weaver
only relies on names being unique within one run.
"""

from __future__ import annotations

from typing import Callable, Optional

from haikunator import Haikunator

NameGenerator = Callable[[], str]


class HaikuNameGenerator:
    """Readable ``adjective-noun-NNNN`` names, reproducible when seeded."""

    def __init__(self, seed: Optional[int] = None, *, token_length: int = 4) -> None:
        self._haikunator = Haikunator(seed=seed)
        self._token_length = token_length
        self._issued: set[str] = set()

    def __call__(self) -> str:
        while True:
            name = self._haikunator.haikunate(token_length=self._token_length)
            if name not in self._issued:
                self._issued.add(name)
                return name


class SequentialNameGenerator:
    """Deterministic ``<prefix>-1``, ``<prefix>-2``, ... names."""

    def __init__(self, prefix: str = "bundle") -> None:
        self.prefix = prefix
        self._counter = 0

    def __call__(self) -> str:
        self._counter += 1
        return f"{self.prefix}-{self._counter}"


__all__ = ["HaikuNameGenerator", "NameGenerator", "SequentialNameGenerator"]
