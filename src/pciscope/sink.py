from __future__ import annotations

from typing import Iterator, List, Protocol, Sequence, Tuple

from .model import Labels, Observation


class Sink(Protocol):
    def emit(self, name: str, labels: Sequence[Tuple[str, str]], value: float) -> None: ...


class ObservationList:
    """Sink that keeps every observation of a poll in emission order."""

    def __init__(self) -> None:
        self.observations: List[Observation] = []

    def emit(self, name: str, labels: Sequence[Tuple[str, str]], value: float) -> None:
        pairs: Labels = [(str(k), str(v)) for k, v in labels]
        self.observations.append({"name": name, "labels": pairs, "value": float(value)})

    def named(self, name: str) -> List[Observation]:
        return [o for o in self.observations if o["name"] == name]

    def __iter__(self) -> Iterator[Observation]:
        return iter(self.observations)

    def __len__(self) -> int:
        return len(self.observations)
