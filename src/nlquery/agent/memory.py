"""Conversation Memory: the append-only turn history of a session."""

from __future__ import annotations

import json
import threading
from collections.abc import Iterable, Iterator
from pathlib import Path
from typing import Any

from nlquery.core.types import Role, Turn


class ConversationMemory:
    """Ordered, append-only sequence of turns.

    Turns are never removed or reordered. What the model sees can be limited
    with :meth:`window`, which only slices the view.
    """

    def __init__(self, turns: Iterable[Turn] = ()) -> None:
        self._turns: list[Turn] = list(turns)
        self._lock = threading.Lock()

    def append(self, turn: Turn) -> None:
        with self._lock:
            self._turns.append(turn)

    def extend(self, turns: Iterable[Turn]) -> None:
        """Append several turns as one unit; no other append can interleave."""
        batch = list(turns)
        with self._lock:
            self._turns.extend(batch)

    @property
    def turns(self) -> tuple[Turn, ...]:
        """Snapshot of every stored turn."""
        with self._lock:
            return tuple(self._turns)

    def window(self, max_turns: int | None) -> tuple[Turn, ...]:
        """Most recent ``max_turns`` turns (all of them when None or <= 0).

        A truncated window starts at a user turn, so it never opens on a tool
        result or answer whose question was cut off. It may hold fewer than
        ``max_turns`` turns.
        """
        turns = self.turns
        if not max_turns or max_turns <= 0 or len(turns) <= max_turns:
            return turns
        window = turns[-max_turns:]
        for index, item in enumerate(window):
            if item.role is Role.USER:
                return window[index:]
        return ()

    def __len__(self) -> int:
        return len(self._turns)

    def __iter__(self) -> Iterator[Turn]:
        return iter(self.turns)

    def to_transcript(self) -> list[dict[str, Any]]:
        """``[{role, content, timestamp}]`` in order."""
        return [turn.to_dict() for turn in self.turns]

    def save(self, path: str | Path) -> None:
        Path(path).write_text(json.dumps(self.to_transcript(), indent=2))

    @classmethod
    def load(cls, path: str | Path) -> ConversationMemory:
        data = json.loads(Path(path).read_text())
        return cls(Turn.model_validate(item) for item in data)
