"""Keyed last-seen table used to suppress repeated notifications."""

from __future__ import annotations

import time
from collections.abc import Callable


class CooldownTable:
	def __init__(self, window_seconds: float, clock: Callable[[], float] = time.monotonic):
		self.window_seconds = window_seconds
		self.clock = clock
		self._last_seen: dict[str, float] = {}

	def remaining(self, key: str) -> float:
		last = self._last_seen.get(key)
		if last is None:
			return 0.0
		return max(0.0, self.window_seconds - (self.clock() - last))

	def is_cooling(self, key: str) -> bool:
		return self.remaining(key) > 0

	def mark(self, key: str) -> None:
		self._last_seen[key] = self.clock()

	def prune(self) -> int:
		"""Drop expired keys; returns how many were removed."""
		now = self.clock()
		expired = [key for key, last in self._last_seen.items() if now - last >= self.window_seconds]
		for key in expired:
			del self._last_seen[key]
		return len(expired)

	def __len__(self) -> int:
		return len(self._last_seen)
