"""Instance selection policies for registry-backed discovery.

A policy only ever sees instances the registry reported as passing; it decides
which of them serves the next lookup.
"""
from __future__ import annotations

import abc
import threading
from typing import Optional


class BasePolicy(abc.ABC):
    """Chooses one base URL among healthy instances."""

    def __init__(self, name: str):
        self.name = name

    @abc.abstractmethod
    def pick(self, instances: list[str]) -> Optional[str]:
        """Pick an instance from the list. Returns None if the list is empty."""


class FirstHealthyPolicy(BasePolicy):
    """Always the first healthy instance, in registry order."""

    def __init__(self):
        super().__init__("first")

    def pick(self, instances: list[str]) -> Optional[str]:
        return instances[0] if instances else None


class RoundRobinPolicy(BasePolicy):
    """
    Thread-safe round-robin over healthy instances.

    Rotation follows the last instance handed out rather than a position, so
    instances joining or leaving the healthy set do not send the next lookup
    back to the first entry. If the last pick has dropped out, rotation starts
    over from the top.
    """

    def __init__(self):
        super().__init__("round_robin")
        self._lock = threading.Lock()
        self._last: Optional[str] = None

    def pick(self, instances: list[str]) -> Optional[str]:
        if not instances:
            return None

        with self._lock:
            try:
                nxt = (instances.index(self._last) + 1) % len(instances)
            except ValueError:
                nxt = 0
            self._last = instances[nxt]
            return self._last


POLICIES = {
    "first": FirstHealthyPolicy,
    "round_robin": RoundRobinPolicy,
}


def make_policy(name: str) -> BasePolicy:
    try:
        return POLICIES[name]()
    except KeyError:
        raise ValueError(f"unknown selection policy: {name!r} (expected one of {sorted(POLICIES)})") from None
