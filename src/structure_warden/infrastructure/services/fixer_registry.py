"""Thread-safe registry of fixers ordered by priority."""

import threading
from typing import Iterable, Optional

from structure_warden.domain.entities import Violation
from structure_warden.domain.protocols import FixerProtocol, FixerRegistryProtocol


class FixerRegistry(FixerRegistryProtocol):
    """
    Holds fixers sorted by descending priority.

    Registration order breaks priority ties, so lookups are deterministic.
    Duplicate registrations (same name) are ignored.
    """

    def __init__(self, fixers: Optional[Iterable[FixerProtocol]] = None) -> None:
        self._lock = threading.RLock()
        self._fixers: list[FixerProtocol] = []
        if fixers:
            self.register_all(fixers)

    def register(self, fixer: FixerProtocol) -> None:
        with self._lock:
            if any(existing.name == fixer.name for existing in self._fixers):
                return
            self._fixers.append(fixer)
            # sort is stable: equal priorities keep registration order
            self._fixers.sort(key=lambda f: f.priority, reverse=True)

    def register_all(self, fixers: Iterable[FixerProtocol]) -> None:
        with self._lock:
            for fixer in fixers:
                self.register(fixer)

    def unregister(self, fixer: FixerProtocol) -> bool:
        with self._lock:
            for index, existing in enumerate(self._fixers):
                if existing.name == fixer.name:
                    del self._fixers[index]
                    return True
            return False

    def find_fixer_for(self, violation: Violation) -> Optional[FixerProtocol]:
        """Highest-priority enabled fixer that accepts the violation."""
        with self._lock:
            for fixer in self._fixers:
                if fixer.enabled and fixer.can_fix(violation):
                    return fixer
            return None

    def find_all_fixers_for(self, violation: Violation) -> list[FixerProtocol]:
        with self._lock:
            return [f for f in self._fixers if f.enabled and f.can_fix(violation)]

    def find_fixers_for_rule(self, rule_id: str) -> list[FixerProtocol]:
        with self._lock:
            return [f for f in self._fixers if f.enabled and rule_id in f.supported_rules()]

    def get_all_fixers(self) -> list[FixerProtocol]:
        with self._lock:
            return list(self._fixers)

    def get_all_enabled_fixers(self) -> list[FixerProtocol]:
        with self._lock:
            return [f for f in self._fixers if f.enabled]

    def size(self) -> int:
        with self._lock:
            return len(self._fixers)

    def clear(self) -> None:
        with self._lock:
            self._fixers.clear()
