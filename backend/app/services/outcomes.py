"""Result types for operations with best-effort side effects.

The primary result is what the caller asked for. Auxiliary outcomes record
secondary writes (cache updates, remote deletions) that were allowed to fail
without aborting the primary operation.
"""

from dataclasses import dataclass, field
from typing import Any, Optional


@dataclass
class AuxiliaryOutcome:
    name: str
    ok: bool
    error: Optional[str] = None


@dataclass
class OperationOutcome:
    result: Any
    auxiliary: list[AuxiliaryOutcome] = field(default_factory=list)

    def record(self, name: str, ok: bool, error: Optional[str] = None) -> None:
        self.auxiliary.append(AuxiliaryOutcome(name=name, ok=ok, error=error))

    @property
    def failures(self) -> list[AuxiliaryOutcome]:
        return [a for a in self.auxiliary if not a.ok]

    @property
    def warnings(self) -> list[str]:
        return [f"{a.name}: {a.error}" if a.error else a.name for a in self.failures]

    def succeeded(self, name: str) -> bool:
        return any(a.name == name and a.ok for a in self.auxiliary)
