"""Abstract base scanner."""

from abc import ABC, abstractmethod

from blackcube.models import Finding


class BaseScanner(ABC):
    """A producer of findings; ``name`` doubles as its pipeline phase name."""

    name: str = "base"

    @abstractmethod
    def scan(self, target) -> list[Finding]:
        ...
