"""Repository interfaces for the stored gate settings."""

from abc import ABC, abstractmethod
from collections.abc import Iterable

from .models import GateSettings


class SettingsRepository(ABC):
    """Abstract store for the allow list and the enabled flag."""

    @abstractmethod
    def load(self) -> GateSettings:
        """Read a fresh snapshot of the stored settings.

        Returns:
            Current settings
        """
        pass

    @abstractmethod
    def save_allow_list(self, tokens: Iterable[str]) -> None:
        """Replace the stored allow list.

        Args:
            tokens: Canonical entries to store
        """
        pass

    @abstractmethod
    def set_enabled(self, enabled: bool) -> None:
        """Store the enabled flag.

        Args:
            enabled: Whether the gate restricts access
        """
        pass
