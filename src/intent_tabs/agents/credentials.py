"""
Credential store interface for the LLM provider API key.
"""

from abc import ABC, abstractmethod
from typing import Optional

API_KEY_STORAGE_KEY = "openRouterApiKey"


class CredentialStore(ABC):
    """Stores the single API key the clustering call needs."""

    @abstractmethod
    def get_api_key(self) -> Optional[str]:
        """
        Read the stored API key.

        Returns:
            The key, or None if nothing is stored
        """
        pass

    @abstractmethod
    def set_api_key(self, api_key: str) -> None:
        """
        Store the API key, replacing any previous value.

        Args:
            api_key: Opaque API key string
        """
        pass

    def has_api_key(self) -> bool:
        """A key counts as configured only if it is present and non-empty."""
        api_key = self.get_api_key()
        return bool(api_key and api_key.strip())


class MemoryCredentialStore(CredentialStore):
    """Credential store held in memory (for scripts and tests)."""

    def __init__(self, api_key: Optional[str] = None):
        self._api_key = api_key

    def get_api_key(self) -> Optional[str]:
        return self._api_key

    def set_api_key(self, api_key: str) -> None:
        self._api_key = api_key
