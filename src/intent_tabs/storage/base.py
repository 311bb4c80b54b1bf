"""
Abstract base class for saved workspace storage backends.
"""

from abc import ABC, abstractmethod
from typing import Optional

from intent_tabs.agents.models import Workspace


class WorkspaceStore(ABC):
    """Abstract interface for saved workspace storage backends."""

    @abstractmethod
    def save_workspace(self, workspace: Workspace) -> Workspace:
        """
        Persist a workspace and mark it as saved.

        Args:
            workspace: Workspace to save

        Returns:
            The saved copy (``is_saved`` is True)
        """
        pass

    @abstractmethod
    def get_saved_workspaces(self) -> list[Workspace]:
        """
        Get all saved workspaces.

        Returns:
            Workspaces in the order they were first saved
        """
        pass

    @abstractmethod
    def get_workspace(self, workspace_id: str) -> Optional[Workspace]:
        """
        Get a saved workspace by ID.

        Args:
            workspace_id: ID of the workspace

        Returns:
            Workspace if found, None otherwise
        """
        pass

    @abstractmethod
    def delete_workspace(self, workspace_id: str) -> bool:
        """
        Delete a saved workspace.

        Args:
            workspace_id: ID of the workspace

        Returns:
            True if a workspace was deleted, False if not found
        """
        pass
