"""
Base class for student registries.

The registry is the permanent store that uploaded rows are checked
against. All implementations are read-only from this package's side.
"""

from abc import ABC, abstractmethod

from ..core.records import StoredStudent


class BaseRegistry(ABC):
    """Abstract read-only view of the student registry."""

    # Override in subclass
    NAME = "base"

    @abstractmethod
    def exists_by_id(self, student_id: str) -> bool:
        """
        Check whether a student ID is already registered.

        Args:
            student_id: Normalized student ID

        Returns:
            True if a stored student has this ID.
        """
        pass

    @abstractmethod
    def get_by_id(self, student_id: str) -> StoredStudent | None:
        """
        Fetch a stored student by ID.

        Returns:
            StoredStudent, or None if not found.
        """
        pass

    @abstractmethod
    def find_by_email(self, email: str) -> list[StoredStudent]:
        """
        Find stored students with this email.

        Args:
            email: Normalized email address

        Returns:
            Matching students (possibly several).
        """
        pass

    @abstractmethod
    def find_by_first_name(self, first_name: str) -> list[StoredStudent]:
        """
        Find stored students with this first name.

        Callers filter the result by last name themselves.

        Args:
            first_name: Normalized first name
        """
        pass

    def close(self):
        """Clean up resources."""
        pass

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
