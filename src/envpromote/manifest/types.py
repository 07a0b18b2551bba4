"""Type definitions for dependency manifest mutations."""

from dataclasses import dataclass
from typing import Literal

MutationOperation = Literal["add", "remove", "upgrade"]


@dataclass(frozen=True)
class ManifestMutation:
    """A single change to one named dependency of an environment manifest.

    `add` and `upgrade` both insert-or-replace the entry; they differ only in
    how the change is described to humans (branch names, PR titles).
    `repository` and `alias` are written only when a new entry is inserted
    into a requirements-style document.
    """

    dependency_name: str
    operation: MutationOperation
    target_version: str | None = None
    repository: str | None = None
    alias: str | None = None

    def __post_init__(self) -> None:
        if not self.dependency_name:
            msg = "dependency_name must not be empty"
            raise ValueError(msg)
        if self.operation == "remove":
            if self.target_version is not None:
                msg = f"remove of '{self.dependency_name}' must not carry a target_version"
                raise ValueError(msg)
            return
        if self.operation not in ("add", "upgrade"):
            msg = f"Unknown mutation operation: {self.operation!r}"
            raise ValueError(msg)
        if not self.target_version:
            msg = f"{self.operation} of '{self.dependency_name}' requires a target_version"
            raise ValueError(msg)

    @classmethod
    def add(
        cls,
        name: str,
        version: str,
        *,
        repository: str | None = None,
        alias: str | None = None,
    ) -> "ManifestMutation":
        return cls(
            dependency_name=name,
            operation="add",
            target_version=version,
            repository=repository,
            alias=alias,
        )

    @classmethod
    def upgrade(cls, name: str, version: str) -> "ManifestMutation":
        return cls(dependency_name=name, operation="upgrade", target_version=version)

    @classmethod
    def remove(cls, name: str) -> "ManifestMutation":
        return cls(dependency_name=name, operation="remove")

    def describe(self) -> str:
        """Human readable one-liner, e.g. 'upgrade app-a to 1.1.0'."""
        if self.operation == "remove":
            return f"remove {self.dependency_name}"
        return f"{self.operation} {self.dependency_name} to {self.target_version}"
