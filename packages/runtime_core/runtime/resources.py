"""Resource discovery under the application root."""

from __future__ import annotations

from pathlib import Path
from typing import Any

from packages.runtime_core.services import ServiceCollection
from packages.runtime_shared.component_registration import ComponentRegistry
from packages.runtime_shared.config import ConfigurationView

RESOURCE_EXTENSIONS = frozenset({".dialog", ".lg", ".lu", ".qna", ".schema"})


class ResourceExplorer:
    """Lists declarative resources found beneath one application root."""

    def __init__(self, application_root: Path, components: ComponentRegistry) -> None:
        self.application_root = application_root
        self.components = components

    def resources(self, extension: str | None = None) -> tuple[Path, ...]:
        """Return resource files, optionally filtered to one extension, sorted by path."""
        if not self.application_root.is_dir():
            return tuple()
        wanted = {extension} if extension else RESOURCE_EXTENSIONS
        return tuple(
            sorted(
                path
                for path in self.application_root.rglob("*")
                if path.is_file() and path.suffix in wanted
            )
        )


def add_resource_explorer(
    services: ServiceCollection, configuration: ConfigurationView
) -> None:
    """Register ``resourceExplorer`` over the configured ``applicationRoot``."""

    def make_explorer(dependencies: Any) -> ResourceExplorer:
        root = configuration.get_string(("applicationRoot",)) or "."
        return ResourceExplorer(Path(root), dependencies["componentRegistration"])

    services.add_factory("resourceExplorer", ["componentRegistration"], make_explorer)
