"""Resource registry for ViewSet."""

from namerec.viewset.core.exceptions import ViewSetError
from namerec.viewset.resources.viewset import ResourceViewSet


class ResourceRegistry:
    """
    Registry of resource viewsets.
    Maps resource names to viewsets; re-registering a name replaces it.
    """

    def __init__(self) -> None:
        """Initialize empty registry."""
        self._viewsets: dict[str, ResourceViewSet] = {}

    def register(self, viewset: ResourceViewSet, name: str | None = None) -> ResourceViewSet:
        """
        Register a viewset.

        Args:
            viewset: Resource viewset
            name: Registration name (defaults to the resource name)

        Returns:
            The registered viewset
        """
        self._viewsets[name or viewset.name] = viewset
        return viewset

    def unregister(self, name: str) -> None:
        """
        Unregister a viewset.

        Args:
            name: Registration name
        """
        self._viewsets.pop(name, None)

    def get(self, name: str) -> ResourceViewSet:
        """
        Get a viewset by name.

        Args:
            name: Registration name

        Returns:
            Registered viewset

        Raises:
            ViewSetError: If nothing is registered under the name
        """
        try:
            return self._viewsets[name]
        except KeyError:
            raise ViewSetError(f'Resource {name} is not registered', name) from None

    def names(self) -> list[str]:
        """
        List registered names.

        Returns:
            Sorted list of names
        """
        return sorted(self._viewsets)

    def __contains__(self, name: object) -> bool:
        return name in self._viewsets

    def __len__(self) -> int:
        return len(self._viewsets)


# Global registry singleton
_global_registry: ResourceRegistry | None = None


def init_global_registry() -> ResourceRegistry:
    """
    Initialize global registry, dropping any previous registrations.

    Returns:
        Initialized registry
    """
    global _global_registry  # noqa: PLW0603
    _global_registry = ResourceRegistry()
    return _global_registry


def get_global_registry() -> ResourceRegistry:
    """
    Get global registry instance.

    Returns:
        Global registry (auto-initialized on first use)
    """
    if _global_registry is None:
        return init_global_registry()
    return _global_registry
