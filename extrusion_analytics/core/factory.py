"""
Factory Pattern for Component Creation

Centralizes creation of the anomaly, quality, and maintenance components.
"""

from typing import Dict, Any, Type, Optional
from .base import BaseComponent


class ComponentFactory:
    """
    Factory for creating analytics components.

    Components register themselves on import; the engine builder creates them by name.
    """

    _components: Dict[str, Type[BaseComponent]] = {}

    @classmethod
    def register(cls, name: str, component_class: Type[BaseComponent]) -> None:
        """
        Register a component class.

        Args:
            name: Component identifier (e.g., 'anomaly')
            component_class: Class implementing BaseComponent
        """
        cls._components[name] = component_class

    @classmethod
    def create(cls, component_type: str, config: Optional[Dict[str, Any]] = None, **kwargs) -> BaseComponent:
        """
        Create component instance.

        Args:
            component_type: Component identifier
            config: Configuration dictionary
            **kwargs: Collaborators passed to the constructor (e.g. repository)

        Returns:
            Component instance

        Raises:
            ValueError: If component type not registered
        """
        if component_type not in cls._components:
            raise ValueError(f"Unknown component type: {component_type}. Available: {list(cls._components.keys())}")

        component_class = cls._components[component_type]
        return component_class(config=config, **kwargs)

    @classmethod
    def get_available(cls) -> list:
        """Get list of available component types."""
        return list(cls._components.keys())
