"""Template engine interface."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Callable, Dict

Helper = Callable[..., Any]


@dataclass(frozen=True)
class HelperOptions:
    """How a helper is exposed to templates.

    Attributes:
        type: Helper kind; engines decide which kinds they support
        is_async: The helper is a coroutine function
    """

    type: str = "filter"
    is_async: bool = False


class Engine(ABC):
    """Renders page content with a template language."""

    @abstractmethod
    async def render(self, content: Any, data: Dict[str, Any], filename: str) -> str:
        """
        Render content.

        Args:
            content: Template source
            data: Variables available to the template
            filename: Site-relative path of the template, used as cache key

        Returns:
            Rendered text
        """
        pass

    @abstractmethod
    def add_helper(self, name: str, fn: Helper, options: HelperOptions) -> None:
        pass
