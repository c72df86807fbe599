"""
agentrelay - Session resources.

A resource is named state the remote agent can update while it runs. The
session routes every ``resource-update`` event to the resource registered
under the event's name.
"""

from typing import Any


class Resource:
    """
    Base class for session resources.

    Example:
        ```python
        class Notes(Resource):
            def __init__(self):
                super().__init__("notes")
                self.value = ""

            async def on_update(self, value):
                self.value = value
        ```
    """

    def __init__(self, name: str):
        self._name = name

    @property
    def name(self) -> str:
        return self._name

    async def on_update(self, value: Any) -> None:
        """Called with the new value each time the agent updates this resource."""
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self._name!r})"
