"""
agentrelay - HTTP client for the agent execution service.

Owns the ``httpx.AsyncClient`` shared by sessions and workers.
"""

import os
from dataclasses import dataclass, field
from typing import Any, Iterable, Optional

import httpx

from .resource import Resource
from .session import AgentSession
from .tools import ToolHandlers
from .workers import WorkersAPI

DEFAULT_BASE_URL = "http://localhost:3000"


@dataclass
class ClientConfig:
    """
    Connection settings for the execution service.

    ``timeout`` bounds connecting, writing and acquiring a connection. Reads
    are unbounded because an execution stream can stay quiet while the agent
    works.
    """

    base_url: str = DEFAULT_BASE_URL
    api_key: Optional[str] = None
    timeout: float = 30.0
    headers: dict[str, str] = field(default_factory=dict)

    def __post_init__(self):
        self.base_url = self.base_url.rstrip("/")

    def get_headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        headers.update(self.headers)
        return headers

    @classmethod
    def from_env(cls) -> "ClientConfig":
        """Create configuration from environment variables."""
        return cls(
            base_url=os.environ.get("AGENTRELAY_BASE_URL", DEFAULT_BASE_URL),
            api_key=os.environ.get("AGENTRELAY_API_KEY") or None,
            timeout=float(os.environ.get("AGENTRELAY_TIMEOUT", "30")),
        )


class AsyncAgentRelayClient:
    """
    Asynchronous client for the agent execution service.

    Example:
        ```python
        async with AsyncAgentRelayClient(
            base_url="https://agents.example.com",
            api_key="your-api-key",
        ) as client:
            async for event in client.workers.execute("agent-1", {"TOPIC": "tides"}):
                print(event.to_dict())
        ```
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        api_key: Optional[str] = None,
        config: Optional[ClientConfig] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        if config is None:
            config = ClientConfig(base_url=base_url or DEFAULT_BASE_URL, api_key=api_key)
        self.config = config
        self._client = httpx.AsyncClient(
            base_url=config.base_url,
            headers=config.get_headers(),
            timeout=httpx.Timeout(config.timeout, read=None),
            transport=transport,
        )
        self.workers = WorkersAPI(self)

    @property
    def base_url(self) -> str:
        return self.config.base_url

    @property
    def http(self) -> httpx.AsyncClient:
        """The underlying HTTP client."""
        return self._client

    def url(self, path: str) -> str:
        return f"{self.config.base_url}{path}"

    def session(
        self,
        session_id: str,
        tools: Optional[ToolHandlers] = None,
        resources: Optional[Iterable[Resource]] = None,
    ) -> AgentSession:
        """
        Attach to an existing agent session.

        Args:
            session_id: The session ID issued by the service.
            tools: Handlers for tools resolved on this side.
            resources: Resources that receive resource-update events.
        """
        return AgentSession(session_id, self, tools=tools, resources=resources)

    async def close(self) -> None:
        """Close the HTTP client connection."""
        await self._client.aclose()

    async def __aenter__(self) -> "AsyncAgentRelayClient":
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()
