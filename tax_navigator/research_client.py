"""
Client for the sales tax research backend.

The backend is a retrieval-augmented chat service with a per-state
knowledge base. Requests are made once; failures surface as
ResearchClientError and are not retried.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Optional

import httpx

from tax_navigator.settings import get_settings

logger = logging.getLogger(__name__)


class ResearchClientError(Exception):
    """A request to the research backend failed."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


@dataclass
class ResearchedState:
    code: str
    name: str
    document_count: int
    has_sales_tax: bool

    @classmethod
    def from_dict(cls, data: dict) -> "ResearchedState":
        return cls(
            code=data["code"],
            name=data["name"],
            document_count=int(data.get("document_count", 0)),
            has_sales_tax=bool(data.get("has_sales_tax", True)),
        )


@dataclass
class StatesResponse:
    total_documents: int
    states_researched: int
    states: list[ResearchedState]
    states_not_researched: list[dict[str, str]] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict) -> "StatesResponse":
        return cls(
            total_documents=int(data.get("total_documents", 0)),
            states_researched=int(data.get("states_researched", 0)),
            states=[ResearchedState.from_dict(s) for s in data.get("states", [])],
            states_not_researched=[
                {"code": s["code"], "name": s["name"]}
                for s in data.get("states_not_researched", [])
            ],
        )

    def get(self, code: str) -> Optional[ResearchedState]:
        return next((s for s in self.states if s.code == code.upper()), None)


@dataclass
class ChatResponse:
    query: str
    state_code: Optional[str]
    response: str
    status: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict) -> "ChatResponse":
        return cls(
            query=data.get("query", ""),
            state_code=data.get("state_code") or None,
            response=data.get("response", ""),
            status=data.get("status") or {},
        )


@dataclass
class StatusResponse:
    status: str
    vector_store: dict[str, Any] = field(default_factory=dict)
    agent: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict) -> "StatusResponse":
        return cls(
            status=data.get("status", "unknown"),
            vector_store=data.get("vector_store") or {},
            agent=data.get("agent") or {},
        )


class ResearchClient:
    """
    Async request/response client for the research backend.

    Use as an async context manager so the underlying connection pool is
    closed::

        async with ResearchClient() as client:
            answer = await client.chat("Is SaaS taxable?", "NY")
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        settings = get_settings()
        self.base_url = (base_url or settings.api_url).rstrip("/")
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout if timeout is not None else settings.request_timeout,
            transport=transport,
        )

    async def __aenter__(self) -> "ResearchClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    async def close(self) -> None:
        await self._client.aclose()

    async def _request(
        self, method: str, path: str, action: str, **kwargs: Any
    ) -> dict:
        logger.debug("Research request %s %s%s", method, self.base_url, path)
        try:
            response = await self._client.request(method, path, **kwargs)
        except httpx.HTTPError as exc:
            logger.warning("%s: %s", action, exc)
            raise ResearchClientError(f"{action}: {exc}") from exc

        if not response.is_success:
            logger.warning(
                "%s: HTTP %d %s", action, response.status_code, response.reason_phrase
            )
            raise ResearchClientError(
                f"{action}: {response.reason_phrase}",
                status_code=response.status_code,
            )
        try:
            return response.json()
        except ValueError as exc:
            logger.warning("%s: response body is not JSON", action)
            raise ResearchClientError(
                f"{action}: invalid response body",
                status_code=response.status_code,
            ) from exc

    async def get_researched_states(self) -> StatesResponse:
        data = await self._request("GET", "/langchain/states/", "Failed to fetch states")
        return StatesResponse.from_dict(data)

    async def chat(self, query: str, state_code: Optional[str] = None) -> ChatResponse:
        data = await self._request(
            "POST",
            "/langchain/chat/",
            "Chat failed",
            json={"query": query, "state_code": state_code or ""},
        )
        return ChatResponse.from_dict(data)

    async def get_status(self) -> StatusResponse:
        data = await self._request("GET", "/langchain/status/", "Failed to fetch status")
        return StatusResponse.from_dict(data)
