"""Tests for the research backend client using an in-memory transport."""

import asyncio
import json

import httpx
import pytest

from tax_navigator.research_client import ResearchClient, ResearchClientError

BASE_URL = "http://research.test/api/v1"

STATES_PAYLOAD = {
    "total_documents": 42,
    "states_researched": 2,
    "states": [
        {"code": "NY", "name": "New York", "document_count": 30, "has_sales_tax": True},
        {"code": "AL", "name": "Alabama", "document_count": 12, "has_sales_tax": True},
    ],
    "states_not_researched": [{"code": "TX", "name": "Texas"}],
}


def _run(handler, call):
    async def go():
        async with ResearchClient(BASE_URL, transport=httpx.MockTransport(handler)) as client:
            return await call(client)

    return asyncio.run(go())


def test_get_researched_states():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append((request.method, request.url.path))
        return httpx.Response(200, json=STATES_PAYLOAD)

    result = _run(handler, lambda c: c.get_researched_states())
    assert seen == [("GET", "/api/v1/langchain/states/")]
    assert result.total_documents == 42
    assert [s.code for s in result.states] == ["NY", "AL"]
    assert result.get("al").document_count == 12
    assert result.get("TX") is None
    assert result.states_not_researched == [{"code": "TX", "name": "Texas"}]


def test_chat_sends_query_and_state():
    bodies = []

    def handler(request: httpx.Request) -> httpx.Response:
        bodies.append(json.loads(request.content))
        return httpx.Response(
            200,
            json={"query": "Is SaaS taxable?", "state_code": "NY",
                  "response": "Yes, as prewritten software.", "status": {"ok": True}},
        )

    answer = _run(handler, lambda c: c.chat("Is SaaS taxable?", "NY"))
    assert bodies == [{"query": "Is SaaS taxable?", "state_code": "NY"}]
    assert answer.response == "Yes, as prewritten software."
    assert answer.state_code == "NY"


def test_chat_without_state_sends_empty_code():
    bodies = []

    def handler(request: httpx.Request) -> httpx.Response:
        bodies.append(json.loads(request.content))
        return httpx.Response(200, json={"query": "q", "state_code": "", "response": "a"})

    answer = _run(handler, lambda c: c.chat("q"))
    assert bodies[0]["state_code"] == ""
    assert answer.state_code is None


def test_get_status():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"status": "ok", "vector_store": {"documents": 42}})

    status = _run(handler, lambda c: c.get_status())
    assert status.status == "ok"
    assert status.vector_store == {"documents": 42}
    assert status.agent == {}


def test_http_error_status_raises():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(500)

    with pytest.raises(ResearchClientError) as excinfo:
        _run(handler, lambda c: c.chat("q", "NY"))
    assert excinfo.value.status_code == 500
    assert str(excinfo.value).startswith("Chat failed")


def test_transport_error_raises():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(ResearchClientError) as excinfo:
        _run(handler, lambda c: c.get_researched_states())
    assert excinfo.value.status_code is None
    assert "Failed to fetch states" in str(excinfo.value)


def test_non_json_body_raises():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text="<html>maintenance</html>")

    with pytest.raises(ResearchClientError) as excinfo:
        _run(handler, lambda c: c.get_researched_states())
    assert excinfo.value.status_code == 200
    assert str(excinfo.value) == "Failed to fetch states: invalid response body"
