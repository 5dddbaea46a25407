"""Unit tests for the conversation orchestrator and the HTTP assistants API."""

import asyncio
import json
from unittest.mock import AsyncMock

import httpx
import pytest

from dataagent_server.errors import (
    DataAgentCancelledError,
    DataAgentProtocolError,
    DataAgentTransportError,
    DataAgentValidationError,
    ErrorKind,
)
from dataagent_server.services.conversation import (
    ConversationOrchestrator,
    ConversationSession,
    ConversationState,
    HttpAssistantsApi,
    extract_id,
)
from tests.stubs import (
    ASSISTANT_ROOT,
    RecordingStream,
    add_conversation_routes,
    expected_messages,
    messages_payload,
    sse_body,
)

BASE_PATH = "/v1/workspaces/ws-1/dataagents/agent-1"

QUERY_ARGS = {
    "workspace_id": "ws-1",
    "agent_id": "agent-1",
    "capacity_id": "cap-1",
    "query": "What were sales last month?",
}


@pytest.fixture
def http_api(fabric_client):
    """Create an HttpAssistantsApi for agent-1 in ws-1."""
    return HttpAssistantsApi.for_agent(fabric_client, ASSISTANT_ROOT, "ws-1", "agent-1", "cap-1")


@pytest.fixture
def orchestrator(http_api):
    return ConversationOrchestrator(http_api)


@pytest.mark.asyncio
@pytest.mark.parametrize("field", ["workspace_id", "agent_id", "capacity_id", "query"])
@pytest.mark.parametrize("streaming", [False, True])
@pytest.mark.parametrize("empty", ["", "   "])
async def test_empty_input_fails_before_any_network_call(
    orchestrator, stub_transport, field, streaming, empty
):
    """Test that an empty required input raises a validation error without I/O."""
    add_conversation_routes(stub_transport)
    args = {**QUERY_ARGS, field: empty}

    with pytest.raises(DataAgentValidationError) as exc_info:
        await orchestrator.query(**args, streaming=streaming)

    assert exc_info.value.kind is ErrorKind.VALIDATION
    assert field in str(exc_info.value)
    assert stub_transport.calls == []


@pytest.mark.asyncio
async def test_buffered_query_runs_all_steps_in_order(orchestrator, stub_transport):
    """Test the buffered protocol walks every step and joins retrieved messages."""
    add_conversation_routes(
        stub_transport, messages=messages_payload("First answer", "Second answer")
    )

    result = await orchestrator.query(**QUERY_ARGS)

    assert result == expected_messages("First answer", "Second answer")
    assert stub_transport.calls == [
        ("POST", f"{BASE_PATH}/assistants"),
        ("POST", f"{BASE_PATH}/threads"),
        ("POST", f"{BASE_PATH}/threads/thread_1/messages"),
        ("POST", f"{BASE_PATH}/threads/thread_1/runs"),
        ("GET", f"{BASE_PATH}/threads/thread_1/messages"),
    ]
    assert orchestrator.session.state is ConversationState.DONE
    assert orchestrator.session.assistant_id == "asst_1"
    assert orchestrator.session.thread_id == "thread_1"


@pytest.mark.asyncio
async def test_request_bodies_and_headers(orchestrator, stub_transport):
    """Test message and run bodies, auth, capacity header and api versions."""
    add_conversation_routes(stub_transport)

    await orchestrator.query(**QUERY_ARGS)

    assistant_req, thread_req, message_req, run_req, list_req = stub_transport.requests
    assert json.loads(message_req.content) == {
        "role": "user",
        "content": "What were sales last month?",
    }
    assert json.loads(run_req.content) == {"assistant_id": "asst_1", "stream": True}
    for request in stub_transport.requests:
        assert request.headers["Authorization"] == "Bearer test-token"
        assert request.headers["x-ms-fabric-capacity-id"] == "cap-1"
        assert request.headers["User-Agent"] == "dataagent-server-tests"
    assert assistant_req.url.params["api-version"] == "2024-05-01-preview"
    assert thread_req.url.params["api-version"] == "2024-05-01-preview"
    assert run_req.url.params["api-version"] == "2024-07-01-preview"
    assert list_req.url.params["api-version"] == "2024-07-01-preview"


@pytest.mark.asyncio
async def test_thread_without_id_aborts_before_message_step(orchestrator, stub_transport):
    """Test that a thread response lacking 'id' stops the protocol."""
    add_conversation_routes(stub_transport)
    stub_transport.add_json("POST", "/threads", {"object": "thread"})

    with pytest.raises(DataAgentProtocolError) as exc_info:
        await orchestrator.query(**QUERY_ARGS)

    assert exc_info.value.kind is ErrorKind.PROTOCOL
    assert stub_transport.paths() == [f"{BASE_PATH}/assistants", f"{BASE_PATH}/threads"]
    assert orchestrator.session.state is ConversationState.FAILED


@pytest.mark.asyncio
async def test_assistant_with_empty_id_is_protocol_error(orchestrator, stub_transport):
    """Test that an empty identifier is treated like a missing one."""
    add_conversation_routes(stub_transport)
    stub_transport.add_json("POST", "/assistants", {"id": ""})

    with pytest.raises(DataAgentProtocolError):
        await orchestrator.query(**QUERY_ARGS)

    assert stub_transport.paths() == [f"{BASE_PATH}/assistants"]


@pytest.mark.asyncio
async def test_message_step_http_error_aborts_query(orchestrator, stub_transport):
    """Test that a non-success status is a transport error and stops later steps."""
    add_conversation_routes(stub_transport)
    stub_transport.add_json("POST", "/threads/thread_1/messages", {"error": "boom"}, status_code=500)

    with pytest.raises(DataAgentTransportError) as exc_info:
        await orchestrator.query(**QUERY_ARGS)

    assert exc_info.value.kind is ErrorKind.TRANSPORT
    assert exc_info.value.status_code == 500
    assert ("POST", f"{BASE_PATH}/threads/thread_1/runs") not in stub_transport.calls
    assert ("GET", f"{BASE_PATH}/threads/thread_1/messages") not in stub_transport.calls


@pytest.mark.asyncio
async def test_messages_without_data_array_is_protocol_error(orchestrator, stub_transport):
    """Test that the messages listing must contain a 'data' array."""
    add_conversation_routes(stub_transport, messages={"object": "list"})

    with pytest.raises(DataAgentProtocolError):
        await orchestrator.query(**QUERY_ARGS)


@pytest.mark.asyncio
async def test_messages_are_returned_compact_and_unescaped(orchestrator, stub_transport):
    """Test that non-ASCII message text is not escaped or padded."""
    add_conversation_routes(stub_transport)
    raw = '{"data":[{"id":"m1","content":"Umsatz über 5 Mio €"},{"id":"m2","content":"ok"}]}'
    stub_transport.add(
        "GET",
        "/threads/thread_1/messages",
        lambda: httpx.Response(
            200, content=raw.encode("utf-8"), headers={"Content-Type": "application/json"}
        ),
    )

    result = await orchestrator.query(**QUERY_ARGS)

    assert result == '{"id":"m1","content":"Umsatz über 5 Mio €"}\n{"id":"m2","content":"ok"}'


@pytest.mark.asyncio
async def test_invalid_json_is_protocol_error(orchestrator, stub_transport):
    """Test that a non-JSON body on an identifier step is a protocol error."""
    add_conversation_routes(stub_transport)
    stub_transport.add("POST", "/assistants", lambda: httpx.Response(200, text="not json"))

    with pytest.raises(DataAgentProtocolError):
        await orchestrator.query(**QUERY_ARGS)


@pytest.mark.asyncio
async def test_connection_failure_is_transport_error(orchestrator, stub_transport):
    """Test that httpx request errors map onto transport errors."""

    def refuse() -> httpx.Response:
        raise httpx.ConnectError("connection refused")

    stub_transport.add("POST", "/assistants", refuse)

    with pytest.raises(DataAgentTransportError) as exc_info:
        await orchestrator.query(**QUERY_ARGS)

    assert exc_info.value.status_code is None
    assert isinstance(exc_info.value.cause, httpx.ConnectError)


@pytest.mark.asyncio
async def test_streaming_query_reports_progress(orchestrator, stub_transport):
    """Test the streaming protocol decodes the run stream and reports progress."""
    add_conversation_routes(
        stub_transport,
        run_response=lambda: httpx.Response(
            200,
            content=sse_body('{"delta": "Hel"}', '{"delta": "lo"}', "[DONE]"),
            headers={"Content-Type": "text/event-stream"},
        ),
    )
    progress: list[str] = []

    result = await orchestrator.query(**QUERY_ARGS, streaming=True, progress=progress.append)

    assert result == expected_messages("Hello")
    assert progress == [
        "Initializing data agent query...",
        "Creating assistant...",
        "Creating thread...",
        "Creating message in thread...",
        "Starting data agent run...",
        'Received: {"delta": "Hel"}',
        'Received: {"delta": "lo"}',
        "Retrieving final results...",
        "Query completed successfully.",
    ]
    run_request = stub_transport.requests[3]
    assert run_request.headers["Accept"] == "text/event-stream"
    assert run_request.headers["Cache-Control"] == "no-cache"


@pytest.mark.asyncio
async def test_streaming_run_error_status_aborts_before_decoding(orchestrator, stub_transport):
    """Test that a failing streaming run raises a transport error and reports it."""
    add_conversation_routes(
        stub_transport,
        run_response=lambda: httpx.Response(503, content=sse_body("should not be read")),
    )
    progress: list[str] = []

    with pytest.raises(DataAgentTransportError) as exc_info:
        await orchestrator.query(**QUERY_ARGS, streaming=True, progress=progress.append)

    assert exc_info.value.status_code == 503
    assert not any(p.startswith("Received:") for p in progress)
    assert progress[-1].startswith("Error:")
    assert ("GET", f"{BASE_PATH}/threads/thread_1/messages") not in stub_transport.calls


@pytest.mark.asyncio
async def test_streaming_cancellation_skips_message_retrieval(orchestrator, stub_transport):
    """Test that cancelling during the run raises and no messages are fetched."""
    add_conversation_routes(
        stub_transport,
        run_response=lambda: httpx.Response(200, content=sse_body("A", "B", "[DONE]")),
    )
    cancel_event = asyncio.Event()
    cancel_event.set()

    with pytest.raises(DataAgentCancelledError):
        await orchestrator.query(**QUERY_ARGS, streaming=True, cancel_event=cancel_event)

    assert ("GET", f"{BASE_PATH}/threads/thread_1/messages") not in stub_transport.calls
    assert orchestrator.session.state is ConversationState.FAILED


@pytest.mark.asyncio
async def test_run_stream_is_closed_after_cancellation(orchestrator, stub_transport):
    """Test that the run response stream is released when the query is cancelled."""
    body = RecordingStream(sse_body("A", "B", "[DONE]"))
    add_conversation_routes(
        stub_transport, run_response=lambda: httpx.Response(200, stream=body)
    )
    cancel_event = asyncio.Event()
    cancel_event.set()

    with pytest.raises(DataAgentCancelledError):
        await orchestrator.query(**QUERY_ARGS, streaming=True, cancel_event=cancel_event)

    assert body.closed


@pytest.mark.asyncio
async def test_run_stream_is_closed_after_mid_stream_error(orchestrator, stub_transport):
    """Test that a connection dropped mid-stream is a transport error and is released."""
    body = RecordingStream(sse_body("A"), error=httpx.ReadError("connection reset"))
    add_conversation_routes(
        stub_transport, run_response=lambda: httpx.Response(200, stream=body)
    )
    progress: list[str] = []

    with pytest.raises(DataAgentTransportError) as exc_info:
        await orchestrator.query(**QUERY_ARGS, streaming=True, progress=progress.append)

    assert isinstance(exc_info.value.cause, httpx.ReadError)
    assert "Received: A" in progress
    assert body.closed
    assert ("GET", f"{BASE_PATH}/threads/thread_1/messages") not in stub_transport.calls


@pytest.mark.asyncio
async def test_run_stream_is_closed_after_completion(orchestrator, stub_transport):
    """Test that a fully consumed run stream is released."""
    body = RecordingStream(sse_body("A", "[DONE]"))
    add_conversation_routes(
        stub_transport, run_response=lambda: httpx.Response(200, stream=body)
    )

    await orchestrator.query(**QUERY_ARGS, streaming=True)

    assert body.closed


@pytest.mark.asyncio
async def test_buffered_query_does_not_report_progress(orchestrator, stub_transport):
    """Test that progress sinks are only used in streaming mode."""
    add_conversation_routes(stub_transport)
    progress: list[str] = []

    await orchestrator.query(**QUERY_ARGS, streaming=False, progress=progress.append)

    assert progress == []


@pytest.mark.asyncio
async def test_orchestrator_with_injected_api_stops_on_first_failure():
    """Test that a failing step prevents every later step of an injected API."""
    api = AsyncMock()
    api.create_assistant.return_value = "asst_9"
    api.create_thread.side_effect = DataAgentTransportError("threads down", status_code=502)

    orchestrator = ConversationOrchestrator(api)

    with pytest.raises(DataAgentTransportError):
        await orchestrator.query(**QUERY_ARGS)

    api.create_assistant.assert_awaited_once()
    api.add_message.assert_not_awaited()
    api.start_run.assert_not_awaited()
    api.stream_run.assert_not_awaited()
    api.list_messages.assert_not_awaited()


@pytest.mark.asyncio
async def test_orchestrator_with_injected_api_streaming_uses_stream_run():
    """Test that streaming mode calls stream_run instead of start_run."""
    api = AsyncMock()
    api.create_assistant.return_value = "asst_9"
    api.create_thread.return_value = "thread_9"
    api.stream_run.return_value = "chunk\n"
    api.list_messages.return_value = ['{"id": "m1"}', '{"id": "m2"}']

    orchestrator = ConversationOrchestrator(api)
    result = await orchestrator.query(**QUERY_ARGS, streaming=True)

    assert result == '{"id": "m1"}\n{"id": "m2"}'
    api.add_message.assert_awaited_once_with("thread_9", QUERY_ARGS["query"])
    api.start_run.assert_not_awaited()
    assert api.stream_run.await_args.args[:2] == ("thread_9", "asst_9")


@pytest.mark.asyncio
async def test_each_query_gets_a_fresh_session():
    """Test that sessions are not reused across queries."""
    api = AsyncMock()
    api.create_assistant.side_effect = ["asst_a", "asst_b"]
    api.create_thread.side_effect = ["thread_a", "thread_b"]
    api.start_run.return_value = "{}"
    api.list_messages.return_value = []

    orchestrator = ConversationOrchestrator(api)
    await orchestrator.query(**QUERY_ARGS)
    first = orchestrator.session
    await orchestrator.query(**QUERY_ARGS)

    assert orchestrator.session is not first
    assert first.thread_id == "thread_a"
    assert orchestrator.session.thread_id == "thread_b"


def test_session_rejects_skipping_states():
    """Test that the session state machine only moves one step forward."""
    session = ConversationSession()

    session.advance(ConversationState.ASSISTANT_CREATED)
    with pytest.raises(RuntimeError):
        session.advance(ConversationState.MESSAGE_ADDED)
    with pytest.raises(RuntimeError):
        session.advance(ConversationState.IDLE)


def test_extract_id():
    """Test identifier extraction from JSON payloads."""
    assert extract_id({"id": "abc"}) == "abc"
    for payload in [{}, {"id": None}, {"id": 5}, ["id"], None]:
        with pytest.raises(DataAgentProtocolError):
            extract_id(payload)
