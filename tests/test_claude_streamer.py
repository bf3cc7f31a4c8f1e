import json

import pytest
import httpx

from config.models import ModelConfig
from core.llm.claude import ClaudeStreamer
from utils.errors import ConfigError, ProviderError, TransportError


@pytest.fixture
def claude_config():
    """Fixture for Claude streamer configuration."""
    return ModelConfig(name="claude-3-opus-20240229", max_tokens=1024)


def sse_lines(*events):
    lines = []
    for event in events:
        lines.append(f"event: {json.loads(event)['type']}")
        lines.append(f"data: {event}")
        lines.append("")
    return lines


def mock_stream_response(mocker, lines, status_code=200, body=b""):
    async def aiter_lines():
        for line in lines:
            yield line

    mock_response = mocker.MagicMock(spec=httpx.Response)
    mock_response.status_code = status_code
    mock_response.is_error = status_code >= 400
    mock_response.aiter_lines.return_value = aiter_lines()
    mock_response.aread = mocker.AsyncMock(return_value=body)

    # Create an async context manager mock
    async_mock_context = mocker.AsyncMock()
    async_mock_context.__aenter__.return_value = mock_response
    return mocker.patch("httpx.AsyncClient.stream", return_value=async_mock_context)


def test_missing_api_key():
    """Tests that the streamer refuses to start without an API key."""
    with pytest.raises(ConfigError, match="Anthropic API key not found"):
        ClaudeStreamer(None)
    with pytest.raises(ConfigError):
        ClaudeStreamer("")


@pytest.mark.asyncio
async def test_stream_yields_text_deltas(claude_config, mocker):
    """Tests that text deltas are yielded in order and other events are ignored."""
    lines = sse_lines(
        '{"type": "message_start", "message": {"id": "msg_123", "role": "assistant"}}',
        '{"type": "content_block_start", "index": 0, "content_block": {"type": "text", "text": ""}}',
        '{"type": "content_block_delta", "index": 0, "delta": {"type": "text_delta", "text": "Hello"}}',
        '{"type": "ping"}',
        '{"type": "content_block_delta", "index": 0, "delta": {"type": "text_delta", "text": " from"}}',
        '{"type": "content_block_delta", "index": 0, "delta": {"type": "text_delta", "text": " Claude!"}}',
        '{"type": "message_stop"}',
        '{"type": "content_block_delta", "index": 0, "delta": {"type": "text_delta", "text": "ignored"}}',
    )
    mock_stream = mock_stream_response(mocker, lines)

    streamer = ClaudeStreamer("sk-ant-test", claude_config)
    result = [chunk async for chunk in streamer.stream("Say hi")]

    assert result == ["Hello", " from", " Claude!"]
    mock_stream.assert_called_once()
    assert mock_stream.call_args[0] == ("POST", "/messages")
    payload = mock_stream.call_args[1]["json"]
    assert payload["model"] == "claude-3-opus-20240229"
    assert payload["max_tokens"] == 1024
    assert payload["stream"] is True
    assert payload["messages"] == [{"role": "user", "content": "Say hi"}]


@pytest.mark.asyncio
async def test_stream_skips_malformed_lines(claude_config, mocker):
    lines = [
        "data: {not json",
        "data:",
        'data: {"type": "content_block_delta", "delta": {"type": "text_delta", "text": "ok"}}',
    ]
    mock_stream_response(mocker, lines)

    streamer = ClaudeStreamer("sk-ant-test", claude_config)
    assert [chunk async for chunk in streamer.stream("hi")] == ["ok"]


@pytest.mark.asyncio
async def test_extra_parameters_cannot_disable_streaming(mocker):
    mock_stream = mock_stream_response(mocker, [])
    config = ModelConfig(parameters={"temperature": 0.2, "stream": False})

    streamer = ClaudeStreamer("sk-ant-test", config)
    assert [chunk async for chunk in streamer.stream("hi")] == []

    payload = mock_stream.call_args[1]["json"]
    assert payload["temperature"] == 0.2
    assert payload["stream"] is True


@pytest.mark.asyncio
async def test_http_error(claude_config, mocker):
    """Tests that a ProviderError is raised on HTTP status errors."""
    mock_stream_response(
        mocker,
        [],
        status_code=400,
        body=b'{"type": "error", "error": {"type": "invalid_request_error", "message": "Malformed request"}}',
    )

    streamer = ClaudeStreamer("sk-ant-test", claude_config)
    with pytest.raises(ProviderError, match="Anthropic API error \\(400\\): Malformed request"):
        [chunk async for chunk in streamer.stream("Say hi")]


@pytest.mark.asyncio
async def test_error_event_mid_stream(claude_config, mocker):
    lines = sse_lines(
        '{"type": "content_block_delta", "index": 0, "delta": {"type": "text_delta", "text": "Partial"}}',
        '{"type": "error", "error": {"type": "overloaded_error", "message": "Overloaded"}}',
    )
    mock_stream_response(mocker, lines)

    streamer = ClaudeStreamer("sk-ant-test", claude_config)
    received = []
    with pytest.raises(ProviderError, match="Overloaded"):
        async for chunk in streamer.stream("Say hi"):
            received.append(chunk)
    assert received == ["Partial"]


@pytest.mark.asyncio
async def test_timeout_error(claude_config, mocker):
    """Tests that a TransportError is raised on timeout."""
    mocker.patch("httpx.AsyncClient.stream", side_effect=httpx.TimeoutException("Timeout!"))

    streamer = ClaudeStreamer("sk-ant-test", claude_config)
    with pytest.raises(TransportError, match="Request to Anthropic timed out: Timeout!"):
        [chunk async for chunk in streamer.stream("Say hi")]


@pytest.mark.asyncio
async def test_connection_error(claude_config, mocker):
    mocker.patch("httpx.AsyncClient.stream", side_effect=httpx.ConnectError("connection refused"))

    streamer = ClaudeStreamer("sk-ant-test", claude_config)
    with pytest.raises(TransportError, match="connection refused"):
        [chunk async for chunk in streamer.stream("Say hi")]
