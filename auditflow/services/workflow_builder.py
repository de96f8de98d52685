"""Client for the optional capability-augmented workflow-building service."""

from __future__ import annotations

import json
import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, Optional, Protocol

import httpx
from pydantic import BaseModel, Field

from ..config import WorkflowBuilderConfig
from ..errors import ProviderError
from ..models import ValidationResult

logger = logging.getLogger(__name__)

PROTOCOL_VERSION = "2024-11-05"
SESSION_HEADER = "Mcp-Session-Id"


class BuildResult(BaseModel):
    workflow: Dict[str, Any]
    validation: ValidationResult = Field(
        default_factory=lambda: ValidationResult(valid=True)
    )


class WorkflowBuilderService(Protocol):
    """Remote service that drafts and validates workflows."""

    async def connect(self) -> None:
        """Open a session."""

    async def build_intelligent_workflow(self, requirements: Dict[str, Any]) -> BuildResult:
        """Draft a workflow for ``requirements``."""

    async def validate_workflow(self, workflow: Dict[str, Any]) -> ValidationResult:
        """Validate ``workflow`` remotely."""

    async def disconnect(self) -> None:
        """Close the session. Must be safe to call when not connected."""


@asynccontextmanager
async def builder_session(service: WorkflowBuilderService) -> AsyncIterator[WorkflowBuilderService]:
    """Connect ``service`` and disconnect it on every exit path."""

    try:
        await service.connect()
        yield service
    finally:
        await service.disconnect()


def _tool_payload(result: Any) -> Any:
    """Unwrap a ``tools/call`` result into its structured payload."""

    if not isinstance(result, dict):
        return result
    if result.get("isError"):
        raise ProviderError(f"Tool reported an error: {result.get('content')}", provider="workflow-builder")
    if "structuredContent" in result:
        return result["structuredContent"]
    content = result.get("content")
    if isinstance(content, list):
        for part in content:
            if isinstance(part, dict) and part.get("type") == "text":
                try:
                    return json.loads(part.get("text", ""))
                except json.JSONDecodeError as e:
                    raise ProviderError(
                        f"Tool returned non-JSON text: {e.msg}", provider="workflow-builder"
                    ) from e
    return result


class WorkflowBuilderClient:
    """JSON-RPC 2.0 client speaking the builder service's tool protocol.

    Args:
        url: Base URL of the service.
        auth_token: Bearer token sent with every request.
        timeout: Per-request timeout in seconds.
        transport: Optional httpx transport, used by tests.
    """

    def __init__(
        self,
        url: str,
        auth_token: str,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.url = url.rstrip("/")
        self._auth_token = auth_token
        self._timeout = timeout
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None
        self._session_id: Optional[str] = None
        self._request_id = 0

    @classmethod
    def from_config(cls, config: WorkflowBuilderConfig) -> Optional["WorkflowBuilderClient"]:
        if not config.enabled:
            return None
        return cls(config.url, config.auth_token, timeout=config.timeout_seconds)

    @property
    def connected(self) -> bool:
        return self._client is not None and self._session_id is not None

    def _headers(self) -> Dict[str, str]:
        headers = {"Authorization": f"Bearer {self._auth_token}"}
        if self._session_id:
            headers[SESSION_HEADER] = self._session_id
        return headers

    async def _rpc(self, method: str, params: Dict[str, Any]) -> Any:
        if self._client is None:
            raise ProviderError("Not connected", provider="workflow-builder")
        self._request_id += 1
        body = {"jsonrpc": "2.0", "id": self._request_id, "method": method, "params": params}
        try:
            response = await self._client.post("/mcp", json=body, headers=self._headers())
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPError as e:
            raise ProviderError(f"{method} failed: {e}", provider="workflow-builder") from e
        except ValueError as e:
            raise ProviderError(f"{method} returned invalid JSON", provider="workflow-builder") from e
        if not isinstance(data, dict):
            raise ProviderError(f"{method} returned a non-object response", provider="workflow-builder")
        if data.get("error"):
            message = data["error"].get("message", "unknown error")
            raise ProviderError(f"{method} failed: {message}", provider="workflow-builder")
        if method == "initialize":
            self._session_id = response.headers.get(SESSION_HEADER) or str(data.get("id"))
        return data.get("result")

    async def connect(self) -> None:
        if self.connected:
            return
        self._client = httpx.AsyncClient(
            base_url=self.url, timeout=self._timeout, transport=self._transport
        )
        await self._rpc(
            "initialize",
            {
                "protocolVersion": PROTOCOL_VERSION,
                "capabilities": {"tools": {}},
                "clientInfo": {"name": "auditflow", "version": "0.1.0"},
            },
        )
        logger.info(f"Connected to workflow builder at {self.url}")

    async def call_tool(self, name: str, arguments: Dict[str, Any]) -> Any:
        result = await self._rpc("tools/call", {"name": name, "arguments": arguments})
        return _tool_payload(result)

    async def build_intelligent_workflow(self, requirements: Dict[str, Any]) -> BuildResult:
        payload = await self.call_tool("build_workflow", {"requirements": requirements})
        if not isinstance(payload, dict) or not isinstance(payload.get("workflow"), dict):
            raise ProviderError("build_workflow returned no workflow", provider="workflow-builder")
        return BuildResult.model_validate(payload)

    async def validate_workflow(self, workflow: Dict[str, Any]) -> ValidationResult:
        payload = await self.call_tool("validate_workflow", {"workflow": workflow})
        if not isinstance(payload, dict) or "valid" not in payload:
            raise ProviderError("validate_workflow returned no verdict", provider="workflow-builder")
        return ValidationResult(valid=bool(payload["valid"]), errors=list(payload.get("errors") or []))

    async def disconnect(self) -> None:
        if self._client is None:
            return
        try:
            if self._session_id:
                await self._client.delete(f"/session/{self._session_id}", headers=self._headers())
        except httpx.HTTPError as e:
            logger.warning(f"Failed to close workflow builder session {self._session_id}: {e}")
        finally:
            await self._client.aclose()
            self._client = None
            self._session_id = None
            logger.info("Disconnected from workflow builder")
