"""Client for the external AI task breakdown service."""

import logging
from typing import Any

import httpx
from pydantic import TypeAdapter, ValidationError

from showerlog.config import get_settings
from showerlog.schemas.ai import AISubtask

logger = logging.getLogger(__name__)

_CHILDREN = TypeAdapter(list[AISubtask])


class AIServiceError(Exception):
    """Raised when the AI service is unreachable or answers with an error."""


class AIService:
    """
    Thin async wrapper around the breakdown service's HTTP API.

    Every call is a single request: no retries. Errors surface immediately as
    AIServiceError so route handlers can report them.
    """

    def __init__(
        self,
        base_url: str | None = None,
        *,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        settings = get_settings()
        self.base_url = (base_url or settings.ai_api_url).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.ai_timeout_seconds
        self.transport = transport

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if "ngrok" in self.base_url:
            headers["ngrok-skip-browser-warning"] = "true"
        return headers

    async def _request(self, method: str, path: str, payload: dict[str, Any] | None = None) -> dict[str, Any]:
        url = f"{self.base_url}{path}"
        logger.info("Calling AI service: %s %s", method, url)
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.request(method, url, json=payload, headers=self._headers())
        except httpx.HTTPError as e:
            logger.error("AI service request failed: %s %s: %s", method, url, e)
            raise AIServiceError(f"AI service unreachable: {e}") from e

        if response.is_error:
            logger.error("AI service error %d for %s: %s", response.status_code, path, response.text)
            raise AIServiceError(f"AI service returned status {response.status_code}")

        try:
            result = response.json()
        except ValueError as e:
            raise AIServiceError("AI service returned invalid JSON") from e

        if not isinstance(result, dict):
            raise AIServiceError("AI service returned an unexpected payload")
        if result.get("success") is False:
            raise AIServiceError(result.get("error") or "AI service reported a failure")
        return result

    async def breakdown(self, thought: str) -> dict[str, Any]:
        """Split a thought into a main goal, category, priority and subtasks."""
        return await self._request("POST", "/breakdown", {"thought": thought})

    async def breakdown_smart(
        self,
        thought: str,
        project_type: str = "general",
        complexity_level: str = "moderate",
    ) -> dict[str, Any]:
        """Project-aware breakdown."""
        return await self._request(
            "POST",
            "/breakdown-smart",
            {
                "thought": thought.strip(),
                "project_type": project_type,
                "complexity_level": complexity_level,
            },
        )

    async def breakdown_nested(
        self,
        parent_task: dict[str, Any],
        context: str,
        depth: int,
        max_depth: int,
    ) -> list[dict[str, Any]]:
        """
        Ask for children of one subtask.

        Returns the children as plain dicts. A reply whose children do not
        match AISubtask raises AIServiceError, so nothing malformed is stored.
        """
        result = await self._request(
            "POST",
            "/breakdown-nested",
            {
                "parent_task": {
                    "title": parent_task.get("title", ""),
                    "description": parent_task.get("description", ""),
                    "difficulty": parent_task.get("difficulty", "medium"),
                    "estimated_time": parent_task.get("estimated_time", ""),
                },
                "context": context,
                "depth": depth,
                "max_depth": max_depth,
            },
        )
        subtasks = result.get("subtasks")
        if not isinstance(subtasks, list) or not subtasks:
            raise AIServiceError(result.get("error") or "AI service returned no subtasks")
        try:
            children = _CHILDREN.validate_python(subtasks)
        except ValidationError as e:
            logger.error("AI service returned malformed subtasks: %s", e)
            raise AIServiceError("AI service returned malformed subtasks") from e
        return [child.model_dump() for child in children]

    async def generate_thoughts(self) -> list[str]:
        """Random example thoughts for the capture form."""
        result = await self._request("GET", "/generate-thoughts")
        return [str(t) for t in result.get("thoughts", [])]

    async def status(self) -> dict[str, Any]:
        """Health details, reported as offline instead of raising."""
        try:
            details = await self._request("GET", "/health")
        except AIServiceError:
            return {"status": "offline", "details": None}
        return {"status": "online", "details": details}

    async def health(self) -> bool:
        return (await self.status())["status"] == "online"


def get_ai_service() -> AIService:
    """FastAPI dependency; overridden in tests."""
    return AIService()
