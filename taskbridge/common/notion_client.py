"""
Notion Client for the task store

Thin async wrapper over the Notion REST API covering the operations the
tools and the proposal resolver need: database search, page creation,
status update and archive (Notion's soft delete).

Usage:
    client = NotionClient(api_key="secret_...")
    task = await client.create_task(database_id, "Order HVAC supplies")
    await client.update_status(task.id, "Done")
    await client.close()
"""

import logging
from typing import Any, Dict, List, Optional

import httpx

from .config import NotionConfig
from .errors import UpstreamError
from .reference import normalize_task_id
from .schemas import TrackedTask

logger = logging.getLogger("taskbridge.common.notion")

NOTION_API_BASE = "https://api.notion.com/v1"


class NotionError(UpstreamError):
    """Error communicating with Notion."""
    pass


class NotionClient:
    """
    Async HTTP client for the Notion API.

    The underlying httpx.AsyncClient is created lazily on first use so the
    client can be constructed outside a running event loop.
    """

    def __init__(
        self,
        api_key: str,
        api_version: str = "2022-06-28",
        title_property: str = "Name",
        status_property: str = "Status",
        project_property: str = "Project",
        base_url: str = NOTION_API_BASE,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize Notion client.

        Args:
            api_key: Notion integration secret
            api_version: Value of the Notion-Version header
            title_property: Name of the database's title property
            status_property: Name of the select property holding the status
            project_property: Name of the relation property linking a project
            base_url: API base URL
            timeout: Request timeout in seconds
            transport: Optional httpx transport (tests use httpx.MockTransport)
        """
        self.api_key = api_key
        self.api_version = api_version
        self.title_property = title_property
        self.status_property = status_property
        self.project_property = project_property
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    @classmethod
    def from_config(cls, config: NotionConfig, **kwargs) -> "NotionClient":
        return cls(
            api_key=config.api_key,
            api_version=config.api_version,
            title_property=config.title_property,
            status_property=config.status_property,
            project_property=config.project_property,
            **kwargs,
        )

    def _ensure_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=httpx.Timeout(self.timeout),
                transport=self._transport,
                headers={
                    "Authorization": f"Bearer {self.api_key}",
                    "Notion-Version": self.api_version,
                    "Content-Type": "application/json",
                },
            )
        return self._client

    async def close(self):
        """Close the HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def _request(self, method: str, path: str, payload: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        client = self._ensure_client()
        try:
            response = await client.request(method, path, json=payload)
        except httpx.HTTPError as e:
            raise NotionError(f"Notion {method} {path} failed: {e}") from e

        if response.status_code >= 400:
            try:
                message = response.json().get("message", response.text)
            except ValueError:
                message = response.text
            raise NotionError(f"Notion {method} {path} returned {response.status_code}: {message}")

        try:
            return response.json()
        except ValueError as e:
            raise NotionError(f"Notion {method} {path} returned a non-JSON body: {response.text[:200]}") from e

    async def search(self, query: str, object_type: str = "database", page_size: int = 5) -> List[Dict[str, Any]]:
        """
        Search the workspace.

        Returns:
            Simplified results: [{"id", "name", "url", "type"}, ...]
        """
        data = await self._request("POST", "/search", {
            "query": query,
            "filter": {"property": "object", "value": object_type},
            "page_size": page_size,
        })
        results = []
        for item in data.get("results", []):
            results.append({
                "id": item.get("id"),
                "name": self._extract_name(item) or "Untitled",
                "url": item.get("url"),
                "type": item.get("object"),
            })
        return results

    async def create_task(
        self,
        database_id: str,
        title: str,
        status: str = "Not Started",
        description: str = "",
        project_id: Optional[str] = None,
    ) -> TrackedTask:
        """Create a task page in the given database."""
        properties: Dict[str, Any] = {
            self.title_property: {"title": [{"text": {"content": title}}]},
            self.status_property: {"select": {"name": status}},
        }
        if project_id:
            properties[self.project_property] = {"relation": [{"id": project_id}]}

        children = []
        if description:
            children.append({
                "object": "block",
                "type": "paragraph",
                "paragraph": {"rich_text": [{"text": {"content": description}}]},
            })

        data = await self._request("POST", "/pages", {
            "parent": {"database_id": database_id},
            "properties": properties,
            "children": children,
        })
        logger.info("Created task %s (%s)", data.get("id"), title)
        return TrackedTask(
            id=normalize_task_id(data["id"]),
            url=data.get("url", ""),
            title=title,
            status=status,
            description=description,
            project_id=project_id,
        )

    async def update_status(self, task_id: str, status: str) -> None:
        """Set the status select of a task page."""
        await self._request("PATCH", f"/pages/{task_id}", {
            "properties": {self.status_property: {"select": {"name": status}}},
        })
        logger.info("Updated task %s: status=%s", task_id, status)

    async def archive(self, task_id: str) -> None:
        """Archive a task page (Notion's soft delete)."""
        await self._request("PATCH", f"/pages/{task_id}", {"archived": True})
        logger.info("Archived task %s", task_id)

    def _extract_name(self, item: Dict[str, Any]) -> str:
        """Extract a display name from a database or page object"""
        title_parts = item.get("title")
        if isinstance(title_parts, list):
            return "".join(t.get("plain_text", "") for t in title_parts)

        for prop in item.get("properties", {}).values():
            if prop.get("type") == "title":
                return "".join(t.get("plain_text", "") for t in prop.get("title", []))
        return ""
