""" Thin typed client for the n8n public REST API (/api/v1). """

import logging
from typing import Any, Dict, List, Optional

import httpx

from ...config import Settings, get_settings
from ...errors import RemoteError

logger = logging.getLogger(__name__)

API_PREFIX = "/api/v1"

_STATUS_HINTS = {
    400: "n8n rejected the payload; check node parameters and connection names",
    401: "Check N8N_API_KEY",
    403: "The API key is not allowed to perform this operation",
    404: "Check the workflow/execution id and N8N_URL",
    409: "Conflicting state on the n8n side (e.g. workflow already active)",
    422: "n8n could not process the workflow; preview the draft for schema issues",
}


def _hint_for(status: int) -> Optional[str]:
    if status in _STATUS_HINTS:
        return _STATUS_HINTS[status]
    if status >= 500:
        return "n8n server error; retry later"
    return None


class N8NClient:

    def __init__(self, base_url: str, api_key: str, timeout: float = 30.0,
                 transport: Optional[httpx.BaseTransport] = None):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._http = httpx.Client(
            base_url=self.base_url + API_PREFIX,
            headers={"X-N8N-API-KEY": api_key, "Accept": "application/json"},
            timeout=timeout,
            transport=transport,
        )

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None, **kwargs) -> "N8NClient":
        settings = settings or get_settings()
        return cls(settings.n8n_url, settings.n8n_api_key, settings.n8n_timeout, **kwargs)

    def close(self) -> None:
        self._http.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()

    def _request(self, method: str, path: str, *, json: Optional[Dict[str, Any]] = None,
                 params: Optional[Dict[str, Any]] = None) -> Any:
        try:
            response = self._http.request(method, path, json=json, params=params)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            try:
                body = e.response.json()
            except ValueError:
                body = None
            message = (body.get("message") if isinstance(body, dict) else None) or e.response.text
            raise RemoteError(
                f"n8n API error {status} for {method} {path}: {message[:200]}",
                status_code=status,
                hint=_hint_for(status),
                code="N8N_HTTP_ERROR",
                details={"method": method, "path": path},
            ) from e
        except httpx.TimeoutException as e:
            raise RemoteError(
                f"n8n request timed out after {self.timeout}s: {method} {path}",
                hint="Increase N8N_TIMEOUT or check the n8n instance",
                code="N8N_TIMEOUT",
                details={"method": method, "path": path},
            ) from e
        except httpx.HTTPError as e:
            raise RemoteError(
                f"Network error for {method} {path}: {e}",
                hint="Check N8N_URL and that n8n is reachable",
                code="N8N_NETWORK_ERROR",
                details={"method": method, "path": path},
            ) from e

        if not response.content:
            return {}
        return response.json()

    # ---- workflows ----

    def create_workflow(self, workflow: Dict[str, Any]) -> Dict[str, Any]:
        created = self._request("POST", "/workflows", json=workflow)
        logger.info("created n8n workflow %s (%s)", created.get("id"), workflow.get("name"))
        return created

    def update_workflow(self, workflow_id: str, workflow: Dict[str, Any]) -> Dict[str, Any]:
        return self._request("PUT", f"/workflows/{workflow_id}", json=workflow)

    def get_workflow(self, workflow_id: str) -> Dict[str, Any]:
        return self._request("GET", f"/workflows/{workflow_id}")

    def list_workflows(self, active: Optional[bool] = None, limit: Optional[int] = None) -> List[Dict[str, Any]]:
        params: Dict[str, Any] = {}
        if active is not None:
            params["active"] = str(active).lower()
        if limit is not None:
            params["limit"] = limit
        return self._request("GET", "/workflows", params=params).get("data", [])

    def delete_workflow(self, workflow_id: str) -> Dict[str, Any]:
        return self._request("DELETE", f"/workflows/{workflow_id}")

    def activate_workflow(self, workflow_id: str) -> Dict[str, Any]:
        return self._request("POST", f"/workflows/{workflow_id}/activate")

    def deactivate_workflow(self, workflow_id: str) -> Dict[str, Any]:
        return self._request("POST", f"/workflows/{workflow_id}/deactivate")

    # ---- credentials / executions ----

    def list_credentials(self) -> List[Dict[str, Any]]:
        return self._request("GET", "/credentials").get("data", [])

    def get_execution(self, execution_id: str, include_data: bool = False) -> Dict[str, Any]:
        return self._request("GET", f"/executions/{execution_id}",
                             params={"includeData": str(include_data).lower()})

    def list_executions(self, workflow_id: Optional[str] = None, limit: int = 20) -> List[Dict[str, Any]]:
        params: Dict[str, Any] = {"limit": limit}
        if workflow_id:
            params["workflowId"] = workflow_id
        return self._request("GET", "/executions", params=params).get("data", [])
