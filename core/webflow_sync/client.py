"""
Webflow Data API Client

Thin wrapper around the Webflow v2 collection item endpoints used to
publish classes on the marketing site.

Features:
- Bearer token authentication on a shared ``requests.Session``
- Fixed request timeout (``WEBFLOW_TIMEOUT_SECONDS``)
- HTTP errors mapped onto the academy exception hierarchy

Author: DSP Development Team
Version: 1.0.0
"""

import logging
from typing import Any, Dict, List, Optional

import requests
from django.conf import settings

from core.exceptions import (
    AcademyException,
    ConfigurationException,
    ExternalServiceException,
    create_exception_from_response,
)

logger = logging.getLogger(__name__)


class WebflowClient:
    """
    Client for the Webflow collection item API.

    Example:
        >>> client = WebflowClient(api_token="...")
        >>> item = client.create_item("collection-id", {"name": "EMR-001"})
        >>> client.publish_items("collection-id", [item["id"]])
    """

    DEFAULT_TIMEOUT = 15

    def __init__(
        self,
        api_token: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: Optional[int] = None,
        session: Optional[requests.Session] = None,
    ):
        self.api_token = api_token or getattr(settings, "WEBFLOW_API_TOKEN", "")
        if not self.api_token:
            raise ConfigurationException("WEBFLOW_API_TOKEN is not configured")
        self.base_url = (
            base_url or getattr(settings, "WEBFLOW_API_BASE_URL", "https://api.webflow.com/v2")
        ).rstrip("/")
        self.timeout = timeout or getattr(settings, "WEBFLOW_TIMEOUT_SECONDS", self.DEFAULT_TIMEOUT)
        self.session = session or requests.Session()
        self.session.headers.update(
            {
                "Authorization": f"Bearer {self.api_token}",
                "Accept": "application/json",
                "Content-Type": "application/json",
            }
        )

    def _request(self, method: str, path: str, payload: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        url = f"{self.base_url}/{path.lstrip('/')}"
        try:
            response = self.session.request(method, url, json=payload, timeout=self.timeout)
        except requests.RequestException as e:
            logger.error(f"Webflow request {method} {path} failed: {e}")
            raise ExternalServiceException(f"Webflow request failed: {e}", service="webflow")

        if response.status_code >= 400:
            message = self._error_message(response)
            logger.warning(f"Webflow {method} {path} returned {response.status_code}: {message}")
            raise create_exception_from_response(response.status_code, message, "webflow")

        if response.status_code == 204 or not response.content:
            return {}
        try:
            return response.json()
        except ValueError as e:
            logger.error(f"Webflow {method} {path} returned a non-JSON body: {e}")
            raise ExternalServiceException("Webflow returned an invalid response", service="webflow")

    @staticmethod
    def _error_message(response: requests.Response) -> str:
        try:
            body = response.json()
        except ValueError:
            return response.text or f"HTTP {response.status_code}"
        return body.get("message") or body.get("msg") or f"HTTP {response.status_code}"

    def create_item(self, collection_id: str, field_data: Dict[str, Any], is_draft: bool = False) -> Dict[str, Any]:
        return self._request(
            "POST",
            f"collections/{collection_id}/items",
            {"isArchived": False, "isDraft": is_draft, "fieldData": field_data},
        )

    def update_item(self, collection_id: str, item_id: str, field_data: Dict[str, Any]) -> Dict[str, Any]:
        """Update the staged (unpublished) version of an item."""
        return self._request(
            "PATCH", f"collections/{collection_id}/items/{item_id}", {"fieldData": field_data}
        )

    def update_live_item(self, collection_id: str, item_id: str, field_data: Dict[str, Any]) -> Dict[str, Any]:
        """Update an item and publish the change in one call."""
        return self._request(
            "PATCH", f"collections/{collection_id}/items/{item_id}/live", {"fieldData": field_data}
        )

    def publish_items(self, collection_id: str, item_ids: List[str]) -> Dict[str, Any]:
        return self._request(
            "POST", f"collections/{collection_id}/items/publish", {"itemIds": list(item_ids)}
        )

    def delete_item(self, collection_id: str, item_id: str) -> None:
        self._request("DELETE", f"collections/{collection_id}/items/{item_id}")


def is_missing_item_error(exc: AcademyException) -> bool:
    return exc.status_code == 404
