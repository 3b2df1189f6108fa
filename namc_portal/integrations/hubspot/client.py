from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, Optional, Tuple

import httpx

from namc_portal.server.core.config import HubSpotConfig

from .errors import HubSpotApiError, HubSpotNotConfiguredError, HubSpotNotFoundError
from .models import AccountDetails, EmailSendResult, HubSpotObject, HubSpotObjectPage

CONTACTS = "contacts"
DEALS = "deals"


class HubSpotClient:
    """
    Thin async HTTP client for the HubSpot CRM v3 API.

    Responsibilities:
    - contacts: list, create, update, search by email, upsert
    - deals: create, update
    - account details (used by the health check)
    - transactional single-send email

    Pass ``client`` to reuse an ``httpx.AsyncClient`` (tests use one backed by
    ``httpx.MockTransport``); otherwise the client owns its connection pool and
    must be closed with ``aclose`` or used as an async context manager.
    """

    def __init__(
        self,
        api_key: Optional[str],
        *,
        base_url: str = "https://api.hubapi.com",
        timeout: float = 10.0,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        if not api_key:
            raise HubSpotNotConfiguredError()
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout)
        self._logger = logging.getLogger(__name__)

    @classmethod
    def from_config(cls, config: HubSpotConfig, client: Optional[httpx.AsyncClient] = None) -> "HubSpotClient":
        return cls(config.api_key, base_url=config.base_url, timeout=config.timeout_seconds, client=client)

    async def __aenter__(self) -> "HubSpotClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    def _headers(self) -> dict[str, str]:
        return {"Content-Type": "application/json", "Authorization": f"Bearer {self.api_key}"}

    async def _request(self, method: str, path: str, operation: str, **kwargs: Any) -> httpx.Response:
        url = f"{self.base_url}{path}"
        self._logger.debug("HubSpotClient.%s: %s %s", operation, method, url)
        try:
            r = await self._client.request(method, url, headers=self._headers(), **kwargs)
            r.raise_for_status()
        except httpx.HTTPStatusError as e:
            details: Any
            try:
                details = e.response.json()
            except ValueError:
                details = e.response.text
            raise HubSpotApiError(
                f"HubSpot {operation} failed: {e.response.status_code}",
                status_code=e.response.status_code,
                details=details,
            ) from e
        except httpx.HTTPError as e:
            raise HubSpotApiError(f"HubSpot {operation} failed: {e}") from e
        return r

    @staticmethod
    def _object(r: httpx.Response, operation: str) -> HubSpotObject:
        data = r.json()
        if not isinstance(data, dict):
            raise HubSpotApiError(f"Unexpected response shape from {operation}", status_code=r.status_code, details=data)
        return HubSpotObject.model_validate(data)

    # ------------------------------------------------------------------
    # Contacts
    # ------------------------------------------------------------------

    async def list_contacts(self, *, limit: int = 100, properties: Iterable[str] = ()) -> list[HubSpotObject]:
        params: dict[str, Any] = {"limit": limit}
        props = list(properties)
        if props:
            params["properties"] = ",".join(props)
        r = await self._request("GET", f"/crm/v3/objects/{CONTACTS}", "list_contacts", params=params)
        page = HubSpotObjectPage.model_validate(r.json())
        self._logger.debug("HubSpotClient.list_contacts: got %d contacts", len(page.results))
        return page.results

    async def create_contact(self, properties: Dict[str, Any]) -> HubSpotObject:
        r = await self._request(
            "POST", f"/crm/v3/objects/{CONTACTS}", "create_contact", json={"properties": _stringify(properties)}
        )
        return self._object(r, "create_contact")

    async def update_contact(self, contact_id: str, properties: Dict[str, Any]) -> HubSpotObject:
        try:
            r = await self._request(
                "PATCH",
                f"/crm/v3/objects/{CONTACTS}/{contact_id}",
                "update_contact",
                json={"properties": _stringify(properties)},
            )
        except HubSpotApiError as e:
            if e.status_code == 404:
                raise HubSpotNotFoundError(CONTACTS, contact_id) from e
            raise
        return self._object(r, "update_contact")

    async def search_contact_by_email(self, email: str, properties: Iterable[str] = ()) -> Optional[HubSpotObject]:
        body: dict[str, Any] = {
            "filterGroups": [{"filters": [{"propertyName": "email", "operator": "EQ", "value": email}]}],
            "limit": 1,
        }
        props = list(properties)
        if props:
            body["properties"] = props
        r = await self._request("POST", f"/crm/v3/objects/{CONTACTS}/search", "search_contact_by_email", json=body)
        page = HubSpotObjectPage.model_validate(r.json())
        return page.results[0] if page.results else None

    async def upsert_contact(self, email: str, properties: Dict[str, Any]) -> Tuple[HubSpotObject, bool]:
        """Create a contact, or update the existing one with the same email.

        Returns:
            ``(contact, created)``
        """
        props = {**properties, "email": email}
        try:
            return await self.create_contact(props), True
        except HubSpotApiError as e:
            if e.status_code != 409:
                raise
        existing = await self.search_contact_by_email(email)
        if existing is None:
            raise HubSpotApiError(f"HubSpot reported a conflict for {email} but no contact was found", status_code=409)
        return await self.update_contact(existing.id, props), False

    # ------------------------------------------------------------------
    # Deals
    # ------------------------------------------------------------------

    async def create_deal(self, properties: Dict[str, Any]) -> HubSpotObject:
        r = await self._request(
            "POST", f"/crm/v3/objects/{DEALS}", "create_deal", json={"properties": _stringify(properties)}
        )
        return self._object(r, "create_deal")

    async def update_deal(self, deal_id: str, properties: Dict[str, Any]) -> HubSpotObject:
        try:
            r = await self._request(
                "PATCH", f"/crm/v3/objects/{DEALS}/{deal_id}", "update_deal", json={"properties": _stringify(properties)}
            )
        except HubSpotApiError as e:
            if e.status_code == 404:
                raise HubSpotNotFoundError(DEALS, deal_id) from e
            raise
        return self._object(r, "update_deal")

    # ------------------------------------------------------------------
    # Account / email
    # ------------------------------------------------------------------

    async def get_account_details(self) -> AccountDetails:
        r = await self._request("GET", "/account-info/v3/details", "get_account_details")
        return AccountDetails.model_validate(r.json())

    async def send_transactional_email(
        self,
        *,
        email_id: str,
        to: str,
        from_address: Optional[str] = None,
        reply_to: Optional[str] = None,
        contact_properties: Optional[Dict[str, Any]] = None,
        custom_properties: Optional[Dict[str, Any]] = None,
    ) -> EmailSendResult:
        message: dict[str, Any] = {"to": to}
        if from_address:
            message["from"] = from_address
        if reply_to:
            message["replyTo"] = [reply_to]
        body = {
            "emailId": int(email_id) if str(email_id).isdigit() else email_id,
            "message": message,
            "contactProperties": _stringify(contact_properties or {}),
            "customProperties": _stringify(custom_properties or {}),
        }
        r = await self._request(
            "POST", "/marketing/v3/transactional/single-email/send", "send_transactional_email", json=body
        )
        return EmailSendResult.model_validate(r.json() if r.content else {})


def _stringify(properties: Dict[str, Any]) -> Dict[str, str]:
    """HubSpot property values are strings; ``None`` entries are dropped."""
    out: Dict[str, str] = {}
    for key, value in properties.items():
        if value is None:
            continue
        if isinstance(value, bool):
            out[key] = "true" if value else "false"
        else:
            out[key] = str(value)
    return out
