"""FluentCRM REST client for contact details and the custom field schema."""

from __future__ import annotations

import logging
import sys
from dataclasses import dataclass
from typing import Any, Iterator

import requests
from flask import current_app

from ..constants import CRM_SCHEMA_TIMEOUT, CRM_SUBSCRIBER_TIMEOUT
from ..errors import ConfigurationError, UpstreamError
from ..shared.slugs import sanitize_key

logger = logging.getLogger("gcp.crm")
if not logger.handlers:
    handler = logging.StreamHandler(sys.stdout)
    logger.addHandler(handler)
logger.setLevel(logging.INFO)


@dataclass
class FluentCRMConfig:
    """Connection settings for the FluentCRM REST API (``.../fluent-crm/v2``)."""

    base_url: str
    username: str
    password: str

    def __post_init__(self) -> None:
        self.base_url = (self.base_url or "").rstrip("/")


def load_crm_config() -> FluentCRMConfig:
    """Settings row first, then app config (environment)."""
    from ..models import Settings  # local import to avoid circular import at module load

    settings = Settings.get()
    base_url = (
        settings.crm_api_url
        if settings and settings.crm_api_url
        else current_app.config.get("FLUENTCRM_API_URL")
    )
    username = (
        settings.crm_api_username
        if settings and settings.crm_api_username
        else current_app.config.get("FLUENTCRM_API_USERNAME")
    )
    password = (
        settings.get_crm_pass()
        if settings and settings.get_crm_pass()
        else current_app.config.get("FLUENTCRM_API_PASSWORD")
    )
    if not base_url or not username or not password:
        logger.warning(
            "[CRM] credentials incomplete url=%s user=%s password=%s",
            bool(base_url),
            bool(username),
            bool(password),
        )
        raise ConfigurationError()
    return FluentCRMConfig(base_url=base_url, username=username, password=password)


class FluentCRMClient:
    """Basic-authenticated JSON GETs against FluentCRM."""

    def __init__(self, config: FluentCRMConfig, session: requests.Session | None = None):
        self.config = config
        self.session = session or requests.Session()
        self.session.auth = (config.username, config.password)

    def _get(
        self, endpoint: str, params: dict[str, Any] | None = None, timeout: int = CRM_SUBSCRIBER_TIMEOUT
    ) -> Any:
        url = f"{self.config.base_url}/{endpoint.lstrip('/')}"
        try:
            response = self.session.get(
                url,
                params=params,
                headers={"Accept": "application/json"},
                timeout=timeout,
            )
        except requests.RequestException as exc:
            logger.warning("[CRM] GET %s failed: %s", url, exc)
            raise UpstreamError(detail=str(exc)) from exc

        if response.status_code != 200:
            logger.warning(
                "[CRM] GET %s returned HTTP %s body=%s",
                url,
                response.status_code,
                response.text[:500],
            )
            raise UpstreamError(detail=f"HTTP {response.status_code}")

        try:
            return response.json()
        except ValueError as exc:
            logger.warning("[CRM] GET %s returned invalid JSON: %s", url, response.text[:500])
            raise UpstreamError(detail="invalid JSON") from exc

    def custom_field_slugs(self) -> list[str]:
        """Sanitized slugs from ``/custom-fields/contacts``."""
        data = self._get("custom-fields/contacts", timeout=CRM_SCHEMA_TIMEOUT)
        fields = data.get("fields") if isinstance(data, dict) else None
        if not isinstance(fields, list):
            logger.warning("[CRM] custom-fields/contacts without a fields list")
            raise UpstreamError(detail="missing fields")
        slugs: list[str] = []
        for field in fields:
            slug = sanitize_key(field.get("slug")) if isinstance(field, dict) else ""
            if slug:
                slugs.append(slug)
            else:
                logger.warning("[CRM] custom field without slug: %r", field)
        return slugs

    def subscriber(self, subscriber_id: int | str) -> dict[str, Any]:
        """Full subscriber detail including custom values."""
        data = self._get(
            f"subscribers/{subscriber_id}",
            params={"with[]": "subscriber.custom_values"},
            timeout=CRM_SUBSCRIBER_TIMEOUT,
        )
        subscriber = data.get("subscriber") if isinstance(data, dict) else None
        if not isinstance(subscriber, dict) or not subscriber:
            logger.warning(
                "[CRM] subscribers/%s returned no subscriber payload", subscriber_id
            )
            raise UpstreamError(detail="missing subscriber")
        return subscriber

    def iter_subscribers(self, per_page: int = 100) -> Iterator[dict[str, Any]]:
        """Walk the paginated ``/subscribers`` listing."""
        page = 1
        while True:
            data = self._get(
                "subscribers",
                params={
                    "per_page": per_page,
                    "page": page,
                    "with[]": "subscriber.custom_values",
                },
                timeout=CRM_SUBSCRIBER_TIMEOUT,
            )
            block = data.get("subscribers") if isinstance(data, dict) else None
            if not isinstance(block, dict):
                raise UpstreamError(detail="missing subscribers page")
            records = block.get("data") or []
            yield from records
            try:
                last_page = int(block.get("last_page") or page)
            except (TypeError, ValueError) as exc:
                logger.warning(
                    "[CRM] subscribers page %s has invalid last_page=%r",
                    page,
                    block.get("last_page"),
                )
                raise UpstreamError(detail="invalid last_page") from exc
            if not records or page >= last_page:
                return
            page += 1


def get_crm_client() -> FluentCRMClient:
    return FluentCRMClient(load_crm_config())
