"""HTTP client for the remote visa/expert catalog."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional
from urllib.parse import quote

import httpx

from core.config import settings
from core.errors import CatalogError, NotFoundError, ServerError, TransportError, ValidationError, error_message
from core.normalizer import coerce_numeric_fields, invalid_numeric_fields

logger = logging.getLogger(__name__)

EXPERT_FILTER_KEYS = ("country", "visaType", "language", "minRating")


def _seg(value: str) -> str:
    return quote(str(value), safe="")


def _safe_json(response: httpx.Response) -> Any:
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return response.text


def _log_status(response: httpx.Response) -> None:
    status = response.status_code
    if status == 401:
        logger.error("Authentication error. Please log in again.")
    elif status == 403:
        logger.error("You do not have permission to perform this action.")
    elif status >= 500:
        logger.error("Server error occurred. Please try again later.")


def _experts_from(body: Any) -> List[Dict[str, Any]]:
    if isinstance(body, list):
        return body
    if isinstance(body, dict) and isinstance(body.get("experts"), list):
        return body["experts"]
    raise ServerError("Invalid response format from experts API", body=body)


class RemoteCatalogClient:
    def __init__(
        self,
        base_url: Optional[str] = None,
        *,
        timeout: Optional[float] = None,
        http: Optional[httpx.Client] = None,
    ):
        self._http = http or httpx.Client(
            base_url=base_url or settings.API_ENDPOINT,
            timeout=timeout if timeout is not None else settings.REQUEST_TIMEOUT_SECONDS,
            headers={"Content-Type": "application/json"},
        )

    def close(self) -> None:
        self._http.close()

    def _request(self, method: str, path: str, context: str, **kwargs: Any) -> Any:
        try:
            response = self._http.request(method, path, **kwargs)
        except httpx.TimeoutException as exc:
            logger.error("%s: request timed out", context)
            raise TransportError("No response received from server (request timed out)") from exc
        except httpx.TransportError as exc:
            logger.error("Network error. Please check your connection. %s: %s", context, exc)
            raise TransportError("No response received from server") from exc

        if response.status_code >= 400:
            _log_status(response)
            body = _safe_json(response)
            error_cls = NotFoundError if response.status_code == 404 else ServerError
            err = error_cls(
                f"Request failed with status code {response.status_code}",
                status_code=response.status_code,
                body=body,
            )
            logger.error("%s: %s", context, error_message(err))
            raise err
        return _safe_json(response)

    # ---------------- Countries / visa types ----------------
    def list_countries(self) -> List[str]:
        body = self._request("GET", "/countries", "Error fetching countries")
        if not isinstance(body, dict) or not isinstance(body.get("countries"), list):
            raise ServerError("Invalid response format from countries API", body=body)
        return [str(c) for c in body["countries"]]

    def list_visa_types(self, country: str) -> List[Dict[str, Any]]:
        if not country:
            raise ValidationError("Country parameter is required", fields=["country"])
        body = self._request("GET", f"/visas/{_seg(country)}", f"Error fetching visa types for {country}")
        if not isinstance(body, dict) or not isinstance(body.get("visa_types"), list):
            raise ServerError(f"Invalid response format from visa types API for {country}", body=body)
        return body["visa_types"]

    def create_visa(self, country: str, visa: Mapping[str, Any]) -> Any:
        if not country or not visa:
            raise ValidationError("Country and visa data are required", fields=["country"])
        if not visa.get("visa_type") or not visa.get("description"):
            raise ValidationError("Visa type and description are required fields", fields=["visa_type", "description"])
        return self._request("POST", f"/visas/{_seg(country)}", f"Error creating visa for {country}", json=dict(visa))

    def update_visa(self, country: str, visa_type: str, visa: Mapping[str, Any]) -> Any:
        if not country or not visa_type or not visa:
            raise ValidationError("Country, visa type, and visa data are required", fields=["country", "visa_type"])
        return self._request(
            "PUT",
            f"/visas/{_seg(country)}/{_seg(visa_type)}",
            f"Error updating visa {visa_type} for {country}",
            json=dict(visa),
        )

    def delete_visa(self, country: str, visa_type: str) -> Any:
        if not country or not visa_type:
            raise ValidationError("Country and visa type are required", fields=["country", "visa_type"])
        return self._request(
            "DELETE",
            f"/visas/{_seg(country)}/{_seg(visa_type)}",
            f"Error deleting visa {visa_type} for {country}",
        )

    # ---------------- Experts ----------------
    def _list_experts_swallowing(self, path: str, context: str, params: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
        try:
            return _experts_from(self._request("GET", path, context, params=params))
        except CatalogError as exc:
            logger.error("%s: %s", context, error_message(exc))
            return []

    def list_experts(self, filters: Optional[Mapping[str, Any]] = None) -> List[Dict[str, Any]]:
        params = {k: v for k, v in (filters or {}).items() if k in EXPERT_FILTER_KEYS and v not in (None, "")}
        return self._list_experts_swallowing("/experts", "Error fetching experts", params=params or None)

    def list_experts_by_country(self, country: str) -> List[Dict[str, Any]]:
        return self._list_experts_swallowing(f"/experts/country/{_seg(country)}", f"Error fetching experts for {country}")

    def list_experts_by_visa_type(self, visa_type: str) -> List[Dict[str, Any]]:
        return self._list_experts_swallowing(
            f"/experts/visa-type/{_seg(visa_type)}", f"Error fetching experts for visa type {visa_type}"
        )

    def list_experts_by_country_and_visa(self, country: str, visa_type: str) -> List[Dict[str, Any]]:
        return self._list_experts_swallowing(
            f"/experts/country/{_seg(country)}/visa-type/{_seg(visa_type)}",
            f"Error fetching experts for {country} / {visa_type}",
        )

    def get_expert(self, expert_id: str) -> Dict[str, Any]:
        if not expert_id:
            raise ValidationError("Expert ID is required", fields=["id"])
        return self._request("GET", f"/experts/{_seg(expert_id)}", f"Error fetching expert {expert_id}")

    def _prepare_expert(self, data: Mapping[str, Any]) -> Dict[str, Any]:
        payload = coerce_numeric_fields(data)
        invalid = invalid_numeric_fields(payload)
        if invalid:
            raise ValidationError(f"Invalid numeric fields: {', '.join(invalid)}", fields=invalid)
        return payload

    def create_expert(self, data: Mapping[str, Any]) -> Any:
        if not data or not data.get("name") or not data.get("title"):
            raise ValidationError("Name and title are required fields", fields=["name", "title"])
        payload = self._prepare_expert(data)
        return self._request("POST", "/experts", "Error creating expert", json=payload)

    def update_expert(self, expert_id: str, data: Mapping[str, Any]) -> Any:
        if not expert_id or not data:
            raise ValidationError("Expert ID and data are required", fields=["id"])
        payload = self._prepare_expert(data)
        return self._request("PUT", f"/experts/{_seg(expert_id)}", f"Error updating expert {expert_id}", json=payload)

    def delete_expert(self, expert_id: str) -> Any:
        if not expert_id:
            raise ValidationError("Expert ID is required", fields=["id"])
        return self._request("DELETE", f"/experts/{_seg(expert_id)}", f"Error deleting expert {expert_id}")
