from __future__ import annotations

from typing import Any, Dict, Optional

import httpx
import typer

from cli.config import CLIConfig


class ApiClient:
    """Minimal HTTP client for the sensor backend."""

    def __init__(self, config: CLIConfig) -> None:
        self._config = config
        self._client = httpx.Client(base_url=config.base_url, timeout=config.request_timeout)

    def close(self) -> None:
        self._client.close()

    def send_reading(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        return self._request("POST", "/api/sensors", json=payload)["data"]

    def latest(self) -> Dict[str, Any]:
        return self._request("GET", "/api/sensors/latest")["data"]

    def readings(self, limit: int) -> list[Dict[str, Any]]:
        return self._request("GET", "/api/sensors/readings", params={"limit": limit})["data"]

    def analytics(
        self,
        hours: int,
        min_threshold: Optional[float] = None,
        max_threshold: Optional[float] = None,
    ) -> Dict[str, Any]:
        params: Dict[str, Any] = {"hours": hours}
        if min_threshold is not None:
            params["minThreshold"] = min_threshold
        if max_threshold is not None:
            params["maxThreshold"] = max_threshold
        return self._request("GET", "/api/sensors/analytics", params=params)["data"]

    def chart_data(self, hours: int) -> list[Dict[str, Any]]:
        return self._request("GET", "/api/sensors/chart-data", params={"hours": hours})["data"]

    def readings_between(self, start: str, end: str) -> list[Dict[str, Any]]:
        params = {"startDate": start, "endDate": end}
        return self._request("GET", "/api/sensors/range", params=params)["data"]

    def _request(self, method: str, path: str, **kwargs: Any) -> Dict[str, Any]:
        try:
            response = self._client.request(method, path, **kwargs)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            self._handle_http_error(exc)
        except httpx.TransportError as exc:
            typer.secho(
                f"Could not reach {self._config.base_url}: {exc}", fg=typer.colors.RED, err=True
            )
            raise typer.Exit(code=1) from exc
        payload = response.json()
        if not isinstance(payload, dict) or "data" not in payload:
            raise typer.BadParameter(f"Unexpected response payload from {path}.")
        return payload

    @staticmethod
    def _handle_http_error(exc: httpx.HTTPStatusError) -> None:
        detail: str | None = None
        try:
            data = exc.response.json()
            detail = data.get("error") or data.get("message") or data.get("detail")
            for field_error in data.get("errors") or []:
                detail = f"{detail}\n  - {field_error.get('field')}: {field_error.get('message')}"
        except Exception:  # noqa: BLE001 - best effort parsing
            detail = exc.response.text.strip()
        message = (
            f"Request failed with status {exc.response.status_code}: {detail or 'no detail provided.'}"
        )
        typer.secho(message, fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)
