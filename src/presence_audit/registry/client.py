"""GraphQL client for the presence store API.

Any failure to obtain a usable answer is raised as ``RegistryError``.  The
validation driver does not catch it; the CLI aborts the run.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

import httpx

from presence_audit.errors import RegistryError

_logger = logging.getLogger(__name__)

_PRESENCES_QUERY = """
query getData($service: StringOrStringArray!) {
  presences(service: $service) {
    metadata {
      service
      version
    }
  }
}
"""

_LANGUAGES_QUERY = """
query getLanguages($project: String!) {
  langFiles(project: $project) {
    lang
  }
}
"""


@dataclass(frozen=True, slots=True)
class StorePresence:
    """The published record of a presence."""

    service: str
    version: str


class RegistryClient:
    """Thin synchronous wrapper around one ``httpx.Client``."""

    def __init__(
        self,
        api_url: str,
        *,
        timeout: float = 30.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.api_url = api_url
        self._http = httpx.Client(
            timeout=timeout,
            transport=transport,
            headers={"Content-Type": "application/json"},
        )

    # ── lifecycle ───────────────────────────────────────────────────

    def close(self) -> None:
        self._http.close()

    def __enter__(self) -> "RegistryClient":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    # ── transport ───────────────────────────────────────────────────

    def get_json(self, url: str) -> Any:
        """GET *url* and decode its JSON body."""
        try:
            resp = self._http.get(url)
            resp.raise_for_status()
            return resp.json()
        except httpx.HTTPError as exc:
            raise RegistryError(f"GET {url} failed: {exc}") from exc
        except ValueError as exc:
            raise RegistryError(f"GET {url} returned invalid JSON") from exc

    def _graphql(self, query: str, variables: dict[str, Any]) -> dict[str, Any]:
        try:
            resp = self._http.post(
                self.api_url, json={"query": query, "variables": variables}
            )
            resp.raise_for_status()
            body = resp.json()
        except httpx.HTTPError as exc:
            raise RegistryError(f"registry request failed: {exc}") from exc
        except ValueError as exc:
            raise RegistryError("registry returned invalid JSON") from exc

        if not isinstance(body, dict):
            raise RegistryError("registry response is not a JSON object")
        if body.get("errors"):
            messages = "; ".join(
                str(e.get("message", e)) if isinstance(e, dict) else str(e)
                for e in body["errors"]
            )
            raise RegistryError(f"registry query failed: {messages}")
        data = body.get("data")
        if not isinstance(data, dict):
            raise RegistryError("registry response has no 'data' object")
        return data

    # ── queries ─────────────────────────────────────────────────────

    def store_presences(self, service: str) -> list[StorePresence]:
        """Published records matching *service*."""
        data = self._graphql(_PRESENCES_QUERY, {"service": service})
        try:
            records = [
                StorePresence(
                    service=str(p["metadata"]["service"]),
                    version=str(p["metadata"]["version"]),
                )
                for p in data["presences"] or []
            ]
        except (KeyError, TypeError) as exc:
            raise RegistryError(f"malformed presences payload: {exc!r}") from exc
        _logger.debug("registry: %d record(s) for %r", len(records), service)
        return records

    def find_store_presence(self, service: str) -> StorePresence | None:
        for record in self.store_presences(service):
            if record.service == service:
                return record
        return None

    def languages(self, project: str = "presence") -> list[str]:
        """Language tags the store has translation files for."""
        data = self._graphql(_LANGUAGES_QUERY, {"project": project})
        try:
            langs = [str(entry["lang"]) for entry in data["langFiles"] or []]
        except (KeyError, TypeError) as exc:
            raise RegistryError(f"malformed langFiles payload: {exc!r}") from exc
        _logger.debug("registry: %d supported language(s)", len(langs))
        return langs
