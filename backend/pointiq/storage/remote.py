"""Remote copy of the point log, stored in a Supabase (PostgREST) table.

Each row carries the point record, the id of the match it was logged in,
and the objective facts derived from its outcome (who won the rally,
whether contact was made, net/edge luck).
Every failure is raised as :class:`RemoteStoreError`; callers decide how
much of it to swallow.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import httpx
from pydantic import ValidationError

from ..exceptions import RemoteStoreError
from ..schemas import PointRecord
from ..scoring.outcomes import point_facts
from ..time_utils import utc_now

logger = logging.getLogger(__name__)


def record_to_row(record: PointRecord) -> Dict[str, Any]:
    point_winner, contact_made, luck_factor = point_facts(record.outcome)
    return {
        "id": record.id,
        "timestamp": record.timestamp.isoformat(),
        "outcome": record.outcome.value,
        "stroke_tokens": list(record.stroke_tokens),
        "serve_type": record.serve_type,
        "receive_type": record.receive_type,
        "rally_types": list(record.rally_types),
        "game_number": record.game_number,
        "match_id": record.match_id,
        "point_winner": point_winner,
        "contact_made": contact_made,
        "luck_factor": luck_factor,
        "created_at": utc_now().isoformat(),
    }


def row_to_record(row: Dict[str, Any]) -> PointRecord:
    """Build a record from a row; raises ``ValidationError`` on bad rows."""

    return PointRecord.model_validate(
        {
            "id": row.get("id"),
            "timestamp": row.get("timestamp"),
            "outcome": row.get("outcome"),
            "stroke_tokens": row.get("stroke_tokens"),
            "serve_type": row.get("serve_type"),
            "receive_type": row.get("receive_type"),
            "rally_types": row.get("rally_types"),
            "game_number": row.get("game_number"),
            "match_id": row.get("match_id"),
        }
    )


class SupabasePointClient:
    """Minimal async client for the ``points`` table.

    ``timeout`` defaults to ``None``: a hung request simply never returns,
    leaving the local log as the fallback.
    """

    def __init__(
        self,
        url: str,
        key: str,
        *,
        table: str = "points",
        timeout: Optional[float] = None,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.table = table
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            base_url=url.rstrip("/"),
            timeout=httpx.Timeout(timeout),
        )
        self._headers = {
            "apikey": key,
            "Authorization": f"Bearer {key}",
            "Content-Type": "application/json",
        }

    @property
    def _endpoint(self) -> str:
        return f"/rest/v1/{self.table}"

    async def _request(
        self,
        operation: str,
        method: str,
        *,
        params: Optional[Dict[str, str]] = None,
        json: Any = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> httpx.Response:
        try:
            response = await self._client.request(
                method,
                self._endpoint,
                params=params,
                json=json,
                headers={**self._headers, **(headers or {})},
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise RemoteStoreError(
                operation,
                f"HTTP {exc.response.status_code}: {exc.response.text[:200]}",
            ) from exc
        except httpx.HTTPError as exc:
            raise RemoteStoreError(operation, str(exc) or type(exc).__name__) from exc
        return response

    async def insert(self, record: PointRecord) -> None:
        await self._request(
            "insert",
            "POST",
            json=record_to_row(record),
            headers={"Prefer": "return=minimal,resolution=ignore-duplicates"},
        )

    async def select_all(self, match_id: Optional[str] = None) -> List[PointRecord]:
        params = {"select": "*", "order": "timestamp.desc"}
        if match_id is not None:
            params["match_id"] = f"eq.{match_id}"
        response = await self._request("select_all", "GET", params=params)
        try:
            rows = response.json()
        except ValueError as exc:
            raise RemoteStoreError("select_all", "response is not JSON") from exc
        if not isinstance(rows, list):
            raise RemoteStoreError("select_all", "response is not a JSON array")

        records: List[PointRecord] = []
        for row in rows:
            if not isinstance(row, dict):
                logger.warning("Dropping non-object remote point row: %r", row)
                continue
            try:
                records.append(row_to_record(row))
            except ValidationError as exc:
                logger.warning(
                    "Dropping malformed remote point %r: %s",
                    row.get("id"),
                    exc.errors(include_url=False),
                )
        return records

    async def delete_by_id(self, point_id: str) -> None:
        await self._request("delete_by_id", "DELETE", params={"id": f"eq.{point_id}"})

    async def delete_all(self, match_id: Optional[str] = None) -> None:
        if match_id is not None:
            params = {"match_id": f"eq.{match_id}"}
        else:
            # PostgREST refuses unfiltered deletes; "id is not empty" matches every row.
            params = {"id": "neq."}
        await self._request("delete_all", "DELETE", params=params)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()
