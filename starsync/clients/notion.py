"""
Notion Client — Query, create, archive and patch pages in the stars database.

Uses the Notion REST API (v1) through a single httpx.Client.

## Endpoints

- POST  /databases/{id}/query   (cursor-paged via start_cursor / next_cursor)
- POST  /pages                  (create a record)
- PATCH /pages/{id}             ({"archived": true} or {"properties": {...}})

Each record maps onto five database properties, named by PropertyMap:
title (title), url (url), owner (rich_text), release (date), commit (date).
Only plain text is written; formatting is left at Notion's defaults.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Any, Dict, List, Optional

import httpx
from dateutil import parser as date_parser

from ..config.settings import (
    DEFAULT_NOTION_VERSION,
    NOTION_API_BASE,
    PropertyMap,
    SyncSettings,
)
from ..errors import MirrorFetchError, MirrorWriteError
from ..models.repo import MirrorRecord, RecordFields
from .base import MirrorClient

logger = logging.getLogger(__name__)


def _get_headers(token: str, version: str) -> Dict[str, str]:
    """Get Notion API headers."""
    return {
        "Authorization": f"Bearer {token}",
        "Notion-Version": version,
        "Content-Type": "application/json",
    }


# ─── Property decoding ──────────────────────────────────────

def _plain_text(spans: Optional[List[Dict[str, Any]]]) -> str:
    return "".join(
        span.get("plain_text") or (span.get("text") or {}).get("content", "")
        for span in spans or []
    )


def _read_title(prop: Optional[Dict[str, Any]]) -> Optional[str]:
    if not prop:
        return None
    text = _plain_text(prop.get("title"))
    return text or None


def _read_text(prop: Optional[Dict[str, Any]]) -> Optional[str]:
    if not prop:
        return None
    return _plain_text(prop.get("rich_text")) or None


def _read_date(prop: Optional[Dict[str, Any]]) -> Optional[date]:
    """Read the start of a date property. Date-times keep only their day."""
    if not prop or not prop.get("date"):
        return None
    start = prop["date"].get("start")
    if not start:
        return None
    try:
        return date_parser.isoparse(start).date()
    except ValueError:
        logger.warning(f"Ignoring unreadable date property value {start!r}")
        return None


def record_from_page(page: Dict[str, Any], props: PropertyMap) -> Optional[MirrorRecord]:
    """Build a MirrorRecord from a Notion page. None if the page has no title."""
    properties = page.get("properties") or {}
    title = _read_title(properties.get(props.title))
    if title is None:
        return None
    url_prop = properties.get(props.url) or {}
    return MirrorRecord(
        id=page["id"],
        title=title,
        owner=_read_text(properties.get(props.owner)),
        url=url_prop.get("url"),
        stored_release_date=_read_date(properties.get(props.release)),
        stored_commit_date=_read_date(properties.get(props.commit)),
        archived=bool(page.get("archived") or page.get("in_trash")),
    )


# ─── Property encoding ──────────────────────────────────────

def _text_value(content: str) -> List[Dict[str, Any]]:
    return [{"type": "text", "text": {"content": content}}]


def _date_value(value: date) -> Dict[str, Any]:
    return {"date": {"start": value.isoformat()}}


def encode_fields(fields: RecordFields, props: PropertyMap) -> Dict[str, Any]:
    """Turn RecordFields into a Notion properties payload. Unset fields are omitted."""
    body: Dict[str, Any] = {}
    if fields.title is not None:
        body[props.title] = {"title": _text_value(fields.title)}
    if fields.url is not None:
        body[props.url] = {"url": fields.url}
    if fields.owner is not None:
        body[props.owner] = {"rich_text": _text_value(fields.owner)}
    if fields.release is not None:
        body[props.release] = _date_value(fields.release)
    if fields.commit is not None:
        body[props.commit] = _date_value(fields.commit)
    return body


class NotionClient(MirrorClient):
    """Mirror database client backed by the Notion REST API."""

    PAGE_SIZE = 100

    def __init__(
        self,
        token: str,
        database_id: str,
        properties: Optional[PropertyMap] = None,
        version: str = DEFAULT_NOTION_VERSION,
        timeout: float = 30,
        api_base: str = NOTION_API_BASE,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.database_id = database_id
        self.properties = properties or PropertyMap()
        self._client = httpx.Client(
            base_url=api_base,
            headers=_get_headers(token, version),
            timeout=timeout,
            transport=transport,
        )

    @classmethod
    def from_settings(cls, settings: SyncSettings) -> "NotionClient":
        return cls(
            token=settings.notion_token or "",
            database_id=settings.database_id or "",
            properties=settings.properties,
            version=settings.notion_version,
            timeout=settings.timeout_seconds,
            api_base=settings.notion_api_base,
        )

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "NotionClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    # ─── Query ──────────────────────────────────────────────

    def _query_page(self, cursor: Optional[str]) -> Dict[str, Any]:
        body: Dict[str, Any] = {"page_size": self.PAGE_SIZE}
        if cursor:
            body["start_cursor"] = cursor
        try:
            resp = self._client.post(f"/databases/{self.database_id}/query", json=body)
        except httpx.HTTPError as e:
            raise MirrorFetchError(f"Failed to query database: {e}")

        if resp.status_code == 404:
            raise MirrorFetchError(
                f"Database {self.database_id} not found or not shared with the integration",
                status_code=404,
            )
        if resp.status_code != 200:
            raise MirrorFetchError(
                f"Failed to query database: HTTP {resp.status_code} {resp.text[:200]}",
                status_code=resp.status_code,
            )
        return resp.json()

    def query_all_records(self) -> List[MirrorRecord]:
        """Follow next_cursor until the database is exhausted."""
        records: List[MirrorRecord] = []
        cursor: Optional[str] = None

        while True:
            data = self._query_page(cursor)
            for page in data.get("results", []):
                record = record_from_page(page, self.properties)
                if record is None:
                    logger.warning(f"Skipping page {page.get('id')} without a title")
                    continue
                if record.archived:
                    continue
                records.append(record)
            logger.debug(f"Records fetched so far: {len(records)}")

            cursor = data.get("next_cursor")
            if not data.get("has_more") or not cursor:
                break

        logger.info(f"Fetched {len(records)} mirror records")
        return records

    # ─── Mutations ──────────────────────────────────────────

    def _write(self, method: str, path: str, body: Dict[str, Any],
               operation: str, record_id: Optional[str]) -> Dict[str, Any]:
        try:
            resp = self._client.request(method, path, json=body)
        except httpx.HTTPError as e:
            raise MirrorWriteError(str(e), operation=operation, record_id=record_id)
        if resp.status_code != 200:
            raise MirrorWriteError(
                resp.text[:200],
                operation=operation,
                record_id=record_id,
                status_code=resp.status_code,
            )
        try:
            return resp.json()
        except ValueError as e:
            raise MirrorWriteError(f"Unreadable response: {e}", operation=operation, record_id=record_id)

    def create_record(self, fields: RecordFields) -> MirrorRecord:
        body = {
            "parent": {"database_id": self.database_id},
            "properties": encode_fields(fields, self.properties),
        }
        page = self._write("POST", "/pages", body, "create", None)
        record = record_from_page(page, self.properties)
        if record is None:
            # Notion echoes the properties back; fall back to what was sent
            record = MirrorRecord(
                id=page["id"],
                title=fields.title or "",
                owner=fields.owner,
                url=fields.url,
                stored_release_date=fields.release,
                stored_commit_date=fields.commit,
            )
        return record

    def archive_record(self, record_id: str) -> None:
        self._write("PATCH", f"/pages/{record_id}", {"archived": True}, "archive", record_id)

    def patch_record(self, record_id: str, fields: RecordFields) -> None:
        properties = encode_fields(fields, self.properties)
        if not properties:
            raise ValueError("patch_record needs at least one field")
        self._write("PATCH", f"/pages/{record_id}", {"properties": properties}, "patch", record_id)
