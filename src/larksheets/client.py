"""Lark open platform client for spreadsheets and the contact directory."""

import logging
import threading
from typing import Any, Iterable, Mapping, Optional

import httpx

from .auth import DEFAULT_REFRESH_INTERVAL, TokenManager
from .config import AppCredentials, Settings
from .errors import HTTPStatusError, RemoteServiceError, UserNotFoundError
from .models import (
    MERGE_ALL,
    AddSheet,
    CopySheet,
    DeleteSheet,
    DimensionAdd,
    DimensionProperties,
    DimensionRange,
    Envelope,
    MoveDimensionSource,
    SheetDestination,
    SheetProperties,
    SheetRequest,
    SheetSource,
    Spreadsheet,
    SpreadsheetMeta,
    StyleRange,
    UpdateSheet,
    UserIdEntry,
    ValueRange,
)
from .transport import LarkTransport

logger = logging.getLogger(__name__)

SHEETS_V2 = "/open-apis/sheets/v2/spreadsheets"
SHEETS_V3 = "/open-apis/sheets/v3/spreadsheets"
USERS_BATCH_GET_ID = "/open-apis/contact/v3/users/batch_get_id"


def check_response(status: int, body: bytes) -> Any:
    """Classify a response and return the envelope's data.

    Raises:
        HTTPStatusError: If the status is not 200.
        RemoteServiceError: If the envelope code is not 0.
    """
    if status != 200:
        logger.warning(f"Lark API returned HTTP {status}")
        raise HTTPStatusError(status, body)
    envelope = Envelope.from_body(body)
    if not envelope.ok:
        logger.warning(f"Lark API error {envelope.code}: {envelope.msg}")
        raise RemoteServiceError(envelope.code, envelope.msg)
    return envelope.data


def _require(value: str, name: str) -> str:
    if not value:
        raise ValueError(f"{name} is empty")
    return value


class LarkClient:
    """Client for the Lark sheets and contact APIs.

    Each method maps to one remote endpoint. Construction blocks until a tenant
    access token has been issued and starts the background token refresher.
    One instance can be shared across threads.
    """

    def __init__(
        self,
        credentials: Optional[AppCredentials],
        transport: Optional[LarkTransport] = None,
        refresh_interval: float = DEFAULT_REFRESH_INTERVAL,
        auto_refresh: bool = True,
    ):
        if credentials is None:
            raise ValueError("Lark app credentials are required")
        self.transport = transport or LarkTransport()
        try:
            self.tokens = TokenManager(
                credentials,
                self.transport,
                refresh_interval=refresh_interval,
                auto_start=auto_refresh,
            )
        except Exception:
            if transport is None:
                self.transport.close()
            raise
        self.transport.token_provider = self.tokens.get_token
        self._user_ids: dict[str, str] = {}
        self._user_ids_lock = threading.Lock()

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        http_transport: Optional[httpx.BaseTransport] = None,
        auto_refresh: bool = True,
    ) -> "LarkClient":
        """Build a client from settings."""
        credentials = settings.credentials()
        transport = LarkTransport.from_settings(settings, http_transport=http_transport)
        try:
            return cls(
                credentials,
                transport=transport,
                refresh_interval=settings.token_refresh_interval_seconds,
                auto_refresh=auto_refresh,
            )
        except Exception:
            transport.close()
            raise

    def _get(self, path: str, params: Optional[Mapping[str, str]] = None) -> Any:
        return check_response(*self.transport.get(path, params))

    def _post(self, path: str, payload: Optional[Mapping[str, Any]] = None) -> Any:
        return check_response(*self.transport.post(path, payload))

    def _put(self, path: str, payload: Optional[Mapping[str, Any]] = None) -> Any:
        return check_response(*self.transport.put(path, payload))

    def _delete(self, path: str, payload: Optional[Mapping[str, Any]] = None) -> Any:
        return check_response(*self.transport.delete(path, payload))

    # Spreadsheets

    def create_spreadsheet(self, folder_token: str, title: str) -> str:
        """Create a spreadsheet and return its token.

        The folder token is the last path segment of a drive folder URL, e.g.
        ``fldcnKM2eYBLu75CuyuN3Mv6iqg`` in
        ``https://example.feishu.cn/drive/folder/fldcnKM2eYBLu75CuyuN3Mv6iqg``.
        """
        data = self._post(SHEETS_V3, {"folder_token": folder_token, "title": title}) or {}
        spreadsheet = Spreadsheet.model_validate(data.get("spreadsheet") or {})
        logger.info(f"Created spreadsheet '{title}' ({spreadsheet.spreadsheet_token})")
        return spreadsheet.spreadsheet_token

    def get_spreadsheet_meta(
        self,
        spreadsheet_token: str,
        ext_fields: str = "",
        user_id_type: str = "",
    ) -> SpreadsheetMeta:
        """Get spreadsheet metadata including every worksheet.

        Args:
            spreadsheet_token: Token of the spreadsheet
            ext_fields: Extra fields to return, e.g. ``protectedRange``
            user_id_type: ``open_id`` or ``union_id``; enables ownerUserId

        Returns:
            SpreadsheetMeta
        """
        params = {}
        if ext_fields:
            params["extFields"] = ext_fields
        if user_id_type:
            params["user_id_type"] = user_id_type
        token = _require(spreadsheet_token, "spreadsheet_token")
        data = self._get(f"{SHEETS_V2}/{token}/metainfo", params)
        return SpreadsheetMeta.model_validate(data or {})

    def update_spreadsheet_title(self, spreadsheet_token: str, title: str) -> None:
        """Rename a spreadsheet. Titles are limited to 100 characters."""
        token = _require(spreadsheet_token, "spreadsheet_token")
        self._put(f"{SHEETS_V2}/{token}/properties", {"properties": {"title": title}})

    # Worksheets

    def update_sheets(self, spreadsheet_token: str, requests: Iterable[SheetRequest]) -> dict:
        """Add, copy, delete or update worksheets in one batch."""
        token = _require(spreadsheet_token, "spreadsheet_token")
        data = self._post(
            f"{SHEETS_V2}/{token}/sheets_batch_update",
            {"requests": list(requests)},
        )
        return data or {}

    def add_sheet(
        self, spreadsheet_token: str, title: str, index: Optional[int] = None
    ) -> dict:
        request = SheetRequest(add_sheet=AddSheet(properties=SheetProperties(title=title, index=index)))
        return self.update_sheets(spreadsheet_token, [request])

    def copy_sheet(
        self, spreadsheet_token: str, sheet_id: str, title: Optional[str] = None
    ) -> dict:
        request = SheetRequest(
            copy_sheet=CopySheet(
                source=SheetSource(sheet_id=sheet_id),
                destination=SheetDestination(title=title) if title else None,
            )
        )
        return self.update_sheets(spreadsheet_token, [request])

    def delete_sheet(self, spreadsheet_token: str, sheet_id: str) -> dict:
        request = SheetRequest(delete_sheet=DeleteSheet(sheet_id=sheet_id))
        return self.update_sheets(spreadsheet_token, [request])

    def update_sheet(self, spreadsheet_token: str, properties: SheetProperties) -> dict:
        request = SheetRequest(update_sheet=UpdateSheet(properties=properties))
        return self.update_sheets(spreadsheet_token, [request])

    # Rows and columns

    def add_dimension(self, spreadsheet_token: str, dimension: DimensionAdd) -> dict:
        """Append rows or columns to the end of a sheet."""
        token = _require(spreadsheet_token, "spreadsheet_token")
        return self._post(f"{SHEETS_V2}/{token}/dimension_range", {"dimension": dimension}) or {}

    def insert_dimension(
        self,
        spreadsheet_token: str,
        dimension: DimensionRange,
        inherit_style: Optional[str] = None,
    ) -> None:
        """Insert empty rows or columns. At most 5000 per call.

        inherit_style is BEFORE or AFTER; without it the new cells get no style.
        """
        token = _require(spreadsheet_token, "spreadsheet_token")
        payload: dict[str, Any] = {"dimension": dimension}
        if inherit_style:
            payload["inheritStyle"] = inherit_style
        self._post(f"{SHEETS_V2}/{token}/insert_dimension_range", payload)

    def update_dimension(
        self,
        spreadsheet_token: str,
        dimension: DimensionRange,
        properties: DimensionProperties,
    ) -> None:
        """Show, hide or resize rows or columns."""
        token = _require(spreadsheet_token, "spreadsheet_token")
        self._put(
            f"{SHEETS_V2}/{token}/dimension_range",
            {"dimension": dimension, "dimensionProperties": properties},
        )

    def move_dimension(
        self,
        spreadsheet_token: str,
        sheet_id: str,
        source: MoveDimensionSource,
        destination_index: int,
    ) -> None:
        token = _require(spreadsheet_token, "spreadsheet_token")
        self._post(
            f"{SHEETS_V3}/{token}/sheets/{_require(sheet_id, 'sheet_id')}/move_dimension",
            {"source": source, "destination_index": destination_index},
        )

    def delete_dimension(self, spreadsheet_token: str, dimension: DimensionRange) -> dict:
        token = _require(spreadsheet_token, "spreadsheet_token")
        return self._delete(f"{SHEETS_V2}/{token}/dimension_range", {"dimension": dimension}) or {}

    # Cells

    def prepend_values(self, spreadsheet_token: str, value_range: ValueRange) -> dict:
        """Insert rows of data above the given range, shifting existing rows down.

        One call writes at most 5000 rows and 100 columns, 50000 characters per cell.
        """
        token = _require(spreadsheet_token, "spreadsheet_token")
        return self._post(f"{SHEETS_V2}/{token}/values_prepend", {"valueRange": value_range}) or {}

    def merge_cells(
        self,
        spreadsheet_token: str,
        sheet_id: str,
        cell_range: str,
        merge_type: str = MERGE_ALL,
    ) -> None:
        """Merge cells in ``cell_range`` (e.g. ``A1:B2``) of a worksheet."""
        token = _require(spreadsheet_token, "spreadsheet_token")
        self._post(
            f"{SHEETS_V2}/{token}/merge_cells",
            {"range": f"{sheet_id}!{cell_range}", "mergeType": merge_type or MERGE_ALL},
        )

    def batch_update_styles(self, spreadsheet_token: str, data: Iterable[StyleRange]) -> dict:
        token = _require(spreadsheet_token, "spreadsheet_token")
        return self._put(f"{SHEETS_V2}/{token}/styles_batch_update", {"data": list(data)}) or {}

    # Contact

    def get_user_ids(self, emails: Iterable[str]) -> dict[str, str]:
        """Resolve emails to user ids, keyed by the emails as given.

        Emails are matched case-insensitively. Emails with no matching user are
        left out.
        """
        emails = [e for e in emails if e]
        if not emails:
            return {}
        entries = self._batch_get_id(emails)
        by_email = {e.email.lower(): e.user_id for e in entries if e.email and e.user_id}
        resolved = {e: by_email[e.lower()] for e in emails if e.lower() in by_email}
        self._remember(resolved)
        return resolved

    def _batch_get_id(self, emails: list[str]) -> list[UserIdEntry]:
        data = self._post(USERS_BATCH_GET_ID, {"emails": emails}) or {}
        return [UserIdEntry.model_validate(e) for e in data.get("user_list") or []]

    def _remember(self, resolved: Mapping[str, str]):
        with self._user_ids_lock:
            for email, user_id in resolved.items():
                self._user_ids[email.lower()] = user_id

    def get_user_id(self, email: str) -> str:
        """Resolve one email to a user id.

        Raises:
            ValueError: If email is empty.
            UserNotFoundError: If no user has that email.
        """
        _require(email, "email")
        with self._user_ids_lock:
            cached = self._user_ids.get(email.lower())
        if cached:
            return cached
        # Only one email was asked for, so the echoed email is not needed to match
        matched = [e.user_id for e in self._batch_get_id([email]) if e.user_id]
        if not matched:
            raise UserNotFoundError(email)
        self._remember({email: matched[0]})
        return matched[0]

    def close(self):
        """Stop the token refresher and release connections."""
        self.tokens.stop()
        self.transport.close()

    def __enter__(self) -> "LarkClient":
        return self

    def __exit__(self, *exc_info):
        self.close()
