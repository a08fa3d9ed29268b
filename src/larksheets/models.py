"""Data models for Lark spreadsheet and contact operations."""

import json
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic.alias_generators import to_camel

MAJOR_DIMENSION_ROWS = "ROWS"
MAJOR_DIMENSION_COLUMNS = "COLUMNS"

INHERIT_STYLE_BEFORE = "BEFORE"
INHERIT_STYLE_AFTER = "AFTER"

MERGE_ALL = "MERGE_ALL"
MERGE_ROWS = "MERGE_ROWS"
MERGE_COLUMNS = "MERGE_COLUMNS"

LOCK = "LOCK"
UNLOCK = "UNLOCK"


class CamelModel(BaseModel):
    """Base for payloads the sheets v2 API spells in camelCase."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class SnakeModel(BaseModel):
    """Base for payloads the v3 APIs spell in snake_case."""

    model_config = ConfigDict(populate_by_name=True)


class Envelope(BaseModel):
    """The {code, msg, data} wrapper around every API response."""

    code: int = 0
    msg: str = ""
    data: Any = None

    @field_validator("msg", mode="before")
    @classmethod
    def _msg_as_text(cls, value: Any) -> str:
        if value is None:
            return ""
        if isinstance(value, str):
            return value
        return json.dumps(value, ensure_ascii=False)

    @property
    def ok(self) -> bool:
        return self.code == 0

    @classmethod
    def from_body(cls, body: bytes) -> "Envelope":
        """Decode a response body. Empty or non-JSON bodies decode as an empty envelope."""
        if not body:
            return cls()
        try:
            raw = json.loads(body)
        except ValueError:
            return cls()
        if not isinstance(raw, dict):
            return cls()
        try:
            return cls.model_validate(raw)
        except ValidationError:
            pass
        # Keep whichever of code and msg still decode
        code = raw.get("code")
        try:
            code = int(code) if code is not None else 0
        except (TypeError, ValueError):
            code = 0
        return cls(code=code, msg=raw.get("msg"))


class TokenResponse(BaseModel):
    """Body of the tenant_access_token endpoint. Its fields sit beside code and msg."""

    code: int = 0
    msg: str = ""
    tenant_access_token: str = ""
    expire: int = 0  # seconds


# Spreadsheet metadata


class SpreadsheetProperties(CamelModel):
    """Spreadsheet level properties."""

    title: str = ""
    owner_user_id: Optional[int] = None  # only returned when user_id_type is set
    sheet_count: int = 0
    revision: int = 0


class MergeRange(CamelModel):
    """A merged cell range. Indexes start at 0."""

    start_row_index: int = 0
    start_column_index: int = 0
    row_count: int = 0
    column_count: int = 0


class ProtectedDimension(CamelModel):
    """Protected rows or columns. Indexes start at 1."""

    sheet_id: str = ""
    major_dimension: str = MAJOR_DIMENSION_ROWS
    start_index: int = 0
    end_index: int = 0


class ProtectedRange(CamelModel):
    """A protected range. `dimension` is empty when the whole sheet is protected."""

    protect_id: str = ""
    sheet_id: str = ""
    lock_info: str = ""
    dimension: Optional[ProtectedDimension] = None


class BlockInfo(CamelModel):
    """Present when a sheet is an embedded block rather than a grid."""

    block_token: str = ""
    block_type: str = ""


class SheetMeta(CamelModel):
    """Metadata of one worksheet."""

    sheet_id: str
    title: str = ""
    index: int = 0
    row_count: int = 0
    column_count: int = 0
    frozen_col_count: int = 0
    frozen_row_count: int = 0
    merges: list[MergeRange] = Field(default_factory=list)
    protected_range: list[ProtectedRange] = Field(default_factory=list)
    block_info: Optional[BlockInfo] = None

    @property
    def is_grid(self) -> bool:
        return self.block_info is None


class SpreadsheetMeta(CamelModel):
    """Metadata of a spreadsheet as returned by the metainfo endpoint."""

    spreadsheet_token: str = ""
    properties: Optional[SpreadsheetProperties] = None
    sheets: list[SheetMeta] = Field(default_factory=list)

    def get_sheet(self, title: str) -> Optional[SheetMeta]:
        """Find a worksheet by title."""
        for sheet in self.sheets:
            if sheet.title == title:
                return sheet
        return None


class Spreadsheet(SnakeModel):
    """A spreadsheet as returned by the v3 create endpoint."""

    spreadsheet_token: str = ""
    title: str = ""
    folder_token: str = ""
    url: str = ""


# Worksheet operations


class SheetProtect(CamelModel):
    """Lock or unlock a worksheet."""

    lock: str = LOCK
    lock_info: Optional[str] = None
    # Extra editors besides the owner, used when user_id_type is set
    user_ids: Optional[list[str]] = Field(default=None, alias="userIDs")


class SheetProperties(CamelModel):
    """Worksheet properties for add and update requests."""

    sheet_id: Optional[str] = None
    title: Optional[str] = None
    index: Optional[int] = None
    hidden: Optional[bool] = None
    frozen_col_count: Optional[int] = None  # 0 removes frozen columns
    frozen_row_count: Optional[int] = None  # 0 removes frozen rows
    protect: Optional[SheetProtect] = None


class AddSheet(CamelModel):
    properties: SheetProperties


class SheetSource(CamelModel):
    sheet_id: str


class SheetDestination(CamelModel):
    title: Optional[str] = None


class CopySheet(CamelModel):
    """Copy a worksheet. Without a destination title the copy is named by the server."""

    source: SheetSource
    destination: Optional[SheetDestination] = None


class DeleteSheet(CamelModel):
    sheet_id: str


class UpdateSheet(CamelModel):
    properties: SheetProperties


class SheetRequest(CamelModel):
    """One entry of a sheets_batch_update call. Set exactly one field."""

    add_sheet: Optional[AddSheet] = None
    copy_sheet: Optional[CopySheet] = None
    delete_sheet: Optional[DeleteSheet] = None
    update_sheet: Optional[UpdateSheet] = None


# Rows and columns


class DimensionAdd(CamelModel):
    """Append rows or columns at the end of a sheet. 0 < length < 5000."""

    sheet_id: str
    major_dimension: str = MAJOR_DIMENSION_ROWS
    length: int


class DimensionRange(CamelModel):
    """A range of rows or columns.

    For inserts, start_index=3 and end_index=7 inserts four rows starting at
    the fourth row.
    """

    sheet_id: str
    major_dimension: str = MAJOR_DIMENSION_ROWS
    start_index: int
    end_index: int


class DimensionProperties(CamelModel):
    """Visibility and size of rows or columns."""

    visible: Optional[bool] = None
    fixed_size: Optional[int] = None


class MoveDimensionSource(SnakeModel):
    """Rows or columns to move with the v3 move_dimension endpoint."""

    major_dimension: str = MAJOR_DIMENSION_ROWS
    start_index: int
    end_index: int


# Cells


class ValueRange(CamelModel):
    """Values to write into a range such as `sheetId!A1:B2`."""

    range: str
    values: list[list[Any]] = Field(default_factory=list)


class Font(CamelModel):
    bold: Optional[bool] = None
    italic: Optional[bool] = None
    font_size: Optional[str] = None  # e.g. "10pt/1.5"
    clean: Optional[bool] = None


class CellStyle(CamelModel):
    """Cell style attributes.

    text_decoration: 0 none, 1 underline, 2 strikethrough, 3 both.
    h_align: 0 left, 1 center, 2 right. v_align: 0 top, 1 middle, 2 bottom.
    border_type: FULL_BORDER, OUTER_BORDER, INNER_BORDER, NO_BORDER,
    LEFT_BORDER, RIGHT_BORDER, TOP_BORDER or BOTTOM_BORDER.
    """

    font: Optional[Font] = None
    text_decoration: Optional[int] = None
    formatter: Optional[str] = None
    h_align: Optional[int] = None
    v_align: Optional[int] = None
    fore_color: Optional[str] = None
    back_color: Optional[str] = None
    border_type: Optional[str] = None
    border_color: Optional[str] = None
    clean: Optional[bool] = None


class StyleRange(CamelModel):
    """A style applied to one or more ranges."""

    ranges: list[str]
    style: CellStyle


# Contact


class UserIdEntry(SnakeModel):
    """One result of a batch_get_id lookup. user_id is absent when nothing matched."""

    user_id: Optional[str] = None
    email: Optional[str] = None
    mobile: Optional[str] = None


def to_payload(value: Any) -> Any:
    """Convert models (also nested in lists and dicts) into JSON-ready values."""
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json", by_alias=True, exclude_none=True)
    if isinstance(value, dict):
        return {k: to_payload(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_payload(v) for v in value]
    return value
