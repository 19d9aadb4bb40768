from __future__ import annotations

import csv
import io
from datetime import date, datetime
from pathlib import Path
from typing import Any

from app.schemas.entities import CampaignRow, Dataset, EventRow, EventTargetRow, StoreRow
from app.services.parsing import parse_count

EVENT_COLUMNS = (
    "event_id",
    "event_name",
    "description",
    "start_date",
    "end_date",
    "status",
    "target_promos",
    "target_stores",
)
CAMPAIGN_COLUMNS = ("campaign_id", "event_id", "store_id", "created_at")
STORE_COLUMNS = (
    "store_id",
    "brand",
    "region",
    "city",
    "commercial",
    "segment",
    "ops_zone",
    "gmv_last_30d",
)
STORE_OPTIONAL_COLUMNS = ("gmv_last_7d",)
TARGET_COLUMNS = ("event_id", "store_id")


class CsvFormatError(ValueError):
    def __init__(self, table: str, message: str) -> None:
        super().__init__(f"{table}: {message}")
        self.table = table


def read_table_rows(content: bytes, filename: str = "table.csv") -> tuple[list[str], list[list[Any]]]:
    if Path(filename).suffix.lower() == ".xlsx":
        return _read_xlsx_rows(content)
    return _read_csv_rows(content)


def _read_csv_rows_with_encoding(
    content: bytes,
    encoding: str,
    errors: str = "strict",
) -> tuple[list[str], list[list[Any]]]:
    text = content.decode(encoding, errors=errors)
    handle = io.StringIO(text, newline="")
    sample = handle.read(4096)
    handle.seek(0)
    try:
        dialect = csv.Sniffer().sniff(sample, delimiters=",;\t")
    except csv.Error:
        dialect = csv.excel
    reader = csv.reader(handle, dialect)
    headers = next(reader, [])
    rows = [list(row) for row in reader]
    return headers, rows


def _read_csv_rows(content: bytes) -> tuple[list[str], list[list[Any]]]:
    try:
        return _read_csv_rows_with_encoding(content, "utf-8-sig")
    except UnicodeDecodeError:
        return _read_csv_rows_with_encoding(content, "cp1251", errors="replace")


def _read_xlsx_rows(content: bytes) -> tuple[list[str], list[list[Any]]]:
    from openpyxl import load_workbook

    workbook = load_workbook(io.BytesIO(content), read_only=True, data_only=True)
    try:
        sheet = workbook.active
        rows_iter = sheet.iter_rows(values_only=True)
        headers_row = next(rows_iter, None)
        headers = [str(value) if value is not None else "" for value in (headers_row or [])]
        rows: list[list[Any]] = []
        for row in rows_iter:
            rows.append([_serialize_cell(value) for value in row])
    finally:
        workbook.close()
    return headers, rows


def _serialize_cell(value: object) -> object:
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    return value if value is not None else ""


def _cell_text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def read_records(
    table: str,
    content: bytes,
    required: tuple[str, ...],
    optional: tuple[str, ...] = (),
    filename: str = "table.csv",
) -> list[dict[str, str | None]]:
    headers, rows = read_table_rows(content, filename)
    header_index = {
        header.strip().lower(): index
        for index, header in enumerate(headers)
        if header and header.strip()
    }
    if not header_index:
        raise CsvFormatError(table, "file is empty or has no header row")
    for column in required:
        if column not in header_index:
            raise CsvFormatError(table, f"missing required column '{column}'")

    records: list[dict[str, str | None]] = []
    for row in rows:
        cells = [_cell_text(value) for value in row]
        if not any(cells):
            continue
        record: dict[str, str | None] = {}
        for column in required + optional:
            index = header_index.get(column)
            if index is None:
                record[column] = None
            elif index >= len(cells):
                record[column] = ""
            else:
                record[column] = cells[index]
        records.append(record)
    return records


def parse_events(content: bytes, filename: str = "events.csv") -> list[EventRow]:
    return [
        EventRow(
            event_id=record["event_id"] or "",
            event_name=record["event_name"] or "",
            description=record["description"] or "",
            start_date=record["start_date"] or "",
            end_date=record["end_date"] or "",
            status=record["status"] or "",
            target_promos=parse_count(record["target_promos"]),
            target_stores=parse_count(record["target_stores"]),
        )
        for record in read_records("events", content, EVENT_COLUMNS, filename=filename)
    ]


def parse_campaigns(content: bytes, filename: str = "campaigns.csv") -> list[CampaignRow]:
    return [
        CampaignRow(
            campaign_id=record["campaign_id"] or "",
            event_id=record["event_id"] or "",
            store_id=record["store_id"] or "",
            created_at=record["created_at"] or "",
        )
        for record in read_records("campaigns", content, CAMPAIGN_COLUMNS, filename=filename)
    ]


def parse_stores(content: bytes, filename: str = "stores.csv") -> list[StoreRow]:
    stores: list[StoreRow] = []
    for record in read_records(
        "stores", content, STORE_COLUMNS, STORE_OPTIONAL_COLUMNS, filename=filename
    ):
        # An empty 7-day cell means "not reported", same as a missing column.
        gmv_7d = record["gmv_last_7d"]
        stores.append(
            StoreRow(
                store_id=record["store_id"] or "",
                brand=record["brand"] or "",
                region=record["region"] or "",
                city=record["city"] or "",
                commercial=record["commercial"] or "",
                segment=record["segment"] or "",
                ops_zone=record["ops_zone"] or "",
                gmv_last_30d=record["gmv_last_30d"] or "",
                gmv_last_7d=gmv_7d if gmv_7d else None,
            )
        )
    return stores


def parse_event_targets(content: bytes, filename: str = "event_targets.csv") -> list[EventTargetRow]:
    return [
        EventTargetRow(event_id=record["event_id"] or "", store_id=record["store_id"] or "")
        for record in read_records("event_targets", content, TARGET_COLUMNS, filename=filename)
    ]


def load_dataset(
    events: bytes,
    campaigns: bytes,
    stores: bytes,
    event_targets: bytes | None = None,
) -> Dataset:
    return Dataset(
        events=parse_events(events),
        campaigns=parse_campaigns(campaigns),
        stores=parse_stores(stores),
        event_targets=parse_event_targets(event_targets) if event_targets else None,
    )
