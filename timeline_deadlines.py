#!/usr/bin/env python3
"""Program Deadline Timeline Reconciler.

Loads program milestone timelines from a JSON configuration or a two-column
DATE/EVENT spreadsheet, derives missing conference deadlines, and exports the
timeline back into a colored spreadsheet.
"""

from __future__ import annotations

import argparse
import csv
import io
import json
import logging
import math
import re
import sys
from dataclasses import dataclass, field, replace
from datetime import date, datetime, time, timedelta
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple
from zipfile import BadZipFile

from dateutil import parser as date_parser
from openpyxl import Workbook, load_workbook
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from openpyxl.utils.exceptions import InvalidFileException

# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

__all__ = [
    # Errors
    "TimelineError",
    "ValidationError",
    "InvalidDateError",
    # Data classes
    "TimePoint",
    "ConferenceNode",
    "Program",
    "RowWarning",
    "ExportRow",
    "ProgramView",
    # Core functions
    "parse_date",
    "format_long_date",
    "derive_deadline",
    "program_slug",
    "load_config",
    "import_spreadsheet_rows",
    "build_export_rows",
    "build_workbook",
    "color_for",
    "update_time_point_date",
    "assign_display_colors",
    "TimelineStore",
    # Output functions
    "export_to_excel",
    "export_to_bytes",
    "export_to_csv",
    "generate_summary",
    "write_failure_report",
    # Input functions
    "detect_delimiter",
    "rows_from_table",
    "rows_from_lines",
    "read_config_file",
    "read_spreadsheet_file",
    "read_from_clipboard",
    "read_from_stdin",
    # CLI
    "parse_arguments",
    "main",
    # Configuration
    "ColumnConfig",
    "DEFAULT_COLUMNS",
    "COLOR_POOL",
]

# ---------------------------------------------------------------------------
# Logging Configuration
# ---------------------------------------------------------------------------

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------

DEFAULT_CONFIG_FILE = "timeline-config.json"
DEFAULT_EXPORT_FILE = "timeline-export.xlsx"

# Gap between the last time point and a derived deadline
DEFAULT_DDL_GAP_DAYS = 30
IMPORT_DDL_GAP_DAYS = 30

CONFERENCE_EVENT = "Conference"
EVENT_SEPARATOR = " - "

# Number of lines to sample for delimiter detection
DELIMITER_SAMPLE_SIZE = 10

CSV_SUFFIXES = {".csv", ".tsv", ".txt"}

# Dark text colors that stay readable on a white background
COLOR_POOL: Tuple[str, ...] = (
    "DC143C",  # crimson
    "1E90FF",  # dodger blue
    "228B22",  # forest green
    "FF8C00",  # dark orange
    "9370DB",  # medium purple
    "FF1493",  # deep pink
    "00CED1",  # dark turquoise
    "DAA520",  # goldenrod
    "C71585",  # medium violet red
    "32CD32",  # lime green
    "BA55D3",  # medium orchid
    "FF6347",  # tomato
    "4169E1",  # royal blue
    "9ACD32",  # yellow green
    "FF69B4",  # hot pink
    "4682B4",  # steel blue
)
CONFERENCE_COLOR = "000000"

EXPORT_SHEET_NAME = "Timeline"
EXPORT_HEADER = ("DATE", "EVENT")
DATE_COLUMN_WIDTH = 20
EVENT_COLUMN_WIDTH = 50
HEADER_FONT_COLOR = "FFFFFF"
HEADER_FILL_COLOR = "2C3E50"
HEADER_BORDER_COLOR = "000000"
DATA_BORDER_COLOR = "CCCCCC"


@dataclass
class ColumnConfig:
    """Column names expected in an imported spreadsheet."""

    date: str = "DATE"
    event: str = "EVENT"

    @property
    def required(self) -> List[str]:
        """Return list of required column names."""
        return [self.date, self.event]


DEFAULT_COLUMNS = ColumnConfig()

# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------


class TimelineError(Exception):
    """Base class for timeline load and export failures."""


class ValidationError(TimelineError):
    """Input could not be turned into a timeline; the whole operation aborts."""


class InvalidDateError(ValidationError):
    """A value could not be parsed into a calendar date."""


# ---------------------------------------------------------------------------
# Data Classes
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class TimePoint:
    """A single dated milestone within a program."""

    id: str
    name: str
    date: datetime

    def with_date(self, new_date: datetime) -> TimePoint:
        """Return a copy of this time point moved to ``new_date``."""
        return replace(self, date=new_date)


@dataclass(frozen=True)
class ConferenceNode:
    """The terminal deadline milestone of a program, explicit or derived."""

    id: str
    name: str
    date: datetime


@dataclass(frozen=True)
class Program:
    """A named track of milestones culminating in an optional deadline."""

    id: str
    name: str
    time_points: Tuple[TimePoint, ...]
    conference: Optional[ConferenceNode] = None
    ddl: Optional[datetime] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "time_points", tuple(self.time_points))
        if not self.time_points:
            raise ValidationError(f'Program "{self.name}" has no time points')


@dataclass
class RowWarning:
    """A spreadsheet row that was skipped without aborting the import."""

    message: str
    row: Optional[int] = None
    line: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "message": self.message,
            "row": self.row,
            "line": self.line,
        }


@dataclass(frozen=True)
class ExportRow:
    """One exported spreadsheet row and the font color it is drawn in."""

    date: datetime
    event: str
    color: str


@dataclass(frozen=True)
class ProgramView:
    """What the timeline view needs to draw one program."""

    program: Program
    color: str
    is_last: bool


@dataclass
class _ProgramAccumulator:
    events: List[TimePoint] = field(default_factory=list)
    conference: Optional[ConferenceNode] = None


# ---------------------------------------------------------------------------
# Date Utilities
# ---------------------------------------------------------------------------


def _to_local_naive(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value
    return value.astimezone().replace(tzinfo=None)


def parse_date(value: Any) -> datetime:
    """Parse a date-like value into a naive local datetime.

    Accepts ``datetime`` and ``date`` objects, numeric timestamps in
    milliseconds since the Unix epoch, and free-form date strings such as
    ``2025-01-01`` or ``January 5, 2025``. Timezone-aware values are converted
    to local wall time.

    Args:
        value: The value to parse.

    Returns:
        The parsed datetime.

    Raises:
        InvalidDateError: If the value cannot be parsed into a valid date.
    """
    if isinstance(value, datetime):
        try:
            return _to_local_naive(value)
        except (OverflowError, OSError) as exc:
            raise InvalidDateError(f"Invalid date: {value!r}") from exc
    if isinstance(value, date):
        return datetime.combine(value, time())
    if isinstance(value, bool):
        raise InvalidDateError(f"Invalid date: {value!r}")
    if isinstance(value, (int, float)):
        try:
            if math.isfinite(value):
                return datetime.fromtimestamp(value / 1000)
        except (OverflowError, OSError, ValueError) as exc:
            raise InvalidDateError(f"Invalid date: {value!r}") from exc
        raise InvalidDateError(f"Invalid date: {value!r}")
    if isinstance(value, str):
        text = value.strip()
        if not text:
            raise InvalidDateError("Invalid date: empty string")
        try:
            return _to_local_naive(date_parser.parse(text))
        except (ValueError, OverflowError) as exc:
            raise InvalidDateError(f"Invalid date: {value!r}") from exc
    raise InvalidDateError(f"Invalid date: {value!r}")


def format_long_date(value: datetime) -> str:
    """Format date as ``Month D, YYYY`` (e.g. ``January 5, 2025``)."""
    return f"{value.strftime('%B')} {value.day}, {value.year}"


def derive_deadline(
    events: Sequence[Any],
    explicit: Optional[datetime] = None,
    gap_days: int = DEFAULT_DDL_GAP_DAYS,
) -> Optional[datetime]:
    """Work out the effective deadline of a program.

    An explicit deadline always wins. Otherwise the deadline falls
    ``gap_days`` calendar days after the *last* event in the order given,
    which is not necessarily the latest date.

    Args:
        events: Ordered events, each with a ``date`` attribute or key.
        explicit: Explicit conference date, if one was declared.
        gap_days: Days between the last event and the derived deadline.

    Returns:
        The deadline, or None when there is nothing to derive it from.

    Raises:
        ValidationError: If the derived deadline falls outside the
            representable date range.
    """
    if explicit is not None:
        return explicit
    if not events:
        return None

    last = events[-1]
    last_date = last["date"] if isinstance(last, Mapping) else last.date
    try:
        return last_date + timedelta(days=gap_days)
    except OverflowError as exc:
        raise ValidationError(
            f"Deadline {gap_days} days after {last_date} is out of range"
        ) from exc


_WHITESPACE_RE = re.compile(r"\s+")


def program_slug(name: str) -> str:
    """Lower-case ``name`` and replace each run of whitespace with a hyphen."""
    return _WHITESPACE_RE.sub("-", name.lower())


def _is_missing(value: Any) -> bool:
    return value is None or value == ""


def _is_non_empty_string(value: Any) -> bool:
    return isinstance(value, str) and bool(value)


# ---------------------------------------------------------------------------
# Config Loading
# ---------------------------------------------------------------------------


def _read_gap_days(doc: Dict[str, Any]) -> int:
    gap_days = doc.get("ddlGapDays")
    if gap_days is None:
        return DEFAULT_DDL_GAP_DAYS
    if isinstance(gap_days, float) and gap_days.is_integer():
        gap_days = int(gap_days)
    if isinstance(gap_days, bool) or not isinstance(gap_days, int):
        raise ValidationError(
            f"Invalid config file format: 'ddlGapDays' must be an integer, got {gap_days!r}"
        )
    if abs(gap_days) > timedelta.max.days:
        raise ValidationError(
            f"Invalid config file format: 'ddlGapDays' is out of range, got {gap_days}"
        )
    return gap_days


def _load_time_point(raw: Any, program_name: str, position: int) -> TimePoint:
    if not isinstance(raw, dict):
        raise ValidationError(
            f'Program "{program_name}" TimePoint {position} is not a valid object'
        )

    point_id = raw.get("id")
    if not _is_non_empty_string(point_id):
        raise ValidationError(
            f'Program "{program_name}" TimePoint {position} is missing a valid id field'
        )
    name = raw.get("name")
    if not _is_non_empty_string(name):
        raise ValidationError(
            f'Program "{program_name}" TimePoint "{point_id}" is missing a valid name field'
        )

    raw_date = raw.get("date")
    if _is_missing(raw_date):
        raise ValidationError(
            f'Program "{program_name}" TimePoint "{name}" is missing the date field'
        )
    try:
        when = parse_date(raw_date)
    except InvalidDateError as exc:
        raise InvalidDateError(
            f'Program "{program_name}" TimePoint "{name}" has invalid date format: "{raw_date}"'
        ) from exc

    return TimePoint(id=point_id, name=name, date=when)


def _load_conference(
    raw: Any, program_id: str, program_name: str
) -> Optional[ConferenceNode]:
    if raw is None:
        return None
    if not isinstance(raw, dict):
        raise ValidationError(f'Program "{program_name}" conference is not a valid object')

    name = raw.get("name")
    if not _is_non_empty_string(name):
        raise ValidationError(
            f'Program "{program_name}" conference is missing a valid name field'
        )
    raw_date = raw.get("date")
    if _is_missing(raw_date):
        raise ValidationError(f'Program "{program_name}" conference is missing the date field')
    try:
        when = parse_date(raw_date)
    except InvalidDateError as exc:
        raise InvalidDateError(
            f'Program "{program_name}" conference has invalid date format: "{raw_date}"'
        ) from exc

    return ConferenceNode(id=f"{program_id}-conference", name=name, date=when)


def _load_program(raw: Any, position: int, gap_days: int) -> Program:
    if not isinstance(raw, dict):
        raise ValidationError(f"Program {position} is not a valid object")

    program_id = raw.get("id")
    if not _is_non_empty_string(program_id):
        raise ValidationError(f"Program {position} is missing a valid id field")
    name = raw.get("name")
    if not _is_non_empty_string(name):
        raise ValidationError(f'Program "{program_id}" is missing a valid name field')

    raw_points = raw.get("timePoints")
    if not isinstance(raw_points, list):
        raise ValidationError(f'Program "{name}" is missing the timePoints array')
    if not raw_points:
        raise ValidationError(f'Program "{name}" has an empty timePoints array')

    time_points: List[TimePoint] = []
    seen_ids = set()
    for tp_position, raw_point in enumerate(raw_points, start=1):
        point = _load_time_point(raw_point, name, tp_position)
        if point.id in seen_ids:
            raise ValidationError(
                f'Program "{name}" has a duplicate TimePoint id "{point.id}"'
            )
        seen_ids.add(point.id)
        time_points.append(point)

    conference = _load_conference(raw.get("conference"), program_id, name)
    if conference is not None:
        ddl = derive_deadline(time_points, conference.date)
    else:
        # Declared order, not chronological order, decides the last point
        try:
            ddl = derive_deadline(time_points, None, gap_days)
        except ValidationError as exc:
            raise ValidationError(f'Program "{name}" deadline is out of range') from exc
        if ddl is not None:
            conference = ConferenceNode(
                id=f"{program_id}-conference", name=CONFERENCE_EVENT, date=ddl
            )

    return Program(
        id=program_id,
        name=name,
        time_points=tuple(time_points),
        conference=conference,
        ddl=ddl,
    )


def load_config(doc: Any) -> List[Program]:
    """Validate a JSON configuration document and build the timeline from it.

    Validation stops at the first problem found; no partial timeline is
    returned. Programs and time points keep document order.

    Args:
        doc: The decoded JSON document.

    Returns:
        The loaded programs.

    Raises:
        ValidationError: If the document is malformed.
    """
    if not isinstance(doc, dict):
        raise ValidationError("Invalid config file format: not a valid JSON object")

    raw_programs = doc.get("programs")
    if not isinstance(raw_programs, list):
        raise ValidationError("Invalid config file format: missing 'programs' array")
    if not raw_programs:
        raise ValidationError("Invalid config file format: 'programs' array is empty")

    gap_days = _read_gap_days(doc)

    programs: List[Program] = []
    seen_ids = set()
    for position, raw in enumerate(raw_programs, start=1):
        program = _load_program(raw, position, gap_days)
        if program.id in seen_ids:
            raise ValidationError(f'Duplicate program id "{program.id}"')
        seen_ids.add(program.id)
        programs.append(program)

    logger.debug(f"Loaded {len(programs)} programs from config (ddlGapDays={gap_days})")
    return programs


# ---------------------------------------------------------------------------
# Spreadsheet Import
# ---------------------------------------------------------------------------


def _describe_row(row: Mapping[str, Any]) -> str:
    return "\t".join("" if value is None else str(value) for value in row.values())


def _finish_imported_program(name: str, acc: _ProgramAccumulator) -> Program:
    program_id = program_slug(name)
    events = sorted(acc.events, key=lambda point: point.date)

    conference = acc.conference
    try:
        ddl = derive_deadline(
            events,
            conference.date if conference is not None else None,
            IMPORT_DDL_GAP_DAYS,
        )
    except ValidationError as exc:
        raise ValidationError(f'Program "{name}" deadline is out of range') from exc
    if conference is None and ddl is not None:
        conference = ConferenceNode(
            id=f"{program_id}-conference", name=CONFERENCE_EVENT, date=ddl
        )

    return Program(
        id=program_id,
        name=name,
        time_points=tuple(events),
        conference=conference,
        ddl=ddl,
    )


def import_spreadsheet_rows(
    rows: Iterable[Mapping[str, Any]],
    columns: Optional[ColumnConfig] = None,
) -> Tuple[List[Program], List[RowWarning]]:
    """Rebuild programs from flat DATE/EVENT spreadsheet rows.

    Each EVENT is either ``"<Program> - <Event>"`` or the literal
    ``Conference``. A Conference row belongs to whichever program the most
    recent regular row named. Programs come out in first-seen order with
    their time points sorted by date.

    Args:
        rows: Row mappings keyed by column name, in file order.
        columns: Column configuration. Defaults to DEFAULT_COLUMNS.

    Returns:
        A tuple of (programs, warnings) where warnings lists rows that were
        skipped because DATE or EVENT was missing.

    Raises:
        ValidationError: On an empty sheet, missing columns, an unparseable
            date, a malformed EVENT, or a Conference row with no program.
    """
    if columns is None:
        columns = DEFAULT_COLUMNS

    rows = list(rows)
    if not rows:
        raise ValidationError("Spreadsheet is empty or has invalid format")

    first = rows[0]
    if _is_missing(first.get(columns.date)) and _is_missing(first.get(columns.event)):
        raise ValidationError(
            f"Spreadsheet must contain {columns.date} and {columns.event} columns"
        )

    accumulators: Dict[str, _ProgramAccumulator] = {}
    slug_owners: Dict[str, str] = {}
    warnings: List[RowWarning] = []
    current_program: Optional[str] = None

    for index, row in enumerate(rows):
        row_num = index + 2  # header is row 1
        raw_date = row.get(columns.date)
        raw_event = row.get(columns.event)

        if _is_missing(raw_date) or _is_missing(raw_event):
            logger.warning(f"Skipping row {row_num}: missing required fields")
            warnings.append(
                RowWarning(
                    message="Missing required fields",
                    row=row_num,
                    line=_describe_row(row),
                )
            )
            continue

        try:
            when = parse_date(raw_date)
        except InvalidDateError as exc:
            raise InvalidDateError(
                f'Invalid date format on row {row_num}: "{raw_date}"'
            ) from exc

        event = str(raw_event)
        if event.strip() == CONFERENCE_EVENT:
            if current_program is None:
                raise ValidationError(
                    f"Row {row_num} is Conference but has no corresponding Program"
                )
            accumulators[current_program].conference = ConferenceNode(
                id=f"{program_slug(current_program)}-conference",
                name=CONFERENCE_EVENT,
                date=when,
            )
            continue

        parts = event.split(EVENT_SEPARATOR)
        if len(parts) < 2:
            raise ValidationError(
                f"Invalid EVENT format on row {row_num}; "
                f'expected "ProgramName - EventName" or "Conference"'
            )

        program_name = parts[0].strip()
        event_name = EVENT_SEPARATOR.join(parts[1:]).strip()

        if program_name not in accumulators:
            slug = program_slug(program_name)
            if slug in slug_owners:
                raise ValidationError(
                    f'Program "{program_name}" on row {row_num} has the same id '
                    f'"{slug}" as program "{slug_owners[slug]}"'
                )
            slug_owners[slug] = program_name
        current_program = program_name

        acc = accumulators.setdefault(program_name, _ProgramAccumulator())
        acc.events.append(
            TimePoint(
                id=f"{program_slug(program_name)}-{index}",
                name=event_name,
                date=when,
            )
        )

    programs = [
        _finish_imported_program(name, acc) for name, acc in accumulators.items()
    ]
    logger.debug(
        f"Imported {len(programs)} programs from {len(rows)} rows "
        f"({len(warnings)} skipped)"
    )
    return programs, warnings


# ---------------------------------------------------------------------------
# Spreadsheet Export
# ---------------------------------------------------------------------------


def color_for(index: int) -> str:
    """Return the palette color for the program at ``index``.

    Args:
        index: Zero-based program position.

    Returns:
        A 6-digit RGB hex string; the palette repeats every 16 programs.
    """
    if index < 0:
        raise ValueError(f"Color index must be non-negative, got {index}")
    return COLOR_POOL[index % len(COLOR_POOL)]


def build_export_rows(programs: Sequence[Program]) -> List[ExportRow]:
    """Flatten programs into export rows.

    Rows follow program order and each program's current time point order.
    Only the last program's conference is written, as a single trailing
    ``Conference`` row in black; other conferences are dropped.

    Args:
        programs: The timeline to flatten.

    Returns:
        Export rows, without the header.
    """
    rows: List[ExportRow] = []
    for index, program in enumerate(programs):
        color = color_for(index)
        for point in program.time_points:
            rows.append(
                ExportRow(
                    date=point.date,
                    event=f"{program.name}{EVENT_SEPARATOR}{point.name}",
                    color=color,
                )
            )

    if programs and programs[-1].conference is not None:
        conference = programs[-1].conference
        rows.append(
            ExportRow(date=conference.date, event=CONFERENCE_EVENT, color=CONFERENCE_COLOR)
        )
    return rows


def _thin_border(color: str) -> Border:
    side = Side(style="thin", color=color)
    return Border(left=side, right=side, top=side, bottom=side)


def build_workbook(programs: Sequence[Program]) -> Workbook:
    """Build the styled export workbook for ``programs``.

    Args:
        programs: The timeline to export.

    Returns:
        An openpyxl workbook with a single ``Timeline`` sheet.
    """
    export_rows = build_export_rows(programs)

    workbook = Workbook()
    sheet = workbook.active
    sheet.title = EXPORT_SHEET_NAME

    sheet.append(list(EXPORT_HEADER))
    for row in export_rows:
        sheet.append([format_long_date(row.date), row.event])

    sheet.column_dimensions["A"].width = DATE_COLUMN_WIDTH
    sheet.column_dimensions["B"].width = EVENT_COLUMN_WIDTH

    header_font = Font(bold=True, color=HEADER_FONT_COLOR)
    header_fill = PatternFill(
        start_color=HEADER_FILL_COLOR, end_color=HEADER_FILL_COLOR, fill_type="solid"
    )
    header_alignment = Alignment(horizontal="center", vertical="center")
    header_border = _thin_border(HEADER_BORDER_COLOR)
    for cell in sheet[1]:
        cell.font = header_font
        cell.fill = header_fill
        cell.alignment = header_alignment
        cell.border = header_border

    data_alignment = Alignment(horizontal="left", vertical="center")
    data_border = _thin_border(DATA_BORDER_COLOR)
    for row_num, row in enumerate(export_rows, start=2):
        font = Font(color=row.color)
        for cell in sheet[row_num]:
            cell.font = font
            cell.alignment = data_alignment
            cell.border = data_border

    return workbook


def export_to_bytes(programs: Sequence[Program]) -> bytes:
    """Return the export workbook as ``.xlsx`` bytes."""
    buffer = io.BytesIO()
    build_workbook(programs).save(buffer)
    return buffer.getvalue()


def export_to_excel(
    programs: Sequence[Program],
    output_path: str = DEFAULT_EXPORT_FILE,
    dry_run: bool = False,
) -> Tuple[Optional[str], Optional[str]]:
    """Write the styled export workbook to disk.

    Args:
        programs: The timeline to export.
        output_path: Destination ``.xlsx`` path.
        dry_run: If True, do not write files, just return what would be written.

    Returns:
        A tuple of (output_path, error_message).
    """
    if dry_run:
        return str(output_path), None

    workbook = build_workbook(programs)
    try:
        workbook.save(output_path)
    except OSError as exc:
        return None, str(exc)

    return str(output_path), None


def export_to_csv(
    programs: Sequence[Program],
    output_path: str,
    dry_run: bool = False,
) -> Tuple[Optional[str], Optional[str]]:
    """Write the export rows as a plain two-column CSV (no styling).

    Args:
        programs: The timeline to export.
        output_path: Destination ``.csv`` path.
        dry_run: If True, do not write files, just return what would be written.

    Returns:
        A tuple of (output_path, error_message).
    """
    if dry_run:
        return str(output_path), None

    try:
        buffer = io.StringIO()
        writer = csv.writer(buffer, lineterminator="\n")
        writer.writerow(EXPORT_HEADER)
        for row in build_export_rows(programs):
            writer.writerow([format_long_date(row.date), row.event])

        contents = buffer.getvalue().rstrip("\n")
        with open(output_path, "w", newline="", encoding="utf-8-sig") as f:
            f.write(contents)
    except OSError as exc:
        return None, str(exc)

    return str(output_path), None


# ---------------------------------------------------------------------------
# Timeline Edits
# ---------------------------------------------------------------------------


def update_time_point_date(
    programs: Sequence[Program],
    program_id: str,
    time_point_id: str,
    new_date: Any,
) -> List[Program]:
    """Move one time point to a new date.

    Args:
        programs: The current timeline.
        program_id: Id of the program holding the time point.
        time_point_id: Id of the time point to move.
        new_date: Anything ``parse_date`` accepts.

    Returns:
        A new list of programs; untouched programs and time points are shared
        with the input. The program's conference and ddl are left as they were.
    """
    when = parse_date(new_date)

    result: List[Program] = []
    for program in programs:
        if program.id == program_id:
            program = replace(
                program,
                time_points=tuple(
                    point.with_date(when) if point.id == time_point_id else point
                    for point in program.time_points
                ),
            )
        result.append(program)
    return result


def assign_display_colors(programs: Sequence[Program]) -> List[ProgramView]:
    """Pair each program with its palette color and an is-last flag."""
    last_index = len(programs) - 1
    return [
        ProgramView(program=program, color=color_for(index), is_last=index == last_index)
        for index, program in enumerate(programs)
    ]


class TimelineStore:
    """Holds the current timeline and replaces it wholesale on each load.

    A failed load or import leaves the previous timeline in place and records
    a user-facing ``error_message``.
    """

    def __init__(self, programs: Optional[Sequence[Program]] = None) -> None:
        self.programs: List[Program] = list(programs or [])
        self.warnings: List[RowWarning] = []
        self.error_message = ""

    def load_config(self, doc: Any) -> bool:
        self.error_message = ""
        try:
            programs = load_config(doc)
        except TimelineError as exc:
            self.error_message = f"Load failed: {exc}"
            logger.error(self.error_message)
            return False

        self.programs = programs
        self.warnings = []
        return True

    def import_rows(
        self,
        rows: Iterable[Mapping[str, Any]],
        columns: Optional[ColumnConfig] = None,
    ) -> bool:
        self.error_message = ""
        try:
            programs, warnings = import_spreadsheet_rows(rows, columns)
        except TimelineError as exc:
            self.error_message = f"Excel parsing failed: {exc}"
            logger.error(self.error_message)
            return False

        self.programs = programs
        self.warnings = warnings
        return True

    def update_date(self, program_id: str, time_point_id: str, new_date: Any) -> None:
        self.programs = update_time_point_date(
            self.programs, program_id, time_point_id, new_date
        )

    def views(self) -> List[ProgramView]:
        return assign_display_colors(self.programs)

    def export(
        self, output_path: str = DEFAULT_EXPORT_FILE, dry_run: bool = False
    ) -> Tuple[Optional[str], Optional[str]]:
        if Path(output_path).suffix.lower() == ".csv":
            return export_to_csv(self.programs, output_path, dry_run=dry_run)
        return export_to_excel(self.programs, output_path, dry_run=dry_run)


# ---------------------------------------------------------------------------
# Reports
# ---------------------------------------------------------------------------


def generate_summary(programs: Sequence[Program], warnings: Sequence[RowWarning]) -> str:
    """Generate a summary report of the loaded timeline.

    Args:
        programs: The loaded programs.
        warnings: Rows skipped during import.

    Returns:
        The summary text.
    """
    summary_lines: List[str] = []
    summary_lines.append("\n" + "=" * 70)
    summary_lines.append("PROGRAM DEADLINE SUMMARY")
    summary_lines.append("=" * 70)
    summary_lines.append(f"\nTotal Programs: {len(programs)}")
    summary_lines.append(
        f"Total Time Points: {sum(len(p.time_points) for p in programs)}"
    )

    if programs:
        summary_lines.append("\n" + "-" * 70)
        summary_lines.append("PER-PROGRAM BREAKDOWN")
        summary_lines.append("-" * 70)

        for program in programs:
            dates = [point.date for point in program.time_points]
            summary_lines.append(f"\n{program.name} ({program.id})")
            summary_lines.append(f"  Time Points: {len(program.time_points)}")
            summary_lines.append(
                f"  Date Range: {format_long_date(min(dates))} to {format_long_date(max(dates))}"
            )
            if program.ddl is not None and program.conference is not None:
                summary_lines.append(
                    f"  Deadline: {format_long_date(program.ddl)} ({program.conference.name})"
                )
            else:
                summary_lines.append("  Deadline: N/A")

    if warnings:
        summary_lines.append("\n" + "-" * 70)
        summary_lines.append(f"SKIPPED ROWS ({len(warnings)} found)")
        summary_lines.append("-" * 70)
        for warning in warnings:
            row_info = f"Row {warning.row}: " if warning.row else ""
            summary_lines.append(f"  * {row_info}{warning.message}")
    else:
        summary_lines.append("\n" + "-" * 70)
        summary_lines.append("[OK] No rows skipped")
        summary_lines.append("-" * 70)

    summary_lines.append("\n" + "=" * 70)

    summary_text = "\n".join(summary_lines)
    logger.info(summary_text)
    return summary_text


def write_failure_report(
    warnings: Sequence[RowWarning],
    output_path: str,
    dry_run: bool = False,
) -> Optional[str]:
    """Write skipped rows (if any) to a CSV file.

    Args:
        warnings: Rows skipped during import.
        output_path: Path of the report to write.
        dry_run: If True, do not write files.

    Returns:
        Path to the report, or None if nothing was skipped or the write failed.
    """
    if not warnings:
        return None

    if dry_run:
        return str(output_path)

    try:
        buffer = io.StringIO()
        writer = csv.writer(buffer, lineterminator="\n")
        writer.writerow(["Row", "Message", "Line"])
        for warning in warnings:
            writer.writerow(
                [
                    warning.row or "",
                    warning.message,
                    warning.line or "",
                ]
            )

        contents = buffer.getvalue().rstrip("\n")
        with open(output_path, "w", newline="", encoding="utf-8") as f:
            f.write(contents)
        return str(output_path)
    except OSError as exc:
        logger.error(f"Unable to write failure report: {exc}")
        return None


# ---------------------------------------------------------------------------
# Input Functions
# ---------------------------------------------------------------------------


def detect_delimiter(lines: List[str]) -> str:
    """Attempt to detect whether the payload is comma- or tab-delimited.

    Args:
        lines: List of lines to analyze.

    Returns:
        Detected delimiter character (',' or '\\t').
    """
    if not lines:
        return ","

    sample = "\n".join(lines[:DELIMITER_SAMPLE_SIZE])
    try:
        dialect = csv.Sniffer().sniff(sample, delimiters=",\t")
        return dialect.delimiter
    except csv.Error:
        first_line = lines[0]
        if first_line.count(",") >= first_line.count("\t"):
            return ","
        return "\t"


def _is_blank_cell(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def rows_from_table(table: Iterable[Sequence[Any]]) -> List[Dict[str, Any]]:
    """Turn a header row plus value rows into row mappings.

    Empty cells are left out of each mapping and fully blank rows are
    dropped.

    Args:
        table: Rows of cell values; the first row is the header.

    Returns:
        One mapping per non-blank data row.
    """
    iterator = iter(table)
    raw_header = next(iterator, None)
    if raw_header is None:
        return []

    header = [
        "" if cell is None else str(cell).strip().lstrip("\ufeff") for cell in raw_header
    ]

    rows: List[Dict[str, Any]] = []
    for values in iterator:
        if all(_is_blank_cell(value) for value in values):
            continue
        record: Dict[str, Any] = {}
        for key, value in zip(header, values):
            if not key or _is_missing(value):
                continue
            record[key] = value
        rows.append(record)
    return rows


def rows_from_lines(lines: List[str]) -> List[Dict[str, Any]]:
    """Parse comma- or tab-delimited text lines into row mappings."""
    lines = [line for line in lines if line.strip()]
    if not lines:
        return []

    delimiter = detect_delimiter(lines)
    return rows_from_table(csv.reader(lines, delimiter=delimiter))


def _resolve_input_path(filename: str) -> Optional[Path]:
    candidates: List[Path] = []

    primary = Path(filename).expanduser()
    candidates.append(primary)

    # Relative paths are also tried next to this module, so the default config
    # is found when the CLI runs from another working directory.
    if not primary.is_absolute():
        candidates.append(Path(__file__).parent / filename)

    tried_paths: List[Path] = []

    for candidate in candidates:
        resolved = candidate.resolve()
        if resolved in tried_paths:
            continue
        tried_paths.append(resolved)

        if resolved.exists():
            return resolved

    tried = ", ".join(str(path) for path in tried_paths)
    logger.error(
        f"Error: File '{filename}' not found (searched: {tried}). Current working "
        f"directory: {Path.cwd()}"
    )
    return None


def read_config_file(filename: str = DEFAULT_CONFIG_FILE) -> Optional[Any]:
    """Read a JSON configuration document.

    Args:
        filename: Path to the JSON file.

    Returns:
        The decoded document, or None if reading or decoding failed.
    """
    path = _resolve_input_path(filename)
    if path is None:
        return None

    try:
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)
    except OSError as e:
        logger.error(f"Failed to load config file '{path}': {e}")
    except ValueError as e:
        logger.error(f"Failed to load config file '{path}': invalid JSON ({e})")
    return None


def _read_workbook_rows(path: Path) -> List[Dict[str, Any]]:
    workbook = load_workbook(path, read_only=True, data_only=True)
    try:
        sheet = workbook.worksheets[0]
        return rows_from_table(sheet.iter_rows(values_only=True))
    finally:
        workbook.close()


def read_spreadsheet_file(filename: str) -> Optional[List[Dict[str, Any]]]:
    """Read rows from the first sheet of an ``.xlsx`` file or from a CSV file.

    Args:
        filename: Path to the spreadsheet.

    Returns:
        Row mappings keyed by header name, or None if the file could not be read.
    """
    path = _resolve_input_path(filename)
    if path is None:
        return None

    try:
        if path.suffix.lower() in CSV_SUFFIXES:
            with open(path, "r", encoding="utf-8-sig") as f:
                return rows_from_lines([line.rstrip("\r\n") for line in f])
        return _read_workbook_rows(path)
    except (OSError, ValueError, KeyError, BadZipFile, InvalidFileException) as e:
        logger.error(f"File read failed for '{path}': {e}")
        return None


def read_from_clipboard() -> Optional[List[str]]:
    """Try to read spreadsheet cells from the clipboard (requires pyperclip).

    Returns:
        List of lines from clipboard, or None if pyperclip is not available.
    """
    try:
        import pyperclip

        data = pyperclip.paste()
        return data.splitlines()
    except ImportError:
        return None


def read_from_stdin() -> List[str]:
    """Read from stdin (paste directly).

    Returns:
        List of lines entered by the user.
    """
    print("Paste your DATE/EVENT rows (tab- or comma-separated, with headers).")
    print("Press Ctrl+D (Unix/Mac) or Ctrl+Z + Enter (Windows) when done:\n")

    lines: List[str] = []
    try:
        while True:
            line = input()
            lines.append(line)
    except EOFError:
        pass

    return lines


# ---------------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------------


def parse_arguments(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments.

    Args:
        argv: Command line arguments. Defaults to sys.argv[1:].

    Returns:
        Parsed arguments namespace.
    """
    parser = argparse.ArgumentParser(description=__doc__)
    source = parser.add_mutually_exclusive_group()
    source.add_argument(
        "--config",
        help=f"Path to a JSON timeline configuration (default: {DEFAULT_CONFIG_FILE}).",
    )
    source.add_argument(
        "--import-file",
        help="Path to an .xlsx or .csv spreadsheet with DATE and EVENT columns.",
    )
    source.add_argument(
        "--clipboard",
        action="store_true",
        help="Import DATE/EVENT cells copied to the clipboard (requires pyperclip).",
    )
    source.add_argument(
        "--stdin",
        action="store_true",
        help="Import DATE/EVENT rows pasted on standard input.",
    )
    parser.add_argument(
        "--export",
        help="Write the loaded timeline to this path (.csv for plain CSV, otherwise .xlsx).",
    )
    parser.add_argument(
        "--failures-file",
        help="Write skipped spreadsheet rows to this CSV file.",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Preview what would be done without writing any files.",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable verbose output.",
    )
    parser.add_argument(
        "--quiet",
        "-q",
        action="store_true",
        help="Suppress non-essential output.",
    )
    return parser.parse_args(argv)


def _setup_logging(verbose: bool = False, quiet: bool = False) -> None:
    """Configure logging based on verbosity settings.

    Args:
        verbose: Enable debug-level logging.
        quiet: Suppress info-level logging.
    """
    if quiet:
        level = logging.WARNING
    elif verbose:
        level = logging.DEBUG
    else:
        level = logging.INFO

    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )


def _read_import_rows(args: argparse.Namespace) -> Optional[List[Dict[str, Any]]]:
    if args.import_file:
        return read_spreadsheet_file(args.import_file)

    if args.clipboard:
        lines = read_from_clipboard()
        if lines is None:
            logger.error("Clipboard support is unavailable (pyperclip not installed).")
            return None
    else:
        lines = read_from_stdin()

    return rows_from_lines(lines)


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the CLI.

    Args:
        argv: Command line arguments. Defaults to sys.argv[1:].

    Returns:
        Exit code (0 for success, non-zero for errors).
    """
    args = parse_arguments(argv)
    _setup_logging(verbose=args.verbose, quiet=args.quiet)

    logger.info("=" * 70)
    logger.info("Program Deadline Timeline")
    logger.info("=" * 70)

    if args.dry_run:
        logger.info("[DRY RUN] No files will be written.")

    store = TimelineStore()

    if args.import_file or args.clipboard or args.stdin:
        rows = _read_import_rows(args)
        if rows is None:
            return 1
        loaded = store.import_rows(rows)
    else:
        doc = read_config_file(args.config or DEFAULT_CONFIG_FILE)
        if doc is None:
            return 1
        loaded = store.load_config(doc)

    if not loaded:
        return 1

    logger.info(f"[OK] Loaded {len(store.programs)} programs")
    if store.warnings:
        logger.warning(f"[WARN] Skipped {len(store.warnings)} rows with missing fields")

    if args.failures_file:
        failures_path = write_failure_report(
            store.warnings, args.failures_file, dry_run=args.dry_run
        )
        if failures_path:
            logger.info(f"[OK] Wrote skipped rows to {failures_path}")

    if args.export:
        export_path, export_error = store.export(args.export, dry_run=args.dry_run)
        if export_error:
            logger.error(f"Export failed: {export_error}")
            return 1
        logger.info(
            f"[OK] Exported {len(build_export_rows(store.programs))} rows to {export_path}"
        )

    generate_summary(store.programs, store.warnings)
    return 0


if __name__ == "__main__":
    sys.exit(main())
