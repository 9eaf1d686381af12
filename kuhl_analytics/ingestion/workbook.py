"""
Workbook Reader

Reads ``.xlsx``/``.xls``/``.csv`` exports into plain row dicts keyed by header
text. This is the only place that knows about spreadsheet files; parsers work
on ``list[dict]``.
"""

import io
import zipfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import pandas as pd
import structlog

from kuhl_analytics.errors import ParseError, SourceFileNotFound

logger = structlog.get_logger(__name__)

Rows = List[Dict[str, Any]]
Source = Union[str, Path, bytes]


@dataclass
class Workbook:
    """Sheets of a workbook as row dicts, in file order"""
    name: str
    sheets: Dict[str, Rows] = field(default_factory=dict)

    @property
    def sheet_names(self) -> List[str]:
        return list(self.sheets)

    def sheet(self, name: Optional[str] = None) -> Rows:
        """Rows of ``name``, or of the first sheet when ``name`` is None or missing."""
        if name and name in self.sheets:
            return self.sheets[name]
        if not self.sheets:
            return []
        return next(iter(self.sheets.values()))

    def headers(self, name: Optional[str] = None) -> List[str]:
        rows = self.sheet(name)
        return list(rows[0].keys()) if rows else []


def _frame_to_rows(frame: pd.DataFrame) -> Rows:
    frame = frame.rename(columns=lambda c: str(c).strip())
    frame = frame.loc[:, [c for c in frame.columns if not c.startswith("Unnamed:")]]
    frame = frame.dropna(how="all")
    return frame.to_dict(orient="records")


def read_workbook(
    source: Source,
    filename: Optional[str] = None,
    header_offset: int = 0,
    sheet_name: Optional[str] = None,
) -> Workbook:
    """
    Read every sheet of a workbook (or a single CSV) into rows.

    Args:
        source: File path or raw uploaded bytes
        filename: Name used to pick the format when ``source`` is bytes
        header_offset: Rows to skip above the header row
        sheet_name: Read only this sheet

    Raises:
        SourceFileNotFound: ``source`` is a path that does not exist
        ParseError: The content is not a readable spreadsheet
    """
    if isinstance(source, (str, Path)):
        path = Path(source)
        if not path.exists():
            raise SourceFileNotFound(f"File not found: {path}", {"path": str(path)})
        name = filename or path.name
        handle: Any = path
    else:
        name = filename or "upload.xlsx"
        handle = io.BytesIO(source)

    skiprows = header_offset or None
    try:
        if name.lower().endswith(".csv"):
            frames = {Path(name).stem: pd.read_csv(handle, dtype=object, skiprows=skiprows)}
        else:
            frames = pd.read_excel(handle, sheet_name=sheet_name or None, dtype=object, skiprows=skiprows)
            if isinstance(frames, pd.DataFrame):
                frames = {sheet_name: frames}
    except (ValueError, KeyError, OSError, zipfile.BadZipFile) as e:
        logger.error("Failed to read workbook", file=name, error=str(e))
        raise ParseError(f"Could not read {name}: {e}", {"file": name}) from e

    workbook = Workbook(name=name, sheets={str(k): _frame_to_rows(v) for k, v in frames.items()})
    logger.info(
        "Workbook read",
        file=name,
        sheets=workbook.sheet_names,
        rows=sum(len(rows) for rows in workbook.sheets.values()),
        header_offset=header_offset,
    )
    return workbook


def read_rows_if_present(path: Union[str, Path], header_offset: int = 0, sheet_name: Optional[str] = None) -> Rows:
    """Rows of a configured source file; a missing file yields no rows."""
    try:
        workbook = read_workbook(path, header_offset=header_offset)
    except SourceFileNotFound:
        logger.warning("Source file missing, using empty dataset", path=str(path))
        return []
    return workbook.sheet(sheet_name)
