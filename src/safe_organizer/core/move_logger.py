"""Append-only audit log of the moves performed."""

import logging
import re
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Iterator, List, Optional, Union

from ..exceptions import LogWriteError

logger = logging.getLogger(__name__)

DEFAULT_LOG_FILE = "organizer.log"
TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"

_LINE_PATTERN = re.compile(r"^\[(?P<timestamp>[^\]]+)\] Moved: (?P<source>.+?) → (?P<target>.+)$")


@dataclass(frozen=True)
class MoveRecord:
    """A single completed move."""
    timestamp: datetime
    source_path: Path
    target_path: Path

    def to_line(self) -> str:
        return (
            f"[{self.timestamp.strftime(TIMESTAMP_FORMAT)}] "
            f"Moved: {self.source_path} → {self.target_path}"
        )

    @classmethod
    def from_line(cls, line: str) -> Optional["MoveRecord"]:
        match = _LINE_PATTERN.match(line.rstrip("\r\n"))
        if not match:
            return None
        try:
            timestamp = datetime.strptime(match.group("timestamp"), TIMESTAMP_FORMAT)
        except ValueError:
            return None
        return cls(
            timestamp=timestamp,
            source_path=Path(match.group("source")),
            target_path=Path(match.group("target"))
        )


class MoveLogger:
    """Write one line per move, opening and closing the log each time."""

    def __init__(self, log_file: Union[str, Path] = DEFAULT_LOG_FILE):
        self.log_file = Path(log_file).expanduser().absolute()

    def record(self, source_path: Path, target_path: Path) -> MoveRecord:
        """
        Append a move record to the log.

        Args:
            source_path: Where the file was
            target_path: Where the file is now

        Returns:
            The record that was written

        Raises:
            LogWriteError: If the log cannot be written
        """
        record = MoveRecord(
            timestamp=datetime.now(),
            source_path=Path(source_path).absolute(),
            target_path=Path(target_path).absolute()
        )

        # Undecodable file name bytes arrive as surrogates; write them escaped
        try:
            with open(self.log_file, "a", encoding="utf-8", errors="backslashreplace") as f:
                f.write(record.to_line() + "\n")
        except (OSError, UnicodeError) as e:
            raise LogWriteError(f"Failed to write to log {self.log_file}: {e}")

        return record

    def iter_records(self) -> Iterator[MoveRecord]:
        """Records in the order they were written. Unparseable lines are skipped."""
        if not self.log_file.exists():
            return

        with open(self.log_file, "r", encoding="utf-8", errors="replace") as f:
            for line_number, line in enumerate(f, 1):
                if not line.strip():
                    continue
                record = MoveRecord.from_line(line)
                if record is None:
                    logger.debug(f"Skipping malformed log line {line_number}")
                    continue
                yield record

    def read_records(self, limit: Optional[int] = None) -> List[MoveRecord]:
        """Read back the log, keeping only the last ``limit`` records if given."""
        records = list(self.iter_records())
        if limit is not None:
            records = records[-limit:] if limit > 0 else []
        return records
