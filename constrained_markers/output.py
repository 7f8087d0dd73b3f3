from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional

from marker_geometry.services.csv_writer import TraceWriter

from .render import Placement


class OutputSink(ABC):
    @abstractmethod
    def open(self, session_dir: Path) -> None: ...

    @abstractmethod
    def write_placement(
        self,
        frame_idx: int,
        marker_idx: int,
        placement: Optional[Placement],
    ) -> None: ...

    @abstractmethod
    def close(self) -> None: ...


class CsvOutput(OutputSink):
    def __init__(self, filename: str = "trace.csv"):
        self.filename = filename
        self.path: Optional[Path] = None
        self._writer: Optional[TraceWriter] = None

    def open(self, session_dir: Path) -> None:
        self.path = session_dir / self.filename
        self._writer = TraceWriter(str(self.path))
        self._writer.open()

    def write_placement(
        self,
        frame_idx: int,
        marker_idx: int,
        placement: Optional[Placement],
    ) -> None:
        if self._writer is None:
            return
        self._writer.append(frame_idx, marker_idx, placement)

    def close(self) -> None:
        if self._writer is not None:
            self._writer.close()
            self._writer = None


class NullOutput(OutputSink):
    def open(self, session_dir: Path) -> None:
        return None

    def write_placement(
        self,
        frame_idx: int,
        marker_idx: int,
        placement: Optional[Placement],
    ) -> None:
        return None

    def close(self) -> None:
        return None
