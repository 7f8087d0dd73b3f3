import csv
import io


class TraceWriter:
    # One row per marker per frame
    HEADER = [
        "frame_idx", "marker_idx",
        "screen_x", "screen_y", "depth",
        "inside",
        "body_visible", "body_x", "body_y",
        "arrow_visible", "arrow_rotation",
    ]

    def __init__(self, csv_path: str):
        self.csv_path = csv_path
        self._opened = False
        self._fh = None
        self._w = None

    def open(self):
        self._fh = open(self.csv_path, "w", newline="")
        self._w = csv.writer(self._fh)
        self._w.writerow(self.HEADER)
        self._opened = True

    @staticmethod
    def _vec2(vec):
        if vec is None:
            return [float("nan")] * 2
        return [f"{float(vec[0]):.3f}", f"{float(vec[1]):.3f}"]

    @classmethod
    def _row(cls, frame_idx, marker_idx, placement):
        if placement is None:
            return [frame_idx, marker_idx, *cls._vec2(None), float("nan"), "", 0, *cls._vec2(None), 0, ""]
        rotation = placement.arrow_rotation
        return [
            frame_idx, marker_idx,
            *cls._vec2(placement.screen_point),
            f"{placement.depth:.4f}",
            "" if placement.inside is None else int(placement.inside),
            int(placement.body_visible),
            *cls._vec2(placement.body_position),
            int(placement.arrow_visible),
            "" if rotation is None else f"{rotation:.2f}",
        ]

    def append(self, frame_idx, marker_idx, placement):
        """Write a row; ``placement`` is None when the target has no position."""
        self._w.writerow(self._row(frame_idx, marker_idx, placement))

    @classmethod
    def to_csv_line(cls, frame_idx, marker_idx, placement):
        buf = io.StringIO()
        w = csv.writer(buf)
        w.writerow(cls._row(frame_idx, marker_idx, placement))
        return buf.getvalue().strip()

    def close(self):
        if self._opened and self._fh:
            self._fh.close()
            self._opened = False
            self._fh = None
            self._w = None
