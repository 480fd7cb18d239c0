"""Histogram rendering for merged message counts."""
from __future__ import annotations
import io
import logging
from datetime import datetime, timezone
from typing import Sequence

import numpy as np
from matplotlib.backends.backend_agg import FigureCanvasAgg
from matplotlib.figure import Figure
from matplotlib.ticker import FuncFormatter
from PIL import Image

from queery.errors import EmptyInputError, RenderError
from queery.schemas import MergedBucket

logger = logging.getLogger(__name__)

WIDTH = 1400
HEIGHT = 700
DPI = 100

BACKGROUND = "#1a1a1a"
TEXT = "#f5f5f5"
GRID = "#424242"
BAR = (0.0, 0.8, 0.0, 0.9)


def _fmt_time(x: float, _pos=None) -> str:
    return datetime.fromtimestamp(int(x), tz=timezone.utc).strftime("%H:%M")


def render(
    buckets: Sequence[MergedBucket],
    label: str,
    range_start: int,
    range_end: int,
    axis_label: str,
    resolution: int = 30,
) -> bytes:
    """Render ``buckets`` as a WIDTH x HEIGHT RGB PNG.

    ``resolution`` pads the time axis on both sides so the outermost bars are
    not clipped. ``axis_label`` is the per-bar duration shown under the time
    axis, e.g. "6 minutes".
    """
    logger.info("Creating chart for %s", label)
    if not buckets:
        raise EmptyInputError("no counters to chart")
    if range_start > range_end:
        raise RenderError(f"invalid time range: {range_start} > {range_end}")

    ordered = sorted(buckets, key=lambda b: b.bucket_start)
    top = max(b.count for b in ordered)

    try:
        canvas, _ = build_axes(ordered, label, top, range_start - resolution, range_end + resolution, axis_label)
        rgb = _rasterise(canvas)
        buf = io.BytesIO()
        Image.fromarray(rgb).save(buf, format="PNG")
    except (ValueError, TypeError, OSError) as exc:
        raise RenderError(f"could not render chart: {exc}") from exc

    logger.info("Chart image encoded (%d bytes)", buf.tell())
    return buf.getvalue()


def build_axes(buckets, label: str, top: int, x_min: int, x_max: int, axis_label: str):
    """Lay out the histogram on a fresh WIDTH x HEIGHT figure; returns ``(canvas, ax)``."""
    fig = Figure(figsize=(WIDTH / DPI, HEIGHT / DPI), dpi=DPI, facecolor=BACKGROUND)
    canvas = FigureCanvasAgg(fig)
    ax = fig.add_subplot(1, 1, 1)
    ax.set_facecolor(BACKGROUND)

    ax.bar(
        [b.bucket_start for b in buckets],
        [b.count for b in buckets],
        width=[b.bucket_width for b in buckets],
        align="edge",
        color=BAR,
    )

    ax.set_xlim(x_min, x_max)
    # A flat chart still needs a non-degenerate axis.
    ax.set_ylim(0, max(top, 1))

    ax.set_title(f"Logs for {label}", fontsize=26, color=TEXT)
    ax.set_xlabel(f"Time (Per {axis_label})", fontsize=18, color=TEXT)
    ax.set_ylabel("Messages", fontsize=18, color=TEXT)
    ax.xaxis.set_major_formatter(FuncFormatter(_fmt_time))
    ax.tick_params(axis="x", labelsize=12, colors=TEXT)
    ax.tick_params(axis="y", labelsize=14, colors=TEXT)
    ax.grid(True, color=GRID, linewidth=0.8)
    ax.set_axisbelow(True)
    for spine in ax.spines.values():
        spine.set_color(GRID)

    fig.subplots_adjust(left=0.07, right=0.97, top=0.9, bottom=0.12)
    return canvas, ax


def _rasterise(canvas: FigureCanvasAgg) -> np.ndarray:
    canvas.draw()
    rgba = np.asarray(canvas.buffer_rgba())
    return np.ascontiguousarray(rgba[..., :3])
