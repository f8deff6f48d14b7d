"""
Readers and writers for chart file formats.
"""
import logging
import pathlib

from .base import Parser
from .ksh import KSHParser
from .kson import KSONParser, write_kson
from ..classes.chart import Chart

__all__ = [
    "Parser",
    "KSHParser",
    "KSONParser",
    "write_kson",
    "load_chart",
    "save_chart",
]

logger = logging.getLogger(__name__)


def load_chart(path: str | pathlib.Path) -> Chart:
    """
    Load a chart from disk, choosing the format by file extension.

    :param path: Path to a ``.ksh`` or ``.kson`` file.
    :raises OSError: if the file cannot be read, or has an unsupported extension.
    :raises ~ksoneditor.classes.base.ChartParseError: if the file cannot be parsed.
    :returns: The loaded chart.
    """
    fpath = pathlib.Path(path)
    FileParser: type[KSHParser | KSONParser]
    if fpath.suffix == ".ksh":
        FileParser = KSHParser
    elif fpath.suffix == ".kson":
        FileParser = KSONParser
    else:
        raise OSError(f"invalid file extension: {fpath.suffix!r}")

    logger.info(f"loading {fpath}")
    # utf-8-sig consumes the byte order mark KSH files usually carry
    with fpath.open("r", encoding="utf-8-sig") as f:
        return FileParser().parse(f)


def save_chart(chart: Chart, path: str | pathlib.Path) -> None:
    """Write a chart to disk in KSON format."""
    fpath = pathlib.Path(path)
    logger.info(f"saving {fpath}")
    with fpath.open("w", encoding="utf-8") as f:
        write_kson(chart, f)
