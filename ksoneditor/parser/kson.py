import json
import logging

from typing import TextIO

from .base import Parser
from ..classes.base import ChartParseError
from ..classes.chart import Chart

__all__ = [
    "KSON_VERSION",
    "KSONParser",
    "write_kson",
]

KSON_VERSION = "0.1.0"

logger = logging.getLogger(__name__)


class KSONParser(Parser):
    """Parser for the JSON-based KSON chart format."""

    def parse(self, f: TextIO) -> Chart:
        try:
            data = json.load(f)
        except json.JSONDecodeError as e:
            doc_lines = e.doc.splitlines()
            line = doc_lines[e.lineno - 1] if e.lineno <= len(doc_lines) else ""
            raise ChartParseError(f"invalid JSON: {e.msg}", e.lineno, line) from e

        if not isinstance(data, dict):
            raise ChartParseError(f"expected a JSON object at the top level (got {type(data).__name__})")

        version = data.get("version")
        if version != KSON_VERSION:
            logger.warning(f"KSON version mismatch (expected {KSON_VERSION}, got {version})")

        try:
            return Chart.from_kson(data)
        # AttributeError comes from objects of the wrong JSON type, e.g. a list where an object belongs
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            raise ChartParseError(f"malformed KSON document: {type(e).__name__}: {e}") from e


def write_kson(chart: Chart, f: TextIO) -> None:
    """
    Serialize a chart to KSON.

    :param chart: The chart to write.
    :param f: A text file object opened for writing.
    """
    data = {"version": KSON_VERSION}
    data.update(chart.to_kson())
    json.dump(data, f, ensure_ascii=False)
