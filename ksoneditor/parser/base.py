"""
Abstract base classes for parsers.
"""
from abc import ABC, abstractmethod
from typing import TextIO

from ..classes.chart import Chart

__all__ = [
    "Parser",
]


class Parser(ABC):
    """
    An abstract base class for parsers that read a specific format.
    """

    @abstractmethod
    def parse(self, f: TextIO) -> Chart:
        """
        Parse a file, producing chart data.

        :raises ~ksoneditor.classes.base.ChartParseError: if the file contains data that cannot be recovered from.
        """
        pass
