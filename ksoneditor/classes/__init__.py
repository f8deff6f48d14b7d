from .base import (
    ActionError,
    ChartParseError,
    LaserSectionError,
    TimeSignature,
)

from .chart import (
    BeatInfo,
    ByPulse,
    Chart,
    DifficultyInfo,
    GraphSectionPoint,
    Interval,
    LaserSection,
    MetaInfo,
    NoteInfo,
    TimeSignatureEvent,
)

from .enums import (
    ButtonKind,
    ChartTool,
    Difficulty,
    LaserSide,
)
