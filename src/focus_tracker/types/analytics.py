"""Analytics input and result types."""

from dataclasses import dataclass, field
from datetime import datetime

# Label (mode or tag) -> accumulated minutes
Distribution = dict[str, int]


@dataclass(frozen=True)
class Range:
    """Inclusive time range used to filter sessions by start time."""
    start: datetime
    end: datetime

    @property
    def start_ms(self) -> float:
        return self.start.timestamp() * 1000

    @property
    def end_ms(self) -> float:
        return self.end.timestamp() * 1000


@dataclass(frozen=True)
class StreakStats:
    current: int = 0
    longest: int = 0


@dataclass
class DistributionEntry:
    label: str
    value: int


@dataclass
class AnalyticsSummary:
    total_focus_time: int = 0           # minutes
    sessions_completed: int = 0
    avg_session_length: float = 0.0     # minutes, 1 decimal
    completion_rate: int = 0            # percent
    mode_distribution: list[DistributionEntry] = field(default_factory=list)
    tag_distribution: list[DistributionEntry] = field(default_factory=list)
    heatmap_matrix: list[list[int]] = field(default_factory=list)
    heatmap_row_labels: list[str] = field(default_factory=list)
    heatmap_col_labels: list[str] = field(default_factory=list)
    current_streak: int = 0
    longest_streak: int = 0
