"""
Shift Production Summary Metrics

Current production, efficiency against target and remaining parts, plus the
result containers returned to chart callers.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List

from .actual_curve import LinePoint
from .target_curve import ChartDataPoint, round_half_away_from_zero


@dataclass
class ShiftSummary:
    """Headline numbers for a shift"""
    current_production: int
    target_parts: int
    efficiency: int       # whole percent
    remaining_parts: int


def summarize_production(current_production: int, target_parts: int, line_count: int = 1) -> ShiftSummary:
    """
    Calculate summary metrics for a shift.

    With several production lines each line is expected to reach
    target_parts, so the total target scales with line_count.

    Args:
        current_production: Number of events in the shift window
        target_parts: Target parts per line
        line_count: Number of production lines sharing the target

    Returns:
        ShiftSummary

    Examples:
        >>> summarize_production(45, 100).efficiency
        45
        >>> summarize_production(120, 100).remaining_parts
        0
    """
    line_count = max(1, line_count)
    total_target = target_parts * line_count

    if target_parts > 0:
        efficiency = round_half_away_from_zero(current_production / target_parts / line_count * 100)
    else:
        efficiency = 0

    return ShiftSummary(
        current_production=current_production,
        target_parts=total_target,
        efficiency=efficiency,
        remaining_parts=max(0, total_target - current_production),
    )


@dataclass
class ShiftChartResult:
    """Single-line shift chart response"""
    chart_data: List[ChartDataPoint]
    current_production: int
    target_parts: int
    efficiency: int
    remaining_parts: int
    last_update: datetime = field(default_factory=datetime.now)
    initial_count: int = 0

    def to_dict(self) -> Dict:
        return {
            'chartData': [p.to_dict() for p in self.chart_data],
            'currentProduction': self.current_production,
            'targetParts': self.target_parts,
            'efficiency': self.efficiency,
            'remainingParts': self.remaining_parts,
            'lastUpdate': self.last_update.isoformat(),
            'initialCount': self.initial_count,
        }


@dataclass
class MultiLineChartResult:
    """Shift chart response with one cumulative series per production line"""
    lines: Dict[str, List[LinePoint]]
    target_line_data: List[ChartDataPoint]
    current_production: int
    target_parts: int
    efficiency: int
    remaining_parts: int
    last_update: datetime = field(default_factory=datetime.now)
    initial_count: int = 0

    @property
    def line_names(self) -> List[str]:
        return list(self.lines.keys())

    def to_dict(self) -> Dict:
        return {
            'isMultiLine': True,
            'lines': {
                name: [p.to_dict() for p in points]
                for name, points in self.lines.items()
            },
            'targetLineData': [
                {'time': p.time, 'target': p.target_parts}
                for p in self.target_line_data
            ],
            'currentProduction': self.current_production,
            'targetParts': self.target_parts,
            'efficiency': self.efficiency,
            'remainingParts': self.remaining_parts,
            'lastUpdate': self.last_update.isoformat(),
            'initialCount': self.initial_count,
            'lineNames': self.line_names,
        }
