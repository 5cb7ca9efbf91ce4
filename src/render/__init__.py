"""Render module for flame planner output display."""

from render.renderers import (
    BaseRenderer,
    CashFlowRenderer,
    ProjectionRenderer,
    ReadinessRenderer,
    SummaryRenderer,
    ScenarioComparisonRenderer,
    format_multiline_headers,
    parse_age_range,
    find_renderer,
    RENDERER_REGISTRY,
)

__all__ = [
    'BaseRenderer',
    'CashFlowRenderer',
    'ProjectionRenderer',
    'ReadinessRenderer',
    'SummaryRenderer',
    'ScenarioComparisonRenderer',
    'format_multiline_headers',
    'parse_age_range',
    'find_renderer',
    'RENDERER_REGISTRY',
]
