"""
Gridview - Tabular View Engine

Computes what a data table shows: records filtered by typed predicates
and free-text search, ordered by multiple sort keys, interleaved with
nested group headers and cut into pages.

Design Principles:
- Records belong to the caller and are never modified
- Every pipeline stage is a pure function over immutable state
- Partial filter input degrades to "no constraint", never to an error
- Configuration mistakes fail fast and name the offending field

Example Usage:
    >>> from gridview import ViewEngine
    >>> engine = ViewEngine([{"n": 5}, {"n": 50}, {"n": 100}])
    >>> state = engine.set_filter_text("n", "20><50")
    >>> engine.all_filtered_sorted_rows
    [{'n': 50}]
"""

__version__ = "0.1.0"
__author__ = "Gridview Contributors"

# View engine
from gridview.views import (
    ViewEngine,
    compute_view,
    FieldDescriptor,
    FilterSpec,
    SortKey,
    GroupHeader,
    ViewState,
    ViewConfiguration,
    GridviewError,
    ConfigurationError,
    is_group_header,
)

# Configuration
from gridview.config import GridviewConfig, get_config, init_config

# Export and rendering
from gridview.exporters import export_file
from gridview.render import RenderDecision, resolve_render

__all__ = [
    # Engine
    "ViewEngine",
    "compute_view",
    "FieldDescriptor",
    "FilterSpec",
    "SortKey",
    "GroupHeader",
    "ViewState",
    "ViewConfiguration",
    "GridviewError",
    "ConfigurationError",
    "is_group_header",
    # Config
    "GridviewConfig",
    "get_config",
    "init_config",
    # Export and rendering
    "export_file",
    "RenderDecision",
    "resolve_render",
]
