"""
Constants for gridview.

These constants are used by various modules for sensible defaults.
Most of them can also be changed through the config system.
"""

# Pagination
DEFAULT_PAGE_SIZE = 10
PAGE_SIZE_OPTIONS = (5, 10, 20, 50)
PAGER_SIBLINGS = 1

# Grouping
GROUP_PATH_SEPARATOR = "|"
NULL_GROUP_LABEL = "(empty)"

# Collections
COLLECTION_FILTER_SEPARATOR = ","
COLLECTION_EXPORT_JOINER = ", "

# Display limits
DEFAULT_MAX_COLUMN_WIDTH = 40
