"""
Shared utility functions.
"""

from jobtrawl.utils.config_helpers import BUNDLED_CONFIG_PATH, merge_configs
from jobtrawl.utils.helpers import jobs_to_df, relative_to_project

__all__ = [
    # Misc utilities
    "relative_to_project",
    "jobs_to_df",
    # Configuration utilities
    "BUNDLED_CONFIG_PATH",
    "merge_configs",
]
