"""
General utility functions for jobtrawl.

Contains helper functions used across different modules.
"""

import os
from pathlib import Path
from typing import Iterable, Union

import pandas as pd
from dotenv import load_dotenv

# Load environment variables
load_dotenv()
PROJECT_ROOT = Path(os.getenv("PROJECT_ROOT", "."))

JOB_COLUMNS = ["id", "title", "company", "location", "date_posted", "source", "url", "description"]


def jobs_to_df(jobs: Iterable) -> pd.DataFrame:
    """
    Tabulate jobs for export, one row per job.

    Args:
        jobs: Job instances (anything with a to_dict() method)

    Returns:
        DataFrame with JOB_COLUMNS, empty (but with columns) when there are no jobs
    """
    records = [job.to_dict() for job in jobs]
    return pd.DataFrame(records, columns=JOB_COLUMNS)


def relative_to_project(path: Union[str, Path]) -> str:
    path = str(Path(path))
    proj_root_str = str(PROJECT_ROOT)

    if proj_root_str.endswith("/"):
        proj_root_str = proj_root_str[:-1]

    # Remove project root part of path to make it relative
    return path.replace(proj_root_str + "/", "")
