"""
Data Ingestion Module
"""
from .loader import FileFormat, LoadResult, load_snapshot, load_snapshot_from_files, read_table

__all__ = [
    "FileFormat",
    "LoadResult",
    "load_snapshot",
    "load_snapshot_from_files",
    "read_table",
]
