"""
Shared test setup.

Points the service at a throwaway SQLite database before any
``easypath`` module is imported and makes the backend directory
importable without installing the project.
"""

import os
import sys
import tempfile
from pathlib import Path

_TEST_DB_DIR = tempfile.mkdtemp(prefix="easypath-tests-")
os.environ.setdefault(
    "EASYPATH_DATABASE_URL", f"sqlite:///{Path(_TEST_DB_DIR, 'test.db').as_posix()}"
)

sys.path.append(str(Path(__file__).resolve().parents[1]))
