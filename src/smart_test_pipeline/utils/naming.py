"""Naming helpers for branches and test files pushed to the source-control host."""

import time
import uuid
from pathlib import PurePosixPath
from typing import Optional

BRANCH_PREFIX = "add-tests"


def make_branch_name(prefix: str = BRANCH_PREFIX, now: Optional[float] = None) -> str:
    """Build a fresh branch name such as ``add-tests-1718000000000-3f2a9c1d``.

    The millisecond timestamp keeps names sortable; the random suffix keeps two
    names created in the same millisecond apart.
    """
    millis = int((time.time() if now is None else now) * 1000)
    return f"{prefix}-{millis}-{uuid.uuid4().hex[:8]}"


def build_test_file_path(source_file_name: str, tests_directory: str = "tests") -> str:
    """Return the repository path for the tests of `source_file_name`.

    Python sources follow the ``test_<name>.py`` convention, everything else
    uses ``<stem>.test<suffix>`` as JavaScript test runners expect.
    """
    source = PurePosixPath(source_file_name)
    if source.suffix == ".py":
        name = f"test_{source.name}"
    elif source.suffix:
        name = f"{source.stem}.test{source.suffix}"
    else:
        name = f"{source.name}.test"
    directory = (tests_directory or "").strip("/")
    return f"{directory}/{name}" if directory else name
