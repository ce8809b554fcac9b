"""Managing the configured plugin indexes."""

from __future__ import annotations

import os
import re
import shutil
from dataclasses import dataclass

from .environment import Paths

_VALID_NAME = re.compile(r"^[A-Za-z0-9_-]+\Z")


@dataclass(frozen=True)
class Index:
    """The name and URL of a configured index."""

    name: str
    url: str


def delete_index(paths: Paths, name: str) -> None:
    """Remove the named index; raises FileNotFoundError if it does not exist."""
    directory = paths.index_path(name)
    os.stat(directory)
    if os.path.isdir(directory) and not os.path.islink(directory):
        shutil.rmtree(directory)
    else:
        os.remove(directory)


def is_valid_index_name(name: str) -> bool:
    """Tell whether an index name uses only letters, digits, ``_`` and ``-``."""
    return _VALID_NAME.match(name) is not None