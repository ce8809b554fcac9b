"""Listing installed plugins from their receipts."""

from __future__ import annotations

import fnmatch
import logging
import os

from . import constants, receipt
from .index import Receipt

log = logging.getLogger(__name__)


def installed_plugins_from_index(receipts_dir: str, index_name: str) -> list[Receipt]:
    """Return receipts of plugins installed from the named index."""
    return [
        r
        for r in get_installed_plugin_receipts(receipts_dir)
        if r.status.source.name == index_name
    ]


def get_installed_plugin_receipts(receipts_dir: str) -> list[Receipt]:
    """Load every receipt in the directory, in file name order.

    A missing directory holds no receipts. Raises ValueError for a receipt
    that cannot be parsed.
    """
    try:
        names = sorted(os.listdir(receipts_dir))
    except OSError:
        return []
    pattern = "*" + constants.MANIFEST_EXTENSION
    receipts = []
    for name in names:
        if not fnmatch.fnmatchcase(name, pattern):
            continue
        path = os.path.join(receipts_dir, name)
        try:
            r = receipt.load(path)
        except ValueError as err:
            raise ValueError(f"failed to parse plugin install receipt {path}: {err}") from err
        receipts.append(r)
        log.debug("parsed receipt for %s: version=%s", r.plugin.name, r.plugin.spec.version)
    return receipts