"""Storing and loading plugin install receipts."""

from __future__ import annotations

import dataclasses
import os
from datetime import datetime

import yaml

from . import scanner
from .index import Plugin, Receipt, ReceiptStatus, SourceIndex


def store(receipt: Receipt, dest: str) -> None:
    """Write the receipt to ``dest``; its directory must already exist."""
    content = yaml.safe_dump(receipt.to_dict(), sort_keys=False)
    fd = os.open(dest, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o644)
    with os.fdopen(fd, "w", encoding="utf-8") as f:
        f.write(content)


def load(path: str) -> Receipt:
    """Read the receipt at ``path``; raises FileNotFoundError if it is absent."""
    return scanner.read_receipt_from_file(path)


def new(plugin: Plugin, index_name: str, timestamp: datetime | None) -> Receipt:
    """Build a receipt for a plugin installed from the named index."""
    return Receipt(
        plugin=dataclasses.replace(plugin, creation_timestamp=timestamp),
        status=ReceiptStatus(source=SourceIndex(name=index_name)),
    )