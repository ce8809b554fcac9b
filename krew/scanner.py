"""Reading plugin manifests and install receipts from disk."""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from typing import IO, Any

import yaml

from . import constants
from .index import Plugin, Receipt
from .validation import ValidationError, validate_plugin

log = logging.getLogger(__name__)


def _find_plugin_manifest_files(index_dir: str) -> list[str]:
    with os.scandir(index_dir) as entries:
        return sorted(
            entry.name
            for entry in entries
            if entry.is_file(follow_symlinks=False)
            and os.path.splitext(entry.name)[1] == constants.MANIFEST_EXTENSION
        )


def load_plugin_list_from_fs(index_dir: str) -> list[Plugin]:
    """Load every valid plugin manifest in a directory.

    Manifests that cannot be read or fail validation are logged and skipped.
    """
    index_dir = os.path.realpath(index_dir, strict=True)
    files = _find_plugin_manifest_files(index_dir)
    log.debug("found %d plugins in dir %s", len(files), index_dir)

    plugins = []
    for file in files:
        plugin_name = os.path.splitext(file)[0]
        try:
            plugins.append(load_plugin_by_name(index_dir, plugin_name))
        except (OSError, ValueError) as err:
            log.error("failed to read or parse plugin manifest %r: %s", plugin_name, err)
    return plugins


def load_plugin_by_name(plugins_dir: str, plugin_name: str) -> Plugin:
    """Load a plugin manifest by name; raises FileNotFoundError if it is absent."""
    log.debug("Reading plugin %r from %s", plugin_name, plugins_dir)
    return read_plugin_from_file(
        os.path.join(plugins_dir, plugin_name + constants.MANIFEST_EXTENSION)
    )


def read_plugin_from_file(path: str) -> Plugin:
    """Read and validate a plugin manifest file.

    Raises FileNotFoundError when the file is absent, ValueError when it
    cannot be parsed and ValidationError when it is invalid.
    """
    plugin = Plugin.from_dict(_read_from_file(path))
    _validate(plugin)
    return plugin


def read_plugin(stream: IO[Any]) -> Plugin:
    """Read and validate a plugin manifest from a stream, closing it."""
    with stream:
        content = stream.read()
    try:
        data = _decode(content)
    except ValueError as err:
        raise ValueError(f"failed to decode plugin manifest: {err}") from err
    plugin = Plugin.from_dict(data)
    _validate(plugin)
    return plugin


def read_receipt_from_file(path: str) -> Receipt:
    """Read an install receipt; an absent source index becomes the default one.

    Raises FileNotFoundError when the file is absent.
    """
    receipt = Receipt.from_dict(_read_from_file(path))
    if not receipt.status.source.name:
        receipt.status.source.name = constants.DEFAULT_INDEX_NAME
    return receipt


def _validate(plugin: Plugin) -> None:
    try:
        validate_plugin(plugin.name, plugin)
    except ValidationError as err:
        raise ValidationError(f"plugin manifest validation error: {err}") from err


def _read_from_file(path: str) -> Mapping[str, Any]:
    with open(path, "rb") as f:
        content = f.read()
    try:
        return _decode(content)
    except ValueError as err:
        raise ValueError(f"failed to parse yaml file {path!r}: {err}") from err


def _decode(content: bytes | str) -> Mapping[str, Any]:
    try:
        data = yaml.safe_load(content)
    except yaml.YAMLError as err:
        raise ValueError(str(err)) from err
    if data is None:
        return {}
    if not isinstance(data, Mapping):
        raise ValueError("document is not a mapping")
    return data