"""Structural checks for plugin manifests."""

from __future__ import annotations

import re
from collections.abc import Sequence

from . import constants, semver
from .index import FileOperation, LabelSelector, Platform, Plugin

SHA256_PATTERN = r"^[a-f0-9]{64}$"
SAFE_PLUGIN_PATTERN = r"^[\w-]+$"

_SAFE_PLUGIN_RE = re.compile(r"^[\w-]+\Z", re.ASCII)
_SHA256_RE = re.compile(r"^[a-f0-9]{64}\Z")

# Names that Windows reserves for devices.
_WINDOWS_FORBIDDEN = (
    "CON", "PRN", "AUX", "NUL",
    "COM1", "COM2", "COM3", "COM4", "COM5", "COM6", "COM7", "COM8", "COM9",
    "LPT1", "LPT2", "LPT3", "LPT4", "LPT5", "LPT6", "LPT7", "LPT8", "LPT9",
)
_SUPPORTED_SELECTOR_KEYS = ("os", "arch")


class ValidationError(ValueError):
    """A plugin manifest is structurally invalid."""


def is_safe_plugin_name(name: str) -> bool:
    """Tell whether a plugin name is safe to use as a file name."""
    if not _SAFE_PLUGIN_RE.match(name):
        return False
    return name.upper() not in _WINDOWS_FORBIDDEN


def is_supported_api_version(api_version: str) -> bool:
    return api_version == constants.CURRENT_API_VERSION


def is_valid_sha256(value: str) -> bool:
    return _SHA256_RE.match(value) is not None


def validate_plugin(name: str, plugin: Plugin) -> None:
    """Check a plugin manifest that is expected to carry the given name.

    Raises ValidationError describing the first problem found.
    """
    if not is_supported_api_version(plugin.api_version):
        raise ValidationError(
            f"plugin manifest has apiVersion={plugin.api_version!r}, not supported in "
            "this version of krew (try updating plugin index or install a newer "
            "version of krew)"
        )
    if plugin.kind != constants.PLUGIN_KIND:
        raise ValidationError(
            f"plugin manifest has kind={plugin.kind!r}, "
            f"but only {constants.PLUGIN_KIND!r} is supported"
        )
    if not is_safe_plugin_name(name):
        raise ValidationError(
            f"the plugin name {name!r} is not allowed, must match {SAFE_PLUGIN_PATTERN!r}"
        )
    if plugin.name != name:
        raise ValidationError(f"plugin should be named {name!r}, not {plugin.name!r}")
    spec = plugin.spec
    if not spec.short_description:
        raise ValidationError("should have a short description")
    if "\r" in spec.short_description or "\n" in spec.short_description:
        raise ValidationError("should not have line breaks in short description")
    if not spec.platforms:
        raise ValidationError("should have a platform specified")
    if not spec.version:
        raise ValidationError("should have a version specified")
    try:
        semver.parse(spec.version)
    except ValueError as err:
        raise ValidationError(f"failed to parse plugin version: {err}") from err
    for platform in spec.platforms:
        try:
            validate_platform(platform)
        except ValidationError as err:
            raise ValidationError(
                f"platform ({platform}) is badly constructed: {err}"
            ) from err


def validate_platform(platform: Platform) -> None:
    """Check a platform entry; raises ValidationError."""
    if not platform.uri:
        raise ValidationError("`uri` has to be set")
    if not platform.sha256:
        raise ValidationError("`sha256` sum has to be set")
    if not is_valid_sha256(platform.sha256):
        raise ValidationError(
            f"`sha256` value {platform.sha256} is not valid, "
            f"must match pattern {SHA256_PATTERN}"
        )
    if not platform.bin:
        raise ValidationError("`bin` has to be set")
    try:
        validate_files(platform.files)
    except ValidationError as err:
        raise ValidationError(f"`files` is invalid: {err}") from err
    try:
        validate_selector(platform.selector)
    except ValidationError as err:
        raise ValidationError(f"invalid platform selector: {err}") from err


def validate_files(files: Sequence[FileOperation] | None) -> None:
    """Check file operations: unspecified is fine, empty is not."""
    if files is None:
        return
    if not files:
        raise ValidationError("`files` has to be unspecified or non-empty")
    for op in files:
        if not op.from_:
            raise ValidationError("`from` field has to be set")
        if not op.to:
            raise ValidationError("`to` field has to be set")


def validate_selector(selector: LabelSelector | None) -> None:
    """Check that a selector is present, non-empty and uses only os/arch keys."""
    if selector is None:
        raise ValidationError("nil selector is not supported")
    if selector.match_labels is None and not selector.match_expressions:
        raise ValidationError("empty selector is not supported")

    keys = list(selector.match_labels or {})
    keys.extend(expr.key for expr in selector.match_expressions or [])
    for key in keys:
        if key not in _SUPPORTED_SELECTOR_KEYS:
            raise ValidationError(f"key {key!r} not supported")

    if selector.match_labels is not None and not selector.match_labels:
        raise ValidationError("`matchLabels` specified but empty")
    if selector.match_expressions is not None and not selector.match_expressions:
        raise ValidationError("`matchExpressions` specified but empty")