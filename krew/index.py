"""Plugin manifest and install receipt data types."""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from . import constants

_OPERATORS = ("In", "NotIn", "Exists", "DoesNotExist")


def _format_time(value: datetime | None) -> str | None:
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def _parse_time(value: Any) -> datetime | None:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        text = str(value)
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _mapping(data: Any) -> Mapping[str, Any]:
    return data if isinstance(data, Mapping) else {}


@dataclass
class LabelSelectorRequirement:
    """One expression of a label selector, such as ``os In (linux, darwin)``."""

    key: str
    operator: str
    values: list[str] = field(default_factory=list)

    def _matches(self, labels: Mapping[str, str]) -> bool:
        if self.operator not in _OPERATORS:
            raise ValueError(f"{self.operator!r} is not a valid label selector operator")
        if self.operator in ("In", "NotIn"):
            if not self.values:
                raise ValueError(
                    f"values: must be specified when operator is {self.operator!r}"
                )
            if self.operator == "In":
                return self.key in labels and labels[self.key] in self.values
            return self.key not in labels or labels[self.key] not in self.values
        if self.values:
            raise ValueError(
                f"values: may not be specified when operator is {self.operator!r}"
            )
        if self.operator == "Exists":
            return self.key in labels
        return self.key not in labels


@dataclass
class LabelSelector:
    """Selects a platform by its ``os`` and ``arch`` labels.

    ``None`` and an empty mapping or list are kept apart, as validation
    treats them differently.
    """

    match_labels: dict[str, str] | None = None
    match_expressions: list[LabelSelectorRequirement] | None = None

    def matches(self, labels: Mapping[str, str]) -> bool:
        """Tell whether the labels satisfy every requirement of the selector.

        An empty selector matches everything. Raises ValueError for a
        selector that cannot be compiled.
        """
        requirements = [
            LabelSelectorRequirement(key, "In", [value])
            for key, value in (self.match_labels or {}).items()
        ]
        requirements.extend(self.match_expressions or [])
        checks = [req._matches(labels) for req in requirements]
        return all(checks)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> LabelSelector:
        data = _mapping(data)
        labels = data.get("matchLabels")
        expressions = data.get("matchExpressions")
        return cls(
            match_labels=None if labels is None else {str(k): str(v) for k, v in labels.items()},
            match_expressions=None
            if expressions is None
            else [
                LabelSelectorRequirement(
                    key=str(expr.get("key", "")),
                    operator=str(expr.get("operator", "")),
                    values=[str(v) for v in (expr.get("values") or [])],
                )
                for expr in map(_mapping, expressions)
            ],
        )

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {}
        if self.match_labels:
            out["matchLabels"] = dict(self.match_labels)
        if self.match_expressions:
            exprs = []
            for expr in self.match_expressions:
                item: dict[str, Any] = {"key": expr.key, "operator": expr.operator}
                if expr.values:
                    item["values"] = list(expr.values)
                exprs.append(item)
            out["matchExpressions"] = exprs
        return out


@dataclass
class FileOperation:
    """Copies files matching ``from_`` in the archive to ``to`` in the install dir."""

    from_: str = ""
    to: str = ""


@dataclass
class Platform:
    """How to install a plugin on the platforms its selector matches."""

    uri: str = ""
    sha256: str = ""
    selector: LabelSelector | None = None
    files: list[FileOperation] | None = None
    # Path of the plugin executable, relative to the installation directory.
    bin: str = ""

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Platform:
        data = _mapping(data)
        selector = data.get("selector")
        files = data.get("files")
        return cls(
            uri=str(data.get("uri") or ""),
            sha256=str(data.get("sha256") or ""),
            selector=None if selector is None else LabelSelector.from_dict(selector),
            files=None
            if files is None
            else [
                FileOperation(from_=str(f.get("from") or ""), to=str(f.get("to") or ""))
                for f in map(_mapping, files)
            ],
            bin=str(data.get("bin") or ""),
        )

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {}
        if self.uri:
            out["uri"] = self.uri
        if self.sha256:
            out["sha256"] = self.sha256
        if self.selector is not None:
            out["selector"] = self.selector.to_dict()
        if self.files is None:
            out["files"] = None
        else:
            files = []
            for fo in self.files:
                item = {}
                if fo.from_:
                    item["from"] = fo.from_
                if fo.to:
                    item["to"] = fo.to
                files.append(item)
            out["files"] = files
        out["bin"] = self.bin
        return out


@dataclass
class PluginSpec:
    """The specification part of a plugin manifest."""

    version: str = ""
    short_description: str = ""
    description: str = ""
    caveats: str = ""
    homepage: str = ""
    platforms: list[Platform] = field(default_factory=list)


_SPEC_KEYS = (
    ("version", "version"),
    ("short_description", "shortDescription"),
    ("description", "description"),
    ("caveats", "caveats"),
    ("homepage", "homepage"),
)


def _spec_from_dict(data: Any) -> PluginSpec:
    data = _mapping(data)
    spec = PluginSpec(
        **{attr: str(data.get(key) or "") for attr, key in _SPEC_KEYS}
    )
    spec.platforms = [Platform.from_dict(p) for p in (data.get("platforms") or [])]
    return spec


def _spec_to_dict(spec: PluginSpec) -> dict[str, Any]:
    out: dict[str, Any] = {
        key: getattr(spec, attr) for attr, key in _SPEC_KEYS if getattr(spec, attr)
    }
    if spec.platforms:
        out["platforms"] = [p.to_dict() for p in spec.platforms]
    return out


@dataclass
class Plugin:
    """A plugin manifest."""

    api_version: str = ""
    kind: str = ""
    name: str = ""
    creation_timestamp: datetime | None = None
    spec: PluginSpec = field(default_factory=PluginSpec)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Plugin:
        data = _mapping(data)
        metadata = _mapping(data.get("metadata"))
        return cls(
            api_version=str(data.get("apiVersion") or ""),
            kind=str(data.get("kind") or ""),
            name=str(metadata.get("name") or ""),
            creation_timestamp=_parse_time(metadata.get("creationTimestamp")),
            spec=_spec_from_dict(data.get("spec")),
        )

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {}
        if self.api_version:
            out["apiVersion"] = self.api_version
        if self.kind:
            out["kind"] = self.kind
        metadata: dict[str, Any] = {}
        if self.name:
            metadata["name"] = self.name
        metadata["creationTimestamp"] = _format_time(self.creation_timestamp)
        out["metadata"] = metadata
        out["spec"] = _spec_to_dict(self.spec)
        return out


@dataclass
class SourceIndex:
    """The index a plugin was installed from."""

    name: str = ""


@dataclass
class ReceiptStatus:
    """Information about an installed plugin."""

    source: SourceIndex = field(default_factory=SourceIndex)


@dataclass
class Receipt:
    """An install receipt: the installed plugin's manifest and its status."""

    plugin: Plugin = field(default_factory=Plugin)
    status: ReceiptStatus = field(default_factory=ReceiptStatus)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Receipt:
        data = _mapping(data)
        source = _mapping(_mapping(data.get("status")).get("source"))
        return cls(
            plugin=Plugin.from_dict(data),
            status=ReceiptStatus(source=SourceIndex(name=str(source.get("name") or ""))),
        )

    def to_dict(self) -> dict[str, Any]:
        out = self.plugin.to_dict()
        out["status"] = {"source": {"name": self.status.source.name}}
        return out


def default_index() -> str:
    """Return the URI of the default index, overridable by KREW_DEFAULT_INDEX_URI."""
    return os.environ.get("KREW_DEFAULT_INDEX_URI") or constants.DEFAULT_INDEX_URI