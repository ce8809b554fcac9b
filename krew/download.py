"""Fetching, verifying and unpacking plugin archives."""

from __future__ import annotations

import hashlib
import io
import logging
import os
import re
import shutil
import tarfile
import urllib.error
import urllib.request
import zipfile
import zlib
from collections.abc import Callable, Iterator
from dataclasses import dataclass
from typing import IO, Protocol

log = logging.getLogger(__name__)

_CHUNK_SIZE = 64 * 1024
_SNIFF_LEN = 512


class ArchiveError(Exception):
    """An archive cannot be recognised or unpacked safely."""


class VerificationError(Exception):
    """Downloaded content does not match its expected checksum."""


class _Verifier(Protocol):
    def write(self, data: bytes) -> int: ...

    def verify(self) -> None: ...


class _Fetcher(Protocol):
    def get(self, uri: str) -> IO[bytes]: ...


_HEX_PAIRS = re.compile(r"(?:[0-9a-fA-F]{2})*")


class Sha256Verifier:
    """Checks written content against an expected hex-encoded SHA-256 sum."""

    def __init__(self, hashed: str) -> None:
        # Decodes the valid leading pairs only, as a malformed sum can never match.
        self._wanted = bytes.fromhex(_HEX_PAIRS.match(hashed).group())
        self._hash = hashlib.sha256()

    def write(self, data: bytes) -> int:
        self._hash.update(data)
        return len(data)

    def verify(self) -> None:
        """Raise VerificationError unless the content matches the expected sum."""
        log.debug("Compare sha256 (%s) signed version", self._wanted.hex())
        got = self._hash.digest()
        if got != self._wanted:
            raise VerificationError(
                f"checksum does not match, want: {self._wanted.hex()}, got {got.hex()}"
            )


class HTTPFetcher:
    """Fetches files over http:// and https://."""

    def get(self, uri: str) -> IO[bytes]:
        log.debug("Fetching %r", uri)
        try:
            return urllib.request.urlopen(uri)
        except urllib.error.HTTPError as err:
            # A response with an error status still has a body to read.
            return err
        except (urllib.error.URLError, ValueError) as err:
            raise OSError(f"failed to download {uri!r}: {err}") from err


@dataclass(frozen=True)
class FileFetcher:
    """Reads a local file, whatever URI is asked for."""

    path: str

    def get(self, uri: str) -> IO[bytes]:
        log.debug("Reading %r", self.path)
        return open(self.path, "rb")


def download(url: str, verifier: _Verifier, fetcher: _Fetcher) -> bytes:
    """Fetch ``url`` into memory, feeding it through ``verifier``, and verify it."""
    try:
        body = fetcher.get(url)
    except OSError as err:
        raise OSError(f"failed to obtain plugin archive: {err}") from err

    chunks = []
    try:
        with body:
            while chunk := body.read(_CHUNK_SIZE):
                verifier.write(chunk)
                chunks.append(chunk)
    except OSError as err:
        raise OSError(f"could not read archive: {err}") from err
    data = b"".join(chunks)
    log.debug("Read %d bytes from archive into memory", len(data))
    verifier.verify()
    return data


def suspicious_path(path: str) -> None:
    """Raise ArchiveError for entries that climb up or are absolute."""
    if ".." in path:
        raise ArchiveError(f"refusing to unpack archive with suspicious entry {path!r}")
    if path.startswith("/") or path.startswith("\\"):
        raise ArchiveError(f"refusing to unpack archive with absolute entry {path!r}")


def _entry_path(target_dir: str, name: str) -> str:
    return os.path.normpath(os.path.join(target_dir, name.replace("/", os.sep)))


def extract_zip(target_dir: str, data: bytes) -> None:
    """Unpack a zip archive into ``target_dir``."""
    log.debug("Extracting zip archive to %r", target_dir)
    try:
        archive = zipfile.ZipFile(io.BytesIO(data))
    except (zipfile.BadZipFile, OSError) as err:
        raise ArchiveError(f"failed to read zip archive: {err}") from err

    with archive:
        for info in archive.infolist():
            suspicious_path(info.filename)
            path = _entry_path(target_dir, info.filename)
            mode = (info.external_attr >> 16) & 0o777
            if info.is_dir():
                os.makedirs(path, mode or 0o755, exist_ok=True)
                continue

            parent = os.path.dirname(path)
            log.debug("zip: ensuring parent dirs exist for regular file, dir=%s", parent)
            os.makedirs(parent, 0o755, exist_ok=True)
            fd = os.open(path, os.O_CREAT | os.O_WRONLY | os.O_TRUNC, mode or 0o644)
            try:
                with os.fdopen(fd, "wb") as dst, archive.open(info) as src:
                    shutil.copyfileobj(src, dst)
            except (zipfile.BadZipFile, zlib.error, OSError) as err:
                raise ArchiveError(
                    f"can't copy content to zip destination file: {err}"
                ) from err


def _tar_members(tar: tarfile.TarFile) -> Iterator[tarfile.TarInfo]:
    while True:
        try:
            member = tar.next()
        except (tarfile.TarError, EOFError, zlib.error, OSError) as err:
            raise ArchiveError(f"tar extraction error: {err}") from err
        if member is None:
            return
        yield member


def extract_targz(target_dir: str, data: bytes) -> None:
    """Unpack a gzipped tar archive into ``target_dir``."""
    log.debug("tar: extracting to %r", target_dir)
    try:
        tar = tarfile.open(fileobj=io.BytesIO(data), mode="r:gz")
    except (tarfile.TarError, EOFError, zlib.error, OSError) as err:
        raise ArchiveError(f"failed to create gzip reader: {err}") from err

    with tar:
        for member in _tar_members(tar):
            if member.name == "pax_global_header":
                log.debug("tar: skipping pax_global_header file")
                continue
            suspicious_path(member.name)
            path = _entry_path(target_dir, member.name)
            mode = member.mode & 0o777
            if member.isdir():
                os.makedirs(path, mode, exist_ok=True)
            elif member.isreg():
                parent = os.path.dirname(path)
                log.debug("tar: ensuring parent dirs exist for regular file, dir=%s", parent)
                os.makedirs(parent, 0o755, exist_ok=True)
                fd = os.open(path, os.O_CREAT | os.O_WRONLY, mode)
                try:
                    with os.fdopen(fd, "wb") as dst:
                        src = tar.extractfile(member)
                        if src is not None:
                            with src:
                                shutil.copyfileobj(src, dst)
                except (tarfile.TarError, EOFError, zlib.error, OSError) as err:
                    raise ArchiveError(
                        f"failed to copy {member.name!r} from tar into file: {err}"
                    ) from err
            else:
                raise ArchiveError(
                    f"unable to handle file type {member.type[0]} for "
                    f"{member.name!r} in tar"
                )
            log.debug("tar: processed %r", member.name)
    log.debug("tar extraction to %s complete", target_dir)


_WHITESPACE = b"\t\n\x0c\r "
_HTML_SIGNATURES = (
    b"<!DOCTYPE HTML", b"<HTML", b"<HEAD", b"<SCRIPT", b"<IFRAME", b"<H1",
    b"<DIV", b"<FONT", b"<TABLE", b"<A", b"<STYLE", b"<TITLE", b"<B",
    b"<BODY", b"<BR", b"<P", b"<!--",
)
_PREFIX_SIGNATURES = (
    (b"%PDF-", "application/pdf"),
    (b"%!PS-Adobe-", "application/postscript"),
    (b"\xfe\xff", "text/plain; charset=utf-16be"),
    (b"\xff\xfe", "text/plain; charset=utf-16le"),
    (b"\xef\xbb\xbf", "text/plain; charset=utf-8"),
    (b"\x00\x00\x01\x00", "image/x-icon"),
    (b"\x00\x00\x02\x00", "image/x-icon"),
    (b"BM", "image/bmp"),
    (b"GIF87a", "image/gif"),
    (b"GIF89a", "image/gif"),
    (b"\x89PNG\r\n\x1a\n", "image/png"),
    (b"\xff\xd8\xff", "image/jpeg"),
    (b"ID3", "audio/mpeg"),
    (b"OggS\x00", "application/ogg"),
    (b"MThd\x00\x00\x00\x06", "audio/midi"),
    (b"\x1aE\xdf\xa3", "video/webm"),
    (b"wOFF", "font/woff"),
    (b"wOF2", "font/woff2"),
    (b"OTTO", "font/otf"),
    (b"\x1f\x8b\x08", "application/x-gzip"),
    (b"PK\x03\x04", "application/zip"),
    (b"Rar!\x1a\x07\x00", "application/x-rar-compressed"),
    (b"Rar!\x1a\x07\x01\x00", "application/x-rar-compressed"),
    (b"\x00asm", "application/wasm"),
)
_BINARY_BYTES = frozenset(
    [*range(0x00, 0x09), 0x0B, *range(0x0E, 0x1B), *range(0x1C, 0x20)]
)


def _sniff(data: bytes) -> str:
    stripped = data.lstrip(_WHITESPACE)
    for sig in _HTML_SIGNATURES:
        size = len(sig)
        if (
            len(stripped) > size
            and stripped[:size].upper() == sig
            and stripped[size] in b" >"
        ):
            return "text/html; charset=utf-8"
    if stripped.startswith(b"<?xml"):
        return "text/xml; charset=utf-8"
    for prefix, mime in _PREFIX_SIGNATURES:
        if data.startswith(prefix):
            return mime
    if data[:4] == b"RIFF" and data[8:14] == b"WEBPVP":
        return "image/webp"
    if _BINARY_BYTES.intersection(data):
        return "application/octet-stream"
    return "text/plain; charset=utf-8"


def detect_mime_type(data: bytes) -> str:
    """Guess the content type from the first 512 bytes, without parameters."""
    head = data[:_SNIFF_LEN]
    if len(head) < _SNIFF_LEN:
        log.debug("Did only read %d of 512 bytes to determine the file type", len(head))
    return _sniff(head).split(";")[0]


_EXTRACTORS: dict[str, Callable[[str, bytes], None]] = {
    "application/zip": extract_zip,
    "application/x-gzip": extract_targz,
}


def extract_archive(dst: str, data: bytes) -> None:
    """Unpack a zip or tar.gz archive into ``dst``, chosen by its content."""
    mime = detect_mime_type(data)
    log.debug("detected %r file type", mime)
    extractor = _EXTRACTORS.get(mime)
    if extractor is None:
        raise ArchiveError(
            f"mime type {mime!r} for archive file is not a supported archive format"
        )
    try:
        extractor(dst, data)
    except (ArchiveError, OSError) as err:
        raise ArchiveError(f"failed to extract file: {err}") from err


@dataclass(frozen=True)
class Downloader:
    """Fetches, verifies and unpacks an archive."""

    verifier: _Verifier
    fetcher: _Fetcher

    def get(self, uri: str, dst: str) -> None:
        """Download ``uri``, verify it and unpack it into ``dst``."""
        data = download(uri, self.verifier, self.fetcher)
        extract_archive(dst, data)