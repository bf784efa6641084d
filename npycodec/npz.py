"""NPZ archives – a ZIP container of independent NPY buffers.

An archive written by :func:`write_npz` looks like::

    weights.npy     ← stored (uncompressed) member, one NPY buffer
    bias.npy
    …

Entries are addressed by name without the ``.npy`` suffix.  Each entry
is decoded on its own stream, so a corrupt or unsupported entry never
affects its siblings.
"""

from __future__ import annotations

import logging
import zipfile
from typing import IO, Any, Mapping

import numpy as np

from . import npy
from .errors import EntryNotFound, NpyError
from .format import DEFAULT_VERSION, NPY_SUFFIX
from .header import Header
from .marshal import Target

logger = logging.getLogger("npycodec")


# ── Writer ──────────────────────────────────────────────────────────────────


def write_npz(
    sink,
    arrays: Mapping[str, Any],
    *,
    version: tuple[int, int] = DEFAULT_VERSION,
    atomic: bool = True,
) -> list[str]:
    """Write every value of *arrays* as a stored ``<name>.npy`` member.

    Returns the entry names in archive order.
    """
    names: list[str] = []
    with npy.open_sink(sink, atomic=atomic) as f:
        with zipfile.ZipFile(f, "w", compression=zipfile.ZIP_STORED) as zf:
            for name, value in arrays.items():
                if not name:
                    raise ValueError("entry name must not be empty")
                with zf.open(name + NPY_SUFFIX, "w", force_zip64=True) as member:
                    npy.write(member, value, version=version)
                names.append(name)
    logger.debug("wrote archive with %d entries", len(names))
    return names


# ── Reader ──────────────────────────────────────────────────────────────────


class NpzReader:
    """Read entries from an NPZ archive.

    Usage::

        with NpzReader("data.npz") as r:
            for name in r.list_entries():
                print(name, r.header(name))
            m = r.read("weights", Target.of(np.float64, Layout.ROW_MAJOR))
    """

    def __init__(self, source) -> None:
        try:
            self._zip = zipfile.ZipFile(source, "r")
        except zipfile.BadZipFile as exc:
            raise NpyError(f"not an NPZ archive: {exc}") from exc
        self._members: dict[str, str] = {}
        for info in self._zip.infolist():
            if info.is_dir():
                continue
            member = info.filename
            name = member[: -len(NPY_SUFFIX)] if member.endswith(NPY_SUFFIX) else member
            self._members[name] = member

    # ── Entry discovery ──────────────────────────────────────────────────

    def list_entries(self) -> list[str]:
        return list(self._members)

    def __contains__(self, name: str) -> bool:
        return name in self._members

    def open_entry(self, name: str) -> IO[bytes]:
        """Open entry *name* as a binary stream; the caller closes it."""
        member = self._members.get(name)
        if member is None:
            raise EntryNotFound(f"entry {name!r} not found")
        return self._zip.open(member, "r")

    # ── Entry decoding ───────────────────────────────────────────────────

    def header(self, name: str) -> Header:
        with self.open_entry(name) as f:
            return npy.parse_header(f)

    def read(self, name: str, target: Target):
        with self.open_entry(name) as f:
            return npy.read(f, target)

    def read_into(self, name: str, destination) -> None:
        with self.open_entry(name) as f:
            npy.read_into(f, destination)

    def load(self, name: str) -> np.ndarray:
        with self.open_entry(name) as f:
            return npy.load(f)

    def validate(self) -> list[str]:
        """Decode every entry; return one error description per failure."""
        errors: list[str] = []
        for name in self._members:
            try:
                self.load(name)
            except NpyError as exc:
                errors.append(f"{name}: {exc}")
        return errors

    # ── Lifecycle ────────────────────────────────────────────────────────

    def close(self) -> None:
        self._zip.close()

    def __enter__(self) -> NpzReader:
        return self

    def __exit__(self, *_: object) -> None:
        self.close()
