"""
Genesis archive packing and hardened unpacking.

The archive is a bzip2-compressed tar holding a single regular file,
`genesis.bin`, with the canonical genesis bytes. Archives are downloaded
from peers, so unpacking trusts nothing: member count, name, type and size
are all checked before a byte of content is read.
"""

from __future__ import annotations

import io
import tarfile

from typing_extensions import Final

from cluster_genesis.errors import ArchiveCorruptError, ArchiveTooLargeError

GENESIS_FILE_NAME: Final = "genesis.bin"
"""Name of the canonical genesis bytes, inside the archive and in a ledger directory."""

GENESIS_ARCHIVE_NAME: Final = "genesis.tar.bz2"
"""File name of the archive in a ledger directory."""

GENESIS_MANIFEST_NAME: Final = "genesis.manifest.yaml"
"""File name of the hash manifest written next to the archive."""


def pack(canonical_bytes: bytes, mtime: int) -> bytes:
    """
    Archive canonical genesis bytes.

    Owner, group, mode and timestamp are fixed so the same genesis always
    packs into the same archive.
    """
    info = tarfile.TarInfo(name=GENESIS_FILE_NAME)
    info.size = len(canonical_bytes)
    info.mtime = mtime
    info.mode = 0o644
    info.uid = info.gid = 0
    info.uname = info.gname = ""

    buffer = io.BytesIO()
    with tarfile.open(fileobj=buffer, mode="w:bz2", format=tarfile.USTAR_FORMAT) as tar:
        tar.addfile(info, io.BytesIO(canonical_bytes))
    return buffer.getvalue()


def unpack(archive: bytes, max_unpacked_size: int) -> bytes:
    """
    Extract the canonical genesis bytes from an archive.

    Raises:
        ArchiveTooLargeError: The genesis file is larger than `max_unpacked_size`.
        ArchiveCorruptError: The archive is unreadable, or holds anything other
            than one regular file named `genesis.bin`.
    """
    try:
        with tarfile.open(fileobj=io.BytesIO(archive), mode="r:bz2") as tar:
            member = tar.next()
            if member is None:
                raise ArchiveCorruptError("genesis archive is empty")
            if member.name != GENESIS_FILE_NAME:
                raise ArchiveCorruptError(
                    f"unexpected archive member {member.name!r} (expected {GENESIS_FILE_NAME!r})"
                )
            if not member.isreg():
                raise ArchiveCorruptError(f"archive member {member.name!r} is not a regular file")
            if member.size > max_unpacked_size:
                raise ArchiveTooLargeError(member.size, max_unpacked_size)

            extracted = tar.extractfile(member)
            if extracted is None:
                raise ArchiveCorruptError(f"archive member {member.name!r} has no content")
            # Read one byte past the bound so an understated header is caught.
            data = extracted.read(max_unpacked_size + 1)
            if len(data) > max_unpacked_size:
                raise ArchiveTooLargeError(len(data), max_unpacked_size)
            if len(data) != member.size:
                raise ArchiveCorruptError(
                    f"archive member is truncated ({len(data)} of {member.size} bytes)"
                )

            if tar.next() is not None:
                raise ArchiveCorruptError("genesis archive holds more than one member")
    except (tarfile.TarError, EOFError, OSError) as e:
        raise ArchiveCorruptError(f"genesis archive is unreadable: {e}") from e

    return data
