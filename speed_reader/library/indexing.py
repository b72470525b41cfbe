from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterator, Protocol, Union

from .errors import InvalidInputError, StorageIOError

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


def iter_words(path: PathLike) -> Iterator[str]:
    """
    Yield the words of a text resource in file order.

    This is the single tokenization rule for the whole library: each line is
    split on whitespace and the per-line results are concatenated. Counting
    and windowing both consume this generator so word indices never drift
    between the two. Lines that are not valid UTF-8 are skipped.
    """
    resource = Path(path)
    try:
        handle = resource.open("rb")
    except ValueError as exc:
        raise InvalidInputError(f"Invalid path {str(path)!r}: {exc}") from exc
    except OSError as exc:
        raise StorageIOError(f"Failed to open {resource}: {exc}") from exc

    with handle:
        try:
            for line_number, raw_line in enumerate(handle, start=1):
                try:
                    line = raw_line.decode("utf-8")
                except UnicodeDecodeError:
                    logger.debug("Skipping undecodable line %s in %s", line_number, resource)
                    continue
                yield from line.split()
        except OSError as exc:
            raise StorageIOError(f"Failed to read {resource}: {exc}") from exc


class Indexer(Protocol):
    def count(self, path: PathLike) -> int:
        ...


class WordIndexer:
    """
    Counts whitespace-delimited words one line at a time, so memory use is
    bounded by the longest line rather than the file size.
    """

    def count(self, path: PathLike) -> int:
        total = 0
        for _ in iter_words(path):
            total += 1
        logger.debug("Indexed %s words in %s", total, path)
        return total
