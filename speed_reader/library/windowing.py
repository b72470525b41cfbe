from __future__ import annotations

import logging
from typing import List

from .errors import InvalidInputError
from .indexing import PathLike, iter_words

logger = logging.getLogger(__name__)


class WordWindowReader:
    """
    Serves bounded slices of a text resource by absolute word index.

    No cursor survives between calls: every window rescans from the start of
    the file, so a call costs O(start_index + size) words. Playback should ask
    for monotonically advancing windows.
    """

    def read_window(self, path: PathLike, start_index: int, size: int) -> List[str]:
        if start_index < 0:
            raise InvalidInputError(f"start_index must be non-negative, got {start_index}")
        if size < 0:
            raise InvalidInputError(f"size must be non-negative, got {size}")

        window: List[str] = []
        if size == 0:
            return window

        end_index = start_index + size
        words = iter_words(path)
        try:
            for position, word in enumerate(words):
                if position >= start_index:
                    window.append(word)
                    if position + 1 >= end_index:
                        break
        finally:
            words.close()

        logger.debug("Read %s words from %s starting at %s", len(window), path, start_index)
        return window
