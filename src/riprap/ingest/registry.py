"""Front ends known to riprap, looked up by language id or payload suffix."""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path

from riprap.exceptions import UnknownFrontEnd
from riprap.ingest.adapter_contract import FrontEnd
from riprap.ingest.json_frontend import JsonFrontEnd


class FrontEndRegistry:
    def __init__(self, default: FrontEnd) -> None:
        self.default = default
        self._by_language: dict[str, FrontEnd] = {}
        self._by_suffix: dict[str, FrontEnd] = {}
        self.register(default)

    def register(self, front_end: FrontEnd) -> None:
        self._by_language[front_end.language_id.lower()] = front_end
        self._by_suffix.update(
            (suffix.lower(), front_end) for suffix in front_end.file_extensions
        )

    def languages(self) -> list[str]:
        return sorted(self._by_language)

    def select(self, paths: Sequence[Path], language_id: str | None = None) -> FrontEnd:
        """An explicit language wins; otherwise the first path with a known
        suffix decides, and payloads without one go to the default front end."""
        if language_id is not None:
            front_end = self._by_language.get(language_id.lower())
            if front_end is None:
                raise UnknownFrontEnd(language_id, self.languages())
            return front_end
        for path in paths:
            front_end = self._by_suffix.get(path.suffix.lower())
            if front_end is not None:
                return front_end
        return self.default


FRONT_ENDS = FrontEndRegistry(default=JsonFrontEnd())
