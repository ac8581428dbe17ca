from __future__ import annotations
from dataclasses import dataclass, field
from notetex.crud.store import DocumentStore


@dataclass
class MemoryStore(DocumentStore):
    _docs: dict[str, str] = field(default_factory=dict)
    _dirs: set[str] = field(default_factory=set)

    def read(self, path: str) -> str | None:
        return self._docs.get(path)

    def write(self, path: str, text: str) -> None:
        self._docs[path] = text

    def ensure_directory(self, path: str) -> None:
        self._dirs.add(path.strip('/'))

    def list(self, path: str = '') -> list[str]:
        prefix = f"{path.strip('/')}/" if path.strip('/') else ''
        return sorted(p for p in self._docs if p.startswith(prefix))
