"""Intent and Reality corpora.

Gathering material from a repository is somebody else's job; the engine
accepts any ``Corpus``. ``load_corpus`` is the thin adapter the CLI uses to
read a directory of text files.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from trustdebt.core.hashing import compute_hash
from trustdebt.framework.logging import get_logger

log = get_logger(__name__)

DEFAULT_SUFFIXES = (".md", ".txt", ".rst", ".py", ".ts", ".js", ".json", ".yaml", ".yml")

_WORD = re.compile(r"\w+")


class Provenance(str, Enum):
    INTENT = "intent"
    REALITY = "reality"


@dataclass(frozen=True, slots=True)
class Document:
    doc_id: str
    text: str

    @property
    def word_count(self) -> int:
        return len(_WORD.findall(self.text))


@dataclass(frozen=True)
class Corpus:
    """Documents from one provenance, ordered by ``doc_id``."""

    provenance: Provenance
    documents: tuple[Document, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        object.__setattr__(self, "documents", tuple(sorted(self.documents, key=lambda d: d.doc_id)))

    def __len__(self) -> int:
        return len(self.documents)

    @property
    def is_empty(self) -> bool:
        return not self.documents

    def texts(self) -> list[str]:
        return [d.text for d in self.documents]

    def digest(self) -> str:
        parts = [compute_hash(d.doc_id, d.text, length=64) for d in self.documents]
        return compute_hash(self.provenance.value, *parts, length=64)

    @classmethod
    def from_texts(cls, provenance: Provenance | str, texts: dict[str, str]) -> Corpus:
        return cls(Provenance(provenance), tuple(Document(doc_id, text) for doc_id, text in texts.items()))


def load_corpus(
    path: str | Path,
    provenance: Provenance | str,
    suffixes: tuple[str, ...] = DEFAULT_SUFFIXES,
) -> Corpus:
    """
    Read text files below ``path`` into a corpus.

    Hidden directories and ``node_modules`` are skipped. Document ids are
    POSIX paths relative to ``path``. A missing directory yields an empty
    corpus rather than an error.
    """
    root = Path(path)
    provenance = Provenance(provenance)
    if not root.exists():
        log.warning("corpus.missing", path=str(root), provenance=provenance.value)
        return Corpus(provenance)

    if root.is_file():
        files = [root]
        base = root.parent
    else:
        base = root
        files = []
        for candidate in sorted(root.rglob("*")):
            rel_parts = candidate.relative_to(root).parts
            if any(part.startswith(".") or part == "node_modules" for part in rel_parts[:-1]):
                continue
            if candidate.is_file() and candidate.suffix.lower() in suffixes:
                files.append(candidate)

    documents = []
    for file in files:
        text = file.read_bytes().decode("utf-8", errors="replace")
        documents.append(Document(file.relative_to(base).as_posix(), text))

    log.info("corpus.loaded", path=str(root), provenance=provenance.value, documents=len(documents))
    return Corpus(provenance, tuple(documents))
