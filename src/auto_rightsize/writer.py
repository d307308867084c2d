from __future__ import annotations

from pathlib import Path
from typing import List

from .documents import DocumentStore, _join_location
from .errors import ManifestIOError


def save_documents(store: DocumentStore) -> List[Path]:
	written: List[Path] = []
	for location, docs in store.by_location().items():
		if not any(d.changed for d in docs):
			continue
		content = _join_location(docs)
		try:
			location.parent.mkdir(parents=True, exist_ok=True)
			with location.open("w", encoding="utf-8", newline="") as f:
				f.write(content)
		except OSError as e:
			raise ManifestIOError(f"failed to write {location}: {e}") from e
		written.append(location)
	return written


def pending_writes(store: DocumentStore) -> List[Path]:
	return store.changed_locations()
