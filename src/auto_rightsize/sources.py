from __future__ import annotations

from typing import Any, Dict, List, Optional

from .types import GIT_REPOSITORY, HELM_REPOSITORY_V1, HELM_REPOSITORY_V2, SourceEntry
from .yaml_utils import _get_map, _get_str

_REF_KEYS = ("branch", "tag", "semver", "commit", "name")


class SourceRegistry:
	"""GitRepository/HelmRepository declarations collected during a walk."""

	def __init__(self) -> None:
		self._entries: Dict[str, List[SourceEntry]] = {
			GIT_REPOSITORY: [],
			HELM_REPOSITORY_V1: [],
			HELM_REPOSITORY_V2: [],
		}

	def add(self, entry: SourceEntry) -> None:
		if entry.kind not in self._entries:
			raise ValueError(f"unknown source kind {entry.kind!r}")
		self._entries[entry.kind].append(entry)

	def entries(self, kind: str) -> List[SourceEntry]:
		return list(self._entries.get(kind, []))

	def lookup(self, kind: str, name: str, namespace: str) -> Optional[SourceEntry]:
		# Later declarations win, like re-applying the same object.
		found = None
		for entry in self._entries.get(kind, []):
			if entry.name == name and entry.namespace == namespace:
				found = entry
		return found

	def lookup_helm_repository(self, name: str, namespace: str) -> Optional[SourceEntry]:
		return self.lookup(HELM_REPOSITORY_V2, name, namespace) or self.lookup(HELM_REPOSITORY_V1, name, namespace)

	def __len__(self) -> int:
		return sum(len(v) for v in self._entries.values())


def _source_ref_string(ref: Dict[str, Any]) -> str:
	for key in _REF_KEYS:
		v = ref.get(key)
		if v:
			return str(v)
	return ""


def _source_entry_from_doc(doc: Dict[str, Any], kind: str, *, default_namespace: str = "") -> SourceEntry:
	name = _get_str(doc, "metadata", "name")
	if not name:
		raise ValueError("metadata.name is missing")
	url = _get_str(doc, "spec", "url")
	if not url:
		raise ValueError("spec.url is missing")
	return SourceEntry(
		kind=kind,
		name=name,
		namespace=_get_str(doc, "metadata", "namespace") or default_namespace,
		url=url,
		ref=_source_ref_string(_get_map(doc, "spec", "ref")),
		credentials_ref=_get_str(doc, "spec", "secretRef", "name"),
	)
