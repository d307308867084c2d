from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional

from ruamel.yaml.error import YAMLError

from .types import ManifestDocument
from .yaml_utils import _get_str, _join_documents, _load_yaml_doc, _split_documents


@dataclass(frozen=True)
class DocHeader:
	api_version: str = ""
	kind: str = ""
	name: str = ""
	namespace: str = ""


def _read_header(body: Any) -> DocHeader:
	if not isinstance(body, dict):
		return DocHeader()
	return DocHeader(
		api_version=_get_str(body, "apiVersion"),
		kind=_get_str(body, "kind"),
		name=_get_str(body, "metadata", "name"),
		namespace=_get_str(body, "metadata", "namespace"),
	)


def _try_load(text: str) -> Optional[Any]:
	# None means the text is not parseable YAML at all.
	try:
		return _load_yaml_doc(text)
	except YAMLError:
		return None


def _document_from(
	text: str,
	location: Path,
	header: DocHeader,
	*,
	default_namespace: str = "",
	inventory: bool = True,
) -> ManifestDocument:
	return ManifestDocument(
		api_version=header.api_version,
		kind=header.kind,
		name=header.name,
		namespace=header.namespace or default_namespace,
		location=location,
		raw_content=text,
		inventory=inventory,
	)


class DocumentStore:
	"""Ordered collection of every manifest document resolved in one run.

	Discovery order is kept; it is also the order documents sharing a
	location are joined back together on write. Iteration and lookups only
	see inventory documents; grouping by location sees all of them.
	"""

	def __init__(self) -> None:
		self._docs: List[ManifestDocument] = []

	def __len__(self) -> int:
		return sum(1 for d in self._docs if d.inventory)

	def __iter__(self) -> Iterator[ManifestDocument]:
		return (d for d in self._docs if d.inventory)

	def add(self, doc: ManifestDocument) -> ManifestDocument:
		self._docs.append(doc)
		return doc

	def add_text(self, text: str, location: Path, *, default_namespace: str = "", skip_blank: bool = False) -> List[ManifestDocument]:
		out: List[ManifestDocument] = []
		for part in _split_documents(text):
			if skip_blank and not part.strip():
				continue
			header = _read_header(_try_load(part))
			out.append(self.add(_document_from(part, location, header, default_namespace=default_namespace)))
		return out

	def find(self, *, kind: str, api_version: str, name: str, namespace: str) -> List[ManifestDocument]:
		wanted = (kind, api_version, name, namespace)
		return [d for d in self._docs if d.inventory and d.identity == wanted]

	def by_location(self) -> Dict[Path, List[ManifestDocument]]:
		groups: Dict[Path, List[ManifestDocument]] = {}
		for doc in self._docs:
			groups.setdefault(doc.location, []).append(doc)
		return groups

	def changed_locations(self) -> List[Path]:
		return [loc for loc, docs in self.by_location().items() if any(d.changed for d in docs)]


def _join_location(docs: List[ManifestDocument]) -> str:
	return _join_documents([d.raw_content for d in docs])
