from __future__ import annotations

from typing import Any, Iterable, List, Optional, Tuple

from ruamel.yaml.comments import CommentedMap
from ruamel.yaml.error import YAMLError

from .documents import DocumentStore
from .errors import ParseError
from .quantity import cpu_quantity, memory_quantity
from .types import ContainerRecommendation, ManifestDocument, Recommendation
from .yaml_utils import _dump_yaml_doc, _insert_alpha_if_missing, _insert_if_missing, _load_yaml_doc, _to_plain

DEPLOYMENT_KIND = "Deployment"
DEPLOYMENT_API_VERSION = "apps/v1"
OVERALL_LABEL_SUFFIX = " - Overall"


def _container_label(container_name: str) -> str:
	return f"{container_name}{OVERALL_LABEL_SUFFIX}"


def _recommended_maps(entry: ContainerRecommendation) -> Tuple[CommentedMap, CommentedMap]:
	requests = CommentedMap()
	limits = CommentedMap()
	if entry.cpu_request:
		requests["cpu"] = cpu_quantity(entry.cpu_request)
	if entry.mem_request:
		requests["memory"] = memory_quantity(entry.mem_request)
	if entry.cpu_limit:
		limits["cpu"] = cpu_quantity(entry.cpu_limit)
	if entry.mem_limit:
		limits["memory"] = memory_quantity(entry.mem_limit)
	return requests, limits


def _replace_container_resources(container: CommentedMap, entry: ContainerRecommendation) -> List[str]:
	"""Replace requests/limits of one container; returns change notes."""
	requests, limits = _recommended_maps(entry)
	name = str(container.get("name") or "")

	resources = container.get("resources")
	if not isinstance(resources, CommentedMap):
		resources = CommentedMap()
		if "resources" in container:
			container["resources"] = resources
		else:
			_insert_alpha_if_missing(container, "resources", resources)

	notes: List[str] = []
	for section, new in (("limits", limits), ("requests", requests)):
		old = _to_plain(resources.get(section)) or {}
		if old == _to_plain(new):
			continue
		if new:
			if section in resources:
				resources[section] = new
			else:
				_insert_if_missing(resources, section, new, after_keys=["limits"] if section == "requests" else [])
		else:
			del resources[section]
		notes.append(f"{name}: {section} {old!r} -> {_to_plain(new)!r}")
	return notes


def _pod_containers(body: Any) -> List[Any]:
	try:
		containers = body["spec"]["template"]["spec"]["containers"]
	except (KeyError, TypeError):
		return []
	if not isinstance(containers, list):
		return []
	return containers


def _patch_document(doc: ManifestDocument, rec: Recommendation) -> List[str]:
	try:
		body = _load_yaml_doc(doc.raw_content)
	except YAMLError as e:
		raise ParseError(f"failed to decode Deployment {doc.namespace}/{doc.name} in {doc.location}: {e}") from e

	notes: List[str] = []
	for container in _pod_containers(body):
		if not isinstance(container, CommentedMap):
			continue
		entry = rec.for_label(_container_label(str(container.get("name") or "")))
		if entry is None:
			continue
		notes.extend(_replace_container_resources(container, entry))

	if notes:
		content = _dump_yaml_doc(body)
		if "\r\n" in doc.raw_content:
			content = content.replace("\r\n", "\n").replace("\n", "\r\n")
		doc.mark_changed(content)
	return notes


def _find_deployment(store: DocumentStore, name: str, namespace: str) -> List[ManifestDocument]:
	found = store.find(kind=DEPLOYMENT_KIND, api_version=DEPLOYMENT_API_VERSION, name=name, namespace=namespace)
	if not found and namespace == "default":
		# Namespace-less manifests land in "default" when nothing overrides it.
		found = store.find(kind=DEPLOYMENT_KIND, api_version=DEPLOYMENT_API_VERSION, name=name, namespace="")
	return found


def apply_recommendations(
	store: DocumentStore,
	recommendations: Iterable[Recommendation],
	*,
	notes: Optional[List[str]] = None,
) -> Tuple[int, List[str]]:
	patched = 0
	warnings: List[str] = []
	for rec in recommendations:
		target = f"{rec.workload_namespace}/{rec.workload_name}"
		matches = _find_deployment(store, rec.workload_name, rec.workload_namespace)
		if not matches:
			warnings.append(f"deployment template not found {target}")
			continue
		if len(matches) > 1:
			locs = ", ".join(str(m.location) for m in matches)
			warnings.append(f"deployment {target} declared {len(matches)} times ({locs}); patching the first")

		change_notes = _patch_document(matches[0], rec)
		if not change_notes:
			warnings.append(f"deployment {target}: no changes needed")
			continue
		patched += 1
		if notes is not None:
			notes.extend(f"{target} {n}" for n in change_notes)
	return patched, warnings
