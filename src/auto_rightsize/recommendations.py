from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from .types import ContainerRecommendation, Recommendation

_DETAIL_FIELDS = {
	"cpu_request": "cpu_request",
	"cpu_limit": "cpu_limit",
	"memory_request": "mem_request",
	"memory_limit": "mem_limit",
}


def _field(obj: Any, name: str) -> Any:
	# Optimizer output uses both capitalized and lowercase field names.
	if not isinstance(obj, dict):
		return None
	if name in obj:
		return obj[name]
	return obj.get(name[:1].upper() + name[1:])


def _as_str(v: Any) -> str:
	if v is None:
		return ""
	return str(v).strip()


def _container_from_resource(resource: Any) -> Optional[ContainerRecommendation]:
	overview = _field(resource, "overview")
	label = _as_str(_field(overview, "name")) if isinstance(overview, dict) else _as_str(overview)
	if not label:
		return None

	details = _field(resource, "details")
	values: Dict[str, str] = {}
	for key, attr in _DETAIL_FIELDS.items():
		detail = details.get(key) if isinstance(details, dict) else None
		values[attr] = _as_str(_field(detail, "recommended"))
	return ContainerRecommendation(label=label, **values)


def _recommendation_from_record(record: Any) -> Tuple[Optional[Recommendation], List[str]]:
	notes: List[str] = []
	props = _field(record, "properties")
	if not isinstance(props, dict):
		return None, ["SKIP: optimizer record without properties"]
	name = _as_str(props.get("name"))
	namespace = _as_str(props.get("namespace"))
	if not name:
		return None, ["SKIP: optimizer record without a workload name"]

	per_container: List[ContainerRecommendation] = []
	resources = _field(record, "resources") or []
	if not isinstance(resources, list):
		resources = []
	for resource in resources:
		entry = _container_from_resource(resource)
		if entry is None:
			notes.append(f"SKIP: {namespace}/{name}: resource entry without an overview label")
			continue
		per_container.append(entry)

	rec = Recommendation(workload_name=name, workload_namespace=namespace, per_container=tuple(per_container))
	return rec, notes


def _parse_recommendations(data: Any) -> Tuple[List[Recommendation], List[str]]:
	if isinstance(data, dict):
		data = _field(data, "results") or []
	if not isinstance(data, list):
		raise ValueError("optimizer output is not a list of results")
	out: List[Recommendation] = []
	notes: List[str] = []
	for record in data:
		rec, rec_notes = _recommendation_from_record(record)
		notes.extend(rec_notes)
		if rec is not None:
			out.append(rec)
	return out, notes


def load_recommendations(json_path: Path) -> Tuple[List[Recommendation], List[str]]:
	data = json.loads(json_path.read_text(encoding="utf-8"))
	return _parse_recommendations(data)
