from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Optional

from .types import HelmReleaseRecord, SourceRef
from .yaml_utils import _get_map, _get_str, _to_plain


def _chart_name_from_hr(doc: Dict[str, Any]) -> str:
	return _get_str(doc, "spec", "chart", "spec", "chart")


def _release_from_doc(
	doc: Dict[str, Any],
	*,
	default_namespace: str = "",
	location: Optional[Path] = None,
) -> HelmReleaseRecord:
	name = _get_str(doc, "metadata", "name")
	if not name:
		raise ValueError("metadata.name is missing")
	namespace = _get_str(doc, "metadata", "namespace") or default_namespace or "default"

	chart_name = _chart_name_from_hr(doc)
	if not chart_name:
		raise ValueError("spec.chart.spec.chart is missing")

	ref = _get_map(doc, "spec", "chart", "spec", "sourceRef")
	source_ref = SourceRef(
		kind=str(ref.get("kind") or ""),
		name=str(ref.get("name") or ""),
		# Flux resolves an omitted sourceRef namespace to the release's own.
		namespace=str(ref.get("namespace") or namespace),
	)

	values = _get_map(doc, "spec", "values")
	return HelmReleaseRecord(
		name=name,
		namespace=namespace,
		chart_name=chart_name,
		source_ref=source_ref,
		values=_to_plain(values),
		location=location,
	)
