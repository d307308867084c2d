from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Tuple


GIT_REPOSITORY = "GitRepository"
HELM_REPOSITORY_V1 = "HelmRepositoryV1"
HELM_REPOSITORY_V2 = "HelmRepositoryV2"


@dataclass
class ManifestDocument:
	api_version: str
	kind: str
	name: str
	namespace: str
	location: Path
	raw_content: str
	changed: bool = False
	# False for documents kept only so their file can be rejoined losslessly.
	inventory: bool = True

	@property
	def identity(self) -> Tuple[str, str, str, str]:
		return self.kind, self.api_version, self.name, self.namespace

	def mark_changed(self, content: str) -> None:
		self.raw_content = content
		self.changed = True


@dataclass(frozen=True)
class SourceRef:
	kind: str
	name: str
	namespace: str


@dataclass(frozen=True)
class SourceEntry:
	kind: str
	name: str
	namespace: str
	url: str
	ref: str = ""
	credentials_ref: str = ""


@dataclass
class HelmReleaseRecord:
	name: str
	namespace: str
	chart_name: str
	source_ref: SourceRef
	values: Dict[str, Any] = field(default_factory=dict)
	location: Optional[Path] = None


@dataclass(frozen=True)
class Chart:
	location: Path
	release: HelmReleaseRecord


@dataclass(frozen=True)
class ContainerRecommendation:
	label: str
	cpu_request: str = ""
	cpu_limit: str = ""
	mem_request: str = ""
	mem_limit: str = ""


@dataclass(frozen=True)
class Recommendation:
	workload_name: str
	workload_namespace: str
	per_container: Tuple[ContainerRecommendation, ...] = ()

	def for_label(self, label: str) -> Optional[ContainerRecommendation]:
		for entry in self.per_container:
			if entry.label == label:
				return entry
		return None


@dataclass
class WalkContext:
	"""Per-branch state carried down the kustomization recursion."""
	depth: int = 0
	namespace: str = ""

	def descend(self, namespace: str = "") -> "WalkContext":
		return WalkContext(depth=self.depth + 1, namespace=namespace or self.namespace)


ChartOutput = Dict[str, str]
