from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Set

from .documents import DocumentStore
from .sources import SourceRegistry
from .types import Chart, HelmReleaseRecord

DEFAULT_MAX_DEPTH = 64


@dataclass
class ResolutionRun:
	"""Everything one walk/resolve/patch/save invocation owns.

	A fresh run is created per invocation and threaded through the walk;
	nothing is shared between runs.
	"""
	root: Path
	cluster_folder: str = ""
	max_depth: int = DEFAULT_MAX_DEPTH
	sources: SourceRegistry = field(default_factory=SourceRegistry)
	documents: DocumentStore = field(default_factory=DocumentStore)
	releases: List[HelmReleaseRecord] = field(default_factory=list)
	charts: List[Chart] = field(default_factory=list)
	notes: List[str] = field(default_factory=list)
	visited: Set[Path] = field(default_factory=set)

	def rel(self, fp: Path) -> str:
		try:
			return str(fp.relative_to(self.root))
		except ValueError:
			return str(fp)
