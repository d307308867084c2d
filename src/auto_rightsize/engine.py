from __future__ import annotations

from pathlib import Path
from typing import Optional

from .charts import HelmChartRenderer, render_charts, resolve_charts
from .git_utils import GitLocator
from .run import DEFAULT_MAX_DEPTH, ResolutionRun
from .walker import walk_repo


def resolve_repo(
	root: Path,
	cluster_folder: str = "",
	*,
	git_locator: Optional[GitLocator] = None,
	renderer: Optional[HelmChartRenderer] = None,
	max_depth: int = DEFAULT_MAX_DEPTH,
) -> ResolutionRun:
	"""Walk the cluster tree, then resolve and render every HelmRelease found.

	Without a renderer, charts are resolved but not rendered.
	"""
	run = walk_repo(root, cluster_folder, max_depth=max_depth)

	charts, notes = resolve_charts(run.releases, run.sources, git_locator or GitLocator())
	run.charts.extend(charts)
	run.notes.extend(notes)

	if renderer is None:
		if charts:
			run.notes.append(f"SKIP: rendering disabled for {len(charts)} chart(s)")
		return run

	render_charts(run, renderer)
	return run
