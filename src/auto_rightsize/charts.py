from __future__ import annotations

import tempfile
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple

from ruamel.yaml.error import YAMLError

from .errors import RenderError, ResolutionError
from .git_utils import GitLocator, _run
from .run import ResolutionRun
from .sources import SourceRegistry
from .types import GIT_REPOSITORY, Chart, ChartOutput, HelmReleaseRecord
from .yaml_utils import _dump_yaml_doc, _join_documents, _load_yaml_doc, _split_documents, _to_plain

SOURCE_MARKER = "# Source: "
RENDERED_DIR = ".rendered"
FALLBACK_TEMPLATE = "manifest.yaml"

HelmRunner = Callable[[List[str]], Any]


def resolve_charts(
	releases: List[HelmReleaseRecord],
	registry: SourceRegistry,
	git_locator: GitLocator,
) -> Tuple[List[Chart], List[str]]:
	charts: List[Chart] = []
	notes: List[str] = []
	for release in releases:
		try:
			charts.append(_resolve_chart(release, registry, git_locator))
		except ResolutionError as e:
			where = f" [{release.location}]" if release.location else ""
			notes.append(f"SKIP: {e}{where}")
	return charts, notes


def _resolve_chart(release: HelmReleaseRecord, registry: SourceRegistry, git_locator: GitLocator) -> Chart:
	ref = release.source_ref
	label = f"HelmRelease {release.namespace}/{release.name}"

	if ref.kind == "GitRepository":
		entry = registry.lookup(GIT_REPOSITORY, ref.name, ref.namespace)
		if entry is None:
			raise ResolutionError(f"{label}: GitRepository {ref.namespace}/{ref.name} not found")
		try:
			local_dir = git_locator.locate(entry.url, entry.ref)
		except RuntimeError as e:
			raise ResolutionError(f"{label}: {e}") from e
		return Chart(location=local_dir / release.chart_name, release=release)

	if ref.kind == "HelmRepository":
		found = registry.lookup_helm_repository(ref.name, ref.namespace)
		where = f" ({found.url})" if found else ""
		raise ResolutionError(f"{label}: HelmRepository sources are not supported{where}")

	raise ResolutionError(f"{label}: unknown source ref kind {ref.kind!r}")


def _coalesce(defaults: Dict[str, Any], overrides: Dict[str, Any]) -> Dict[str, Any]:
	out = dict(defaults)
	for key, value in overrides.items():
		current = out.get(key)
		if isinstance(current, dict) and isinstance(value, dict):
			out[key] = _coalesce(current, value)
		else:
			out[key] = value
	return out


def _load_chart_file(path: Path) -> Any:
	try:
		return _load_yaml_doc(path.read_text(encoding="utf-8"))
	except (OSError, YAMLError) as e:
		raise RenderError(f"error loading chart file {path}: {e}") from e


def _load_chart(location: Path) -> Tuple[Dict[str, Any], Dict[str, Any]]:
	chart_file = location / "Chart.yaml"
	if not chart_file.is_file():
		raise RenderError(f"error loading chart: {chart_file} not found")
	meta = _load_chart_file(chart_file)
	if not isinstance(meta, dict) or not meta.get("name"):
		raise RenderError(f"error loading chart: {chart_file} has no name")

	defaults: Any = {}
	values_file = location / "values.yaml"
	if values_file.is_file():
		defaults = _load_chart_file(values_file) or {}
	if not isinstance(defaults, dict):
		raise RenderError(f"error loading chart: {values_file} is not a mapping")
	return _to_plain(meta), _to_plain(defaults)


def _split_rendered(output: str) -> ChartOutput:
	grouped: Dict[str, List[str]] = {}
	for part in _split_documents(output):
		if not part.strip():
			continue
		lines = part.splitlines(keepends=True)
		name = FALLBACK_TEMPLATE
		if lines and lines[0].startswith(SOURCE_MARKER):
			name = lines[0][len(SOURCE_MARKER):].strip()
			lines = lines[1:]
		body = "".join(lines)
		if not body.strip():
			continue
		grouped.setdefault(name, []).append(body)
	return {name: _join_documents(parts) for name, parts in grouped.items()}


class HelmChartRenderer:
	"""Renders a chart with ``helm template`` after coalescing its values."""

	def __init__(self, helm_bin: str = "helm", *, runner: Optional[HelmRunner] = None) -> None:
		self.helm_bin = helm_bin
		self._runner = runner or (lambda cmd: _run(cmd, check=False))

	def values_for(self, chart: Chart) -> Dict[str, Any]:
		_, defaults = _load_chart(chart.location)
		return _coalesce(defaults, chart.release.values)

	def render(self, chart: Chart) -> ChartOutput:
		release = chart.release
		values = self.values_for(chart)

		with tempfile.TemporaryDirectory(prefix="auto-rightsize-") as tmp:
			values_file = Path(tmp) / "values.yaml"
			values_file.write_text(_dump_yaml_doc(values), encoding="utf-8")
			cmd = [
				self.helm_bin,
				"template",
				release.name,
				str(chart.location),
				"--namespace",
				release.namespace,
				"--values",
				str(values_file),
			]
			try:
				p = self._runner(cmd)
			except OSError as e:
				raise RenderError(f"error rendering chart {chart.location}: {e}") from e

		if p.returncode != 0:
			raise RenderError(f"error rendering chart {chart.location}: {(p.stderr or '').strip()}")
		return _split_rendered(p.stdout or "")


def _rendered_base(chart: Chart) -> Path:
	release = chart.release
	return chart.location.parent / RENDERED_DIR / f"{release.namespace}-{release.name}"


def render_charts(run: ResolutionRun, renderer: HelmChartRenderer) -> int:
	added = 0
	for chart in run.charts:
		outputs = renderer.render(chart)
		base = _rendered_base(chart)
		for name in sorted(outputs):
			docs = run.documents.add_text(
				outputs[name],
				base / name,
				default_namespace=chart.release.namespace,
				skip_blank=True,
			)
			added += len(docs)
	return added
