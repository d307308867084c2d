from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Dict, List, Optional

from .charts import HelmChartRenderer
from .engine import resolve_repo
from .env import _env_bool, _env_int, _env_path, _env_str
from .errors import RightsizeError
from .git_utils import DEFAULT_CLONE_PATH, GitLocator
from .patching import apply_recommendations
from .recommendations import load_recommendations
from .run import DEFAULT_MAX_DEPTH, ResolutionRun
from .writer import pending_writes, save_documents


def _parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
	ap = argparse.ArgumentParser(
		description="Apply optimizer resource recommendations to Deployments declared in a Flux GitOps repository.",
	)
	ap.add_argument("--repo", type=Path, default=None, help="Path to the cloned GitOps working tree (env: REPO)")
	ap.add_argument("--cluster-folder", default=None, help="Folder holding gotk-sync.yaml, relative to the repo; searched when empty (env: CLUSTER_FOLDER)")
	ap.add_argument("--recommendations", type=Path, default=None, help="Optimizer JSON output (env: RECOMMENDATIONS_JSON)")
	ap.add_argument("--git-clone-path", type=Path, default=None, help=f"Where GitRepository sources are checked out (env: GIT_CLONE_PATH, default {DEFAULT_CLONE_PATH})")
	ap.add_argument("--clone-missing", action="store_true", default=None, help="git clone GitRepository sources that are not checked out yet (env: CLONE_MISSING)")
	ap.add_argument("--helm-bin", default=None, help="helm executable used to render charts (env: HELM_BIN)")
	ap.add_argument("--skip-charts", action="store_true", default=None, help="Do not render HelmRelease charts (env: SKIP_CHARTS)")
	ap.add_argument("--max-depth", type=int, default=None, help=f"Kustomization nesting limit (env: MAX_DEPTH, default {DEFAULT_MAX_DEPTH})")
	ap.add_argument("--write", action="store_true", default=None, help="Write changes (default: dry-run) (env: WRITE)")
	return ap.parse_args(argv)


def _resolve_env_args(args: argparse.Namespace) -> argparse.Namespace:
	args.repo = args.repo or _env_path("REPO", Path("."))
	args.cluster_folder = args.cluster_folder if args.cluster_folder is not None else _env_str("CLUSTER_FOLDER", "")
	args.recommendations = args.recommendations or _env_path("RECOMMENDATIONS_JSON")
	args.git_clone_path = args.git_clone_path or _env_path("GIT_CLONE_PATH", DEFAULT_CLONE_PATH)
	args.clone_missing = args.clone_missing if args.clone_missing is not None else _env_bool("CLONE_MISSING", False)
	args.helm_bin = args.helm_bin or _env_str("HELM_BIN", "helm")
	args.skip_charts = args.skip_charts if args.skip_charts is not None else _env_bool("SKIP_CHARTS", False)
	args.max_depth = args.max_depth if args.max_depth is not None else _env_int("MAX_DEPTH", DEFAULT_MAX_DEPTH)
	args.write = args.write if args.write is not None else _env_bool("WRITE", False)
	return args


def _format_cli_summary(run: ResolutionRun, patched: int, summary: Dict[str, List[str]]) -> str:
	def _section(title: str, items: List[str], *, limit: int = 50) -> List[str]:
		if not items:
			return [f"{title}: none"]
		lines = [f"{title}:"]
		for item in items[:limit]:
			lines.append(f"- {item}")
		if len(items) > limit:
			lines.append(f"- ... and {len(items) - limit} more")
		return lines

	lines = [
		"Summary:",
		f"- Cluster folder: {run.cluster_folder or '.'}",
		f"- Resolved documents: {len(run.documents)}",
		f"- Sources: {len(run.sources)}",
		f"- HelmReleases: {len(run.releases)} ({len(run.charts)} chart(s) resolved)",
		f"- Patched deployments: {patched}",
		"",
	]
	lines.extend(_section("Changes", summary.get("changes", [])))
	lines.append("")
	lines.extend(_section("Warnings", summary.get("warnings", [])))
	lines.append("")
	lines.extend(_section("Notes", run.notes))
	return "\n".join(lines)


def _build_renderer(args: argparse.Namespace) -> Optional[HelmChartRenderer]:
	if args.skip_charts:
		return None
	return HelmChartRenderer(args.helm_bin)


def main(argv: Optional[List[str]] = None) -> int:
	args = _resolve_env_args(_parse_args(argv))

	if args.recommendations is None:
		print("ERROR: missing optimizer output. Provide --recommendations or set RECOMMENDATIONS_JSON", file=sys.stderr)
		return 2

	try:
		recommendations, rec_notes = load_recommendations(args.recommendations)
	except (OSError, ValueError) as e:
		print(f"ERROR: failed to read recommendations {args.recommendations}: {e}", file=sys.stderr)
		return 2

	changes: List[str] = []
	try:
		run = resolve_repo(
			args.repo,
			args.cluster_folder,
			git_locator=GitLocator(args.git_clone_path, clone_missing=args.clone_missing),
			renderer=_build_renderer(args),
			max_depth=args.max_depth,
		)
		run.notes.extend(rec_notes)
		patched, warnings = apply_recommendations(run.documents, recommendations, notes=changes)
	except RightsizeError as e:
		print(f"ERROR: {e}", file=sys.stderr)
		return 2

	summary = {
		"changes": changes,
		"warnings": warnings,
	}
	print(_format_cli_summary(run, patched, summary))

	if patched == 0:
		print("\nNo changes needed.")
		return 0

	pending = pending_writes(run.documents)
	if not args.write:
		print(f"\nDRY-RUN: would update {len(pending)} file(s), {patched} deployment(s). Use --write or set WRITE=1.")
		return 0

	try:
		written = save_documents(run.documents)
	except RightsizeError as e:
		print(f"ERROR: {e}", file=sys.stderr)
		return 2

	print(f"\nWROTE: updated {len(written)} file(s).")
	for fp in written:
		print(f"\t{run.rel(fp)}")
	return 0
