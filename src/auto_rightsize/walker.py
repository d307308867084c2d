from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Tuple

from .documents import _document_from, _read_header, _try_load
from .errors import ManifestIOError, NotFoundError, ParseError
from .hr import _release_from_doc
from .run import DEFAULT_MAX_DEPTH, ResolutionRun
from .sources import _source_entry_from_doc
from .types import GIT_REPOSITORY, HELM_REPOSITORY_V1, HELM_REPOSITORY_V2, WalkContext
from .yaml_utils import _get_str, _split_documents

ENTRYPOINT_FILE = "gotk-sync.yaml"
KUSTOMIZATION_FILE = "kustomization.yaml"
MANIFEST_SUFFIX = ".yaml"

Handler = Callable[[ResolutionRun, Any, Path, WalkContext], None]


def walk_repo(root: Path, cluster_folder: str = "", *, max_depth: int = DEFAULT_MAX_DEPTH) -> ResolutionRun:
	run = ResolutionRun(root=root, max_depth=max_depth)
	if not cluster_folder:
		cluster_folder = _find_cluster_folder(root)
	run.cluster_folder = cluster_folder
	_walk(run, root / cluster_folder / ENTRYPOINT_FILE, WalkContext())
	return run


def _find_cluster_folder(root: Path) -> str:
	found: Optional[Path] = None
	for dirpath, dirnames, filenames in os.walk(root):
		dirnames[:] = sorted(d for d in dirnames if d != ".git")
		if ENTRYPOINT_FILE in filenames:
			found = Path(dirpath)
	if found is None:
		raise NotFoundError(f"cluster not found: no {ENTRYPOINT_FILE} under {root}")
	return str(found.relative_to(root))


def _walk(run: ResolutionRun, path: Path, ctx: WalkContext) -> None:
	if ctx.depth > run.max_depth:
		raise ParseError(f"kustomization depth limit ({run.max_depth}) exceeded at {run.rel(path)}")

	if not path.exists():
		raise ManifestIOError(f"failed to get file stats for {run.rel(path)}: no such file or directory")

	if path.is_dir():
		child = path / KUSTOMIZATION_FILE
		if child.is_file():
			_walk(run, child, ctx)
		return

	if path.suffix != MANIFEST_SUFFIX:
		raise ParseError(f"unknown file: {run.rel(path)}")

	resolved = path.resolve()
	if resolved in run.visited:
		run.notes.append(f"SKIP: {run.rel(path)} already resolved in this run")
		return
	run.visited.add(resolved)

	try:
		with path.open(encoding="utf-8", newline="") as f:
			text = f.read()
	except OSError as e:
		raise ManifestIOError(f"failed to read file {run.rel(path)}: {e}") from e

	for part in _split_documents(text):
		_dispatch(run, part, path, ctx)


def _dispatch(run: ResolutionRun, part: str, path: Path, ctx: WalkContext) -> None:
	if not part.strip():
		run.documents.add(_document_from(part, path, _read_header(None), inventory=False))
		return

	body = _try_load(part)
	if body is None:
		run.notes.append(f"WARN: failed to parse a document in {run.rel(path)}; kept as-is")
	header = _read_header(body)

	handler = _HANDLERS.get((header.api_version, header.kind))
	if handler is None:
		run.documents.add(_document_from(part, path, header, default_namespace=ctx.namespace))
		return

	# Kept for lossless write-back only; not part of the inventory.
	run.documents.add(_document_from(part, path, header, default_namespace=ctx.namespace, inventory=False))
	try:
		handler(run, body, path, ctx)
	except (ValueError, TypeError) as e:
		raise ParseError(f"failed to parse {header.kind} ({header.api_version}) in {run.rel(path)}: {e}") from e


def _handle_kustomization(run: ResolutionRun, body: Any, path: Path, ctx: WalkContext) -> None:
	resources = body.get("resources") or []
	if not isinstance(resources, list):
		raise ValueError("resources is not a list")
	child_ctx = ctx.descend(_get_str(body, "namespace"))
	for entry in resources:
		entry = str(entry)
		if "://" in entry:
			run.notes.append(f"SKIP: remote resource {entry!r} in {run.rel(path)}")
			continue
		_walk(run, path.parent / entry, child_ctx)


def _handle_flux_kustomization(run: ResolutionRun, body: Any, path: Path, ctx: WalkContext) -> None:
	spec_path = _get_str(body, "spec", "path")
	if not spec_path:
		return
	child_ctx = ctx.descend(_get_str(body, "spec", "targetNamespace"))
	_walk(run, run.root / spec_path.lstrip("/"), child_ctx)


def _handle_helm_release(run: ResolutionRun, body: Any, path: Path, ctx: WalkContext) -> None:
	run.releases.append(_release_from_doc(body, default_namespace=ctx.namespace, location=path))


def _source_handler(kind: str) -> Handler:
	def _handle(run: ResolutionRun, body: Any, path: Path, ctx: WalkContext) -> None:
		run.sources.add(_source_entry_from_doc(body, kind, default_namespace=ctx.namespace))
	return _handle


_HANDLERS: Dict[Tuple[str, str], Handler] = {
	("kustomize.config.k8s.io/v1beta1", "Kustomization"): _handle_kustomization,
	("kustomize.toolkit.fluxcd.io/v1", "Kustomization"): _handle_flux_kustomization,
	("helm.toolkit.fluxcd.io/v2beta1", "HelmRelease"): _handle_helm_release,
	("source.toolkit.fluxcd.io/v1", "GitRepository"): _source_handler(GIT_REPOSITORY),
	("source.toolkit.fluxcd.io/v1beta1", "HelmRepository"): _source_handler(HELM_REPOSITORY_V1),
	("source.toolkit.fluxcd.io/v1beta2", "HelmRepository"): _source_handler(HELM_REPOSITORY_V2),
}
