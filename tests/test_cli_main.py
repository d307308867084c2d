import json
from pathlib import Path

import pytest

from auto_rightsize import cli


GOTK_SYNC = """\
apiVersion: kustomize.config.k8s.io/v1beta1
kind: Kustomization
resources:
  - ../../apps/web.yaml
  - ../../apps/podinfo.yaml
"""

WEB = """\
apiVersion: apps/v1
kind: Deployment
metadata:
  name: web
  namespace: shop
spec:
  template:
    spec:
      containers:
        - name: web
          image: nginx
          resources:
            requests:
              cpu: 100m
"""

PODINFO = """\
apiVersion: helm.toolkit.fluxcd.io/v2beta1
kind: HelmRelease
metadata:
  name: podinfo
  namespace: apps
spec:
  chart:
    spec:
      chart: ./charts/podinfo
      sourceRef:
        kind: GitRepository
        name: charts
"""


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
	for name in ("REPO", "CLUSTER_FOLDER", "RECOMMENDATIONS_JSON", "GIT_CLONE_PATH", "CLONE_MISSING", "HELM_BIN", "SKIP_CHARTS", "MAX_DEPTH", "WRITE"):
		monkeypatch.delenv(name, raising=False)
		monkeypatch.delenv(f"AUTO_RIGHTSIZE_{name}", raising=False)


def _repo(tmp_path: Path) -> Path:
	repo = tmp_path / "repo"
	(repo / "clusters/prod").mkdir(parents=True)
	(repo / "apps").mkdir()
	(repo / "clusters/prod/gotk-sync.yaml").write_text(GOTK_SYNC, encoding="utf-8")
	(repo / "apps/web.yaml").write_text(WEB, encoding="utf-8")
	(repo / "apps/podinfo.yaml").write_text(PODINFO, encoding="utf-8")
	return repo


def _recs(tmp_path: Path, cpu: str = "250m") -> Path:
	fp = tmp_path / "recs.json"
	fp.write_text(
		json.dumps(
			[
				{
					"properties": {"name": "web", "namespace": "shop"},
					"resources": [
						{
							"overview": {"name": "web - Overall"},
							"details": {"cpu_request": {"recommended": cpu}, "memory_limit": {"recommended": "256Mi"}},
						}
					],
				}
			]
		),
		encoding="utf-8",
	)
	return fp


def _argv(repo: Path, recs: Path, *extra: str) -> list:
	return ["--repo", str(repo), "--recommendations", str(recs), "--git-clone-path", str(repo.parent / "clones"), "--skip-charts", *extra]


def test_main_dry_run_leaves_files(tmp_path: Path, capsys: pytest.CaptureFixture) -> None:
	# Intended behavior: without --write the summary is printed and nothing is written.
	repo = _repo(tmp_path)
	assert cli.main(_argv(repo, _recs(tmp_path))) == 0

	out = capsys.readouterr().out
	assert "Patched deployments: 1" in out
	assert "DRY-RUN: would update 1 file(s)" in out
	assert "HelmRelease apps/podinfo: GitRepository apps/charts not found" in out
	assert (repo / "apps/web.yaml").read_text(encoding="utf-8") == WEB


def test_main_write_updates_deployment(tmp_path: Path, capsys: pytest.CaptureFixture) -> None:
	# Intended behavior: --write rewrites only the patched manifest.
	repo = _repo(tmp_path)
	assert cli.main(_argv(repo, _recs(tmp_path), "--write")) == 0

	out = capsys.readouterr().out
	assert "WROTE: updated 1 file(s)." in out
	assert str(Path("apps/web.yaml")) in out
	text = (repo / "apps/web.yaml").read_text(encoding="utf-8")
	assert "cpu: 250m" in text
	assert "memory: 256Mi" in text
	assert (repo / "apps/podinfo.yaml").read_text(encoding="utf-8") == PODINFO


def test_main_no_changes(tmp_path: Path, capsys: pytest.CaptureFixture) -> None:
	# Intended behavior: recommendations matching the manifests report nothing to do.
	repo = _repo(tmp_path)
	(repo / "apps/web.yaml").write_text(WEB.replace("              cpu: 100m\n", "              cpu: 250m\n            limits:\n              memory: 256Mi\n"), encoding="utf-8")
	assert cli.main(_argv(repo, _recs(tmp_path), "--write")) == 0
	assert "No changes needed." in capsys.readouterr().out


def test_main_requires_recommendations(tmp_path: Path, capsys: pytest.CaptureFixture) -> None:
	# Intended behavior: a missing or unreadable optimizer file exits with status 2.
	repo = _repo(tmp_path)
	assert cli.main(["--repo", str(repo)]) == 2
	assert cli.main(["--repo", str(repo), "--recommendations", str(tmp_path / "missing.json")]) == 2
	assert "ERROR" in capsys.readouterr().err


def test_main_invalid_quantity_exits(tmp_path: Path, capsys: pytest.CaptureFixture) -> None:
	# Intended behavior: a fatal quantity error aborts before anything is written.
	repo = _repo(tmp_path)
	assert cli.main(_argv(repo, _recs(tmp_path, cpu="fast"), "--write")) == 2
	assert "invalid cpu quantity" in capsys.readouterr().err
	assert (repo / "apps/web.yaml").read_text(encoding="utf-8") == WEB


def test_env_arguments(monkeypatch: pytest.MonkeyPatch) -> None:
	# Intended behavior: environment variables fill in flags that were not given.
	monkeypatch.setenv("WRITE", "1")
	monkeypatch.setenv("AUTO_RIGHTSIZE_MAX_DEPTH", "5")
	args = cli._resolve_env_args(cli._parse_args(["--helm-bin", "helm3"]))
	assert args.write is True
	assert args.max_depth == 5
	assert args.helm_bin == "helm3"
	assert args.skip_charts is False
	assert cli._build_renderer(args).helm_bin == "helm3"
