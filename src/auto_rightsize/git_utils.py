from __future__ import annotations

import subprocess
import urllib.parse
from pathlib import Path
from typing import List, Optional

DEFAULT_CLONE_PATH = Path("/tmp/auto-rightsize-gits")


def _run(cmd: List[str], *, cwd: Optional[Path] = None, check: bool = True) -> subprocess.CompletedProcess:
	return subprocess.run(
		cmd,
		cwd=str(cwd) if cwd else None,
		check=check,
		stdout=subprocess.PIPE,
		stderr=subprocess.PIPE,
		text=True,
	)


def _url_to_folder(clone_path: Path, git_url: str) -> Path:
	u = git_url.strip()
	if u.endswith(".git"):
		u = u[:-4]
	if u.startswith("git@") and "://" not in u:
		# scp-like syntax: git@host:owner/repo
		host, _, rest = u[len("git@"):].partition(":")
		return clone_path / host / rest.strip("/")
	pu = urllib.parse.urlparse(u)
	host = pu.hostname or ""
	if pu.port:
		host = f"{host}:{pu.port}"
	return clone_path / host / pu.path.strip("/")


def _git_clone(repo_url: str, dest: Path, *, branch: str = "") -> None:
	dest.parent.mkdir(parents=True, exist_ok=True)
	cmd = ["git", "clone"]
	if branch:
		cmd += ["--branch", branch]
	cmd += [repo_url, str(dest)]
	p = _run(cmd, check=False)
	if p.returncode != 0:
		raise RuntimeError(f"git clone failed for {repo_url} -> {dest}\n{p.stderr}")


class GitLocator:
	"""Maps a GitRepository URL to its local checkout.

	Checkouts live under ``clone_path/<host>/<path>``. With ``clone_missing``
	a checkout that does not exist yet is cloned on first lookup.
	"""

	def __init__(self, clone_path: Path = DEFAULT_CLONE_PATH, *, clone_missing: bool = False) -> None:
		self.clone_path = clone_path
		self.clone_missing = clone_missing

	def folder(self, git_url: str) -> Path:
		return _url_to_folder(self.clone_path, git_url)

	def locate(self, git_url: str, ref: str = "") -> Path:
		dest = self.folder(git_url)
		if dest.is_dir() or not self.clone_missing:
			return dest
		_git_clone(git_url, dest, branch=ref)
		return dest
