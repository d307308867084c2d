from __future__ import annotations

import os
from pathlib import Path
from typing import List, Optional

ENV_PREFIX = "AUTO_RIGHTSIZE_"


def _env_get(*names: str) -> Optional[str]:
	for n in names:
		v = (os.environ.get(n) or "").strip()
		if v:
			return v
	return None


def _env_candidates(name: str) -> List[str]:
	return [name, f"{ENV_PREFIX}{name}"]


def _env_str(name: str, default: Optional[str] = None) -> Optional[str]:
	return _env_get(*_env_candidates(name)) or default


def _env_path(name: str, default: Optional[Path] = None) -> Optional[Path]:
	v = _env_get(*_env_candidates(name))
	return Path(v) if v is not None else default


def _env_int(name: str, default: Optional[int] = None) -> Optional[int]:
	v = _env_get(*_env_candidates(name))
	if v is None or not v.isdigit():
		return default
	return int(v)


def _env_bool(name: str, default: bool = False) -> bool:
	v = (_env_get(*_env_candidates(name)) or "").lower()
	if v in ("1", "true", "yes", "y", "on"):
		return True
	if v in ("0", "false", "no", "n", "off"):
		return False
	return default
