from __future__ import annotations

from io import StringIO
from typing import Any, Dict, List

from ruamel.yaml import YAML
from ruamel.yaml.comments import CommentedMap, CommentedSeq

SEPARATOR = "---"
_ESCAPED_SEPARATOR = "\\---"


def _mk_yaml() -> YAML:
	yaml = YAML(typ="rt")
	yaml.preserve_quotes = True
	yaml.width = 4096
	yaml.indent(mapping=2, sequence=4, offset=2)
	return yaml


def _is_quoted_line(line: str) -> bool:
	return '"' in line or "'" in line


def _split_documents(text: str) -> List[str]:
	# Line-oriented; a quoted "---" is escaped so it can never look like a separator.
	docs: List[str] = []
	current: List[str] = []
	for line in text.splitlines(keepends=True):
		if line.rstrip("\r\n") == SEPARATOR:
			docs.append("".join(current))
			current = []
			continue
		if _is_quoted_line(line):
			line = line.replace(SEPARATOR, _ESCAPED_SEPARATOR)
		current.append(line)
	if current:
		docs.append("".join(current))
	return docs


def _unescape_document(doc: str) -> str:
	if _ESCAPED_SEPARATOR not in doc:
		return doc
	lines = []
	for line in doc.splitlines(keepends=True):
		if _is_quoted_line(line):
			line = line.replace(_ESCAPED_SEPARATOR, SEPARATOR)
		lines.append(line)
	return "".join(lines)


def _join_documents(docs: List[str]) -> str:
	newline = "\r\n" if any("\r\n" in d for d in docs) else "\n"
	return f"{SEPARATOR}{newline}".join(_unescape_document(d) for d in docs)


def _load_yaml_doc(text: str) -> Any:
	return _mk_yaml().load(_unescape_document(text))


def _dump_yaml_doc(doc: Any) -> str:
	buf = StringIO()
	_mk_yaml().dump(doc, buf)
	return buf.getvalue()


def _to_plain(node: Any) -> Any:
	if isinstance(node, (CommentedMap, dict)):
		return {str(k): _to_plain(v) for k, v in node.items()}
	if isinstance(node, (CommentedSeq, list)):
		return [_to_plain(v) for v in node]
	if isinstance(node, bool) or node is None:
		return node
	if isinstance(node, int):
		return int(node)
	if isinstance(node, float):
		return float(node)
	if isinstance(node, str):
		return str(node)
	return node


def _get_map(doc: Any, *path: str) -> Dict[str, Any]:
	cur = doc
	for key in path:
		if not isinstance(cur, dict):
			return {}
		cur = cur.get(key)
	if not isinstance(cur, dict):
		return {}
	return cur


def _get_str(doc: Any, *path: str) -> str:
	if not path:
		return ""
	parent = _get_map(doc, *path[:-1])
	v = parent.get(path[-1])
	if v is None:
		return ""
	return str(v)


def _insert_if_missing(m: CommentedMap, key: str, value: Any, *, after_keys: List[str]) -> None:
	if key in m:
		return
	insert_at = len(m)
	for ak in after_keys:
		if ak in m:
			insert_at = list(m.keys()).index(ak) + 1
	m.insert(insert_at, key, value)


def _insert_alpha_if_missing(m: CommentedMap, key: str, value: Any) -> None:
	if key in m:
		return
	keys = list(m.keys())
	insert_at = len(keys)
	for idx, existing in enumerate(keys):
		if str(existing) > key:
			insert_at = idx
			break
	m.insert(insert_at, key, value)
