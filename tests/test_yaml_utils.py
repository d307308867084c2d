from auto_rightsize.yaml_utils import _join_documents, _load_yaml_doc, _split_documents


def test_split_rejoin_round_trip() -> None:
	# Intended behavior: splitting then rejoining with the separator reproduces the input exactly.
	bodies = [
		"apiVersion: v1\nkind: ConfigMap\nmetadata:\n  name: a\n",
		"# comment\napiVersion: v1\nkind: Secret\n",
		"a: 1",
	]
	text = "---\n".join(bodies)
	docs = _split_documents(text)
	assert docs == bodies
	assert _join_documents(docs) == text


def test_split_keeps_leading_separator() -> None:
	# Intended behavior: a leading separator yields an empty first document so rejoin is lossless.
	text = "---\na: 1\n---\nb: 2\n"
	docs = _split_documents(text)
	assert docs == ["", "a: 1\n", "b: 2\n"]
	assert _join_documents(docs) == text


def test_split_emits_last_document_without_trailing_separator() -> None:
	# Intended behavior: the final accumulated document is emitted without a trailing separator.
	assert _split_documents("a: 1\n---\nb: 2\n") == ["a: 1\n", "b: 2\n"]
	assert _split_documents("") == []


def test_quoted_separator_is_not_a_split_point() -> None:
	# Intended behavior: a quoted "---" scalar stays inside its document.
	text = 'a: "---"\nb: 2\n---\nc: 3\n'
	docs = _split_documents(text)
	assert len(docs) == 2
	assert "\\---" in docs[0]
	assert _load_yaml_doc(docs[0])["a"] == "---"
	assert _join_documents(docs) == text


def test_only_bare_separator_lines_split() -> None:
	# Intended behavior: separator-like text that is not the whole line never splits.
	text = "a: 1\n--- # trailing\nb: 2\n ---\n"
	assert len(_split_documents(text)) == 1


def test_crlf_separators_are_kept() -> None:
	# Intended behavior: files with CRLF line endings rejoin with CRLF separators.
	text = "a: 1\r\n---\r\nb: 2\r\n"
	docs = _split_documents(text)
	assert docs == ["a: 1\r\n", "b: 2\r\n"]
	assert _join_documents(docs) == text
