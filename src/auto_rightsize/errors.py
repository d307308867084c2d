from __future__ import annotations


class RightsizeError(RuntimeError):
	pass


class NotFoundError(RightsizeError):
	pass


class ManifestIOError(RightsizeError, OSError):
	pass


class ParseError(RightsizeError):
	pass


class ResolutionError(RightsizeError):
	pass


class RenderError(RightsizeError):
	pass


class QuantityParseError(RightsizeError, ValueError):
	pass
