"""
Exception types raised by the retrieval layer.
Callers only ever see these generic errors; the underlying cause is logged.
"""


class ShowSearchError(Exception):
	"""Base class for all errors raised by this package."""


class EmbeddingError(ShowSearchError):
	"""The inference endpoint could not produce an embedding."""


class EmbeddingAuthError(EmbeddingError):
	"""The inference endpoint rejected our token (HTTP 401)."""


class SearchFailedError(ShowSearchError):
	"""A keyword or semantic search could not be completed."""

	def __init__(self, message: str = "search failed"):
		super().__init__(message)


class CatalogError(ShowSearchError):
	"""Reading from or writing to the show catalog failed."""

	def __init__(self, message: str = "catalog unavailable"):
		super().__init__(message)
