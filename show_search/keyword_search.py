"""
Keyword search module.
Case-insensitive substring matching over a show's names and overview.
"""

import re  # escape user text before it becomes a $regex
from typing import Any, Dict, List, Optional

from pymongo.collection import Collection
from pymongo.errors import PyMongoError

from .errors import SearchFailedError
from .models import SUMMARY_PROJECTION, ShowSummary

from loguru import logger


class KeywordSearch:
	"""
	Substring search across name, original_name and overview (logical OR).
	Results come back in store order; there is no relevance ranking.
	"""

	SEARCH_FIELDS = ('name', 'original_name', 'overview')
	MIN_QUERY_LENGTH = 2  # shorter queries match almost everything

	def __init__(self, collection: Collection, default_limit: int = 10):
		self.collection = collection
		self.default_limit = default_limit

	def build_filter(self, query: str) -> Dict[str, Any]:
		"""
		Build the $or filter for a query. The text is escaped so it matches literally;
		"a.*" searches for the three characters a . * rather than a wildcard.
		"""
		pattern = re.escape(query)
		return {'$or': [{field: {'$regex': pattern, '$options': 'i'}} for field in self.SEARCH_FIELDS]}

	def search(self, query: Optional[str], limit: Optional[int] = None) -> List[ShowSummary]:
		"""Return at most `limit` shows containing `query`; [] for empty or too-short queries."""
		query = (query or '').strip()
		if len(query) < self.MIN_QUERY_LENGTH:
			return []  # nothing to search, don't touch the store
		limit = self.default_limit if limit is None else limit
		if limit <= 0:
			return []

		logger.debug(f"[Keyword] query='{query}' limit={limit}")
		try:
			cursor = self.collection.find(self.build_filter(query), SUMMARY_PROJECTION).limit(limit)
			docs = list(cursor)
		except PyMongoError as e:
			logger.exception(f"[Keyword] Search for '{query}' failed: {e}")
			raise SearchFailedError() from e

		# Strip markup but don't entity-escape: results must still contain the query text
		results = [ShowSummary.from_document(doc, escape=False) for doc in docs]
		logger.info(f"[Keyword] '{query}' -> {len(results)} results")
		return results
