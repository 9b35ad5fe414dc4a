"""
Semantic search module.
Finds shows whose overview embeddings are closest to a query text using MongoDB Atlas Vector Search.
"""

from dataclasses import dataclass  # pipeline settings
from typing import Any, Dict, List  # type annotations for clarity

from bson import ObjectId  # store identity of the excluded show
from bson.errors import InvalidId  # malformed identity strings
from pymongo.collection import Collection  # shows collection
from pymongo.errors import PyMongoError  # store failures

from .embeddings import EmbeddingClient  # text -> vector
from .errors import EmbeddingError, SearchFailedError  # failure taxonomy
from .models import SimilarShow  # result type

# Import loguru for console logging
from loguru import logger  # simple structured logger


@dataclass(frozen=True)
class VectorQuery:
	index_name: str = 'overview_vector_index'  # Atlas search index name
	path: str = 'overview_embedding'  # embedded field
	num_candidates: int = 100  # ANN candidate pool; large so exclusion doesn't starve results
	limit: int = 5  # hits returned by the vector stage


class SemanticSearch:
	"""
	"More like this" search: embed the query text, run $vectorSearch, drop the source show,
	rescale the score to a percentage and sanitize the results.
	"""

	PROJECTED_FIELDS = ('name', 'original_name', 'poster_path', 'overview', 'first_air_date', 'vote_average')

	def __init__(self, collection: Collection, embedder: EmbeddingClient, query: VectorQuery = VectorQuery()):
		self.collection = collection  # shows collection with a vector index
		self.embedder = embedder  # remote embedding client
		self.query = query  # pipeline settings
		logger.info(
			f"[Semantic] Ready | index={query.index_name} | candidates={query.num_candidates} | limit={query.limit}"
		)

	@classmethod
	def from_settings(cls, collection: Collection, embedder: EmbeddingClient, settings) -> 'SemanticSearch':
		query = VectorQuery(
			index_name=settings.vector_index_name,
			num_candidates=settings.vector_num_candidates,
			limit=settings.vector_limit,
		)
		return cls(collection, embedder, query)

	def build_pipeline(self, query_vector: List[float], exclude_id: ObjectId) -> List[Dict[str, Any]]:
		"""Aggregation pipeline: ANN stage first, then exclusion, score rescale and projection."""
		projection: Dict[str, Any] = {field: 1 for field in self.PROJECTED_FIELDS}
		projection['similarity'] = 1
		return [
			{
				'$vectorSearch': {
					'index': self.query.index_name,
					'queryVector': query_vector,
					'path': self.query.path,
					'numCandidates': self.query.num_candidates,
					'limit': self.query.limit,
				}
			},
			# Applied after the vector stage, so results may fall short of `limit`
			{'$match': {'_id': {'$ne': exclude_id}}},
			{'$set': {'similarity': {'$multiply': [{'$meta': 'vectorSearchScore'}, 100]}}},
			{'$project': projection},
		]

	def similar(self, query_text: str, exclude_id: Any) -> List[SimilarShow]:
		"""
		Return up to `limit` shows similar to `query_text`, never the show `exclude_id`.
		Any failure (embedding, store, bad id) is logged and raised as SearchFailedError.
		"""
		try:
			excluded = exclude_id if isinstance(exclude_id, ObjectId) else ObjectId(exclude_id)
		except (InvalidId, TypeError) as e:
			logger.error(f"[Semantic] Invalid show id to exclude: {exclude_id!r}")
			raise SearchFailedError() from e

		# 1) Embed the query text; without a vector there is nothing to search
		try:
			query_vector = self.embedder.embed(query_text)
		except (EmbeddingError, ValueError) as e:
			logger.error(f"[Semantic] Embedding failed for show {excluded}: {e}")
			raise SearchFailedError() from e

		# 2) Nearest-neighbour query in the store
		try:
			docs = list(self.collection.aggregate(self.build_pipeline(query_vector, excluded)))
		except PyMongoError as e:
			logger.exception(f"[Semantic] Vector search failed for show {excluded}: {e}")
			raise SearchFailedError() from e

		# 3) Sanitize; the id check also holds if the store ignored the $match stage
		results = [SimilarShow.from_document(doc) for doc in docs if doc.get('_id') != excluded]
		logger.info(f"[Semantic] {len(results)} similar shows for {excluded}")
		logger.debug(
			f"[Semantic] scores={[round(r.similarity, 1) for r in results]}"
		)
		return results
