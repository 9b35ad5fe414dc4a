"""
Semantic search tests. $vectorSearch only runs on Atlas, so the collection's aggregate() is
replaced by a fake that ranks documents by a fixed score and then applies the pipeline's $match.
"""

from unittest.mock import MagicMock

import pytest
from bson import ObjectId
from pymongo.errors import OperationFailure

from show_search.errors import EmbeddingError, SearchFailedError
from show_search.semantic_search import SemanticSearch, VectorQuery


def scored_docs(scores):
	"""Documents as they come out of the pipeline ($set/$project already applied)."""
	return [
		{
			'_id': ObjectId(),
			'name': f'Show {i}',
			'original_name': f'쇼 {i}',
			'poster_path': f'/p{i}.jpg',
			'overview': f'Overview {i}',
			'first_air_date': '2021-09-17',
			'vote_average': 7.0,
			'raw_score': score,
		}
		for i, score in enumerate(scores)
	]


class FakeVectorCollection:
	"""Imitates the vector stage: top `limit` by score, then $match, then score * 100."""

	def __init__(self, docs):
		self.docs = docs
		self.pipelines = []

	def aggregate(self, pipeline):
		self.pipelines.append(pipeline)
		limit = pipeline[0]['$vectorSearch']['limit']
		excluded = pipeline[1]['$match']['_id']['$ne']
		hits = sorted(self.docs, key=lambda d: d['raw_score'], reverse=True)[:limit]
		out = []
		for doc in hits:
			if doc['_id'] == excluded:
				continue
			doc = {k: v for k, v in doc.items() if k != 'raw_score'}
			doc['similarity'] = next(d['raw_score'] for d in self.docs if d['_id'] == doc['_id']) * 100
			out.append(doc)
		return iter(out)


@pytest.fixture
def embedder():
	embedder = MagicMock()
	embedder.embed.return_value = [0.01] * 384
	return embedder


def test_pipeline_shape(embedder):
	search = SemanticSearch(MagicMock(), embedder, VectorQuery(num_candidates=100, limit=5))
	oid = ObjectId()
	pipeline = search.build_pipeline([0.1, 0.2], oid)

	assert pipeline[0] == {'$vectorSearch': {
		'index': 'overview_vector_index',
		'queryVector': [0.1, 0.2],
		'path': 'overview_embedding',
		'numCandidates': 100,
		'limit': 5,
	}}
	assert pipeline[1] == {'$match': {'_id': {'$ne': oid}}}
	assert pipeline[2] == {'$set': {'similarity': {'$multiply': [{'$meta': 'vectorSearchScore'}, 100]}}}
	projection = pipeline[3]['$project']
	assert projection['similarity'] == 1
	assert 'overview_embedding' not in projection


def test_source_show_is_never_returned(embedder):
	docs = scored_docs([0.99, 0.91, 0.85, 0.80, 0.72, 0.50, 0.30])
	source = docs[0]  # the show's own overview scores highest against itself
	collection = FakeVectorCollection(docs)

	results = SemanticSearch(collection, embedder).similar(source['overview'], str(source['_id']))

	assert str(source['_id']) not in [r.show_id for r in results]
	# Exclusion happens after the vector stage, so one of the five slots is lost
	assert len(results) == 4
	embedder.embed.assert_called_once_with(source['overview'])


def test_similarity_rescaled_to_percent(embedder):
	docs = scored_docs([1.0, 0.875, 0.5, 0.0])
	results = SemanticSearch(FakeVectorCollection(docs), embedder).similar('query', ObjectId())

	assert [r.similarity for r in results] == [100.0, 87.5, 50.0, 0.0]
	assert all(0 <= r.similarity <= 100 for r in results)


def test_excluded_id_filtered_even_if_store_ignores_match(embedder):
	docs = scored_docs([0.9, 0.8])
	for d in docs:
		d['similarity'] = d.pop('raw_score') * 100
	collection = MagicMock()
	collection.aggregate.return_value = iter(docs)

	results = SemanticSearch(collection, embedder).similar('query', docs[0]['_id'])
	assert [r.show_id for r in results] == [str(docs[1]['_id'])]


def test_results_are_sanitized(embedder):
	collection = MagicMock()
	collection.aggregate.return_value = iter([{
		'_id': ObjectId(),
		'name': '<b>Kingdom</b>',
		'original_name': None,
		'overview': 'Zombies & "politics"',
		'vote_average': None,
		'similarity': 93.2,
	}])
	result = SemanticSearch(collection, embedder).similar('query', ObjectId())[0]
	assert result.name == 'bKingdom/b'
	assert result.original_name == ''
	assert result.overview == 'Zombies &amp; &quot;politics&quot;'
	assert result.vote_average == 0.0
	assert result.poster_path == ''


def test_embedding_failure_is_generic_search_error(embedder):
	embedder.embed.side_effect = EmbeddingError('request failed with status code 503')
	collection = MagicMock()
	with pytest.raises(SearchFailedError) as exc:
		SemanticSearch(collection, embedder).similar('query', ObjectId())
	assert str(exc.value) == 'search failed'
	collection.aggregate.assert_not_called()


def test_store_failure_is_generic_search_error(embedder):
	collection = MagicMock()
	collection.aggregate.side_effect = OperationFailure('$vectorSearch is not allowed')
	with pytest.raises(SearchFailedError):
		SemanticSearch(collection, embedder).similar('query', ObjectId())


def test_malformed_exclude_id_is_search_error(embedder):
	with pytest.raises(SearchFailedError):
		SemanticSearch(MagicMock(), embedder).similar('query', 'not-an-object-id')
	embedder.embed.assert_not_called()
