"""
Catalog seeding, popular listing and lookups.
"""

import random
from unittest.mock import MagicMock

import pytest
from bson import ObjectId
from pymongo.errors import BulkWriteError, ServerSelectionTimeoutError

from show_search.catalog import Catalog
from show_search.errors import CatalogError

from conftest import make_show


@pytest.fixture
def hundred_shows():
	rows = [make_show(i, popularity=float(i) + 0.5) for i in range(100)]
	random.Random(7).shuffle(rows)
	return rows


def test_seed_then_top_20_by_popularity(collection, write_dataset, hundred_shows):
	catalog = Catalog(collection)
	report = catalog.ensure_seeded(write_dataset(hundred_shows))

	assert not report.skipped
	assert report.inserted == 100
	assert report.failed == 0

	top = catalog.top_popular(20)
	popularity = [s.popularity for s in top]
	assert len(top) == 20
	assert popularity == sorted(popularity, reverse=True)
	assert popularity[0] == 99.5
	# 21st most popular show (index 79) is left out
	assert 1079 not in [s.tmdb_id for s in top]
	assert min(popularity) == 80.5


def test_seeding_is_idempotent(collection, write_dataset, hundred_shows):
	catalog = Catalog(collection)
	path = write_dataset(hundred_shows)

	first = catalog.ensure_seeded(path)
	count_after_first = collection.count_documents({})
	second = catalog.ensure_seeded(path)

	assert first.inserted == 100
	assert second.skipped
	assert second.existing == 100
	assert collection.count_documents({}) == count_after_first == 100


def test_non_empty_collection_never_reads_dataset(collection):
	collection.insert_one(make_show(1))
	report = Catalog(collection).ensure_seeded('/does/not/exist.json')
	assert report.skipped


def test_missing_dataset_on_empty_collection(collection):
	with pytest.raises(FileNotFoundError):
		Catalog(collection).ensure_seeded('/does/not/exist.json')


def test_invalid_rows_reported_not_inserted(collection, write_dataset):
	rows = [
		make_show(1),
		make_show(2, vote_average=11),  # out of range
		{'name': 'No id'},  # missing required fields
		'not an object',
		make_show(3, poster_path=None, backdrop_path=None, some_extra_field='ignored'),
	]
	report = Catalog(collection).ensure_seeded(write_dataset(rows))

	assert report.total == 5
	assert report.inserted == 2
	assert sorted(f.index for f in report.failures) == [1, 2, 3]
	stored = collection.find_one({'id': 1003})
	assert stored['poster_path'] is None
	assert 'some_extra_field' not in stored
	assert 'overview_embedding' not in stored


def test_duplicate_key_failures_are_collected():
	collection = MagicMock()
	collection.count_documents.return_value = 0
	collection.insert_many.side_effect = BulkWriteError({
		'nInserted': 1,
		'writeErrors': [{'index': 1, 'code': 11000, 'errmsg': 'E11000 duplicate key error'}],
	})
	catalog = Catalog(collection)
	catalog.load_dataset = MagicMock(return_value=[make_show(1), make_show(2)])

	report = catalog.ensure_seeded('ignored.json')

	_, kwargs = collection.insert_many.call_args
	assert kwargs == {'ordered': False}
	assert report.inserted == 1
	assert [(f.index, f.tmdb_id) for f in report.failures] == [(1, 1002)]


def test_store_failure_while_counting_is_catalog_error():
	collection = MagicMock()
	collection.count_documents.side_effect = ServerSelectionTimeoutError('no servers')
	with pytest.raises(CatalogError):
		Catalog(collection).ensure_seeded('ignored.json')


def test_top_popular_empty_collection(collection):
	assert Catalog(collection).top_popular() == []


def test_get_show_found_and_not_found(collection):
	collection.insert_one(make_show(5, overview_embedding=[0.2] * 384))
	stored = collection.find_one({'id': 1005})
	catalog = Catalog(collection)

	show = catalog.get_show(str(stored['_id']))
	assert show.name == 'Drama 5'
	assert show.origin_country == ['KR']
	assert 'overview_embedding' not in show.to_dict()

	assert catalog.get_show(str(ObjectId())) is None
	assert catalog.get_show('not-an-id') is None
