"""
Shared fixtures: an in-memory shows collection and helpers to build show rows.
"""

import json

import mongomock
import pytest


def make_show(i, **overrides):
	"""A dataset row shaped like the TMDB records in korean_tv_series_in_english.json."""
	row = {
		'adult': False,
		'backdrop_path': f'/backdrop{i}.jpg',
		'genre_ids': [18],
		'id': 1000 + i,
		'origin_country': ['KR'],
		'original_language': 'ko',
		'original_name': f'드라마 {i}',
		'overview': f'A family drama, episode guide number {i}.',
		'popularity': float(i),
		'poster_path': f'/poster{i}.jpg',
		'first_air_date': '2020-01-01',
		'name': f'Drama {i}',
		'vote_average': 7.5,
		'vote_count': 100 + i,
	}
	row.update(overrides)
	return row


@pytest.fixture
def collection():
	"""Empty mongomock 'posts' collection."""
	return mongomock.MongoClient().catalog.posts


@pytest.fixture
def write_dataset(tmp_path):
	"""Write rows to a JSON file and return its path."""
	def _write(rows, name='shows.json'):
		path = tmp_path / name
		path.write_text(json.dumps(rows, ensure_ascii=False), encoding='utf-8')
		return str(path)
	return _write
