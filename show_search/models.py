"""
Data models for the Show Search catalog.
Defines the validated seed record and the read-only result types returned by searches.
"""

# Import dataclass to define simple "record-like" classes without boilerplate
from dataclasses import dataclass, asdict  # auto-generates __init__, __repr__, and dict export
# Import typing helpers for precise and self-documenting types
from typing import Any, Dict, List, Mapping, Optional  # containers and optional values

# Pydantic validates raw dataset rows before they are written to the store
from pydantic import BaseModel, ConfigDict, Field  # schema validation

# Field-level cleaning applied to every document leaving the store
from .sanitizer import sanitize_show  # defensive coercion


# Fields copied from a dataset row into the collection (never the embedding)
SEED_FIELDS = (
	'adult', 'backdrop_path', 'genre_ids', 'id', 'origin_country', 'original_language',
	'original_name', 'overview', 'popularity', 'poster_path', 'first_air_date', 'name',
	'vote_average', 'vote_count',
)

# Projection used by keyword search and the popular listing
SUMMARY_PROJECTION = {
	'id': 1, 'name': 1, 'original_name': 1, 'poster_path': 1,
	'overview': 1, 'first_air_date': 1, 'vote_average': 1,
}

# Projection for the detail view: everything except the embedding vector
DETAIL_PROJECTION = {'overview_embedding': 0}

_SUMMARY_FIELDS = ['_id', 'id', 'name', 'original_name', 'poster_path', 'overview', 'first_air_date', 'vote_average']
_SIMILAR_FIELDS = ['_id', 'name', 'original_name', 'poster_path', 'overview', 'first_air_date', 'vote_average', 'similarity']
_DETAIL_FIELDS = ['_id'] + list(SEED_FIELDS)


class ShowRecord(BaseModel):
	"""
	One TV series as it is stored in the catalog.
	Rows from the seed dataset must validate against this model before insertion;
	rows that do not are reported instead of being silently defaulted.
	"""
	model_config = ConfigDict(extra='ignore')

	id: int  # external (TMDB) identifier, unique across the catalog
	name: str  # display name
	original_name: str  # name in the original language
	overview: str = ''  # free-text synopsis; embedded by the backfill job
	first_air_date: str = ''  # kept as given, not parsed
	poster_path: Optional[str] = None  # image path fragment (TMDB returns null for some shows)
	backdrop_path: Optional[str] = None  # image path fragment
	origin_country: List[str] = Field(default_factory=list)  # ISO country codes
	original_language: str = ''  # ISO language code
	adult: bool = False  # adult-content flag
	genre_ids: List[int] = Field(default_factory=list)  # TMDB genre identifiers
	popularity: float = Field(ge=0)  # ranking signal for the listing
	vote_average: float = Field(ge=0, le=10)  # average user vote
	vote_count: int = Field(ge=0)  # number of votes

	def to_document(self) -> Dict[str, Any]:
		"""Return the dict written to the collection."""
		return self.model_dump()


@dataclass(frozen=True)
class ShowSummary:
	"""
	Compact view of a show used by keyword search and the popular listing.
	"""
	show_id: str  # store-assigned identity (ObjectId as a string)
	tmdb_id: int  # external identifier
	name: str
	original_name: str
	poster_path: str
	overview: str
	first_air_date: str
	vote_average: float
	popularity: Optional[float] = None  # only filled in by the popular listing

	@classmethod
	def from_document(cls, doc: Mapping[str, Any], escape: bool = True) -> 'ShowSummary':
		"""escape=False keeps & and quotes as stored, so text still contains what was searched for."""
		fields = _SUMMARY_FIELDS + (['popularity'] if 'popularity' in doc else [])
		safe = sanitize_show(doc, fields, escape=escape)
		return cls(
			show_id=safe['_id'],
			tmdb_id=safe['id'],
			name=safe['name'],
			original_name=safe['original_name'],
			poster_path=safe['poster_path'],
			overview=safe['overview'],
			first_air_date=safe['first_air_date'],
			vote_average=safe['vote_average'],
			popularity=safe.get('popularity'),
		)

	def to_dict(self) -> Dict[str, Any]:
		return asdict(self)


@dataclass(frozen=True)
class SimilarShow:
	"""
	A semantic-search hit: summary fields plus the similarity rescaled to 0..100.
	"""
	show_id: str
	name: str
	original_name: str
	poster_path: str
	overview: str
	first_air_date: str
	vote_average: float
	similarity: float  # vectorSearchScore * 100, for display only

	@classmethod
	def from_document(cls, doc: Mapping[str, Any]) -> 'SimilarShow':
		safe = sanitize_show(doc, _SIMILAR_FIELDS)
		# Clamp so a score slightly outside [0, 1] from the store still displays sanely
		similarity = max(0.0, min(100.0, safe['similarity']))
		return cls(
			show_id=safe['_id'],
			name=safe['name'],
			original_name=safe['original_name'],
			poster_path=safe['poster_path'],
			overview=safe['overview'],
			first_air_date=safe['first_air_date'],
			vote_average=safe['vote_average'],
			similarity=similarity,
		)

	def to_dict(self) -> Dict[str, Any]:
		return asdict(self)


@dataclass(frozen=True)
class ShowDetail:
	"""Everything we show on a single show's page (the embedding is never included)."""
	show_id: str
	tmdb_id: int
	name: str
	original_name: str
	overview: str
	first_air_date: str
	poster_path: str
	backdrop_path: str
	origin_country: List[str]
	original_language: str
	adult: bool
	genre_ids: List[int]
	popularity: float
	vote_average: float
	vote_count: int

	@classmethod
	def from_document(cls, doc: Mapping[str, Any]) -> 'ShowDetail':
		safe = sanitize_show(doc, _DETAIL_FIELDS)
		safe['show_id'] = safe.pop('_id')
		safe['tmdb_id'] = safe.pop('id')
		return cls(**safe)

	def to_dict(self) -> Dict[str, Any]:
		return asdict(self)
