"""
Field sanitation for documents leaving the retrieval layer.
This is defensive normalization (strip angle brackets, escape & and quotes, default
missing values), not a full HTML sanitizer; templates must still autoescape.
"""

import math  # NaN / infinity checks
from typing import Any, Callable, Dict, List, Mapping, Optional

# Characters escaped in text fields, '&' first so we never double-escape our own output
_ESCAPES = (
	('&', '&amp;'),
	('"', '&quot;'),
	("'", '&#x27;'),
)

TEXT_FIELDS = (
	'_id', 'name', 'original_name', 'overview', 'first_air_date',
	'poster_path', 'backdrop_path', 'original_language',
)
FLOAT_FIELDS = ('popularity', 'vote_average', 'similarity')
INT_FIELDS = ('id', 'vote_count')
BOOL_FIELDS = ('adult',)
LIST_FIELDS = ('origin_country', 'genre_ids')


def clean_text(value: Any, escape: bool = True) -> str:
	"""None becomes '', anything else is stringified and stripped of < and >; & and quotes are escaped unless escape=False."""
	if value is None:
		return ''
	text = value if isinstance(value, str) else str(value)
	text = text.replace('<', '').replace('>', '')
	if not escape:
		return text
	for raw, escaped in _ESCAPES:
		text = text.replace(raw, escaped)
	return text


def clean_number(value: Any, cast: Callable[[Any], Any] = float):
	"""
	Coerce to a number with "x or 0" semantics: falsy values become 0.
	Unparseable values and NaN/infinity also become 0 rather than propagating.
	"""
	if not value or isinstance(value, bool):
		return cast(0)
	try:
		number = float(value)
	except (TypeError, ValueError):
		return cast(0)
	if math.isnan(number) or math.isinf(number):
		return cast(0)
	return cast(number)


def clean_bool(value: Any) -> bool:
	return value if isinstance(value, bool) else False


def clean_list(value: Any, item: Optional[Callable[[Any], Any]] = None) -> List[Any]:
	"""Non-lists become []; when given, `item` cleans each element."""
	if not isinstance(value, (list, tuple)):
		return []
	if item is None:
		return list(value)
	return [item(v) for v in value]


def sanitize_show(raw: Mapping[str, Any], fields: Optional[List[str]] = None, escape: bool = True) -> Dict[str, Any]:
	"""
	Return a cleaned copy of a show document.
	Only known fields are emitted; the embedding vector and unknown keys are dropped.
	When `fields` is given, only those keys are produced (missing ones get defaults).
	escape=False keeps & and quotes verbatim (angle brackets are always removed).
	"""
	raw = raw or {}
	wanted = fields or [f for f in TEXT_FIELDS + FLOAT_FIELDS + INT_FIELDS + BOOL_FIELDS + LIST_FIELDS if f in raw]
	safe: Dict[str, Any] = {}
	for field in wanted:
		value = raw.get(field)
		if field in FLOAT_FIELDS:
			safe[field] = clean_number(value)
		elif field in INT_FIELDS:
			safe[field] = clean_number(value, int)
		elif field in BOOL_FIELDS:
			safe[field] = clean_bool(value)
		elif field == 'origin_country':
			safe[field] = clean_list(value, lambda v: clean_text(v, escape))
		elif field == 'genre_ids':
			safe[field] = clean_list(value, lambda g: clean_number(g, int))
		elif field in TEXT_FIELDS:
			safe[field] = clean_text(value, escape)
	return safe
