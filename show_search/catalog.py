"""
Catalog module.
Seeds the shows collection from the static dataset (once) and serves the popular listing and show lookups.
"""

# Standard libs for JSON parsing, typing, and paths
import json  # read the dataset
from dataclasses import dataclass, field  # seed report
from pathlib import Path  # filesystem-safe paths
from typing import Any, Dict, List, Optional, Tuple  # type hints

from bson import ObjectId  # store identities
from bson.errors import InvalidId  # malformed identity strings
from pydantic import ValidationError  # rejected dataset rows
from pymongo import DESCENDING  # sort order
from pymongo.collection import Collection  # shows collection
from pymongo.errors import BulkWriteError, PyMongoError  # store failures

from .errors import CatalogError
from .models import DETAIL_PROJECTION, SEED_FIELDS, SUMMARY_PROJECTION, ShowDetail, ShowRecord, ShowSummary

# Console logging
from loguru import logger  # console logger


@dataclass
class SeedFailure:
	index: int  # position of the row in the dataset
	tmdb_id: Any  # external id if the row had one
	reason: str  # validation or write error message


@dataclass
class SeedReport:
	skipped: bool = False  # collection already held documents
	existing: int = 0  # documents present before seeding
	total: int = 0  # rows in the dataset
	inserted: int = 0  # documents written
	failures: List[SeedFailure] = field(default_factory=list)  # rows rejected or not written

	@property
	def failed(self) -> int:
		return len(self.failures)


class Catalog:
	"""
	Reads and (once) writes the shows collection.
	Seeding assumes a single seeder: two processes seeding an empty collection at the same time
	both insert, and the unique index on `id` turns the loser's rows into reported failures.
	"""

	def __init__(self, collection: Collection):
		self.collection = collection  # shows collection

	def load_dataset(self, dataset_path: str) -> List[Dict[str, Any]]:
		"""Read the seed dataset: a JSON array of TMDB TV records."""
		dataset_path = Path(dataset_path)  # normalize path
		if not dataset_path.exists():
			raise FileNotFoundError(f"Show dataset not found: {dataset_path}")
		logger.info(f"[Catalog] Loading shows from {dataset_path}...")
		with open(dataset_path, 'r', encoding='utf-8') as f:
			rows = json.load(f)
		if not isinstance(rows, list):
			raise ValueError(f"Show dataset must be a JSON array: {dataset_path}")
		return rows

	def prepare_documents(self, rows: List[Any], report: SeedReport) -> Tuple[List[Dict[str, Any]], List[int]]:
		"""
		Validate each row into a ShowRecord; invalid rows are recorded in the report and skipped.
		Returns the documents and, for each one, its position in the dataset.
		"""
		documents = []  # rows that passed validation
		positions = []  # dataset index of each document
		for i, row in enumerate(rows):
			if not isinstance(row, dict):
				report.failures.append(SeedFailure(index=i, tmdb_id=None, reason="row is not an object"))
				continue
			subset = {k: row[k] for k in SEED_FIELDS if k in row}  # only the catalog's fields
			try:
				documents.append(ShowRecord.model_validate(subset).to_document())
				positions.append(i)
			except ValidationError as e:
				reason = "; ".join(f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors())
				logger.warning(f"[Catalog] Skipping invalid row {i} (id={row.get('id')}): {reason}")
				report.failures.append(SeedFailure(index=i, tmdb_id=row.get('id'), reason=reason))
		return documents, positions

	def ensure_seeded(self, dataset_path: str) -> SeedReport:
		"""
		Import the dataset if, and only if, the collection is empty.
		A partially-seeded collection (e.g. a crash mid-insert) is non-empty and will not be retried.
		"""
		report = SeedReport()
		try:
			report.existing = self.collection.count_documents({})
		except PyMongoError as e:
			logger.exception(f"[Catalog] Could not count shows: {e}")
			raise CatalogError() from e

		if report.existing > 0:
			report.skipped = True
			logger.debug(f"[Catalog] {report.existing} shows present, seeding skipped")
			return report

		rows = self.load_dataset(dataset_path)
		report.total = len(rows)
		documents, positions = self.prepare_documents(rows, report)
		if not documents:
			logger.warning("[Catalog] No valid rows to insert")
			return report

		try:
			result = self.collection.insert_many(documents, ordered=False)  # one bad row doesn't abort the batch
			report.inserted = len(result.inserted_ids)
		except BulkWriteError as e:
			details = e.details or {}
			report.inserted = details.get('nInserted', 0)
			for err in details.get('writeErrors', []):
				pos = err.get("index", -1)  # index into `documents`
				doc = documents[pos] if 0 <= pos < len(documents) else {}
				report.failures.append(SeedFailure(
					index=positions[pos] if 0 <= pos < len(positions) else -1,
					tmdb_id=doc.get("id"),
					reason=err.get("errmsg", "write error"),
				))
			logger.warning(
				f"[Catalog] Seed finished with {len(details.get('writeErrors', []))} write errors "
				f"(duplicates from a concurrent seeder are expected here)"
			)
		except PyMongoError as e:
			logger.exception(f"[Catalog] Seeding failed: {e}")
			raise CatalogError() from e

		logger.info(f"[Catalog] Seeded {report.inserted}/{report.total} shows ({report.failed} failed)")
		return report

	def top_popular(self, n: int = 20) -> List[ShowSummary]:
		"""Return the `n` most popular shows, highest popularity first."""
		if n <= 0:
			return []
		projection = dict(SUMMARY_PROJECTION, popularity=1)
		try:
			docs = list(self.collection.find({}, projection).sort('popularity', DESCENDING).limit(n))
		except PyMongoError as e:
			logger.exception(f"[Catalog] Popular listing failed: {e}")
			raise CatalogError() from e
		return [ShowSummary.from_document(doc) for doc in docs]

	def get_show(self, show_id: str) -> Optional[ShowDetail]:
		"""Look up one show by its store id; None if the id is malformed or unknown."""
		try:
			oid = ObjectId(show_id)
		except (InvalidId, TypeError):
			logger.debug(f"[Catalog] Malformed show id {show_id!r}")
			return None
		try:
			doc = self.collection.find_one({'_id': oid}, DETAIL_PROJECTION)
		except PyMongoError as e:
			logger.exception(f"[Catalog] Lookup of show {show_id} failed: {e}")
			raise CatalogError() from e
		if doc is None:
			return None
		return ShowDetail.from_document(doc)

	def count(self) -> int:
		try:
			return self.collection.count_documents({})
		except PyMongoError as e:
			logger.exception(f"[Catalog] Count failed: {e}")
			raise CatalogError() from e
