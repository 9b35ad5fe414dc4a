"""
Embedding backfill job.
Computes overview embeddings for shows that don't have one yet, one show at a time.
"""

import time  # throttle between inference calls
from dataclasses import dataclass  # run report
from typing import Callable

from pymongo.collection import Collection
from pymongo.errors import PyMongoError

from .database import has_vector_index
from .embeddings import EmbeddingClient
from .errors import EmbeddingAuthError, EmbeddingError

from loguru import logger


@dataclass
class BackfillReport:
	pending: int = 0  # shows without an embedding when the run started
	embedded: int = 0  # shows updated
	skipped: int = 0  # shows without an overview
	failed: int = 0  # shows whose embedding or update failed
	aborted: bool = False  # stopped early on an authentication failure


class EmbeddingBackfill:
	"""
	Sequential, throttled and resumable: only shows missing `overview_embedding` are selected,
	so a crashed run can simply be started again.
	"""

	def __init__(
		self,
		collection: Collection,
		embedder: EmbeddingClient,
		index_name: str = 'overview_vector_index',
		delay_seconds: float = 1.0,
		sleep: Callable[[float], None] = time.sleep,
	):
		self.collection = collection
		self.embedder = embedder
		self.index_name = index_name
		self.delay_seconds = delay_seconds  # fixed pause between inference calls (rate limits)
		self.sleep = sleep

	def run(self) -> BackfillReport:
		report = BackfillReport()

		if not has_vector_index(self.collection, self.index_name):
			logger.warning(f'[Backfill] Vector search index "{self.index_name}" not found!')
			logger.warning("[Backfill] Create it in MongoDB Atlas (see database.vector_index_definition) before searching.")

		# Only the fields we need; the cursor is drained first so updates don't disturb it
		pending = list(self.collection.find({'overview_embedding': {'$exists': False}}, {'name': 1, 'overview': 1}))
		report.pending = len(pending)
		logger.info(f"[Backfill] Found {report.pending} shows without embeddings")

		for position, show in enumerate(pending, 1):
			name = show.get('name', show.get('_id'))
			overview = show.get('overview')
			if not isinstance(overview, str) or not overview.strip():
				logger.info(f"[Backfill] Skipping {name} - no usable overview")
				report.skipped += 1
				continue

			logger.info(f"[Backfill] Processing ({position}/{report.pending}): {name}")
			try:
				embedding = self.embedder.embed(overview)
				self.collection.update_one({'_id': show['_id']}, {'$set': {'overview_embedding': embedding}})
				report.embedded += 1
			except EmbeddingAuthError:
				logger.error("[Backfill] Invalid or missing HF_TOKEN; stopping")
				report.aborted = True
				break
			except (EmbeddingError, PyMongoError) as e:
				logger.error(f"[Backfill] Error processing {name}: {e}")
				report.failed += 1
				continue

			if position < report.pending:
				self.sleep(self.delay_seconds)

		logger.info(
			f"[Backfill] Done | embedded={report.embedded} skipped={report.skipped} failed={report.failed}"
			+ (" | aborted" if report.aborted else "")
		)
		return report
