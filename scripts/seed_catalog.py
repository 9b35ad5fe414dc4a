"""
Seed the shows collection from the static dataset.

This script:
1) Connects to MongoDB (MONGODB_URL)
2) Ensures the unique index on the external show id
3) Imports korean_tv_series_in_english.json if the collection is empty

Usage:
    python -m scripts.seed_catalog [path/to/dataset.json]

Running it again against a non-empty collection does nothing. Run it from one
process at a time: concurrent seeders race and the losers' rows are rejected
as duplicates.
"""

import sys  # optional dataset path argument

from loguru import logger  # console logging

from show_search.catalog import Catalog  # seeding logic
from show_search.config import get_settings  # environment settings
from show_search.database import Database, ensure_indexes  # connection handle
from show_search.log import configure_logging  # console logging setup


def main(argv=None):
	argv = sys.argv[1:] if argv is None else argv
	settings = get_settings()
	configure_logging(settings.log_level)
	dataset_path = argv[0] if argv else settings.seed_dataset_path

	logger.info("=" * 60)
	logger.info("Seed Show Catalog")
	logger.info("=" * 60)

	# 1) Connect
	logger.info("[1/3] Connecting to MongoDB...")
	database = Database.from_settings(settings)
	try:
		# 2) Unique id index, so duplicate rows fail instead of doubling the catalog
		logger.info("[2/3] Ensuring indexes...")
		ensure_indexes(database.shows)

		# 3) Import
		logger.info(f"[3/3] Importing {dataset_path}...")
		report = Catalog(database.shows).ensure_seeded(dataset_path)
		if report.skipped:
			logger.info(f"[OK] Collection already holds {report.existing} shows; nothing to do")
		else:
			logger.info(f"[OK] Inserted {report.inserted}/{report.total} shows")
			for failure in report.failures[:20]:
				logger.warning(f"  row {failure.index} (id={failure.tmdb_id}): {failure.reason}")
			if report.failed > 20:
				logger.warning(f"  ... and {report.failed - 20} more failures")
	finally:
		database.close()

	logger.info("=" * 60)
	return 0


if __name__ == '__main__':
	sys.exit(main())
