"""
Backfill overview embeddings for shows that don't have one.

This script:
1) Checks MONGODB_URL and HF_TOKEN are set
2) Connects to MongoDB and warns if the vector search index is missing
3) Embeds each show's overview through the inference endpoint, one per second
4) Stores the vector in `overview_embedding`

Usage:
    python -m scripts.generate_embeddings [--create-index]

Safe to interrupt and re-run: shows that already have an embedding are skipped.
"""

import argparse  # command line flags
import sys  # exit status

from loguru import logger  # console logging

from show_search.backfill import EmbeddingBackfill  # the job
from show_search.config import get_settings  # environment settings
from show_search.database import Database, ensure_vector_index  # connection handle
from show_search.embeddings import EmbeddingClient  # inference client
from show_search.log import configure_logging  # console logging setup


def main(argv=None):
	parser = argparse.ArgumentParser(description="Generate overview embeddings for the show catalog")
	parser.add_argument('--create-index', action='store_true', help="create the Atlas vector index if it is missing")
	args = parser.parse_args(argv)

	settings = get_settings()
	configure_logging(settings.log_level)

	# Fail fast on missing configuration
	missing = [name for name, value in (('MONGODB_URL', settings.mongodb_url), ('HF_TOKEN', settings.hf_token)) if not value]
	if missing:
		logger.error("Missing required environment variables:")
		for name in missing:
			logger.error(f"- {name}")
		logger.error("Please check your .env.local file.")
		return 1

	logger.info("Starting embedding generation process...")
	database = Database.from_settings(settings)
	embedder = EmbeddingClient.from_settings(settings)
	try:
		if args.create_index:
			ensure_vector_index(database.shows, settings.vector_index_name, settings.embedding_dimension)
		job = EmbeddingBackfill(
			database.shows,
			embedder,
			index_name=settings.vector_index_name,
			delay_seconds=settings.backfill_delay_seconds,
		)
		report = job.run()
	finally:
		embedder.close()
		database.close()

	logger.info(f"Embedding generation complete! Processed {report.embedded} shows")
	return 1 if report.aborted else 0


if __name__ == '__main__':
	sys.exit(main())
