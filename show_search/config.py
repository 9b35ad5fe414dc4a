"""
Environment-driven settings.
Values are read once from the process environment (after loading .env.local / .env).
"""

import os  # environment access
import re  # credential masking
from functools import lru_cache  # one Settings instance per process
from pathlib import Path  # locate env files
from typing import Optional  # optional values

from dotenv import load_dotenv  # .env file support


ROOT = Path(__file__).resolve().parents[1]  # project root

DEFAULT_EMBEDDING_API_URL = (
	"https://api-inference.huggingface.co/pipeline/feature-extraction/"
	"sentence-transformers/all-MiniLM-L6-v2"
)


def _load_env_files():
	"""Load .env.local first so it wins over .env (load_dotenv never overrides)."""
	for name in ('.env.local', '.env'):
		env_path = ROOT / name
		if env_path.exists():
			load_dotenv(dotenv_path=env_path)


def _optional_float(raw: Optional[str]) -> Optional[float]:
	if raw is None or not raw.strip():
		return None
	return float(raw)


class Settings:
	def __init__(self):
		self.log_level = os.getenv("LOG_LEVEL", "INFO")

		# Document store
		self.mongodb_url = os.getenv("MONGODB_URL")
		self.mongodb_db = os.getenv("MONGODB_DB")  # falls back to the database named in the URL
		self.mongodb_collection = os.getenv("MONGODB_COLLECTION", "posts")

		# Inference endpoint
		self.hf_token = os.getenv("HF_TOKEN")
		self.embedding_api_url = os.getenv("EMBEDDING_API_URL", DEFAULT_EMBEDDING_API_URL)
		self.embedding_dimension = int(os.getenv("EMBEDDING_DIMENSION", "384"))
		# No timeout unless configured; a hung call hangs the request
		self.embedding_timeout = _optional_float(os.getenv("EMBEDDING_TIMEOUT_SECONDS"))

		# Vector index
		self.vector_index_name = os.getenv("VECTOR_INDEX_NAME", "overview_vector_index")
		self.vector_num_candidates = int(os.getenv("VECTOR_NUM_CANDIDATES", "100"))
		self.vector_limit = int(os.getenv("VECTOR_LIMIT", "5"))

		# Seeding and backfill
		self.seed_dataset_path = os.getenv(
			"SEED_DATASET_PATH", str(ROOT / "korean_tv_series_in_english.json")
		)
		self.backfill_delay_seconds = float(os.getenv("BACKFILL_DELAY_SECONDS", "1.0"))

	def redacted_mongodb_url(self) -> str:
		"""Connection URL with user:password replaced, safe for logs."""
		if not self.mongodb_url:
			return ""
		return re.sub(r"//[^:/@]+:[^@]+@", "//<credentials>@", self.mongodb_url)


@lru_cache()
def get_settings() -> Settings:
	_load_env_files()
	return Settings()
