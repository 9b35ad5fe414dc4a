"""
Embedding generation module.
Turns free text into a vector by calling a hosted sentence-transformers feature-extraction endpoint.
"""

# Import NumPy to validate the vector returned by the endpoint
import numpy as np  # numeric arrays
# Import typing helpers for clear API contracts
from typing import List, Optional  # list and optional types
# HTTP client used to reach the inference endpoint
import requests  # blocking HTTP calls

from .errors import EmbeddingAuthError, EmbeddingError  # failures surfaced to callers

# Import loguru for consistent console logging (friendlier than print)
from loguru import logger  # console logger


class EmbeddingClient:
	"""
	Generates query/document embeddings through a remote inference API.
	One call = one HTTP request: no caching, no retry, no batching.
	"""

	def __init__(
		self,
		api_url: str,
		token: Optional[str],
		embedding_dimension: int = 384,
		timeout: Optional[float] = None,
		session: Optional[requests.Session] = None,
	):
		"""
		- api_url: feature-extraction pipeline URL (model is part of the URL)
		- token: bearer token for the endpoint
		- embedding_dimension: expected vector size (384 for all-MiniLM-L6-v2)
		- timeout: seconds before giving up; None waits indefinitely
		- session: optional requests session (shared connection pool, injectable in tests)
		"""
		self.api_url = api_url  # endpoint
		self.token = token  # credentials
		self.embedding_dimension = embedding_dimension  # expected vector size
		self.timeout = timeout  # request timeout
		self.session = session or requests.Session()  # HTTP connection pool
		logger.info(f"[Embeddings] Client ready | url={api_url} | dim={embedding_dimension} | token={'set' if token else 'missing'}")

	@classmethod
	def from_settings(cls, settings) -> 'EmbeddingClient':
		"""Build a client from the application Settings."""
		return cls(
			api_url=settings.embedding_api_url,
			token=settings.hf_token,
			embedding_dimension=settings.embedding_dimension,
			timeout=settings.embedding_timeout,
		)

	def embed(self, text: str) -> List[float]:
		"""
		Return the embedding of a single text as a list of floats (ready to store in MongoDB).
		Raises EmbeddingError on any non-200 response, network failure or malformed payload.
		"""
		# Validate the text to avoid paying for a meaningless vector
		if not text or not text.strip():
			raise ValueError("Text to embed cannot be empty")

		headers = {
			"Authorization": f"Bearer {self.token}",
			"Content-Type": "application/json",
		}
		try:
			response = self.session.post(
				self.api_url,
				json={"inputs": [text]},  # single-text batch
				headers=headers,
				timeout=self.timeout,
			)
		except requests.RequestException as e:
			logger.error(f"[Embeddings] Request to inference endpoint failed: {e}")
			raise EmbeddingError("embedding request failed") from e

		if response.status_code == 401:
			logger.error("[Embeddings] Inference endpoint rejected the token (401). Check HF_TOKEN.")
			raise EmbeddingAuthError("invalid or missing HF_TOKEN")
		if response.status_code != 200:
			logger.error(f"[Embeddings] Inference endpoint returned status {response.status_code}: {response.text[:200]}")
			raise EmbeddingError(f"request failed with status code {response.status_code}")

		try:
			payload = response.json()
			vector = np.asarray(payload[0], dtype=float)  # first (and only) input's vector
		except (ValueError, TypeError, IndexError, KeyError) as e:
			logger.error(f"[Embeddings] Could not read embedding from response: {e}")
			raise EmbeddingError("malformed embedding response") from e

		# A valid embedding is a flat vector of finite numbers
		if vector.ndim != 1 or vector.size == 0 or not np.all(np.isfinite(vector)):
			logger.error(f"[Embeddings] Unexpected embedding shape {vector.shape}")
			raise EmbeddingError("malformed embedding response")

		# The vector index assumes a fixed size; flag drift but let the caller decide
		if vector.shape[0] != self.embedding_dimension:
			logger.warning(
				f"[Embeddings] Unexpected embedding dimensions ({vector.shape[0]}). Expected {self.embedding_dimension}."
			)

		return vector.tolist()

	def get_embedding_dimension(self) -> int:
		"""Return the configured dimensionality of the vectors."""
		return self.embedding_dimension

	def close(self):
		"""Release pooled HTTP connections."""
		self.session.close()
