"""
FastAPI server exposing the show catalog.
Endpoints:
- GET /health: basic health check
- GET /shows?limit=20: most popular shows (seeds the catalog on first call)
- GET /search?q=...&limit=10: keyword search over names and overview
- GET /shows/{show_id}: one show plus semantically similar shows

Startup opens the MongoDB connection and the embedding client; shutdown closes them.
"""

# Import standard libraries for timing and text handling
import html  # undo output escaping before embedding
import time  # measure startup and request latencies
from typing import List, Optional  # precise typing for clarity

# Import FastAPI for building the web API and Pydantic for response models
from fastapi import FastAPI, HTTPException, Query  # FastAPI primitives
from pydantic import BaseModel  # response schema definitions
from pymongo.errors import PyMongoError  # store failures during startup

# Import our internal modules for the retrieval layer
from show_search.catalog import Catalog  # seeding, listing, lookup
from show_search.config import get_settings  # environment settings
from show_search.database import Database, ensure_indexes  # connection handle
from show_search.embeddings import EmbeddingClient  # inference endpoint client
from show_search.errors import CatalogError, SearchFailedError  # generic failures
from show_search.keyword_search import KeywordSearch  # substring search
from show_search.log import configure_logging  # console logging setup
from show_search.semantic_search import SemanticSearch  # vector search

# Import loguru for simple, structured console logging
from loguru import logger  # convenient console logger

# Instantiate the FastAPI application with metadata
app = FastAPI(title="Show Search API", version="1.0.0")  # web app

# Globals holding the connection and the components built on it
DATABASE: Optional[Database] = None  # open MongoDB handle
EMBEDDER: Optional[EmbeddingClient] = None  # inference client
CATALOG: Optional[Catalog] = None  # listing and lookup
KEYWORD: Optional[KeywordSearch] = None  # keyword search
SEMANTIC: Optional[SemanticSearch] = None  # similar shows
DATASET_PATH: str = ''  # seed dataset location
STARTUP_TIME_S: float = 0.0  # measures how long startup took


class ShowOut(BaseModel):
	show_id: str  # store id, used in /shows/{show_id}
	tmdb_id: int  # external id
	name: str
	original_name: str
	poster_path: str
	overview: str
	first_air_date: str
	vote_average: float
	popularity: Optional[float] = None


class SimilarShowOut(BaseModel):
	show_id: str
	name: str
	original_name: str
	poster_path: str
	overview: str
	first_air_date: str
	vote_average: float
	similarity: float  # 0..100 match percentage


class ShowDetailOut(BaseModel):
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


class ShowPageResponse(BaseModel):
	show: ShowDetailOut  # the requested show
	similar: List[SimilarShowOut]  # similar shows (may be empty)
	similar_error: Optional[str] = None  # generic message when the similar list could not be built


class ListResponse(BaseModel):
	elapsed_ms: float  # server-side time in ms
	results: List[ShowOut]


class SearchResponse(BaseModel):
	query: str  # original query string
	limit: int  # maximum number of results requested
	elapsed_ms: float  # server-side search time in ms
	results: List[ShowOut]  # matching shows


def _require(component):
	"""Fail with 503 if startup hasn't wired the component (missing or bad MONGODB_URL, store unreachable)."""
	if component is None:
		logger.warning("[API] Request received but services are not initialized")
		raise HTTPException(status_code=503, detail="service not ready")
	return component


# FastAPI startup hook: open the store connection and build the components once
@app.on_event("startup")
async def startup_event():
	"""Connect to MongoDB and wire the retrieval components."""
	global DATABASE, EMBEDDER, CATALOG, KEYWORD, SEMANTIC, DATASET_PATH, STARTUP_TIME_S
	start = time.time()  # start timer for startup latency

	settings = get_settings()
	configure_logging(settings.log_level)
	logger.info("[API] Startup: connecting to MongoDB and initializing services...")

	try:
		database = Database.from_settings(settings)
	except (ValueError, PyMongoError) as e:
		# Leave the components unset; requests get 503 until the configuration is fixed
		logger.error(f"[API] Startup aborted: {e}")
		return
	try:
		ensure_indexes(database.shows)
	except PyMongoError as e:
		logger.error(f"[API] Startup aborted, MongoDB unavailable: {e}")
		database.close()
		return
	DATABASE = database
	EMBEDDER = EmbeddingClient.from_settings(settings)
	CATALOG = Catalog(DATABASE.shows)
	KEYWORD = KeywordSearch(DATABASE.shows)
	SEMANTIC = SemanticSearch.from_settings(DATABASE.shows, EMBEDDER, settings)
	DATASET_PATH = settings.seed_dataset_path

	STARTUP_TIME_S = time.time() - start  # elapsed seconds
	logger.info(f"[API] Startup complete in {STARTUP_TIME_S:.2f}s.")


@app.on_event("shutdown")
async def shutdown_event():
	"""Close the HTTP session and the MongoDB connection."""
	if EMBEDDER is not None:
		EMBEDDER.close()
	if DATABASE is not None:
		DATABASE.close()


# Simple health endpoint for readiness checks
@app.get("/health")
def health():
	"""Return minimal health info for liveness and readiness checks."""
	return {
		"status": "ok",  # constant indicator
		"store_reachable": DATABASE.ping() if DATABASE is not None else False,
		"startup_seconds": round(STARTUP_TIME_S, 2),  # startup latency
	}


@app.get("/shows", response_model=ListResponse)
def list_shows(limit: int = Query(20, ge=1, le=100)):
	"""Most popular shows. The first call against an empty collection imports the dataset."""
	catalog = _require(CATALOG)
	start = time.time()
	try:
		catalog.ensure_seeded(DATASET_PATH)
		shows = catalog.top_popular(limit)
	except (CatalogError, FileNotFoundError, ValueError) as e:
		logger.error(f"[API] /shows failed: {e}")
		raise HTTPException(status_code=502, detail="catalog unavailable")
	elapsed_ms = (time.time() - start) * 1000
	logger.info(f"[API] /shows served {len(shows)} shows in {elapsed_ms:.2f} ms")
	return ListResponse(elapsed_ms=round(elapsed_ms, 2), results=[ShowOut(**s.to_dict()) for s in shows])


# Main search endpoint that accepts a free-text query
@app.get("/search", response_model=SearchResponse)
def search(q: str = Query("", description="Text to find in show names or overview"), limit: int = Query(10, ge=1, le=50)):
	"""Keyword search; queries shorter than two characters return no results."""
	keyword = _require(KEYWORD)
	start = time.time()  # start timer
	logger.debug(f"[API] /search q='{q}' limit={limit}")
	try:
		results = keyword.search(q, limit=limit)
	except SearchFailedError:
		raise HTTPException(status_code=502, detail="search failed")
	elapsed_ms = (time.time() - start) * 1000
	logger.info(f"[API] /search served {len(results)} results in {elapsed_ms:.2f} ms")
	return SearchResponse(
		query=q,
		limit=limit,
		elapsed_ms=round(elapsed_ms, 2),
		results=[ShowOut(**r.to_dict()) for r in results],
	)


@app.get("/shows/{show_id}", response_model=ShowPageResponse)
def show_page(show_id: str):
	"""One show and the shows most similar to its overview (never itself)."""
	catalog = _require(CATALOG)
	semantic = _require(SEMANTIC)
	try:
		show = catalog.get_show(show_id)
	except CatalogError:
		raise HTTPException(status_code=502, detail="catalog unavailable")
	if show is None:
		raise HTTPException(status_code=404, detail="show not found")

	# A failed recommendation shouldn't take the page down with it
	similar, similar_error = [], None
	try:
		# The detail view is escaped for display; embed the readable text
		similar = semantic.similar(html.unescape(show.overview), show.show_id)
	except SearchFailedError as e:
		similar_error = str(e)

	return ShowPageResponse(
		show=ShowDetailOut(**show.to_dict()),
		similar=[SimilarShowOut(**s.to_dict()) for s in similar],
		similar_error=similar_error,
	)
