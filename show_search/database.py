"""
MongoDB connection handle and collection setup.
The application opens one Database at startup, passes it to each component and closes it at shutdown.
"""

from typing import Any, Dict, Optional

from pymongo import ASCENDING, MongoClient
from pymongo.collection import Collection
from pymongo.errors import PyMongoError
from pymongo.operations import SearchIndexModel

from loguru import logger


class Database:
	"""
	Owns a MongoClient (which pools connections internally) and exposes the shows collection.
	"""

	def __init__(self, client: MongoClient, db_name: Optional[str] = None, collection_name: str = 'posts'):
		self.client = client
		# Use the database named in the connection string unless one is given explicitly
		self.db = client[db_name] if db_name else client.get_default_database(default='test')
		self.collection_name = collection_name
		logger.info(f"[Database] Using database '{self.db.name}' collection '{collection_name}'")

	@classmethod
	def connect(cls, url: Optional[str], db_name: Optional[str] = None, collection_name: str = 'posts', **client_kwargs) -> 'Database':
		"""Open a connection; raises ValueError for a missing or non-MongoDB URL."""
		if not url:
			raise ValueError("MONGODB_URL not found in environment variables")
		if not url.startswith('mongodb'):
			raise ValueError("Invalid MongoDB URL; expected a mongodb:// or mongodb+srv:// URL")
		client = MongoClient(url, **client_kwargs)
		return cls(client, db_name=db_name, collection_name=collection_name)

	@classmethod
	def from_settings(cls, settings) -> 'Database':
		logger.info(f"[Database] Connecting to {settings.redacted_mongodb_url()}")
		return cls.connect(settings.mongodb_url, settings.mongodb_db, settings.mongodb_collection)

	@property
	def shows(self) -> Collection:
		return self.db[self.collection_name]

	def ping(self) -> bool:
		"""True if the server answers; never raises."""
		try:
			self.client.admin.command('ping')
			return True
		except PyMongoError as e:
			logger.warning(f"[Database] Ping failed: {e}")
			return False

	def close(self):
		self.client.close()
		logger.info("[Database] Connection closed")


def ensure_indexes(collection: Collection) -> str:
	"""
	Make sure the external show id is unique and return the index name.
	An existing unique index on `id` is reused whatever it is called; otherwise the server's
	default name (`id_1`) is used, which is what other clients of the collection create too.
	Creating the same key under a second name fails with IndexOptionsConflict.
	"""
	for name, info in collection.index_information().items():
		if list(info.get('key', [])) == [('id', ASCENDING)] and info.get('unique'):
			logger.info(f"[Database] Unique index '{name}' already present on {collection.name}")
			return name
	name = collection.create_index([('id', ASCENDING)], unique=True)
	logger.info(f"[Database] Index '{name}' ensured on {collection.name}")
	return name


def vector_index_definition(dimensions: int = 384, path: str = 'overview_embedding', similarity: str = 'cosine') -> Dict[str, Any]:
	"""Atlas Vector Search definition for the overview embedding field."""
	return {
		'fields': [
			{
				'type': 'vector',
				'path': path,
				'numDimensions': dimensions,
				'similarity': similarity,
			}
		]
	}


def has_vector_index(collection: Collection, index_name: str) -> bool:
	"""
	True if a search index with this name exists, or a regular index covers the embedding field.
	Servers without Atlas Search support raise on list_search_indexes; treat that as "missing".
	"""
	try:
		for index in collection.list_search_indexes(index_name):
			if index.get('name') == index_name:
				return True
	except PyMongoError as e:
		logger.debug(f"[Database] list_search_indexes unavailable: {e}")
	for index in collection.list_indexes():
		if index.get('name') == index_name or 'overview_embedding' in index.get('key', {}):
			return True
	return False


def ensure_vector_index(collection: Collection, index_name: str, dimensions: int = 384) -> bool:
	"""
	Create the vector search index if it is missing. Returns True if it was created.
	Index builds are asynchronous on Atlas; queries return nothing until the build finishes.
	"""
	if has_vector_index(collection, index_name):
		logger.info(f"[Database] Vector index '{index_name}' already present")
		return False
	model = SearchIndexModel(
		definition=vector_index_definition(dimensions),
		name=index_name,
		type='vectorSearch',
	)
	collection.create_search_index(model=model)
	logger.info(f"[Database] Requested creation of vector index '{index_name}' ({dimensions} dims)")
	return True
