import logging

import chromadb

from virtual_ta.errors import RetrievalError
from virtual_ta.schemas import Match
from virtual_ta.settings import Settings

logger = logging.getLogger(__name__)


async def get_chroma_client(settings: Settings):
    client = await chromadb.AsyncHttpClient(
        host=settings.CHROMADB_HOST,
        port=settings.CHROMADB_PORT,
        ssl=settings.CHROMADB_SSL,
        headers={'x-chroma-token': settings.CHROMADB_API_KEY},
        tenant=settings.CHROMADB_TENANT,
        database=settings.CHROMADB_DATABASE,
    )
    return client


def _first(results: dict, key: str) -> list:
    values = results.get(key) or [[]]
    return values[0] or []


class SimilarityRetriever:
    def __init__(self, collection, top_k: int = 15):
        self.collection = collection
        self.top_k = top_k

    async def query(self, vector: list[float]) -> list[Match]:
        try:
            results = await self.collection.query(
                query_embeddings=[vector],
                n_results=self.top_k,
                include=['metadatas', 'documents', 'distances'],
            )
        except Exception as e:
            raise RetrievalError(f'vector index query failed: {e}') from e

        ids = _first(results, 'ids')
        metadatas = _first(results, 'metadatas')
        documents = _first(results, 'documents')
        distances = _first(results, 'distances')

        matches = []
        for i, match_id in enumerate(ids):
            metadata = dict(metadatas[i] or {}) if i < len(metadatas) else {}
            if not metadata.get('text') and i < len(documents):
                metadata['text'] = documents[i] or ''
            matches.append(Match(
                id=str(match_id),
                distance=distances[i] if i < len(distances) else None,
                metadata=metadata,
            ))
        logger.info(f'Retrieved matches | count={len(matches)} | top_k={self.top_k}')
        return matches
