import logging

from openai import AsyncOpenAI

from virtual_ta.errors import EmbeddingError

logger = logging.getLogger(__name__)


class EmbeddingClient:
    def __init__(self, client: AsyncOpenAI, model: str):
        self.client = client
        self.model = model

    async def embed(self, text: str) -> list[float]:
        try:
            response = await self.client.embeddings.create(
                model=self.model,
                input=text,
            )
        except Exception as e:
            raise EmbeddingError(f'embedding request failed: {e}') from e
        logger.info(f'Embedding response: {response}')
        if not response.data:
            raise EmbeddingError('embedding response contained no data')
        embedding = response.data[0].embedding
        logger.info(f'Embedded query | dimensions={len(embedding)}')
        return embedding
