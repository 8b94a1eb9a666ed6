import logging

from virtual_ta.chroma import SimilarityRetriever
from virtual_ta.composer import AnswerComposer, format_links
from virtual_ta.embeddings import EmbeddingClient
from virtual_ta.extractors import NoopTextExtractor, TextExtractor, augment_query
from virtual_ta.logging_config import log_latency
from virtual_ta.schemas import AnswerResponse, QuestionRequest

logger = logging.getLogger(__name__)


class QuestionAnswerer:
    """Runs one question through embed, retrieve and compose.

    The clients are built once at startup and shared by every request; the
    answerer itself keeps no per-request state, so identical questions are
    answered independently.
    """

    def __init__(
        self,
        embedder: EmbeddingClient,
        retriever: SimilarityRetriever,
        composer: AnswerComposer,
        extractor: TextExtractor | None = None,
    ):
        self.embedder = embedder
        self.retriever = retriever
        self.composer = composer
        self.extractor = extractor or NoopTextExtractor()

    @log_latency('pipeline.answer')
    async def answer(self, request: QuestionRequest) -> AnswerResponse:
        logger.info(f'Question received | question_length={len(request.question)}')
        query = await augment_query(request.question, request.image, self.extractor)
        vector = await self.embedder.embed(query)
        matches = await self.retriever.query(vector)
        links = format_links(matches)
        answer = await self.composer.compose(request.question, matches)
        return AnswerResponse(answer=answer, links=links)
