import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import Depends, FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from openai import AsyncOpenAI
from pydantic import ValidationError as PydanticValidationError

from virtual_ta.chroma import SimilarityRetriever, get_chroma_client
from virtual_ta.composer import AnswerComposer
from virtual_ta.embeddings import EmbeddingClient
from virtual_ta.errors import PipelineError, ValidationError
from virtual_ta.logging_config import setup_logging
from virtual_ta.pipeline import QuestionAnswerer
from virtual_ta.schemas import (AnswerResponse, ErrorResponse,
                                QuestionRequest, StatusResponse)
from virtual_ta.settings import get_settings

QUESTION_REQUIRED = '`question` is required'
INTERNAL_ERROR = 'Internal server error'
BODY_TOO_LARGE = 'Request body too large'

settings = get_settings()
setup_logging(settings.LOG_LEVEL)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    openai_client = AsyncOpenAI(
        api_key=settings.OPENAI_API_KEY,
        base_url=settings.OPENAI_API_URL,
    )
    chroma_client = await get_chroma_client(settings)
    collection = await chroma_client.get_collection(settings.CHROMADB_COLLECTION)
    app.state.answerer = QuestionAnswerer(
        embedder=EmbeddingClient(openai_client, settings.EMBEDDING_MODEL),
        retriever=SimilarityRetriever(collection, top_k=settings.TOP_K),
        composer=AnswerComposer(
            openai_client,
            settings.CHAT_MODEL,
            temperature=settings.CHAT_TEMP,
            max_tokens=settings.CHAT_MAX_TOKENS,
            course=settings.COURSE_NAME,
        ),
    )
    logger.info(f'Clients ready | collection={settings.CHROMADB_COLLECTION}')
    yield
    await openai_client.close()

app = FastAPI(title='Virtual TA', lifespan=lifespan)


@app.middleware('http')
async def limit_body_size(request: Request, call_next):
    content_length = request.headers.get('content-length')
    if content_length and content_length.isdigit() \
            and int(content_length) > settings.MAX_BODY_SIZE:
        return JSONResponse(
            status_code=status.HTTP_413_CONTENT_TOO_LARGE,
            content={'error': BODY_TOO_LARGE},
        )
    return await call_next(request)


# Must stay outermost so 413 responses carry CORS headers too.
app.add_middleware(
    CORSMiddleware,
    allow_origins=['*'],
    allow_methods=['*'],
    allow_headers=['*'],
)


@app.exception_handler(ValidationError)
def validation_exception_handler(request: Request, exc: ValidationError):
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={'error': exc.message},
    )


@app.exception_handler(Exception)
def exception_handler(request: Request, exc: Exception):
    logger.exception(f'Unhandled error on {request.url.path}', exc_info=exc)
    return internal_error()


def internal_error() -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={'error': INTERNAL_ERROR},
    )


async def get_question_request(request: Request) -> QuestionRequest:
    try:
        payload = await request.json()
    except ValueError:
        payload = {}
    if not isinstance(payload, dict):
        payload = {}
    try:
        return QuestionRequest.model_validate(payload)
    except PydanticValidationError as e:
        raise ValidationError(QUESTION_REQUIRED) from e


def get_answerer(request: Request) -> QuestionAnswerer:
    return request.app.state.answerer


@app.get('/', response_model=StatusResponse)
async def root():
    return StatusResponse(message='server is running')


@app.post(
    '/api',
    response_model=AnswerResponse,
    responses={400: {'model': ErrorResponse}, 500: {'model': ErrorResponse}},
)
async def ask(
    question_request: QuestionRequest = Depends(get_question_request),
    answerer: QuestionAnswerer = Depends(get_answerer),
):
    try:
        return await answerer.answer(question_request)
    except PipelineError as e:
        logger.error(
            f'API error | stage={e.stage} | error={e} | cause={e.__cause__!r}')
        return internal_error()


def run():
    logger.info(f'API server listening on http://localhost:{settings.PORT}/api')
    uvicorn.run(app, host=settings.HOST, port=settings.PORT)


if __name__ == '__main__':
    run()
