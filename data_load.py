import hashlib
import json
import logging
from pathlib import Path

import chromadb
from openai import OpenAI

from virtual_ta.settings import Settings, get_settings

EMBED_BATCH_SIZE = 100

logger = logging.getLogger(__name__)
logger.setLevel(logging.INFO)
ch = logging.StreamHandler()
ch.setLevel(logging.INFO)
formatter = logging.Formatter(
    "%(asctime)s [%(levelname)s] %(name)s: %(message)s")
ch.setFormatter(formatter)
logger.addHandler(ch)


def get_chroma_client(settings: Settings):
    client = chromadb.HttpClient(
        host=settings.CHROMADB_HOST,
        port=settings.CHROMADB_PORT,
        ssl=settings.CHROMADB_SSL,
        headers={'x-chroma-token': settings.CHROMADB_API_KEY},
        tenant=settings.CHROMADB_TENANT,
        database=settings.CHROMADB_DATABASE,
    )
    return client


def get_data_from_json_file(file: str | Path) -> list[tuple[dict, str]]:
    excepted_keys = ('url', 'text')
    with open(file, encoding='utf-8') as f:
        data = json.load(f)
    records = data if isinstance(data, list) else [data]
    documents = []
    for record in records:
        missing_keys = [key for key in excepted_keys if key not in record]
        if missing_keys:
            raise ValueError(f'keys: {", ".join(missing_keys)} should be in data')
        text = record['text']
        digest = hashlib.sha256(text.encode('utf-8')).hexdigest()[:16]
        metadata = {
            'url': record['url'],
            'doc_fname': Path(file).name,
            'doc_uniq_key': f"{record['url']}_{digest}",
        }
        documents.append((metadata, text))
    return documents


def chunk_text(text, chunk_size: int, overlap: int) -> list:
    from langchain_text_splitters import RecursiveCharacterTextSplitter
    splitter = RecursiveCharacterTextSplitter(
        chunk_size=chunk_size,
        chunk_overlap=overlap,
        separators=["\n\n", "\n", ". ", "! ", "? ", " "]
    )
    chunks = splitter.split_text(text)

    return chunks


def embed_chunks(client: OpenAI, model: str, chunks: list) -> list[list[float]]:
    embeddings = []
    for start in range(0, len(chunks), EMBED_BATCH_SIZE):
        batch = chunks[start:start + EMBED_BATCH_SIZE]
        response = client.embeddings.create(model=model, input=batch)
        embeddings.extend(item.embedding for item in response.data)
    return embeddings


def check_exists_in_chroma(metadata: dict, collection):
    doc_uniq_key = metadata['doc_uniq_key']
    doc_exists = collection.get(where={'doc_uniq_key': doc_uniq_key}, limit=1)
    if doc_exists['ids']:
        return True
    return False


def add_to_chroma(
    metadata: dict, chunks: list,
    embeddings: list[list[float]],
    collection
):
    # A changed document replaces every chunk previously stored for its url.
    collection.delete(where={'url': metadata['url']})
    collection.add(
        documents=chunks,
        embeddings=embeddings,
        ids=[f"{metadata['doc_uniq_key']}_chunk_{i}" for i in range(
            len(chunks))],
        metadatas=[{**metadata, 'text': chunk} for chunk in chunks]
    )


def load_file(file: Path, settings: Settings, openai_client: OpenAI, collection):
    for metadata, text in get_data_from_json_file(file):
        if check_exists_in_chroma(metadata, collection):
            logger.info(
                f"Skipping: {metadata['url']} with same content already exists")
            continue
        chunks = chunk_text(text, settings.CHUNK_SIZE, settings.CHUNK_OVERLAP)
        if not chunks:
            logger.info(f"Skipping: {metadata['url']} has no text")
            continue
        embeddings = embed_chunks(
            openai_client, settings.EMBEDDING_MODEL, chunks)
        logger.info(
            f"Adding/Updating: {metadata['url']} ({len(chunks)} chunks)")
        add_to_chroma(metadata, chunks, embeddings, collection)


def main():
    settings = get_settings()
    openai_client = OpenAI(
        api_key=settings.OPENAI_API_KEY, base_url=settings.OPENAI_API_URL)
    client = get_chroma_client(settings)
    collection = client.get_or_create_collection(
        name=settings.CHROMADB_COLLECTION)

    for file in Path(settings.EXCERPTS_PATH).rglob('*.json'):
        try:
            load_file(file, settings, openai_client, collection)
        except Exception as e:
            logger.error(f'Error {e} while processing {file}')


if __name__ == '__main__':
    main()
