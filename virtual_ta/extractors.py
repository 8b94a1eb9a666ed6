"""Text extraction from images attached to a question.

OCR is not implemented yet: ``NoopTextExtractor`` is the default and leaves
the query untouched. A real extractor only needs to provide ``extract``.
"""

import logging
from typing import Any, Protocol

logger = logging.getLogger(__name__)

IMAGE_TEXT_HEADER = "[Image text]"


class TextExtractor(Protocol):
    async def extract(self, image: str) -> str:
        ...


class NoopTextExtractor:
    async def extract(self, image: str) -> str:
        logger.info(
            f'Image supplied ({len(image)} chars) but no text extractor '
            f'is configured; ignoring it')
        return ''


async def augment_query(
    question: str,
    image: Any,
    extractor: TextExtractor,
) -> str:
    if not isinstance(image, str) or not image:
        return question
    image_text = await extractor.extract(image)
    if not image_text:
        return question
    return f'{question}\n\n{IMAGE_TEXT_HEADER}\n{image_text}'
