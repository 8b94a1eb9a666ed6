import logging
import re

from openai import AsyncOpenAI

from virtual_ta.errors import CompletionError
from virtual_ta.schemas import Link, Match

logger = logging.getLogger(__name__)

SYSTEM_MESSAGE = "You are a helpful TA."
FALLBACK_ANSWER = (
    "I'm not sure; please check the course materials or ask on Discourse."
)
DEFAULT_COURSE = 'IITM "Tools in Data Science"'
LINK_TEXT_LENGTH = 100
ELLIPSIS = "…"

_WHITESPACE = re.compile(r'\s+')

PROMPT_TEMPLATE = """
You are a virtual TA for the {course} course.
Use only the following excerpts (with their URLs) to answer the student's question.
If the answer is not contained here, say "{fallback}"

Excerpts:
{excerpts}

Student question: \"\"\"{question}\"\"\"
Answer concisely and include an array of "links" (each with url and a one-line description).
"""


def format_excerpts(matches: list[Match]) -> str:
    return "\n".join(
        f"- [{i}] {match.url}\n{match.text}\n"
        for i, match in enumerate(matches, start=1)
    )


def build_prompt(
    question: str,
    matches: list[Match],
    course: str = DEFAULT_COURSE,
) -> str:
    return PROMPT_TEMPLATE.format(
        course=course,
        fallback=FALLBACK_ANSWER,
        excerpts=format_excerpts(matches),
        question=question,
    )


def format_links(matches: list[Match]) -> list[Link]:
    # Truncate first, then collapse; the ellipsis is appended unconditionally.
    return [
        Link(
            url=match.url,
            text=_WHITESPACE.sub(' ', match.text[:LINK_TEXT_LENGTH]) + ELLIPSIS,
        )
        for match in matches
    ]


class AnswerComposer:
    def __init__(
        self,
        client: AsyncOpenAI,
        model: str,
        temperature: float = 0.2,
        max_tokens: int = 512,
        course: str = DEFAULT_COURSE,
    ):
        self.client = client
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.course = course

    async def compose(self, question: str, matches: list[Match]) -> str:
        prompt = build_prompt(question, matches, self.course)
        try:
            response = await self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": SYSTEM_MESSAGE},
                    {"role": "user", "content": prompt}
                ],
                temperature=self.temperature,
                max_tokens=self.max_tokens
            )
        except Exception as e:
            raise CompletionError(f'chat completion failed: {e}') from e

        if not response.choices:
            raise CompletionError('chat completion returned no choices')
        content = response.choices[0].message.content
        if content is None:
            raise CompletionError('chat completion returned empty content')
        answer = content.strip()
        logger.info(f'Completion received | answer_length={len(answer)}')
        return answer
