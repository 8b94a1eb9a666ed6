from types import SimpleNamespace

import pytest

from tests.fakes import FakeCompletions, FakeOpenAI
from virtual_ta.composer import (FALLBACK_ANSWER, SYSTEM_MESSAGE,
                                 AnswerComposer, build_prompt, format_links)
from virtual_ta.errors import CompletionError
from virtual_ta.schemas import Match


def make_match(i, url, text):
    return Match(id=f'doc-{i}', metadata={'url': url, 'text': text})


MATCHES = [
    make_match(1, 'https://example.org/a', 'First excerpt about Docker.'),
    make_match(2, 'https://example.org/b', 'Second excerpt\nabout Podman.'),
]


def test_prompt_lists_excerpts_in_order():
    prompt = build_prompt('What is Docker?', MATCHES)

    first = prompt.index('[1] https://example.org/a\nFirst excerpt about Docker.')
    second = prompt.index('[2] https://example.org/b\nSecond excerpt\nabout Podman.')
    assert first < second
    assert prompt.index('Excerpts:') < first


def test_prompt_frames_the_question():
    prompt = build_prompt('What is Docker?', MATCHES, course='Data Science 101')

    assert 'virtual TA for the Data Science 101 course' in prompt
    assert FALLBACK_ANSWER in prompt
    assert 'Student question: """What is Docker?"""' in prompt
    assert 'include an array of "links"' in prompt


def test_prompt_keeps_full_excerpt_text():
    long_text = 'x' * 500
    prompt = build_prompt('q', [make_match(1, 'u', long_text)])

    assert long_text in prompt


def test_prompt_without_matches_still_has_question():
    prompt = build_prompt('What is Docker?', [])

    assert 'Excerpts:' in prompt
    assert '[1]' not in prompt
    assert '"""What is Docker?"""' in prompt


def test_links_follow_matches():
    links = format_links(MATCHES)

    assert [link.url for link in links] == ['https://example.org/a', 'https://example.org/b']
    assert links[1].text == 'Second excerpt about Podman.…'


def test_link_text_truncates_at_100_characters():
    text = 'a' * 150
    links = format_links([make_match(1, 'u', text)])

    assert links[0].text == 'a' * 100 + '…'


def test_link_text_truncates_before_collapsing():
    text = ' ' * 50 + 'b' * 80
    links = format_links([make_match(1, 'u', text)])

    assert links[0].text == ' ' + 'b' * 50 + '…'


def test_link_with_missing_text_is_just_ellipsis():
    links = format_links([Match(id='doc-1', metadata={'url': 'u'})])

    assert links[0].text == '…'


@pytest.mark.asyncio
async def test_compose_sends_grounded_request():
    openai_client = FakeOpenAI()
    composer = AnswerComposer(openai_client, 'gpt-3.5-turbo')

    answer = await composer.compose('What is Docker?', MATCHES)

    assert answer == 'Docker is a container platform.'
    call = openai_client.chat.completions.calls[0]
    assert call['model'] == 'gpt-3.5-turbo'
    assert call['temperature'] == 0.2
    assert call['max_tokens'] == 512
    assert call['messages'][0] == {'role': 'system', 'content': SYSTEM_MESSAGE}
    assert call['messages'][1]['role'] == 'user'
    assert call['messages'][1]['content'] == build_prompt('What is Docker?', MATCHES)


@pytest.mark.asyncio
async def test_compose_wraps_provider_error():
    openai_client = FakeOpenAI(completions=FakeCompletions(error=RuntimeError('429')))
    composer = AnswerComposer(openai_client, 'gpt-3.5-turbo')

    with pytest.raises(CompletionError) as exc_info:
        await composer.compose('What is Docker?', MATCHES)

    assert exc_info.value.stage == 'completion'
    assert isinstance(exc_info.value.__cause__, RuntimeError)


@pytest.mark.asyncio
@pytest.mark.parametrize('choices', [
    [],
    [SimpleNamespace(message=SimpleNamespace(content=None))],
])
async def test_compose_rejects_empty_completion(choices):
    openai_client = FakeOpenAI(completions=FakeCompletions(choices=choices))
    composer = AnswerComposer(openai_client, 'gpt-3.5-turbo')

    with pytest.raises(CompletionError):
        await composer.compose('What is Docker?', MATCHES)
