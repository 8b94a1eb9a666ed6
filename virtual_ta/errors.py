class ValidationError(Exception):
    """Client-side input problem, reported as a 400 before any provider call."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class PipelineError(Exception):
    """Failure of an external provider call during question answering.

    Subclasses tag the failing stage for logging; callers always see the
    same generic internal error.
    """

    stage = 'pipeline'


class EmbeddingError(PipelineError):
    stage = 'embedding'


class RetrievalError(PipelineError):
    stage = 'retrieval'


class CompletionError(PipelineError):
    stage = 'completion'
