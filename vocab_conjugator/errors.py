"""Exception types raised by the conjugation pipeline and its clients."""


class ConjugatorError(Exception):
    """Base class for all errors raised by this package."""


class InputError(ConjugatorError):
    """The submitted table is missing, empty or unparseable."""


class GenerationError(ConjugatorError):
    """A single call to the text generator failed or timed out."""


class MalformedResponseError(ConjugatorError):
    """A generator response contained no usable table rows."""


class PipelineFailure(ConjugatorError):
    """An unexpected error aborted a whole pipeline run."""


class ChannelClosed(ConjugatorError):
    """The consumer of a progress channel has gone away or the run has terminated."""


class StreamError(ConjugatorError):
    """The progress stream reported an error or ended without a result."""
