"""Errors surfaced by the retrieval pipeline."""


class RetrievalError(Exception):
    """A query could not be answered."""
    pass


class EmptyCorpusError(RetrievalError):
    """No pages are available to search."""
    pass


class SynthesisError(RetrievalError):
    """The completion service failed while writing the answer."""
    pass
