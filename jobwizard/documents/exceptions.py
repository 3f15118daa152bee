"""Exceptions raised while generating application documents."""


class DocumentGenerationError(Exception):
    """Documents could not be rendered or written to disk."""


class GenerationError(Exception):
    """An AI writer call failed or returned an unusable response.

    Writers catch this themselves and report it in their result, so callers
    see it only when they talk to a client directly.
    """
