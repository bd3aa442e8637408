"""Error taxonomy for the generation pipeline."""


class GenerationError(Exception):
    """Base class for errors that end a generation run."""


class InputValidationError(GenerationError, ValueError):
    """The submitted video URL is malformed, missing, or unavailable."""


class ExtractionError(GenerationError, ValueError):
    """Model output could not be read as the expected JSON shape."""


class UpstreamGenerationError(GenerationError, RuntimeError):
    """The AI text service refused, blocked, or failed to answer."""
