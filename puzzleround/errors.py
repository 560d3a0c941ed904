"""Exception types for puzzle rounds."""


class PuzzleRoundError(Exception):
    """Base class for all puzzle round errors."""


class InvalidInputError(PuzzleRoundError):
    """Setup input was rejected before reaching the content generator."""


class GenerationError(PuzzleRoundError):
    """The content generator failed or returned unusable content."""


class GenerationCancelled(PuzzleRoundError):
    """The user abandoned a generation that was still in flight."""


class GenerationInProgressError(PuzzleRoundError):
    """A generation was requested while another one is still running."""


class PuzzleFileError(PuzzleRoundError):
    """A puzzle file could not be read, parsed or written."""
