# Conversion error taxonomy shared by services, routes and the CLI


class ConversionError(RuntimeError):
    """Base class for every failure the conversion pipeline reports."""


class DecodeError(ConversionError):
    """Input bytes are not a readable image."""


class EncodeError(ConversionError):
    """Encoding or embedding into the target format failed."""


class EmptyInputError(ConversionError):
    """Conversion or packaging was invoked with zero files."""


class UnsupportedFormatError(ConversionError):
    """The requested target format is unknown or not served on this path."""


class BatchConversionError(ConversionError):
    """A fail-fast batch stopped at its first failing file."""

    def __init__(self, message: str, filename: str = None):
        super().__init__(message)
        self.filename = filename
