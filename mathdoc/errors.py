from __future__ import annotations


class MathDocError(Exception):
    """Base class for every error raised by mathdoc."""


class FormulaRenderError(MathDocError):
    """A single formula could not be converted to MathML."""


class DiagramFetchError(MathDocError):
    """The diagram service did not return a usable image."""


class AIServiceError(MathDocError):
    """
    The generative-AI call failed (network, quota, auth...).

    `str(err)` is the message reported by the service so the caller can show it
    to the user unchanged.
    """

    def __init__(self, operation: str, message: str) -> None:
        super().__init__(message)
        self.operation = operation
        self.message = message


class PackagingError(MathDocError):
    pass


class BankError(MathDocError):
    pass


class UnknownStyleError(MathDocError, KeyError):
    def __str__(self) -> str:
        return Exception.__str__(self)


class BusyError(MathDocError):
    """Another AI action is still in flight."""


class UnsupportedFileError(MathDocError):
    pass
