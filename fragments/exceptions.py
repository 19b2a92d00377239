"""Custom exception classes for the Fragments server."""


class FragmentsException(Exception):
    """
    Base exception class for all fragment-related errors.
    """
    pass


class InvalidCredentialsError(FragmentsException):
    """
    Raised when Basic credentials are missing or do not match the htpasswd file.
    """
    pass


class MalformedContentTypeError(FragmentsException):
    """
    Raised when a Content-Type header cannot be parsed as a media type.
    """
    pass


class UnsupportedTypeError(FragmentsException):
    """
    Raised when a MIME type is not in the type registry.
    """
    pass


class ContentValidationError(FragmentsException):
    """
    Raised when stored bytes are not well-formed for their declared type.
    """
    pass


class UnsupportedMediaTypeError(FragmentsException):
    """
    Base for retrieval requests that cannot be served in the requested format.
    """
    pass


class UnknownExtensionError(UnsupportedMediaTypeError):
    """
    Raised when a requested extension does not map to any known MIME type.
    """
    pass


class UnsupportedConversionError(UnsupportedMediaTypeError):
    """
    Raised when the requested MIME type is not reachable from the source type.
    """
    pass


class ConversionError(FragmentsException):
    """
    Raised when a codec fails while converting a supported type pair.
    """
    pass


class FragmentNotFoundError(FragmentsException):
    """
    Raised when no metadata exists for an (owner_id, id) pair.
    """
    pass


class TypeMismatchError(FragmentsException):
    """
    Raised when an update declares a different base type than the stored fragment.
    """
    pass


class EmptyBodyError(FragmentsException):
    """
    Raised when a write request carries no body.
    """
    pass


class PayloadTooLargeError(FragmentsException):
    """
    Raised when a write request exceeds the upload size ceiling.
    """
    pass


class InvalidFragmentError(FragmentsException):
    """
    Raised when fragment metadata violates its construction invariants.
    """
    pass


class InvalidFragmentDataError(FragmentsException):
    """
    Raised when fragment data is not a byte buffer.
    """
    pass
