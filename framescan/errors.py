"""Scanner and frame exceptions with machine-readable codes."""


class ScanError(Exception):
    """Base exception with machine-readable code for scan failures."""

    def __init__(self, message: str, *, error_code: str):
        super().__init__(message)
        self.error_code = error_code


class InvalidImageError(ScanError):
    """Raised when the image handle or its properties cannot be used."""

    def __init__(self, message: str = "Image is missing or unreadable"):
        super().__init__(message, error_code="invalid_image")


class FrameOutOfBoundsError(ScanError):
    """Raised when a frame has area but none of it lies inside the image."""

    def __init__(self, message: str = "Frame lies outside the image"):
        super().__init__(message, error_code="frame_out_of_bounds")


class RecognitionError(ScanError):
    """Raised when the recognition engine fails on a region."""

    def __init__(self, message: str = "Recognition engine failed"):
        super().__init__(message, error_code="recognition_failed")


class ScannerClosedError(ScanError):
    """Raised when a closed scanner is asked to scan."""

    def __init__(self, message: str = "Scanner is closed"):
        super().__init__(message, error_code="scanner_closed")
