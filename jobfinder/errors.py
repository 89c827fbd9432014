"""
Exception types raised across JobFinder.
"""


class JobFinderError(Exception):
    """Base class for JobFinder errors."""


class PDFExtractionError(JobFinderError):
    """An uploaded resume could not be read or parsed."""


class ServiceUnavailableError(JobFinderError):
    """An external service failed after all retries."""


class InferenceError(ServiceUnavailableError):
    """The hosted inference API failed or returned an unusable response."""


class VectorStoreError(ServiceUnavailableError):
    """The vector store server failed or returned an unusable response."""


class TransientServiceError(JobFinderError):
    """A retryable HTTP status (429/5xx) was returned by a service."""

    def __init__(self, status_code: int, url: str):
        super().__init__(f"HTTP {status_code} from {url}")
        self.status_code = status_code
        self.url = url


class CorpusLoadError(JobFinderError):
    """The job corpus file is missing or malformed."""
