"""
Error taxonomy for parcel reports and road analysis
"""

from typing import Optional


class ParcelScopeError(Exception):
    """Base class for all parcel report failures"""

    error_code = "PARCELSCOPE_ERROR"


class InvalidIdentifier(ParcelScopeError, ValueError):
    """Malformed parcel identifier (PNU)"""

    error_code = "INVALID_IDENTIFIER"


class UpstreamError(ParcelScopeError):
    """A single upstream call failed"""

    error_code = "UPSTREAM_ERROR"

    def __init__(self, message: str, url: Optional[str] = None):
        super().__init__(message)
        self.url = url


class UpstreamTimeout(UpstreamError):
    error_code = "UPSTREAM_TIMEOUT"


class UpstreamFormatError(UpstreamError):
    """Body could not be decoded (non-JSON, broken XML, unexpected shape)"""

    error_code = "UPSTREAM_FORMAT"


class UpstreamStatusError(UpstreamError):
    """HTTP error status or a non-success result code embedded in the body"""

    error_code = "UPSTREAM_STATUS"

    def __init__(self, message: str, code: Optional[str] = None, url: Optional[str] = None):
        super().__init__(message, url=url)
        self.code = code


class MissingCredential(UpstreamError):
    error_code = "MISSING_CREDENTIAL"


class ParcelNotFound(ParcelScopeError):
    """Identifier is well formed but the spatial service has no geometry for it"""

    error_code = "PARCEL_NOT_FOUND"

    def __init__(self, pnu: str):
        super().__init__(f"Land parcel not found: {pnu}")
        self.pnu = pnu


class AnalysisFailed(ParcelScopeError):
    """Road analysis aborted; no safe default exists for spatial results"""

    error_code = "ANALYSIS_FAILED"
