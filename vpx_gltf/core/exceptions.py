# File: core/exceptions.py
# Purpose: Exception taxonomy for the export pipeline
# Notes:
# - GeometryError / UnsupportedFeatureError / SurfaceLookupError: recoverable,
#   caught per object and recorded as warnings
# - ExportIntegrityError: fatal, an assembler bug; aborts before any bytes are written


class ExportError(Exception):
    """Base class for export errors"""


class GeometryError(ExportError):
    """Degenerate or malformed geometry input (object skipped)"""

    def __init__(self, message: str, code: str = "GEO001"):
        super().__init__(message)
        self.code = code


class SurfaceLookupError(GeometryError):
    """Referenced surface does not exist (object skipped)"""

    def __init__(self, message: str):
        super().__init__(message, code="SRF001")


class UnsupportedFeatureError(ExportError):
    """Feature the export format cannot represent (object skipped)"""

    def __init__(self, message: str, code: str = "UNS001"):
        super().__init__(message)
        self.code = code


class ExportIntegrityError(ExportError):
    """Internal consistency violation in the assembled scene"""

    def __init__(self, problems):
        self.problems = list(problems)
        super().__init__("Internal consistency check failed: " + "; ".join(self.problems))
