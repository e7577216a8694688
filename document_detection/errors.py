"""
Exceptions raised by the document detection module
"""


class DocumentDetectionError(Exception):
    """Base class for all document detection errors."""


class InvalidDimensions(DocumentDetectionError, ValueError):
    """Buffer, stride or frame size is malformed. Retrying with the same arguments fails again."""


class DegenerateQuad(DocumentDetectionError):
    """Rectification size computed from the corners is zero or negative."""


class DetectorNotReady(DocumentDetectionError, RuntimeError):
    """Detector was used before initialize() or after release()."""
