"""
Document Detection Module

Finds a document-shaped quadrilateral in a foreground mask or camera frame
and rectifies it to a top-down view using OpenCV.
"""

from .config import DetectorConfig
from .contours import QuadCandidate, find_contours, select_quadrilateral
from .detector import DetectionResult, DetectorState, DocumentDetector, FrameResult
from .edges import CannyEdgeExtractor, EdgeMethod, SobelEdgeExtractor, create_edge_extractor
from .errors import DegenerateQuad, DetectorNotReady, DocumentDetectionError, InvalidDimensions
from .geometry import order_corners
from .mask import SampleBuffer, to_matrix, to_sample_buffer
from .rectifier import compute_transform, four_point_transform, warp
from .visualizer import ContourVisualizer

__all__ = [
    'DocumentDetector', 'DetectorConfig', 'DetectorState', 'DetectionResult', 'FrameResult',
    'SampleBuffer', 'to_matrix', 'to_sample_buffer',
    'EdgeMethod', 'SobelEdgeExtractor', 'CannyEdgeExtractor', 'create_edge_extractor',
    'QuadCandidate', 'find_contours', 'select_quadrilateral',
    'order_corners', 'compute_transform', 'warp', 'four_point_transform',
    'ContourVisualizer',
    'DocumentDetectionError', 'InvalidDimensions', 'DegenerateQuad', 'DetectorNotReady',
]
