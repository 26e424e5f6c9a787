"""
Chrome automation tools organized by concern.

Each module provides focused functionality:
- js_helpers: DOM probe templates evaluated in the page
- coords: selector/viewport point -> screen coordinate resolution
- visibility: visible/clickable/in-viewport element probes
- input: mouse, keyboard and progressive input filling
- clipboard: pbcopy bridge used by paste input
- image: adaptive WebP encoding under a byte budget
- capture: window/viewport/element screenshots
- batch: bounded-concurrency operation queues
"""

from .batch import BatchProcessor, run_batch
from .capture import CaptureData, CaptureOptions, ScreenCapture
from .clipboard import ClipboardBridge
from .coords import CoordinateData, CoordinateResolver, TargetDescriptor, to_screen
from .image import EncodedImage, ImageEncoder, encode_image
from .input import FillOptions, FillOutcome, InputFiller, Keyboard, Mouse
from .visibility import ElementVisibilityState, VisibilityValidator

__all__ = [
    # Coordinates
    "CoordinateData",
    "CoordinateResolver",
    "TargetDescriptor",
    "to_screen",
    # Visibility
    "ElementVisibilityState",
    "VisibilityValidator",
    # Input
    "FillOptions",
    "FillOutcome",
    "InputFiller",
    "Keyboard",
    "Mouse",
    "ClipboardBridge",
    # Images
    "EncodedImage",
    "ImageEncoder",
    "encode_image",
    "CaptureData",
    "CaptureOptions",
    "ScreenCapture",
    # Batch
    "BatchProcessor",
    "run_batch",
]
