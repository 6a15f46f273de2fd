__all__ = [
    "TargetOptions",
    "find_visible",
    "is_visible",
    "reader_class_ids",
    "send",
    "target_options",
]

from .audience import find_visible, is_visible, reader_class_ids, send, target_options, TargetOptions
