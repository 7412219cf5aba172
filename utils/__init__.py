"""
Utils module for the keyframe engine
Contains file loading, settings persistence and logging setup
"""

from .file_loader import load_json_document, load_json_project, save_json_document
from .logging import configure_logging

__all__ = [
    'load_json_document',
    'load_json_project',
    'save_json_document',
    'configure_logging',
]
