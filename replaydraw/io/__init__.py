"""
ReplayDraw I/O Module

Handles project save/load and replay program export.
"""

from .project_io import PayloadError, save_project, load_project, parse_payload
from .export import generate_program, encode_vector, build_image_export

__all__ = [
    'PayloadError', 'save_project', 'load_project', 'parse_payload',
    'generate_program', 'encode_vector', 'build_image_export'
]
