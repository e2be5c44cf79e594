"""
Serialization ("serdes"): portable, YAML-friendly maps of rows.
"""

from .extract import META_KEY, build_context, dump_yaml, extract_one, instantiate, load_one, load_yaml
from .registry import generate_path, make_spec, model_class, register_path, register_spec, registered_models
from .spec import SKIP, SerdesContext, SerdesSpec, Transform, fk, location_ref, parent_ref, validate_spec

__all__ = [
    "META_KEY",
    "SKIP",
    "SerdesContext",
    "SerdesSpec",
    "Transform",
    "build_context",
    "dump_yaml",
    "extract_one",
    "fk",
    "generate_path",
    "instantiate",
    "load_one",
    "load_yaml",
    "location_ref",
    "make_spec",
    "model_class",
    "parent_ref",
    "register_path",
    "register_spec",
    "registered_models",
    "validate_spec",
]
