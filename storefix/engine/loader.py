"""
StoreFix Engine Loader

Resolves a storage engine adapter from a "module:ClassName" reference
given in config.conf, STOREFIX_ENGINE or --engine.

Author: StoreFix Project
License: GNU GPL v3
"""

import importlib
import inspect
import logging
from typing import Type

from .base import StorageEngine
from ..errors import EngineLoadError


logger = logging.getLogger(__name__)


def resolve_engine_class(reference: str) -> Type[StorageEngine]:
    """
    Import and validate an engine class.

    Args:
        reference: "package.module:ClassName"

    Returns:
        StorageEngine subclass

    Raises:
        EngineLoadError: If the reference is malformed, the module cannot be
            imported, or the attribute is not a StorageEngine subclass
    """
    if not reference or ':' not in reference:
        raise EngineLoadError(
            f"Invalid engine reference '{reference}'. Use 'package.module:ClassName'"
        )

    module_name, _, class_name = reference.partition(':')
    module_name = module_name.strip()
    class_name = class_name.strip()

    try:
        module = importlib.import_module(module_name)
    except ImportError as e:
        raise EngineLoadError(f"Failed to import engine module {module_name}: {e}") from e

    engine_class = getattr(module, class_name, None)
    if engine_class is None:
        raise EngineLoadError(f"Engine class {class_name} not found in {module_name}")

    if not inspect.isclass(engine_class) or not issubclass(engine_class, StorageEngine):
        raise EngineLoadError(f"{reference} is not a StorageEngine subclass")

    if inspect.isabstract(engine_class):
        raise EngineLoadError(f"{reference} is abstract and cannot be instantiated")

    logger.debug(f"Resolved storage engine: {module_name}.{class_name}")
    return engine_class


def load_engine(reference: str, **kwargs) -> StorageEngine:
    """
    Instantiate the engine named by reference.

    Args:
        reference: "package.module:ClassName"
        **kwargs: Passed to the engine constructor
    """
    engine_class = resolve_engine_class(reference)
    try:
        return engine_class(**kwargs)
    except Exception as e:
        raise EngineLoadError(f"Failed to instantiate engine {reference}: {e}") from e
