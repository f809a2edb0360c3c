"""
Load custom transforms from dotted import paths (`package.module:attr`).
"""

import importlib
import inspect
import logging
from typing import Iterable, List

from pipeline.base import Transform
from pipeline.errors import PluginError

logger = logging.getLogger(__name__)


def load_transform(spec: str) -> Transform:
    """
    Import a custom transform.

    `attr` may name a callable taking `(record, context)` or a class whose
    no-argument instances are such callables.
    """
    module_name, sep, attr = spec.partition(":")
    if not sep or not module_name or not attr:
        raise PluginError(f"Expected 'package.module:attr', got '{spec}'", stage="plugins")

    try:
        module = importlib.import_module(module_name)
    except ImportError as e:
        raise PluginError(f"Could not import {module_name}: {e}", stage="plugins") from e

    try:
        target = getattr(module, attr)
    except AttributeError as e:
        raise PluginError(f"{module_name} has no attribute '{attr}'", stage="plugins") from e

    if inspect.isclass(target):
        try:
            target = target()
        except Exception as e:
            raise PluginError(f"Could not instantiate {spec}: {e}", stage="plugins") from e
    if not callable(target):
        raise PluginError(f"{spec} is not callable", stage="plugins")
    return target


def load_transforms(specs: Iterable[str]) -> List[Transform]:
    transforms = []
    for spec in specs:
        transforms.append(load_transform(spec))
        logger.info(f"✓ Loaded custom transform {spec}")
    return transforms
