"""Load app definitions from ``module:attribute`` import strings."""

import importlib
import logging

from ..errors import ConfigurationError
from .builder import CLIAppBuilder
from .models import CLIAppDefinition

logger = logging.getLogger(__name__)


def load_app_definition(spec: str) -> CLIAppDefinition:
    """Import ``pkg.module:attr`` and turn it into a CLIAppDefinition.

    The attribute may be a definition, a builder (built here), or a
    zero-argument factory returning either.
    """
    module_path, sep, attr = spec.partition(":")
    if not sep or not module_path or not attr:
        raise ConfigurationError(
            f"App spec must look like 'module:attribute': {spec!r}"
        )

    try:
        module = importlib.import_module(module_path)
    except ImportError as e:
        raise ConfigurationError(
            f"Cannot import app module {module_path!r}: {e}"
        ) from e

    target = module
    for part in attr.split("."):
        try:
            target = getattr(target, part)
        except AttributeError:
            raise ConfigurationError(
                f"{module_path} has no attribute {attr!r}"
            ) from None

    if not isinstance(target, (CLIAppDefinition, CLIAppBuilder)) and callable(target):
        target = target()

    if isinstance(target, CLIAppBuilder):
        target = target.build()

    if not isinstance(target, CLIAppDefinition):
        raise ConfigurationError(
            f"{spec} resolved to {type(target).__name__}, not an app definition"
        )

    logger.debug(f"Loaded app {target.name} from {spec}")
    return target
