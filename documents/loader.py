"""
Bundle loader for normalized document JSON.

The engine never parses raw prose; upstream loaders emit one JSON (or YAML)
file per bundle with optional ``ib``, ``protocol``, ``icf``, ``sap`` and
``csr`` keys holding the normalized entity shapes.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, Union

import yaml

from core.errors import BundleLoadError
from .schema import CrossDocBundle

logger = logging.getLogger(__name__)


def bundle_from_dict(data: Dict[str, Any]) -> CrossDocBundle:
    """
    Build a bundle from an already-parsed mapping.

    Raises:
        BundleLoadError: missing ids, unknown enum values, or wrong shapes
    """
    if not isinstance(data, dict):
        raise BundleLoadError(f"Bundle must be a mapping, got {type(data).__name__}")

    try:
        bundle = CrossDocBundle.from_dict(data)
    except KeyError as e:
        raise BundleLoadError(f"Missing required field {e}", cause=e)
    except (TypeError, ValueError, AttributeError) as e:
        raise BundleLoadError(f"Malformed bundle: {e}", cause=e)

    present = [doc_type.value for doc_type, _ in bundle.documents()]
    logger.debug(f"Loaded bundle with documents: {', '.join(present) or 'none'}")
    return bundle


def load_bundle(path: Union[str, Path]) -> CrossDocBundle:
    """
    Load a normalized bundle file.

    Args:
        path: ``.json``, ``.yaml`` or ``.yml`` file

    Returns:
        CrossDocBundle
    """
    bundle_path = Path(path)
    if not bundle_path.exists():
        raise BundleLoadError(f"Bundle file not found: {bundle_path}")

    with open(bundle_path, 'r', encoding='utf-8') as f:
        content = f.read()

    try:
        if bundle_path.suffix in ('.yaml', '.yml'):
            data = yaml.safe_load(content)
        else:
            data = json.loads(content)
    except (yaml.YAMLError, json.JSONDecodeError) as e:
        raise BundleLoadError(f"Could not parse bundle file {bundle_path}", cause=e)

    logger.info(f"Loading bundle from {bundle_path}")
    return bundle_from_dict(data)
