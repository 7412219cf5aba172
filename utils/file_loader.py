"""
File Loader
Utilities for loading and saving export documents
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional, Union

from core.data_structures import ProjectData

LOG = logging.getLogger(__name__)


def load_json_document(json_path: Union[str, Path]) -> Optional[Dict]:
    """
    Load an export document from a JSON file

    Args:
        json_path: Path to the JSON file

    Returns:
        Dictionary containing the document, or None if failed
    """
    try:
        with open(json_path, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        LOG.error("Error loading JSON file %s: %s", json_path, e)
        return None
    if not isinstance(data, dict):
        LOG.error("Export document %s is not a JSON object", json_path)
        return None
    return data


def load_json_project(json_path: Union[str, Path]) -> Optional[ProjectData]:
    """Load and parse an export document into ``ProjectData``."""
    data = load_json_document(json_path)
    if data is None:
        return None
    project = ProjectData.from_dict(data)
    LOG.info("Loaded %s: %d clips", json_path, len(project.clips))
    return project


def save_json_document(document: Dict[str, Any], json_path: Union[str, Path]) -> None:
    """Write an export document, creating parent folders as needed."""
    path = Path(json_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, 'w', encoding='utf-8') as f:
        json.dump(document, f, indent=2)
