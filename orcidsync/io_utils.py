from __future__ import annotations

import json
import os
import shutil
from typing import Any, Dict, List, Optional

from .config import BACKUP_SUFFIX
from .exceptions import FILE_READ_ERRORS, MappingError
from .log_utils import logger, LogSource, LogCategory
from .models import Researcher


def safe_read_json(path: str, default: Any = None) -> Any:
    """
    Safely read a JSON file and return its parsed contents, returning a default value on error.
    """
    try:
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)
    except FILE_READ_ERRORS:
        return default


def write_json(path: str, data: Any, indent: Optional[int] = 2) -> None:
    """
    Write data as JSON, replacing the target file whole: the content goes to a
    temporary sibling first and is then moved over the original.
    """
    parent_dir = os.path.dirname(path)
    if parent_dir:
        os.makedirs(parent_dir, exist_ok=True)

    tmp_path = f"{path}.tmp"
    try:
        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=indent, ensure_ascii=False)
            f.write("\n")
        os.replace(tmp_path, path)
    finally:
        if os.path.exists(tmp_path):
            os.remove(tmp_path)


def backup_file(path: str, suffix: str = BACKUP_SUFFIX) -> Optional[str]:
    """
    Copy the current file to a sibling with the given suffix before it is
    overwritten. Does nothing when the file does not exist yet. Returns the
    backup path, or None when there was nothing to back up.
    """
    if not os.path.isfile(path):
        return None
    backup_path = path + suffix
    shutil.copyfile(path, backup_path)
    return backup_path


def read_mapping(path: str) -> List[Researcher]:
    """
    Load the researcher mapping, {key: {"name": ..., "orcid": ...}}, in file
    order. A missing, unreadable, or empty mapping raises MappingError.
    """
    if not os.path.isfile(path):
        raise MappingError(f"Mapping file not found: {path}")
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except FILE_READ_ERRORS as e:
        raise MappingError(f"Cannot read mapping file {path}: {e}") from e

    if not isinstance(data, dict):
        raise MappingError(f"Mapping file {path} must hold a JSON object")
    if not data:
        raise MappingError(f"Mapping file {path} is empty")
    return [Researcher.from_mapping(str(key), entry) for key, entry in data.items()]


def load_store(path: str) -> Dict[str, Any]:
    """
    Load the publication store. A missing file gives an empty store; so does an
    unreadable one, with a warning, since the backup keeps its old content.
    """
    if not os.path.exists(path):
        logger.info(f"No store at {path}; starting empty", source=LogSource.STORE, category=LogCategory.PLAN)
        return {}
    data = safe_read_json(path)
    if not isinstance(data, dict):
        logger.warn(f"Store {path} is unreadable or not a JSON object; starting empty",
                    source=LogSource.STORE, category=LogCategory.ERROR)
        return {}
    return data


def save_store(path: str, store: Dict[str, Any], suffix: str = BACKUP_SUFFIX) -> Optional[str]:
    """
    Back up the previous store and write the new one. Returns the backup path.
    """
    backup_path = backup_file(path, suffix)
    if backup_path:
        logger.info(f"Backup written: {backup_path}", source=LogSource.STORE, category=LogCategory.SAVE)
    write_json(path, store)
    return backup_path
