"""
Utility module for loading quiz documents and their registries from disk.

Files may be JSON (.json) or YAML (.yaml/.yml). Each loader checks the
top-level structure the engine expects and raises SchemaLoadError with a
readable message otherwise. Deep validation is left to the pydantic models.
"""

import json
from pathlib import Path
from typing import Any, Dict, List

import yaml

YAML_SUFFIXES = {".yaml", ".yml"}


class SchemaLoadError(Exception):
    """Raised when a schema, domain, template or style file cannot be loaded or is invalid."""
    pass


def _read_document(file_path: str | Path, kind: str) -> Any:
    path = Path(file_path)
    try:
        with open(path, "r", encoding="utf-8") as f:
            if path.suffix.lower() in YAML_SUFFIXES:
                return yaml.safe_load(f)
            return json.load(f)
    except FileNotFoundError:
        raise SchemaLoadError(f"{kind.capitalize()} file not found: {file_path}")
    except json.JSONDecodeError as e:
        raise SchemaLoadError(f"Invalid JSON in {kind} file: {e}")
    except yaml.YAMLError as e:
        raise SchemaLoadError(f"Invalid YAML in {kind} file: {e}")


def _as_definition_list(data: Any, key: str, kind: str) -> List[Dict[str, Any]]:
    """Accept a bare list or a {key: [...]} wrapper of definitions with ids."""
    if isinstance(data, dict) and key in data:
        data = data[key]

    if not isinstance(data, list):
        raise SchemaLoadError(f"{kind.capitalize()} file must contain a list (or a '{key}' list)")

    for index, item in enumerate(data):
        if not isinstance(item, dict) or not item.get("id"):
            raise SchemaLoadError(f"{kind.capitalize()} #{index} must be an object with an 'id'")

    return data


def load_schema(file_path: str | Path) -> Dict[str, Any]:
    """
    Load and validate a quiz schema file.

    Args:
        file_path: Path to the schema file

    Returns:
        Dictionary containing the (uncompiled) schema

    Raises:
        SchemaLoadError: If file cannot be loaded or doesn't have required structure

    Expected structure:
        {
            "id": str,
            "pages": [{"id": str, "blocks": [...]}, ...]
        }
    """
    schema = _read_document(file_path, "schema")

    if not isinstance(schema, dict):
        raise SchemaLoadError("Schema must be an object")

    if "id" not in schema:
        raise SchemaLoadError("Schema must contain 'id' key")

    if "pages" not in schema:
        raise SchemaLoadError("Schema must contain 'pages' key")

    if not isinstance(schema["pages"], list):
        raise SchemaLoadError("Schema 'pages' must be a list")

    return schema


def load_domains(file_path: str | Path) -> List[Dict[str, Any]]:
    """
    Load domain definitions.

    Expected structure: [{"id": str, "definition": {...}}, ...] or {"domains": [...]}
    """
    domains = _as_definition_list(_read_document(file_path, "domain"), "domains", "domain")

    for item in domains:
        if not isinstance(item.get("definition"), dict):
            raise SchemaLoadError(f"Domain '{item['id']}' must contain a 'definition' object")

    return domains


def load_templates(file_path: str | Path) -> List[Dict[str, Any]]:
    """
    Load template definitions.

    Expected structure: [{"id": str, "structure": {...}}, ...] or {"templates": [...]}
    """
    templates = _as_definition_list(_read_document(file_path, "template"), "templates", "template")

    for item in templates:
        if not isinstance(item.get("structure"), dict):
            raise SchemaLoadError(f"Template '{item['id']}' must contain a 'structure' object")

    return templates


def load_styles(file_path: str | Path) -> Dict[str, Dict[str, Any]]:
    """
    Load a style registry.

    Expected structure: {"<style id>": {<style properties>}, ...}
    """
    styles = _read_document(file_path, "style")

    if not isinstance(styles, dict):
        raise SchemaLoadError("Style file must contain an object of style id -> properties")

    for style_id, properties in styles.items():
        if not isinstance(properties, dict):
            raise SchemaLoadError(f"Style '{style_id}' must map to an object")

    return styles
