"""
DataFlow Job Description Loading

Reads the JSON job description into typed configuration objects.
"""

import json
import os
from typing import Any, Dict, List, Optional

from dataflow.core.exceptions import ConfigurationError
from dataflow.models import (
    DestinationConfig, GlobalOptions, ImportJob, PipelineConfiguration,
    PostScript, SourceDatabaseEntry
)


def _require(data: Dict[str, Any], key: str, where: str) -> Any:
    value = data.get(key)
    if value is None or value == "":
        raise ConfigurationError(f"Missing required key '{key}' in {where}")
    return value


def _optional_str(data: Dict[str, Any], key: str, where: str) -> Optional[str]:
    value = data.get(key)
    if value is not None and not isinstance(value, str):
        raise ConfigurationError(f"'{key}' in {where} must be a string")
    return value


def _positive_int(data: Dict[str, Any], key: str, where: str) -> Optional[int]:
    value = data.get(key)
    if value is None:
        return None
    # bool is an int subclass
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise ConfigurationError(
            f"'{key}' in {where} must be a positive integer",
            f"Got {value!r}"
        )
    return value


def _setup_commands(data: Dict[str, Any], where: str):
    value = data.get("sqlSetupCommands")
    if value is None or isinstance(value, str):
        return value
    if isinstance(value, list) and all(isinstance(item, str) for item in value):
        return list(value)
    raise ConfigurationError(f"'sqlSetupCommands' in {where} must be a string or a list of strings")


def _mapping(value: Any, where: str) -> Dict[str, Any]:
    if not isinstance(value, dict):
        raise ConfigurationError(f"{where} must be an object")
    return value


def parse_import(data: Dict[str, Any], where: str) -> ImportJob:
    data = _mapping(data, where)
    return ImportJob(
        table=_require(data, "table", where),
        query=_optional_str(data, "query", where),
        fetch_size=_positive_int(data, "fetchSize", where),
        batch_size=_positive_int(data, "batchSize", where),
    )


def parse_post_script(data: Dict[str, Any], where: str) -> PostScript:
    data = _mapping(data, where)
    return PostScript(
        label=_require(data, "label", where),
        sql=_require(data, "sql", where),
    )


def parse_database(name: str, data: Dict[str, Any]) -> SourceDatabaseEntry:
    where = f"database '{name}'"
    data = _mapping(data, where)

    imports = data.get("imports") or []
    post_scripts = data.get("postScripts") or []
    if not isinstance(imports, list):
        raise ConfigurationError(f"'imports' in {where} must be a list")
    if not isinstance(post_scripts, list):
        raise ConfigurationError(f"'postScripts' in {where} must be a list")

    return SourceDatabaseEntry(
        name=name,
        url=_require(data, "url", where),
        driver=_optional_str(data, "driver", where),
        username=_optional_str(data, "username", where),
        password=_optional_str(data, "password", where),
        sql_setup_commands=_setup_commands(data, where),
        fetch_size=_positive_int(data, "fetchSize", where),
        imports=[parse_import(item, f"import {i + 1} of {where}") for i, item in enumerate(imports)],
        post_scripts=[
            parse_post_script(item, f"post script {i + 1} of {where}")
            for i, item in enumerate(post_scripts)
        ],
    )


def parse_databases(value: Any) -> List[SourceDatabaseEntry]:
    """Parse the databases section, given as a list or keyed by name."""
    if value is None:
        raise ConfigurationError("Missing required key 'databases'")

    if isinstance(value, dict):
        return [parse_database(name, data) for name, data in value.items()]

    if isinstance(value, list):
        databases = []
        for i, data in enumerate(value):
            data = _mapping(data, f"database {i + 1}")
            databases.append(parse_database(_require(data, "name", f"database {i + 1}"), data))
        return databases

    raise ConfigurationError("'databases' must be a list or an object")


def parse_export(data: Dict[str, Any]) -> DestinationConfig:
    where = "export"
    data = _mapping(data, where)
    return DestinationConfig(
        url_protocol=_require(data, "urlProtocol", where),
        url_options=_optional_str(data, "urlOptions", where) or "",
        driver=_optional_str(data, "driver", where),
        output_folder=_optional_str(data, "outputFolder", where),
        username=_optional_str(data, "username", where),
        password=_optional_str(data, "password", where),
        sql_setup_commands=_setup_commands(data, where),
        export_batch_size=_positive_int(data, "exportBatchSize", where),
    )


def parse_config(data: Dict[str, Any]) -> PipelineConfiguration:
    """Build a PipelineConfiguration from a decoded job description."""
    data = _mapping(data, "Job description")

    global_options = None
    if data.get("global") is not None:
        global_data = _mapping(data["global"], "global")
        global_options = GlobalOptions(
            path_supplement=_optional_str(global_data, "pathSupplement", "global")
        )

    return PipelineConfiguration(
        export=parse_export(_require(data, "export", "job description")),
        databases=parse_databases(data.get("databases")),
        global_options=global_options,
    )


def load_config(path: str) -> PipelineConfiguration:
    """Load a job description from a JSON file."""
    if not os.path.exists(path):
        raise ConfigurationError(f"Config file not found: {path}")

    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Invalid JSON in {path}", str(e))
    except OSError as e:
        raise ConfigurationError(f"Could not read {path}", str(e))

    return parse_config(data)
