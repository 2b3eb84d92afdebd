import copy
import logging
from pathlib import Path
from typing import Any

import pytest
import structlog
import yaml

from featureresolver.defaults import FeatureSetDefaults, compile_defaults
from featureresolver.schema import DescriptorPool, FieldDescriptor, MessageType
from featureresolver.system.path_resolver import PathResolver

FEATURES_SCHEMA: dict[str, Any] = {
    "enums": [
        {
            "name": "features.FieldPresence",
            "values": {
                "FIELD_PRESENCE_UNKNOWN": 0,
                "EXPLICIT": 1,
                "IMPLICIT": 2,
                "LEGACY_REQUIRED": 3,
            },
        },
        {
            "name": "features.EnumType",
            "values": {"ENUM_TYPE_UNKNOWN": 0, "OPEN": 1, "CLOSED": 2},
        },
        {
            "name": "lang.StringType",
            "values": {"STRING_TYPE_UNKNOWN": 0, "VIEW": 1, "CORD": 2, "STRING": 3},
        },
    ],
    "messages": [
        {
            "name": "features.FeatureSet",
            "extension_ranges": [[1000, 9999]],
            "fields": [
                {
                    "name": "field_presence",
                    "type": "enum",
                    "enum": "features.FieldPresence",
                    "targets": ["TARGET_TYPE_FIELD", "TARGET_TYPE_FILE"],
                    "edition_defaults": [
                        {"edition": "2024", "value": "IMPLICIT"},
                        {"edition": "2023", "value": "EXPLICIT"},
                    ],
                },
                {
                    "name": "enum_type",
                    "type": "enum",
                    "enum": "features.EnumType",
                    "targets": ["TARGET_TYPE_ENUM", "TARGET_TYPE_FILE"],
                    "edition_defaults": [{"edition": "2023", "value": "OPEN"}],
                },
                {
                    "name": "utf8_validation",
                    "type": "bool",
                    "targets": ["TARGET_TYPE_FIELD"],
                    "edition_defaults": [{"edition": "2023", "value": True}],
                },
                {
                    "name": "limits",
                    "type": "message",
                    "message": "features.Limits",
                    "targets": ["TARGET_TYPE_FILE"],
                    "edition_defaults": [
                        {"edition": "2023", "value": "{max_depth: 1}"},
                        {"edition": "2024", "value": "{max_width: 2}"},
                    ],
                },
            ],
        },
        {
            "name": "features.Limits",
            "fields": [
                {"name": "max_depth", "type": "int", "targets": ["TARGET_TYPE_FILE"]},
                {"name": "max_width", "type": "int", "targets": ["TARGET_TYPE_FILE"]},
            ],
        },
        {
            "name": "lang.CppFeatures",
            "fields": [
                {
                    "name": "legacy_closed_enum",
                    "type": "bool",
                    "targets": ["TARGET_TYPE_FIELD"],
                    "edition_defaults": [
                        {"edition": "2023", "value": "true"},
                        {"edition": "2024", "value": "false"},
                    ],
                },
                {
                    "name": "string_type",
                    "type": "enum",
                    "enum": "lang.StringType",
                    "targets": ["TARGET_TYPE_FIELD"],
                    "edition_defaults": [
                        {"edition": "2023", "value": "STRING"},
                        {"edition": "2024.1", "value": "VIEW"},
                    ],
                },
            ],
        },
        {
            "name": "lang.JavaFeatures",
            "fields": [
                {
                    "name": "legacy_closed_enum",
                    "type": "bool",
                    "targets": ["TARGET_TYPE_FIELD"],
                    "edition_defaults": [{"edition": "2023", "value": "true"}],
                },
            ],
        },
    ],
    "extensions": [
        {
            "name": "lang.cpp",
            "extendee": "features.FeatureSet",
            "type": "message",
            "message": "lang.CppFeatures",
        },
        {
            "name": "lang.java",
            "extendee": "features.FeatureSet",
            "type": "message",
            "message": "lang.JavaFeatures",
        },
    ],
}


@pytest.fixture(autouse=True)
def isolated_environment(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    """Keep tests away from the real home directory and global logging state."""
    monkeypatch.setenv("FEATURERESOLVER_HOME", str(tmp_path / "home"))
    monkeypatch.delenv("FEATURERESOLVER_CONFIG", raising=False)
    monkeypatch.delenv("FEATURERESOLVER_JSON_LOGS", raising=False)

    root_logger = logging.getLogger()
    handlers = root_logger.handlers[:]
    level = root_logger.level
    yield
    structlog.reset_defaults()
    root_logger.handlers[:] = handlers
    root_logger.setLevel(level)


@pytest.fixture
def schema_data() -> dict[str, Any]:
    """Provide a private copy of the test schema description."""
    return copy.deepcopy(FEATURES_SCHEMA)


@pytest.fixture
def pool(schema_data: dict[str, Any]) -> DescriptorPool:
    return DescriptorPool.from_dict(schema_data)


@pytest.fixture
def feature_set(pool: DescriptorPool) -> MessageType:
    message = pool.find_message("features.FeatureSet")
    assert message is not None
    return message


@pytest.fixture
def cpp_extension(pool: DescriptorPool) -> FieldDescriptor:
    extension = pool.find_extension("lang.cpp")
    assert extension is not None
    return extension


@pytest.fixture
def java_extension(pool: DescriptorPool) -> FieldDescriptor:
    extension = pool.find_extension("lang.java")
    assert extension is not None
    return extension


@pytest.fixture
def compiled_defaults(
    feature_set: MessageType, cpp_extension: FieldDescriptor, java_extension: FieldDescriptor
) -> FeatureSetDefaults:
    """Defaults compiled for editions 2023 through 2024 with both extensions."""
    return compile_defaults(feature_set, [cpp_extension, java_extension], "2023", "2024")


@pytest.fixture
def schema_file(tmp_path: Path, schema_data: dict[str, Any]) -> Path:
    """Write the test schema to a YAML file."""
    path = tmp_path / "features.yaml"
    path.write_text(yaml.safe_dump(schema_data, sort_keys=False))
    return path


@pytest.fixture
def path_resolver(tmp_path: Path) -> PathResolver:
    """Provide a PathResolver rooted in a temporary home directory."""
    resolver = PathResolver()
    resolver.home_dir = tmp_path / "home"
    return resolver
