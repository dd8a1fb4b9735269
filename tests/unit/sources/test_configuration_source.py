"""
Configuration Source Tests

Covers the hierarchical key/value tree: case-insensitive lookup, existence
checks independent of values, nested/flat construction and flattening.
"""

import pytest

from configplus.sources.section import ConfigurationSource, split_path

# =============================================================================
# Constants
# =============================================================================

FLAT_DATA = {
    "Database:ConnectionString": "Server=localhost",
    "Database:TimeoutSeconds": "60",
    "Empty:Value": "",
    "Absent:Value": None,
}


class TestSectionLookup:
    """get_section() / exists() / get()."""

    def test_existing_section_exists(self) -> None:
        source = ConfigurationSource.from_mapping(FLAT_DATA)

        assert source.exists("Database")
        assert source.get_section("Database").exists()

    def test_missing_section_does_not_exist(self) -> None:
        source = ConfigurationSource.from_mapping(FLAT_DATA)

        section = source.get_section("Nope")

        assert not section.exists()
        assert section.value is None
        assert section.get_children() == []

    def test_lookup_is_case_insensitive(self) -> None:
        source = ConfigurationSource.from_mapping(FLAT_DATA)

        assert source.get("database:timeoutseconds") == "60"
        assert source.get("DATABASE:TIMEOUTSECONDS") == "60"

    def test_dotted_path_is_accepted(self) -> None:
        source = ConfigurationSource.from_mapping(FLAT_DATA)

        assert source.get("Database.TimeoutSeconds") == "60"

    def test_empty_string_value_counts_as_existing(self) -> None:
        """An empty value is still a value."""
        source = ConfigurationSource.from_mapping(FLAT_DATA)

        assert source.exists("Empty:Value")
        assert source.get("Empty:Value") == ""

    def test_none_value_without_children_does_not_exist(self) -> None:
        source = ConfigurationSource.from_mapping(FLAT_DATA)

        assert not source.exists("Absent:Value")

    def test_get_returns_default_for_missing_key(self) -> None:
        source = ConfigurationSource.from_mapping(FLAT_DATA)

        assert source.get("Database:Missing", "fallback") == "fallback"

    def test_children_keep_original_key_case(self) -> None:
        source = ConfigurationSource.from_mapping(FLAT_DATA)

        keys = [child.key for child in source.get_section("database").get_children()]

        assert keys == ["ConnectionString", "TimeoutSeconds"]

    def test_child_section_path_is_canonical(self) -> None:
        source = ConfigurationSource.from_mapping(FLAT_DATA)

        section = source.get_section("Database").get_section("TimeoutSeconds")

        assert section.path == "Database:TimeoutSeconds"
        assert section.value == "60"

    def test_colon_paths_keep_dots_inside_keys(self) -> None:
        source = ConfigurationSource.from_mapping(
            {"Logging:LogLevel:Microsoft.AspNetCore": "Warning"}
        )

        assert source.get("Logging:LogLevel:Microsoft.AspNetCore") == "Warning"

    def test_empty_key_is_rejected(self) -> None:
        source = ConfigurationSource()

        with pytest.raises(ValueError):
            source.set(":", "x")


class TestNestedConstruction:
    """from_nested() stringifies scalars and indexes lists."""

    def test_nested_mapping_matches_flat_mapping(self) -> None:
        nested = ConfigurationSource.from_nested(
            {"Database": {"ConnectionString": "Server=localhost", "TimeoutSeconds": 60}}
        )

        assert nested.get("Database:TimeoutSeconds") == "60"
        assert nested.get("Database:ConnectionString") == "Server=localhost"

    def test_booleans_become_lowercase_strings(self) -> None:
        source = ConfigurationSource.from_nested({"Feature": {"Enabled": True, "Beta": False}})

        assert source.get("Feature:Enabled") == "true"
        assert source.get("Feature:Beta") == "false"

    def test_lists_become_index_keys(self) -> None:
        source = ConfigurationSource.from_nested({"Hosts": ["a", "b"]})

        assert source.get("Hosts:0") == "a"
        assert source.get("Hosts:1") == "b"

    def test_to_raw_returns_nested_strings(self) -> None:
        source = ConfigurationSource.from_nested({"Db": {"Port": 5432, "Name": "app"}})

        assert source.get_section("Db").to_raw() == {"Port": "5432", "Name": "app"}


class TestFlatten:
    """to_flat() round-trips the leaves."""

    def test_to_flat_lists_every_leaf(self) -> None:
        source = ConfigurationSource.from_nested({"A": {"B": "1", "C": {"D": "2"}}})

        assert source.to_flat() == {"A:B": "1", "A:C:D": "2"}


class TestSplitPath:
    def test_split_path_drops_empty_segments(self) -> None:
        assert split_path("Database:") == ["Database"]
        assert split_path("a::b") == ["a", "b"]
