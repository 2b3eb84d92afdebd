"""Tests for FeatureResolver."""

from concurrent.futures import ThreadPoolExecutor

import pytest

from featureresolver.defaults import FeatureSetDefaults, FeatureSetEditionDefault, compile_defaults
from featureresolver.errors import EditionOrderError, FeatureMergeError, MissingDefaultError
from featureresolver.resolver import FeatureResolver, validate_merged_features
from featureresolver.schema import DescriptorPool
from featureresolver.values import FeatureValue


@pytest.fixture
def resolver_2024(compiled_defaults):
    return FeatureResolver.create("2024", compiled_defaults)


def features(feature_set, pool, **data):
    """Build feature set values, with extensions given as lang_cpp=..."""
    mapped = {}
    for key, value in data.items():
        if key.startswith("lang_"):
            key = "[" + key.replace("_", ".", 1) + "]"
        mapped[key] = value
    return FeatureValue.from_dict(feature_set, mapped, pool)


class TestCreate:
    """Test FeatureResolver.create."""

    @pytest.mark.parametrize(
        "edition,expected_presence",
        [
            pytest.param("2023", "EXPLICIT", id="exact-first"),
            pytest.param("2023.5", "EXPLICIT", id="between-editions"),
            pytest.param("2024", "IMPLICIT", id="exact-last"),
        ],
    )
    def test_selects_closest_preceding_defaults(
        self, compiled_defaults, edition, expected_presence
    ):
        """Should pick the greatest compiled edition at or before the requested one."""
        resolver = FeatureResolver.create(edition, compiled_defaults)

        assert resolver.defaults.get_enum_name("field_presence") == expected_presence

    def test_edition_before_minimum(self, compiled_defaults):
        with pytest.raises(EditionOrderError) as exc_info:
            FeatureResolver.create("2022", compiled_defaults)

        assert str(exc_info.value) == (
            "Edition 2022 is earlier than the minimum supported edition 2023"
        )

    def test_edition_after_maximum(self, compiled_defaults):
        with pytest.raises(EditionOrderError) as exc_info:
            FeatureResolver.create("2024.1", compiled_defaults)

        assert str(exc_info.value) == (
            "Edition 2024.1 is later than the maximum supported edition 2024"
        )

    def test_numeric_segment_ordering(self, feature_set):
        """Should order editions by segment length before text."""
        compiled = compile_defaults(feature_set, [], "2023", "10000")

        resolver = FeatureResolver.create("10000", compiled)

        assert resolver.defaults.get_enum_name("field_presence") == "IMPLICIT"

    def test_non_increasing_defaults(self, compiled_defaults):
        """Should reject artifacts whose editions are not strictly increasing."""
        reordered = FeatureSetDefaults(
            minimum_edition="2023",
            maximum_edition="2024",
            defaults=tuple(reversed(compiled_defaults.defaults)),
        )

        with pytest.raises(EditionOrderError) as exc_info:
            FeatureResolver.create("2024", reordered)

        assert str(exc_info.value) == (
            "Feature set defaults are not strictly increasing. "
            "Edition 2024 is greater than or equal to edition 2023."
        )

    def test_duplicate_editions(self, compiled_defaults):
        first = compiled_defaults.defaults[0]
        duplicated = FeatureSetDefaults(
            minimum_edition="2023", maximum_edition="2024", defaults=(first, first)
        )

        with pytest.raises(EditionOrderError, match="not strictly increasing"):
            FeatureResolver.create("2023", duplicated)

    def test_no_default_before_edition(self, feature_set):
        """Should fail lazily when the minimum edition precedes every default."""
        compiled = compile_defaults(feature_set, [], "2022", "2024")

        with pytest.raises(MissingDefaultError) as exc_info:
            FeatureResolver.create("2022", compiled)

        assert str(exc_info.value) == "No valid default found for edition 2022"

    def test_empty_defaults(self):
        compiled = FeatureSetDefaults(minimum_edition="2023", maximum_edition="2024")

        with pytest.raises(MissingDefaultError):
            FeatureResolver.create("2023", compiled)

    def test_does_not_share_artifact_values(self, compiled_defaults):
        """Should not alias the artifact's feature values."""
        resolver = FeatureResolver.create("2023", compiled_defaults)
        compiled_defaults.defaults[0].features.set("field_presence", "LEGACY_REQUIRED")

        assert resolver.defaults.get_enum_name("field_presence") == "EXPLICIT"


class TestMergeFeatures:
    """Test FeatureResolver.merge_features."""

    def test_empty_parent_and_child(self, resolver_2024, feature_set, compiled_defaults):
        """Should return the edition defaults unchanged."""
        merged = resolver_2024.merge_features(FeatureValue(feature_set), FeatureValue(feature_set))

        assert merged == compiled_defaults.defaults[1].features

    def test_precedence(self, resolver_2024, feature_set, pool):
        """Should let the child win over the parent and the parent over the defaults."""
        parent = features(feature_set, pool, field_presence="EXPLICIT", enum_type="CLOSED")
        child = features(feature_set, pool, enum_type="OPEN", utf8_validation=False)

        merged = resolver_2024.merge_features(parent, child)

        assert merged.get_enum_name("field_presence") == "EXPLICIT"
        assert merged.get_enum_name("enum_type") == "OPEN"
        assert merged.get("utf8_validation") is False

    def test_record_fields_merge(self, resolver_2024, feature_set, pool):
        """Should merge record fields sub-field by sub-field."""
        child = features(feature_set, pool, limits={"max_width": 5})

        merged = resolver_2024.merge_features(FeatureValue(feature_set), child)

        assert merged.get("limits").to_dict() == {"max_depth": 1, "max_width": 5}

    def test_extension_fields_merge(self, resolver_2024, feature_set, pool, cpp_extension):
        """Should merge extension payloads field by field."""
        child = features(feature_set, pool, lang_cpp={"string_type": "CORD"})

        merged = resolver_2024.merge_features(FeatureValue(feature_set), child)

        assert merged.extension(cpp_extension).to_dict() == {
            "legacy_closed_enum": False,
            "string_type": "CORD",
        }

    def test_idempotent(self, resolver_2024, feature_set, pool):
        """Should yield the same result when merging a result again with an empty child."""
        once = resolver_2024.merge_features(
            features(feature_set, pool, enum_type="CLOSED"), FeatureValue(feature_set)
        )

        twice = resolver_2024.merge_features(once, FeatureValue(feature_set))

        assert twice == once

    def test_inputs_not_modified(self, resolver_2024, feature_set, pool):
        parent = features(feature_set, pool, enum_type="CLOSED")
        child = features(feature_set, pool, limits={"max_width": 5})

        resolver_2024.merge_features(parent, child)

        assert parent.to_dict() == {"enum_type": "CLOSED"}
        assert child.to_dict() == {"limits": {"max_width": 5}}

    def test_resolver_not_modified(self, resolver_2024, feature_set, pool):
        """Should leave the resolver's defaults untouched by merges."""
        before = resolver_2024.defaults

        merged = resolver_2024.merge_features(
            FeatureValue(feature_set), features(feature_set, pool, field_presence="EXPLICIT")
        )
        merged.set("enum_type", "CLOSED")

        assert resolver_2024.defaults == before

    def test_zero_enum_rejected(self, resolver_2024, feature_set, pool):
        """Should reject enum features that resolve to their zero value."""
        child = features(feature_set, pool, enum_type="ENUM_TYPE_UNKNOWN")

        with pytest.raises(FeatureMergeError) as exc_info:
            resolver_2024.merge_features(FeatureValue(feature_set), child)

        assert str(exc_info.value) == (
            "Feature field features.FeatureSet.enum_type must resolve to a known value, "
            "found ENUM_TYPE_UNKNOWN"
        )

    def test_zero_enum_in_extension_rejected(self, resolver_2024, feature_set, pool):
        child = features(feature_set, pool, lang_cpp={"string_type": 0})

        with pytest.raises(FeatureMergeError, match="lang.CppFeatures.string_type"):
            resolver_2024.merge_features(FeatureValue(feature_set), child)

    def test_mismatched_feature_type(self, resolver_2024, feature_set, pool):
        limits = FeatureValue(pool.find_message("features.Limits"))

        with pytest.raises(FeatureMergeError, match="Cannot merge features.Limits features"):
            resolver_2024.merge_features(FeatureValue(feature_set), limits)

    def test_concurrent_merges(self, resolver_2024, feature_set, pool):
        """Should give every concurrent merge its own independent result."""
        presences = ["EXPLICIT", "IMPLICIT", "LEGACY_REQUIRED"] * 20

        def merge(presence):
            child = features(feature_set, pool, field_presence=presence)
            return resolver_2024.merge_features(FeatureValue(feature_set), child)

        with ThreadPoolExecutor(max_workers=8) as executor:
            results = list(executor.map(merge, presences))

        assert [result.get_enum_name("field_presence") for result in results] == presences
        assert resolver_2024.defaults.get_enum_name("field_presence") == "IMPLICIT"


class TestValidateMergedFeatures:
    """Test validate_merged_features."""

    def test_unset_enum_is_rejected(self, feature_set):
        with pytest.raises(FeatureMergeError, match="features.FeatureSet.field_presence"):
            validate_merged_features(FeatureValue(feature_set))

    def test_compiled_defaults_are_valid(self, compiled_defaults):
        for edition_default in compiled_defaults.defaults:
            validate_merged_features(edition_default.features)

    def test_nested_record_enums_are_not_checked(self):
        pool = DescriptorPool.from_dict(
            {
                "enums": [{"name": "n.Mode", "values": {"MODE_UNKNOWN": 0, "FAST": 1}}],
                "messages": [
                    {
                        "name": "n.Features",
                        "fields": [
                            {"name": "inner", "type": "message", "message": "n.Inner",
                             "targets": ["T"]},
                        ],
                    },
                    {
                        "name": "n.Inner",
                        "fields": [
                            {"name": "mode", "type": "enum", "enum": "n.Mode", "targets": ["T"]},
                        ],
                    },
                ],
            }
        )
        value = FeatureValue.from_dict(pool.find_message("n.Features"), {"inner": {"mode": 0}})

        validate_merged_features(value)


def test_resolver_from_hand_built_defaults(feature_set):
    """Should accept artifacts built directly rather than compiled."""
    early = FeatureValue.from_dict(feature_set, {"field_presence": "LEGACY_REQUIRED"})
    compiled = FeatureSetDefaults(
        minimum_edition="2020",
        maximum_edition="2030",
        defaults=(FeatureSetEditionDefault(edition="2020", features=early),),
    )

    resolver = FeatureResolver.create("2029", compiled)

    assert resolver.defaults.get_enum_name("field_presence") == "LEGACY_REQUIRED"
