from scanshim.properties import (
    Property,
    SonarProperties,
    contains_sensitive_data,
    find_property,
    is_secured_key,
    is_valid_key,
)


def test_ph1_prop_001_parse_splits_on_first_equals_sign() -> None:
    parsed = Property.parse("sonar.exclusions=a=b")

    assert parsed == Property(key="sonar.exclusions", value="a=b")
    assert parsed.as_pair() == "sonar.exclusions=a=b"


def test_ph1_prop_002_parse_rejects_missing_key_or_value() -> None:
    assert Property.parse("=value") is None
    assert Property.parse("key=") is None
    assert Property.parse("no-separator") is None


def test_ph1_prop_003_key_validation() -> None:
    assert is_valid_key("sonar.cs.roslyn.reportFilePaths")
    assert is_valid_key("my_key-1")
    assert not is_valid_key("-starts-with-dash")
    assert not is_valid_key("has space")


def test_ph1_prop_004_sensitive_data_matches_keys_case_insensitively() -> None:
    assert contains_sensitive_data("sonar.login")
    assert contains_sensitive_data("/d:SONAR.TOKEN=abc")
    assert contains_sensitive_data("javax.net.ssl.trustStorePassword")
    assert not contains_sensitive_data("**/*.secured")
    assert not contains_sensitive_data("sonar.projectKey")
    assert not contains_sensitive_data(None)
    assert not contains_sensitive_data("")


def test_ph1_prop_005_property_sensitivity_checks_key_and_value() -> None:
    assert Property(key=SonarProperties.PASSWORD, value="x").contains_sensitive_data
    assert Property(key="any", value="sonar.token=abc").contains_sensitive_data
    assert Property(key="custom.key.SECURED", value="x").contains_sensitive_data
    assert not Property(key="sonar.exclusions", value="**/gen/**").contains_sensitive_data
    assert not Property(key="sonar.exclusions", value="**/*.secured").contains_sensitive_data


def test_ph1_prop_006_find_property_returns_first_exact_match() -> None:
    properties = [
        Property(key="a", value="1"),
        Property(key="A", value="2"),
        Property(key="a", value="3"),
    ]

    assert find_property(properties, "a") == Property(key="a", value="1")
    assert find_property(properties, "A") == Property(key="A", value="2")
    assert find_property(properties, "b") is None


def test_ph1_prop_007_secured_suffix_applies_to_keys_only() -> None:
    assert is_secured_key("custom.key.secured")
    assert is_secured_key("Custom.Key.Secured")
    assert not is_secured_key("custom.securedkey")
    assert not is_secured_key(".securedir/a.cs")
    assert not is_secured_key(None)
    assert not contains_sensitive_data("/src/config.secured")
