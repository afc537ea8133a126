import re

import pytest

from cors_policy import ANY, PolicyConfig, PolicyConfigError, normalize_origins


def test_schemeless_origin_expands_to_http_and_https():
    origins = normalize_origins(["example.com", "localhost:3000"])

    assert origins == (
        "http://example.com",
        "https://example.com",
        "http://localhost:3000",
        "https://localhost:3000",
    )
    assert "example.com" not in origins


def test_protocol_relative_origin_expands_both_schemes():
    assert normalize_origins(["//cdn.example.com/"]) == (
        "http://cdn.example.com",
        "https://cdn.example.com",
    )


def test_origins_keep_order_trim_slashes_and_duplicates():
    origins = normalize_origins(
        ["https://b.example/", "https://a.example", "https://b.example"]
    )

    assert origins == ("https://b.example", "https://a.example", "https://b.example")


def test_non_http_scheme_is_kept_verbatim():
    assert normalize_origins(["app://desktop"]) == ("app://desktop",)


def test_wildcard_anywhere_collapses_to_any():
    assert normalize_origins(["https://a.example", "*"]) is ANY

    config = PolicyConfig(
        allowed_origins=["*"], allowed_methods=["get", "*"], allowed_headers=["*"]
    )
    assert config.allows_any_origin
    assert config.allows_any_method
    assert config.allows_any_header


def test_methods_upper_and_headers_lower_cased():
    config = PolicyConfig(
        allowed_methods=["get", "Post", "GET"],
        allowed_headers=["Content-Type", "X-Requested-With"],
    )

    assert config.allowed_methods == ("GET", "POST")
    assert config.allowed_headers == ("content-type", "x-requested-with")
    assert config.allowed_methods_line == "GET,POST"
    assert config.allowed_headers_line == "content-type,x-requested-with"


def test_exposed_headers_keep_case_and_join_with_space():
    config = PolicyConfig(exposed_headers=["X-Total-Count", "ETag"])

    assert config.exposed_headers == ("X-Total-Count", "ETag")
    assert config.exposed_headers_line == "X-Total-Count, ETag"


def test_single_origin_detection():
    config = PolicyConfig(allowed_origins=["https://only.example"])

    assert config.is_single_origin_allowed()
    assert config.first_allowed_origin() == "https://only.example"


def test_schemeless_single_origin_is_not_single():
    """The scheme expansion produces two entries, so no single-origin shortcut."""

    config = PolicyConfig(allowed_origins=["only.example"])

    assert not config.is_single_origin_allowed()
    with pytest.raises(ValueError):
        config.first_allowed_origin()


@pytest.mark.parametrize(
    "origins",
    [[], ["https://only.example"], ["https://a.example", "https://b.example"]],
)
def test_patterns_disable_single_origin(origins):
    config = PolicyConfig(
        allowed_origins=origins,
        allowed_origin_patterns=[r"https://.*\.example\.com"],
    )

    assert not config.is_single_origin_allowed()


def test_any_origin_is_never_single():
    assert not PolicyConfig(allowed_origins=["*"]).is_single_origin_allowed()


def test_patterns_are_compiled_once():
    compiled = re.compile(r"https://(www\.)?example\.org")
    config = PolicyConfig(allowed_origin_patterns=[r"https://.*\.example\.com", compiled])

    assert all(isinstance(p, re.Pattern) for p in config.allowed_origin_patterns)
    assert config.allowed_origin_patterns[1] is compiled


def test_malformed_pattern_fails_at_construction():
    with pytest.raises(PolicyConfigError) as excinfo:
        PolicyConfig(allowed_origin_patterns=["https://(unclosed"])

    assert excinfo.value.field == "allowed_origins_patterns"


@pytest.mark.parametrize("max_age", [-1, "600", 1.5, True])
def test_invalid_max_age_rejected(max_age):
    with pytest.raises(PolicyConfigError):
        PolicyConfig(max_age=max_age)


def test_zero_max_age_is_distinct_from_none():
    assert PolicyConfig(max_age=0).max_age == 0
    assert PolicyConfig().max_age is None


def test_string_instead_of_list_rejected():
    with pytest.raises(PolicyConfigError):
        PolicyConfig(allowed_origins="https://a.example")


def test_non_boolean_credentials_rejected():
    with pytest.raises(PolicyConfigError):
        PolicyConfig(supports_credentials="yes")


def test_from_mapping_reads_documented_keys():
    config = PolicyConfig.from_mapping(
        {
            "allowed_origins": ["example.com"],
            "allowed_origins_patterns": [r"https://.*\.example\.net"],
            "allowed_methods": ["get", "post"],
            "allowed_headers": ["Content-Type"],
            "exposed_headers": ["X-Total-Count"],
            "supports_credentials": True,
            "max_age": 600,
        }
    )

    assert config.allowed_origins == ("http://example.com", "https://example.com")
    assert config.allowed_origin_patterns[0].pattern == r"https://.*\.example\.net"
    assert config.allowed_methods == ("GET", "POST")
    assert config.allowed_headers == ("content-type",)
    assert config.exposed_headers == ("X-Total-Count",)
    assert config.supports_credentials is True
    assert config.max_age == 600
    assert config.exclude_same_host is True


def test_from_mapping_defaults_and_null_max_age():
    config = PolicyConfig.from_mapping({"allowed_headers": None, "max_age": None})

    assert config.allowed_origins == ()
    assert config.allowed_methods == ()
    assert config.allowed_headers == ()
    assert config.max_age is None
    assert config.supports_credentials is False


def test_from_mapping_rejects_unknown_keys():
    with pytest.raises(PolicyConfigError, match="allow_origin"):
        PolicyConfig.from_mapping({"allow_origin": ["*"]})


def test_config_is_immutable_and_hashable():
    config = PolicyConfig(allowed_origins=["https://a.example"])

    with pytest.raises(AttributeError):
        config.allowed_origins = ("https://b.example",)  # type: ignore[misc]
    assert hash(config) == hash(PolicyConfig(allowed_origins=["https://a.example"]))
