import pytest

from xray_insight.imaging.fallback import (
    FALLBACK_MODEL, compute_digest, describe_seed, digest_seed, generate_fallback_description,
)

from conftest import digest_for_seed


def test_digest_is_sha256_hex():
    assert compute_digest(b"") == "e3b0c44298fc1c149afbf4c8996fb92427ae41e4649b934ca495991b7852b855"
    digest = compute_digest(b"\x89PNG fake image")
    assert len(digest) == 64
    assert digest == compute_digest(b"\x89PNG fake image")


def test_digest_seed_uses_first_eight_hex_chars():
    assert digest_seed("0000000a" + "f" * 56) == 10
    assert digest_seed("ffffffff" + "0" * 56) == 0xFFFFFFFF


def test_zero_seed_gets_every_qualifier():
    result = generate_fallback_description(digest_for_seed(0))
    assert result.description == (
        "medical x-ray image showing bone structures with clear bone definition, "
        "normal joint spacing, possible irregularities, soft tissue visible"
    )
    assert result.confidence == 0.5
    assert result.model == FALLBACK_MODEL


def test_seed_without_qualifiers_uses_bare_descriptor():
    result = describe_seed(10)
    assert result.description == "medical x-ray image showing bone structures"
    assert result.confidence == pytest.approx(0.6)


def test_max_seed_vector():
    result = describe_seed(0xFFFFFFFF)
    assert result.description == "medical x-ray image showing bone structures with normal joint spacing, soft tissue visible"
    assert result.confidence == pytest.approx(0.65)


def test_descriptor_follows_seed_modulo_five():
    assert describe_seed(1).description.startswith("radiographic image of anatomical structures")
    assert describe_seed(3).description.startswith("medical radiograph with visible bone tissue")


def test_confidence_stays_within_bounds():
    for seed in list(range(0, 500)) + [0x7FFFFFFF, 0xFFFFFFFE, 0xFFFFFFFF]:
        assert 0.5 <= describe_seed(seed).confidence <= 0.9


def test_same_digest_same_description():
    digest = compute_digest(b"same bytes every time")
    assert generate_fallback_description(digest) == generate_fallback_description(digest)
