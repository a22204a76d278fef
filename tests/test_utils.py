import ssl

import pytest

from cosikit.utils import (
    build_tls_config,
    contains_element,
    get_sorted_url_query_string,
    hmac_sha256,
)


def test_hmac_sha256_known_vector():
    digest = hmac_sha256(b"Jefe", b"what do ya want for nothing?")
    assert digest.hex() == (
        "5bdcc146bf60754e6a042426089575c75a003f089d2739839dec58b964ec3843"
    )


def test_hmac_sha256_depends_on_key():
    first = hmac_sha256(b"key-one", b"value")
    second = hmac_sha256(b"key-two", b"value")
    assert len(first) == 32
    assert first != second
    assert hmac_sha256(b"key-one", b"value") == first


def test_sorted_query_string_orders_and_escapes():
    result = get_sorted_url_query_string({"b": "x y", "a": "1/2"})
    assert result == "a=1%2F2&b=x+y"


def test_sorted_query_string_empty():
    assert get_sorted_url_query_string({}) == ""


def test_sorted_query_string_keeps_unreserved_characters():
    value = "Az09-_.~"
    result = get_sorted_url_query_string({"Action": value})
    assert result == "Action=" + value


def test_sorted_query_string_keys_sorted():
    params = {"UserName": "u", "Action": "CreateUser", "Version": "v"}
    keys = [pair.split("=", 1)[0] for pair in get_sorted_url_query_string(params).split("&")]
    assert keys == sorted(params)


@pytest.mark.parametrize(
    "elements, target, expected",
    [
        (["a", "b"], "b", True),
        (["a", "b"], "c", False),
        ([], "a", False),
    ],
)
def test_contains_element(elements, target, expected):
    assert contains_element(elements, target) is expected


def test_build_tls_config_without_root_ca_skips_verification():
    context = build_tls_config(b"")
    assert context.verify_mode == ssl.CERT_NONE
    assert context.check_hostname is False


def test_build_tls_config_none_root_ca_skips_verification():
    context = build_tls_config(None)
    assert context.verify_mode == ssl.CERT_NONE


def test_build_tls_config_with_root_ca_verifies():
    context = build_tls_config(b"not a certificate")
    assert context.verify_mode == ssl.CERT_REQUIRED
    assert context.check_hostname is True
    assert context.minimum_version == ssl.TLSVersion.TLSv1_2
    assert context.cert_store_stats()["x509_ca"] == 0