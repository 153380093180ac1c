"""Tests for the OTP HTTP API."""

import pytest

from otpauth import otp_core
from otpauth_api.app import app

SECRET = "GEZDGNBVGY3TQOJQGEZDGNBVGY3TQOJQ"


@pytest.fixture
def client():
    app.config["TESTING"] = True
    with app.test_client() as client:
        yield client


def test_health(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.get_json() == {"status": "ok"}


class TestHOTP:

    def test_code(self, client):
        resp = client.post("/hotp", json={"secret": SECRET, "counter": 0})
        assert resp.status_code == 200
        assert resp.get_json() == {"code": "755224"}

    def test_digits_and_algorithm(self, client):
        resp = client.post("/hotp", json={"secret": SECRET, "counter": 7, "digits": 10, "algorithm": "sha1"})
        assert resp.get_json() == {"code": "0082162583"}

    def test_missing_counter(self, client):
        resp = client.post("/hotp", json={"secret": SECRET})
        assert resp.status_code == 400
        assert "required" in resp.get_json()["error"]

    def test_counter_must_be_integer(self, client):
        resp = client.post("/hotp", json={"secret": SECRET, "counter": "1"})
        assert resp.status_code == 400
        assert resp.get_json() == {"error": "'counter' must be an integer"}

    def test_unsupported_algorithm(self, client):
        resp = client.post("/hotp", json={"secret": SECRET, "counter": 0, "algorithm": "MD5"})
        assert resp.status_code == 400
        assert "Unsupported algorithm" in resp.get_json()["error"]

    def test_invalid_secret(self, client):
        resp = client.post("/hotp", json={"secret": "0000", "counter": 0})
        assert resp.status_code == 400
        assert "Invalid Base32 secret" in resp.get_json()["error"]

    def test_negative_counter(self, client):
        resp = client.post("/hotp", json={"secret": SECRET, "counter": -1})
        assert resp.status_code == 400

    def test_no_body(self, client):
        resp = client.post("/hotp")
        assert resp.status_code == 400


class TestTOTP:

    def test_at_timestamp(self, client):
        resp = client.post("/totp", json={"secret": SECRET, "timestamp": 59, "digits": 8})
        assert resp.status_code == 200
        assert resp.get_json() == {"code": "94287082", "remaining": 1, "period": 30}

    def test_now(self, client, monkeypatch):
        monkeypatch.setattr(otp_core.time, "time", lambda: 1111111109)
        resp = client.post("/totp", json={"secret": SECRET, "digits": 8})
        assert resp.get_json() == {"code": "07081804", "remaining": 1, "period": 30}

    def test_period(self, client):
        resp = client.post("/totp", json={"secret": SECRET, "timestamp": 120, "period": 60})
        assert resp.get_json()["remaining"] == 60

    def test_invalid_period(self, client):
        resp = client.post("/totp", json={"secret": SECRET, "period": 0})
        assert resp.status_code == 400

    def test_missing_secret(self, client):
        resp = client.post("/totp", json={})
        assert resp.status_code == 400


class TestGenerateSecret:

    def test_default_length(self, client):
        resp = client.post("/generate_secret", json={})
        assert resp.status_code == 200
        secret = resp.get_json()["secret"]
        assert len(secret) == 32
        assert "=" not in secret

    def test_length(self, client):
        secret = client.post("/generate_secret", json={"bytes": 16}).get_json()["secret"]
        assert len(otp_core.decode_secret(secret)) == 16

    def test_invalid_length(self, client):
        assert client.post("/generate_secret", json={"bytes": 0}).status_code == 400

    def test_entropy_unavailable(self, client, monkeypatch):
        def no_entropy(n=20):
            raise otp_core.EntropySourceUnavailable("No secure random source available")

        monkeypatch.setattr(otp_core, "generate_secret", no_entropy)
        resp = client.post("/generate_secret", json={})
        assert resp.status_code == 503
        assert resp.get_json() == {"error": "No secure random source available"}


class TestVerify:

    def test_hotp_valid(self, client):
        resp = client.post("/verify_hotp", json={"secret": SECRET, "code": "969429", "counter": 2})
        assert resp.get_json() == {"valid": True, "new_counter": 4}

    def test_hotp_invalid(self, client):
        resp = client.post("/verify_hotp", json={"secret": SECRET, "code": "969429", "counter": 0})
        assert resp.get_json() == {"valid": False}

    def test_hotp_missing_fields(self, client):
        resp = client.post("/verify_hotp", json={"secret": SECRET, "code": "969429"})
        assert resp.status_code == 400

    def test_totp_valid(self, client):
        resp = client.post("/verify_totp", json={
            "secret": SECRET, "code": "94287082", "timestamp": 89, "digits": 8,
        })
        assert resp.get_json() == {"valid": True}

    def test_totp_window(self, client):
        resp = client.post("/verify_totp", json={
            "secret": SECRET, "code": "94287082", "timestamp": 89, "digits": 8, "window": 0,
        })
        assert resp.get_json() == {"valid": False}

    def test_totp_code_must_be_string(self, client):
        resp = client.post("/verify_totp", json={"secret": SECRET, "code": 94287082})
        assert resp.status_code == 400


class TestRequestValidation:

    @pytest.mark.parametrize("path", ["/hotp", "/totp", "/verify_hotp", "/verify_totp", "/generate_secret"])
    @pytest.mark.parametrize("body", [["secret", "counter"], "abc", 42])
    def test_body_must_be_object(self, client, path, body):
        resp = client.post(path, json=body)
        assert resp.status_code == 400
        assert resp.get_json() == {"error": "JSON body must be an object"}

    @pytest.mark.parametrize("digits", [-1, 0, 5, 11, 10 ** 8])
    def test_hotp_digits_out_of_range(self, client, digits):
        resp = client.post("/hotp", json={"secret": SECRET, "counter": 0, "digits": digits})
        assert resp.status_code == 400
        assert resp.get_json() == {"error": "'digits' must be between 6 and 10"}

    @pytest.mark.parametrize("digits", [6, 10])
    def test_hotp_digits_limits_accepted(self, client, digits):
        resp = client.post("/hotp", json={"secret": SECRET, "counter": 0, "digits": digits})
        assert resp.status_code == 200
        assert len(resp.get_json()["code"]) == digits

    @pytest.mark.parametrize("digits", [0, 11])
    def test_totp_digits_out_of_range(self, client, digits):
        resp = client.post("/totp", json={"secret": SECRET, "timestamp": 59, "digits": digits})
        assert resp.status_code == 400

    @pytest.mark.parametrize("period", [-30, 0, 86401])
    def test_totp_period_out_of_range(self, client, period):
        resp = client.post("/totp", json={"secret": SECRET, "timestamp": 59, "period": period})
        assert resp.status_code == 400
        assert "'period' must be between" in resp.get_json()["error"]

    @pytest.mark.parametrize("window", [-1, 11, 10 ** 9])
    def test_verify_totp_window_out_of_range(self, client, window):
        resp = client.post("/verify_totp", json={
            "secret": SECRET, "code": "94287082", "timestamp": 59, "digits": 8, "window": window,
        })
        assert resp.status_code == 400
        assert "'window' must be between" in resp.get_json()["error"]

    def test_verify_totp_period_out_of_range(self, client):
        resp = client.post("/verify_totp", json={"secret": SECRET, "code": "123456", "period": 0})
        assert resp.status_code == 400

    @pytest.mark.parametrize("look_ahead", [-1, 101, 10 ** 9])
    def test_verify_hotp_look_ahead_out_of_range(self, client, look_ahead):
        resp = client.post("/verify_hotp", json={
            "secret": SECRET, "code": "969429", "counter": 0, "look_ahead": look_ahead,
        })
        assert resp.status_code == 400
        assert "'look_ahead' must be between" in resp.get_json()["error"]

    def test_verify_hotp_digits_out_of_range(self, client):
        resp = client.post("/verify_hotp", json={
            "secret": SECRET, "code": "0", "counter": 0, "digits": 0,
        })
        assert resp.status_code == 400

    def test_secret_bytes_too_large(self, client):
        assert client.post("/generate_secret", json={"bytes": 10 ** 9}).status_code == 400
