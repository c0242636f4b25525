"""Tests for webhook signature verification."""

import hashlib
import hmac
import json
import time

import pytest

from rlnks_sdk import (
    MissingSignatureError,
    PayloadNotParseableError,
    SignatureMismatchError,
    SignatureVerifier,
    TimestampExpiredError,
    VerificationFailureKind,
    WebhookEvent,
    WebhookVerificationError,
    compute_signature,
    extract_webhook_headers,
    signed_message,
)


def flip(signature: str, index: int) -> str:
    replacement = "0" if signature[index] != "0" else "1"
    return signature[:index] + replacement + signature[index + 1 :]


class TestComputeSignature:
    def test_computes_hmac_sha256_hex_signature(self) -> None:
        signature = compute_signature(b'1234567890.{"test":true}', "whsec_test_secret")

        assert len(signature) == 64
        assert signature == signature.lower()
        int(signature, 16)

    def test_matches_reference_hmac(self) -> None:
        expected = hmac.new(b"s", b"1000.p", hashlib.sha256).hexdigest()

        assert compute_signature("1000.p", "s") == expected

    def test_different_secrets_produce_different_signatures(self) -> None:
        message = '1234567890.{"test":true}'

        assert compute_signature(message, "secret1") != compute_signature(message, "secret2")


class TestSignedMessage:
    def test_prefixes_timestamp_and_period(self) -> None:
        assert signed_message(b'{"a":1}', 1000) == b'1000.{"a":1}'

    def test_keeps_string_timestamp_as_sent(self) -> None:
        assert signed_message("p", "1000") == b"1000.p"

    def test_uses_raw_payload_without_timestamp(self) -> None:
        assert signed_message(b"raw bytes") == b"raw bytes"


class TestSign:
    def test_signs_with_given_timestamp(self) -> None:
        result = SignatureVerifier("s").sign("p", 1000)

        assert result.timestamp == 1000
        assert result.signature == hmac.new(b"s", b"1000.p", hashlib.sha256).hexdigest()

    def test_defaults_timestamp_to_now(self) -> None:
        before = int(time.time())
        result = SignatureVerifier("s").sign("p")
        after = int(time.time())

        assert before <= result.timestamp <= after

    def test_accepts_bytes_secret(self) -> None:
        assert SignatureVerifier(b"s").sign("p", 1000) == SignatureVerifier("s").sign("p", 1000)


class TestVerify:
    @pytest.fixture
    def verifier(self) -> SignatureVerifier:
        return SignatureVerifier("s")

    def test_verifies_valid_signature(self, verifier: SignatureVerifier) -> None:
        sig = verifier.sign("p", 1000).signature

        # Should not raise
        verifier.verify("p", sig, 1000, current_timestamp=1000)

    def test_accepts_string_timestamp(self, verifier: SignatureVerifier) -> None:
        sig = verifier.sign("p", 1000).signature

        verifier.verify(b"p", sig, "1000", current_timestamp=1000)

    def test_verifies_with_current_time(self, verifier: SignatureVerifier) -> None:
        signed = verifier.sign('{"order_id":123}')

        verifier.verify('{"order_id":123}', signed.signature, signed.timestamp)

    def test_every_flipped_character_is_rejected(self, verifier: SignatureVerifier) -> None:
        sig = verifier.sign("p", 1000).signature

        for index in range(len(sig)):
            with pytest.raises(SignatureMismatchError):
                verifier.verify("p", flip(sig, index), 1000, current_timestamp=1000)

    def test_raises_timestamp_expired_outside_tolerance(self, verifier: SignatureVerifier) -> None:
        sig = verifier.sign("p", 1000).signature

        with pytest.raises(TimestampExpiredError, match="too old"):
            verifier.verify("p", sig, 1000, current_timestamp=1000 + 301)

    def test_accepts_timestamp_at_tolerance_edge(self, verifier: SignatureVerifier) -> None:
        sig = verifier.sign("p", 1000).signature

        verifier.verify("p", sig, 1000, current_timestamp=1000 + 300)
        verifier.verify("p", sig, 1000, current_timestamp=1000 - 300)

    def test_rejects_timestamps_from_the_future(self, verifier: SignatureVerifier) -> None:
        sig = verifier.sign("p", 2000).signature

        with pytest.raises(TimestampExpiredError):
            verifier.verify("p", sig, 2000, current_timestamp=1000)

    def test_raises_missing_signature(self, verifier: SignatureVerifier) -> None:
        with pytest.raises(MissingSignatureError):
            verifier.verify("p", "", 1000, current_timestamp=1000)

    def test_missing_signature_is_checked_before_timestamp(
        self, verifier: SignatureVerifier
    ) -> None:
        with pytest.raises(MissingSignatureError):
            verifier.verify("p", "", 1, current_timestamp=1000)

    def test_raises_timestamp_expired_for_non_numeric(self, verifier: SignatureVerifier) -> None:
        with pytest.raises(TimestampExpiredError, match="not a valid number"):
            verifier.verify("p", "abc", "not-a-number")

    def test_signature_is_bound_to_timestamp(self, verifier: SignatureVerifier) -> None:
        sig = verifier.sign("p", 1000).signature

        with pytest.raises(SignatureMismatchError):
            verifier.verify("p", sig, 1001, current_timestamp=1000)

    def test_timestamped_signature_does_not_verify_without_timestamp(
        self, verifier: SignatureVerifier
    ) -> None:
        sig = verifier.sign("p", 1000).signature

        with pytest.raises(SignatureMismatchError):
            verifier.verify("p", sig)

    def test_verifies_untimestamped_signature(self, verifier: SignatureVerifier) -> None:
        sig = compute_signature("p", "s")

        verifier.verify("p", sig)

    def test_raises_mismatch_for_wrong_secret(self) -> None:
        sig = SignatureVerifier("s").sign("p", 1000).signature

        with pytest.raises(SignatureMismatchError):
            SignatureVerifier("other").verify("p", sig, 1000, current_timestamp=1000)

    def test_raises_mismatch_for_wrong_length(self, verifier: SignatureVerifier) -> None:
        sig = verifier.sign("p", 1000).signature

        with pytest.raises(SignatureMismatchError):
            verifier.verify("p", sig[:-1], 1000, current_timestamp=1000)
        with pytest.raises(SignatureMismatchError):
            verifier.verify("p", sig + "0", 1000, current_timestamp=1000)

    def test_raises_mismatch_for_uppercase_hex(self, verifier: SignatureVerifier) -> None:
        sig = verifier.sign("p", 1000).signature

        with pytest.raises(SignatureMismatchError):
            verifier.verify("p", sig.upper(), 1000, current_timestamp=1000)

    def test_raises_mismatch_for_non_ascii_signature(self, verifier: SignatureVerifier) -> None:
        with pytest.raises(SignatureMismatchError):
            verifier.verify("p", "é" * 64, 1000, current_timestamp=1000)

    def test_accepts_custom_tolerance(self) -> None:
        verifier = SignatureVerifier("s", tolerance_seconds=600)
        sig = verifier.sign("p", 1000).signature

        verifier.verify("p", sig, 1000, current_timestamp=1400)

    def test_is_idempotent(self, verifier: SignatureVerifier) -> None:
        sig = verifier.sign("p", 1000).signature

        for _ in range(2):
            verifier.verify("p", sig, 1000, current_timestamp=1000)
            with pytest.raises(SignatureMismatchError):
                verifier.verify("p", flip(sig, 0), 1000, current_timestamp=1000)

    def test_failures_carry_kind(self, verifier: SignatureVerifier) -> None:
        with pytest.raises(WebhookVerificationError) as exc_info:
            verifier.verify("p", "")

        assert exc_info.value.kind == VerificationFailureKind.MISSING_SIGNATURE


class TestVerifyAndParse:
    @pytest.fixture
    def verifier(self) -> SignatureVerifier:
        return SignatureVerifier("whsec_test_secret")

    def test_returns_decoded_payload(self, verifier: SignatureVerifier) -> None:
        payload = json.dumps({"event": "tree.created", "data": {"tree_id": "t_1"}})
        signed = verifier.sign(payload)

        data = verifier.verify_and_parse(payload, signed.signature, signed.timestamp)

        assert data == {"event": "tree.created", "data": {"tree_id": "t_1"}}

    def test_raises_not_parseable_for_invalid_json(self, verifier: SignatureVerifier) -> None:
        signed = verifier.sign("not json")

        with pytest.raises(PayloadNotParseableError):
            verifier.verify_and_parse("not json", signed.signature, signed.timestamp)

    def test_raises_not_parseable_for_non_object(self, verifier: SignatureVerifier) -> None:
        signed = verifier.sign("[1, 2]")

        with pytest.raises(PayloadNotParseableError):
            verifier.verify_and_parse("[1, 2]", signed.signature, signed.timestamp)

    def test_verifies_before_parsing(self, verifier: SignatureVerifier) -> None:
        signed = verifier.sign("not json")

        with pytest.raises(SignatureMismatchError):
            verifier.verify_and_parse("not json", flip(signed.signature, 5), signed.timestamp)

    def test_propagates_missing_signature(self, verifier: SignatureVerifier) -> None:
        with pytest.raises(MissingSignatureError):
            verifier.verify_and_parse('{"event":"tree.created"}', "")


class TestConstructEvent:
    @pytest.fixture
    def verifier(self) -> SignatureVerifier:
        return SignatureVerifier("whsec_test_secret")

    def test_builds_event(self, verifier: SignatureVerifier) -> None:
        payload = json.dumps(
            {
                "event": "tree.updated",
                "data": {"tree_id": "t_1", "tree_name": "Campaign"},
                "timestamp": "2024-01-01T00:00:00Z",
            }
        )
        signed = verifier.sign(payload)

        event = verifier.construct_event(payload, signed.signature, signed.timestamp)

        assert isinstance(event, WebhookEvent)
        assert event.event_type == "tree.updated"
        assert event.tree_id == "t_1"
        assert event.occurred_at.year == 2024

    def test_raises_not_parseable_for_bad_event_timestamp(
        self, verifier: SignatureVerifier
    ) -> None:
        payload = json.dumps({"event": "tree.updated", "timestamp": "yesterday"})
        signed = verifier.sign(payload)

        with pytest.raises(PayloadNotParseableError):
            verifier.construct_event(payload, signed.signature, signed.timestamp)


class TestExtractWebhookHeaders:
    def test_extracts_from_plain_dict(self) -> None:
        headers = {
            "X-RLNKS-Signature": "abc123",
            "X-RLNKS-Timestamp": "1234567890",
        }

        signature, timestamp = extract_webhook_headers(headers)

        assert signature == "abc123"
        assert timestamp == "1234567890"

    def test_extracts_lowercase_headers(self) -> None:
        headers = {
            "x-rlnks-signature": "abc123",
            "x-rlnks-timestamp": "1234567890",
        }

        signature, timestamp = extract_webhook_headers(headers)

        assert signature == "abc123"
        assert timestamp == "1234567890"

    def test_handles_missing_headers(self) -> None:
        headers: dict[str, str] = {}

        signature, timestamp = extract_webhook_headers(headers)

        assert signature == ""
        assert timestamp is None

    def test_handles_list_values(self) -> None:
        headers = {
            "X-RLNKS-Signature": ["abc123"],
            "X-RLNKS-Timestamp": ["1234567890"],
        }

        signature, timestamp = extract_webhook_headers(headers)

        assert signature == "abc123"
        assert timestamp == "1234567890"
