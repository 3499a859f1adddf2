"""
Unit Tests for OTP Generation, Hashing and the Record Store
===========================================================
"""

import threading
from collections import Counter
from unittest.mock import patch

import pytest

from otp_shield.exceptions import EntropyUnavailable, InvalidIdentifier
from otp_shield.ip_block import BlockReason
from otp_shield.otp import (
    CredentialHasher,
    FINGERPRINT_LENGTH,
    OTPStore,
    VerifyStatus,
    code_range,
    fingerprint_device,
    generate_code,
)

PHONE = "15550100"
IP = "203.0.113.7"
UA = "Mozilla/5.0 (Linux; Android 14)"


class TestCodeGenerator:
    """Tests for secure code generation."""

    def test_default_length_and_range(self):
        """Codes are six digits between 100000 and 999999."""
        for _ in range(500):
            code = generate_code()
            assert len(code) == 6
            assert code.isdigit()
            assert 100000 <= int(code) <= 999999

    @pytest.mark.parametrize("length", [4, 8, 10])
    def test_configured_length(self, length):
        code = generate_code(length)

        assert len(code) == length
        assert int(code) in code_range(length)

    def test_no_detectable_bias(self):
        """Leading and trailing digits are roughly uniform over a large sample."""
        samples = [generate_code() for _ in range(90_000)]

        leading = Counter(code[0] for code in samples)
        trailing = Counter(code[-1] for code in samples)

        # Expected 10000 per leading digit (1-9), 9000 per trailing digit (0-9).
        # Tolerances are ~6 standard deviations.
        assert set(leading) == set("123456789")
        for count in leading.values():
            assert abs(count - 10_000) < 600
        assert set(trailing) == set("0123456789")
        for count in trailing.values():
            assert abs(count - 9_000) < 600

    def test_entropy_failure_is_fatal(self):
        """A broken random source raises instead of degrading."""
        with patch("otp_shield.otp.generator.secrets.randbelow", side_effect=OSError("no urandom")):
            with pytest.raises(EntropyUnavailable) as exc_info:
                generate_code()

        assert isinstance(exc_info.value.__cause__, OSError)


class TestCredentialHasher:
    """Tests for code hashing and comparison."""

    def test_hash_is_deterministic(self):
        hasher = CredentialHasher()

        assert hasher.hash("482913") == hasher.hash("482913")
        assert len(hasher.hash("482913")) == 32

    def test_hash_never_contains_plaintext(self):
        hasher = CredentialHasher()

        assert b"482913" not in hasher.hash("482913")

    def test_compare(self):
        hasher = CredentialHasher()
        stored = hasher.hash("482913")

        assert hasher.compare(hasher.hash("482913"), stored) is True
        assert hasher.compare(hasher.hash("482914"), stored) is False
        assert hasher.verify("482913", stored) is True

    def test_different_peppers_give_different_digests(self):
        assert CredentialHasher(b"a" * 32).hash("1234") != CredentialHasher(b"b" * 32).hash("1234")


class TestDeviceFingerprint:
    """Tests for device fingerprinting."""

    def test_stable_and_short(self):
        first = fingerprint_device(UA, IP)

        assert first == fingerprint_device(UA, IP)
        assert len(first) == FINGERPRINT_LENGTH

    def test_changes_with_ip(self):
        assert fingerprint_device(UA, IP) != fingerprint_device(UA, "198.51.100.1")


class TestIssuance:
    """Tests for OTPStore.issue."""

    def test_issue_returns_code_and_stores_metadata(self, store, clock):
        code = store.issue(PHONE, IP, UA)
        info = store.get_record_info(PHONE)

        assert len(code) == 6
        assert info.issued_at_ms == clock()
        assert info.attempts == 0
        assert info.source_ip == IP
        assert info.device_id == fingerprint_device(UA, IP)

    def test_record_never_holds_plaintext(self, fixed_store):
        code = fixed_store.issue(PHONE, IP, UA)
        record = fixed_store._records[PHONE]

        assert code == "482913"
        assert code not in repr(record)
        assert record.code_hash != code.encode()

    def test_second_issue_invalidates_first(self, ip_blocks, config, clock):
        codes = iter(["111111", "222222"])
        store = OTPStore(ip_blocks, config=config, clock=clock, code_generator=lambda n: next(codes))

        first = store.issue(PHONE, IP, UA)
        second = store.issue(PHONE, IP, UA)

        assert store.verify(PHONE, first, IP, UA).status in (VerifyStatus.MISMATCH, VerifyStatus.NOT_FOUND)
        assert store.verify(PHONE, second, IP, UA).status == VerifyStatus.SUCCESS

    def test_rejects_unnormalized_identifier(self, store):
        with pytest.raises(InvalidIdentifier):
            store.issue("+1 555-0100", IP, UA)

        with pytest.raises(InvalidIdentifier):
            store.verify("", "123456", IP, UA)


class TestVerification:
    """Tests for the verification state machine."""

    def test_success_then_not_found(self, fixed_store):
        """A code verifies exactly once."""
        fixed_store.issue(PHONE, IP, UA)

        assert fixed_store.verify(PHONE, "482913", IP, UA).status == VerifyStatus.SUCCESS
        assert fixed_store.verify(PHONE, "482913", IP, UA).status == VerifyStatus.NOT_FOUND

    def test_unknown_identifier(self, store):
        assert store.verify(PHONE, "000000", IP, UA).status == VerifyStatus.NOT_FOUND

    def test_mismatch_counts_attempts(self, fixed_store):
        fixed_store.issue(PHONE, IP, UA)

        result = fixed_store.verify(PHONE, "000000", IP, UA)

        assert result.status == VerifyStatus.MISMATCH
        assert result.attempts_remaining == 2
        assert fixed_store.get_record_info(PHONE).attempts == 1

    def test_attempt_ceiling_scenario(self, fixed_store, ip_blocks, config):
        """Three wrong codes, then even the right one is refused and the IP blocked."""
        fixed_store.issue(PHONE, IP, UA)

        statuses = [fixed_store.verify(PHONE, "000000", IP, UA).status for _ in range(3)]
        final = fixed_store.verify(PHONE, "482913", IP, UA)

        assert statuses == [VerifyStatus.MISMATCH] * 3
        assert final.status == VerifyStatus.ATTEMPTS_EXCEEDED
        assert final.blocked_ms == config.attempt_block_ms

        block = ip_blocks.is_blocked(IP)
        assert block.blocked is True
        assert block.reason == BlockReason.ATTEMPTS_EXCEEDED
        assert block.remaining_ms == config.attempt_block_ms

        # Record is gone for good
        assert fixed_store.verify(PHONE, "482913", IP, UA).status == VerifyStatus.NOT_FOUND

    def test_expired_regardless_of_code(self, fixed_store, clock, config):
        fixed_store.issue(PHONE, IP, UA)
        clock.advance(config.otp_ttl_ms + 1)

        assert fixed_store.verify(PHONE, "482913", IP, UA).status == VerifyStatus.EXPIRED
        assert fixed_store.verify(PHONE, "482913", IP, UA).status == VerifyStatus.NOT_FOUND

    def test_expiry_boundary(self, fixed_store, clock, config):
        """Valid strictly before issued_at + TTL."""
        fixed_store.issue(PHONE, IP, UA)
        clock.advance(config.otp_ttl_ms - 1)
        assert fixed_store.verify(PHONE, "000000", IP, UA).status == VerifyStatus.MISMATCH

        clock.advance(1)
        assert fixed_store.verify(PHONE, "482913", IP, UA).status == VerifyStatus.EXPIRED

    def test_device_mismatch_is_only_a_signal(self, fixed_store):
        """Verifying from another network still succeeds."""
        fixed_store.issue(PHONE, IP, UA)

        result = fixed_store.verify(PHONE, "482913", "198.51.100.20", "OtherAgent/1.0")

        assert result.status == VerifyStatus.SUCCESS
        assert result.device_mismatch is True

    def test_sweep_removes_expired_only(self, store, clock, config):
        store.issue(PHONE, IP, UA)
        clock.advance(config.otp_ttl_ms)
        store.issue("15550101", IP, UA)

        assert store.sweep() == 1
        assert store.get_record_info(PHONE) is None
        assert store.get_record_info("15550101") is not None


class TestConcurrentVerification:
    """Parallel verifications must not double-admit."""

    def _race(self, store, code, workers=16):
        barrier = threading.Barrier(workers)
        results = []
        results_lock = threading.Lock()

        def attempt():
            barrier.wait()
            status = store.verify(PHONE, code, IP, UA).status
            with results_lock:
                results.append(status)

        threads = [threading.Thread(target=attempt) for _ in range(workers)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()
        return Counter(results)

    def test_one_success_on_last_attempt(self, fixed_store, config):
        fixed_store.issue(PHONE, IP, UA)
        for _ in range(config.max_attempts - 1):
            fixed_store.verify(PHONE, "000000", IP, UA)

        outcomes = self._race(fixed_store, "482913")

        assert outcomes[VerifyStatus.SUCCESS] == 1
        assert outcomes[VerifyStatus.NOT_FOUND] == 15

    def test_one_processed_wrong_guess_on_last_attempt(self, fixed_store, config):
        fixed_store.issue(PHONE, IP, UA)
        for _ in range(config.max_attempts - 1):
            fixed_store.verify(PHONE, "000000", IP, UA)

        outcomes = self._race(fixed_store, "111111")

        assert outcomes[VerifyStatus.MISMATCH] == 1
        assert outcomes[VerifyStatus.ATTEMPTS_EXCEEDED] == 1
        assert outcomes[VerifyStatus.NOT_FOUND] == 14
        assert outcomes[VerifyStatus.SUCCESS] == 0
