from nexus.auth.passwords import PasswordHasher, legacy_sha256


def test_hash_is_salted_and_verifies(hasher):
    first = hasher.hash("pw123")
    second = hasher.hash("pw123")

    assert first != second
    assert first.startswith("$argon2id$")
    assert hasher.verify("pw123", first)
    assert hasher.verify("pw123", second)


def test_wrong_password_rejected(hasher):
    stored = hasher.hash("pw123")
    assert not hasher.verify("pw124", stored)
    assert not hasher.verify("", stored)


def test_legacy_sha256_digest_still_verifies(hasher):
    stored = legacy_sha256("pw123")

    assert len(stored) == 64
    assert hasher.verify("pw123", stored)
    assert not hasher.verify("nope", stored)
    assert hasher.needs_rehash(stored)


def test_fresh_hash_does_not_need_rehash(hasher):
    assert not hasher.needs_rehash(hasher.hash("pw123"))


def test_stronger_parameters_flag_old_hashes(hasher):
    stronger = PasswordHasher(time_cost=2, memory_cost=2048, parallelism=1)
    assert stronger.needs_rehash(hasher.hash("pw123"))


def test_garbage_hash_does_not_verify(hasher):
    assert not hasher.verify("pw123", "not-a-hash")
    assert hasher.needs_rehash("not-a-hash")
