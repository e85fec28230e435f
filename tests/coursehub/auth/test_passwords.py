from coursehub.auth.passwords import hash_password, verify_password


def test_hash_password_uses_werkzeug_format() -> None:
    hashed = hash_password('secret-pass', method='pbkdf2:sha256:1000')

    assert hashed.startswith('pbkdf2:sha256:1000$')
    assert 'secret-pass' not in hashed


def test_hash_password_defaults_to_salted_scrypt() -> None:
    first = hash_password('secret-pass')
    second = hash_password('secret-pass')

    assert first.startswith('scrypt:')
    assert first != second
    assert verify_password('secret-pass', first)


def test_verify_password_rejects_wrong_password() -> None:
    hashed = hash_password('secret-pass', method='pbkdf2:sha256:1000')

    assert verify_password('secret-pass', hashed)
    assert not verify_password('other-pass', hashed)


def test_verify_password_rejects_unusable_hashes() -> None:
    assert not verify_password('secret-pass', '')
    assert not verify_password('secret-pass', 'not-a-hash')
