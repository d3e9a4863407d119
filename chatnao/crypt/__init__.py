"""
The `crypt` package provides the password utilities behind signup and login.

Contents
--------
- encrypt_decrypt
    Utility module exposing the `EncryptionDec` class:
        * `hash_password` — hashes plaintext passwords using bcrypt at the configured cost factor
        * `check_passwords` — verifies a plaintext password against a stored hash
        * `dummy_hash` — a fixed hash at the same cost, checked when an email is unknown so both
          login failure paths do the same bcrypt work
"""
