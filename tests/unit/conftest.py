"""Pytest fixtures and plugins."""

import logging
from typing import Tuple

import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

from classic_consumer.config import ConsumerEnv

KeyPair = Tuple[str, str]


def pytest_configure(config):
    logging.disable(logging.NOTSET)
    logging.getLogger().setLevel(logging.DEBUG)


@pytest.fixture(scope="session")
def key_pair() -> KeyPair:
    """Supply a freshly generated RSA key pair as PEM text: (private, public)."""
    key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    private_pem = key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    ).decode("utf-8")
    public_pem = key.public_key().public_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    ).decode("utf-8")
    return private_pem, public_pem


@pytest.fixture
def config(key_pair: KeyPair) -> ConsumerEnv:
    """Supply a stock ClassicConsumer configuration, without the replication delay."""
    private_pem, public_pem = key_pair
    return ConsumerEnv(
        ISSUER="classic-consumer-testing",
        PRIVATE_KEY=private_pem,
        PUBLIC_KEY=public_pem,
        CLASSIC_OAUTH_CLIENT_KEY="cid",
        ACCESS_TOKEN_URL="auth.example.com/token",
        USER_AGENT="classic-consumer/testing",
        TOKEN_REPLICATION_DELAY_SECONDS=0.0,
    )
