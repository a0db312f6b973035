"""Pytest configuration and fixtures."""

import pytest

from flowprint.canonical import Canonicalizer, PropertyDecryptor
from flowprint.core.config import MaskingSettings, Settings, get_settings
from flowprint.core.factory import FingerprintFactory
from flowprint.masking import KeyDerivationCache, SensitiveValueEncoder, reset_key_derivation_cache
from flowprint.parsers import FlowDocumentParser

TEST_PASSPHRASE = "test-passphrase-0123456789"


class ReversingDecryptor(PropertyDecryptor):
    """Stand-in for the encryption service: ciphertext is the reversed plaintext."""

    def __init__(self):
        self.calls = 0

    def decrypt(self, ciphertext: str) -> str:
        self.calls += 1
        return ciphertext[::-1]


def cheap_masking_settings(passphrase: str = TEST_PASSPHRASE, **overrides) -> MaskingSettings:
    """Masking settings with Argon2 parameters small enough for unit tests."""
    params = {"time_cost": 1, "memory_cost_kib": 1024, "parallelism": 1}
    params.update(overrides)
    return MaskingSettings(passphrase=passphrase, **params)


@pytest.fixture(autouse=True)
def isolate_process_state():
    """Drop the process-wide key cache and cached settings around each test."""
    reset_key_derivation_cache()
    get_settings.cache_clear()
    yield
    reset_key_derivation_cache()
    get_settings.cache_clear()


@pytest.fixture
def settings() -> Settings:
    """Create test settings."""
    return Settings(masking=cheap_masking_settings())


@pytest.fixture
def key_cache(settings: Settings) -> KeyDerivationCache:
    return KeyDerivationCache(settings.masking)


@pytest.fixture
def encoder(key_cache: KeyDerivationCache) -> SensitiveValueEncoder:
    return SensitiveValueEncoder(key_cache)


@pytest.fixture
def decryptor() -> ReversingDecryptor:
    return ReversingDecryptor()


@pytest.fixture
def canonicalizer(encoder: SensitiveValueEncoder, decryptor: ReversingDecryptor, settings: Settings) -> Canonicalizer:
    return Canonicalizer(encoder, decryptor, settings.canonical)


@pytest.fixture
def parser(settings: Settings) -> FlowDocumentParser:
    return FlowDocumentParser(settings.parser)


@pytest.fixture
def factory(settings: Settings, decryptor: ReversingDecryptor, key_cache: KeyDerivationCache) -> FingerprintFactory:
    return FingerprintFactory(settings, decryptor=decryptor, key_cache=key_cache)


@pytest.fixture
def initial_flow() -> bytes:
    """A small flow definition with one sensitive property."""
    return b"""
flowController:
  encodingVersion: "1.4"
  maxTimerDrivenThreadCount: 10
  rootGroup:
    id: root-group
    name: NiFi Flow
    position: {x: 0.0, y: 0.0}
    processor:
      - id: proc-1
        name: FetchDatabaseRows
        class: org.example.QueryDatabaseTable
        schedulingPeriod: 30 sec
        property:
          Database Connection URL: jdbc:postgresql://db:5432/flows
          Database User: flow_reader
          password: originalPlaintextPassword
      - id: proc-2
        name: PutFile
        class: org.example.PutFile
        property:
          Directory: /data/out
          Conflict Resolution Strategy: replace
    connection:
      id: conn-1
      sourceId: proc-1
      destinationId: proc-2
      backPressureObjectThreshold: 10000
"""
