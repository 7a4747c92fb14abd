import logging

import pytest

from consistent_hash_ring import ConsistentHashRing
from ring_config import RingConfig


def test_defaults_are_valid():
    config = RingConfig()
    config.validate()
    assert config.replicas == 3
    assert config.level == logging.INFO


def test_from_env(monkeypatch):
    monkeypatch.setenv('RING_REPLICAS', '16')
    monkeypatch.setenv('RING_HASH', 'sha1')
    monkeypatch.setenv('RING_COLLISION_POLICY', 'probe')
    monkeypatch.setenv('LOG_LEVEL', 'debug')
    config = RingConfig.from_env()
    config.validate()
    assert config.replicas == 16
    assert config.hash_name == 'sha1'
    assert config.seed == 0
    assert config.collision_policy == 'probe'
    assert config.level == logging.DEBUG


def test_from_file(tmp_path):
    path = tmp_path / 'ring.yaml'
    path.write_text('replicas: 8\nseed: 7\n')
    config = RingConfig.from_file(str(path))
    assert config.replicas == 8
    assert config.seed == 7
    assert config.hash_name == 'xxh32'


def test_from_file_rejects_unknown_fields(tmp_path):
    path = tmp_path / 'ring.yaml'
    path.write_text('replicas: 8\nweight: 2\n')
    with pytest.raises(ValueError, match='weight'):
        RingConfig.from_file(str(path))


@pytest.mark.parametrize('overrides', [
    {'replicas': 0},
    {'hash_name': 'md5'},
    {'hash_name': 'sha1', 'seed': 3},
    {'collision_policy': 'ignore'},
    {'log_level': 'LOUD'},
    {'replicas': 'three'},
    {'replicas': True},
    {'seed': '1'},
    {'hash_name': ['sha1']},
    {'log_level': 3},
])
def test_validate_rejects(overrides):
    with pytest.raises(ValueError):
        RingConfig(**overrides).validate()


def test_ring_from_config():
    ring = ConsistentHashRing.from_config(RingConfig(replicas=5, hash_name='sha1'))
    ring.add_node('ServerA')
    assert ring.stats() == {'nodes': 1, 'positions': 5, 'replicas': 5}

    with pytest.raises(ValueError):
        ConsistentHashRing.from_config(RingConfig(replicas=-1))


@pytest.mark.parametrize('document', ['5\n', '- replicas\n- 3\n', 'just text\n'])
def test_from_file_rejects_non_mapping(tmp_path, document):
    path = tmp_path / 'ring.yaml'
    path.write_text(document)
    with pytest.raises(ValueError, match='mapping'):
        RingConfig.from_file(str(path))


def test_from_file_wrong_type_fails_validation(tmp_path):
    path = tmp_path / 'ring.yaml'
    path.write_text('replicas: three\n')
    config = RingConfig.from_file(str(path))
    with pytest.raises(ValueError, match='replicas'):
        ConsistentHashRing.from_config(config)


def test_level_rejects_unknown_names():
    assert RingConfig(log_level='warning').level == logging.WARNING
    with pytest.raises(ValueError):
        RingConfig(log_level='LOUD').level
