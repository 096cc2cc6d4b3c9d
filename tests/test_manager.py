# SPDX-License-Identifier: MIT
# Copyright (c) 2025 remote-config contributors

"""Tests for the config manager façade and store factories."""

import json

import pytest

from remote_config import (
    ConfigManager,
    ConfigurationError,
    ConsulStore,
    KVPair,
    OperationNotSupportedError,
    VaultStore,
    create_backend_store,
    new_consul_config_manager,
    new_standard_consul_config_manager,
    new_standard_vault_config_manager,
    new_vault_config_manager,
)


def rot13(value: bytes) -> bytes:
    return value.decode().translate(
        str.maketrans(
            "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz",
            "NOPQRSTUVWXYZABCDEFGHIJKLMnopqrstuvwxyzabcdefghijklm",
        )
    ).encode()


class TestCreateBackendStore:
    """Tests for create_backend_store."""

    def test_create_consul_store(self, consul_client, silent_logger):
        store = create_backend_store("consul", ["c1:8500"], client=consul_client, logger=silent_logger)

        assert isinstance(store, ConsulStore)
        assert store.address == "c1:8500"

    def test_create_vault_store(self, vault_client, silent_logger):
        store = create_backend_store(
            "vault", ["http://v1:8200"], client=vault_client, logger=silent_logger, environ={"VAULT_TOKEN": "t"}
        )

        assert isinstance(store, VaultStore)
        assert store.address == "http://v1:8200"

    def test_vault_store_without_machines(self, vault_client, silent_logger):
        store = create_backend_store("vault", client=vault_client, logger=silent_logger, environ={"VAULT_TOKEN": "t"})

        assert store.address == "https://127.0.0.1:8200"

    def test_consul_store_without_machines(self, silent_logger):
        with pytest.raises(ConfigurationError, match="no consul address"):
            create_backend_store("consul", logger=silent_logger)

    def test_unknown_backend(self):
        with pytest.raises(ConfigurationError, match="Unknown backend type: etcd"):
            create_backend_store("etcd", ["127.0.0.1:2379"])


class TestConfigManager:
    """Tests for ConfigManager."""

    @pytest.fixture
    def consul_store(self, consul_client, silent_logger):
        return ConsulStore(["c1"], client=consul_client, logger=silent_logger, environ={}, watch_backoff=0.01)

    def test_passthrough_get(self, consul_store, consul_client):
        consul_client.kv.get.return_value = ("3", [{"Key": "app/db/host", "Value": b'"x"'}])
        manager = ConfigManager(consul_store)

        assert manager.get("app/db") == b'{"host": "x"}'
        assert manager.get_document("app/db") == {"host": "x"}

    def test_get_decrypts(self, consul_store, consul_client):
        consul_client.kv.get.return_value = ("3", [{"Key": "app/db/host", "Value": b'"x"'}])
        manager = ConfigManager(consul_store, decrypt=rot13)

        assert manager.get("app/db") == rot13(b'{"host": "x"}')

    def test_set_encrypts(self, consul_store, consul_client):
        manager = ConfigManager(consul_store, decrypt=rot13, encrypt=rot13)

        manager.set("app/db/host", b"db")

        consul_client.kv.put.assert_called_once_with("app/db/host", b"qo", token=None)

    def test_list_decrypts_values(self, consul_store, consul_client):
        consul_client.kv.get.return_value = ("3", [{"Key": "app/a", "Value": b"nop"}, {"Key": "app/b/", "Value": None}])
        manager = ConfigManager(consul_store, decrypt=rot13)

        assert manager.list("app") == [KVPair("app/a", b"abc"), KVPair("app/b/", None)]

    def test_list_not_supported_passes_through(self, vault_client, silent_logger):
        manager = ConfigManager(VaultStore(environ={"VAULT_TOKEN": "t"}, client=vault_client, logger=silent_logger))

        with pytest.raises(OperationNotSupportedError):
            manager.list("secret/")

    def test_watch_decrypts_each_snapshot(self, consul_store, consul_client):
        consul_client.kv.get.return_value = ("3", [{"Key": "app/v", "Value": b"1"}])
        manager = ConfigManager(consul_store, decrypt=lambda value: value.upper())

        with manager.watch("app") as stream:
            response = stream.get(timeout=2)

        stream.join(timeout=2)
        assert response.value == b'{"V": 1}'

    def test_watch_decrypt_failure_is_error_response(self, consul_store, consul_client):
        consul_client.kv.get.return_value = ("3", [{"Key": "app/v", "Value": b"1"}])

        def broken(value: bytes) -> bytes:
            raise ValueError("bad key ring")

        manager = ConfigManager(consul_store, decrypt=broken)

        with manager.watch("app") as stream:
            responses = [stream.get(timeout=2) for _ in range(2)]

        stream.join(timeout=2)
        assert all(isinstance(response.error, ValueError) for response in responses)

    def test_close_closes_store(self, vault_client, silent_logger):
        manager = ConfigManager(VaultStore(environ={"VAULT_TOKEN": "t"}, client=vault_client, logger=silent_logger))

        manager.close()

        vault_client.adapter.close.assert_called_once()


class TestConfigManagerConstructors:
    """Tests for the manager constructors."""

    def test_standard_consul_manager(self, consul_client, silent_logger):
        manager = new_standard_consul_config_manager(["c1"], client=consul_client, logger=silent_logger)

        assert isinstance(manager.store, ConsulStore)

    def test_consul_manager_with_codecs(self, consul_client, silent_logger):
        consul_client.kv.get.return_value = ("3", [{"Key": "app/k", "Value": b"1"}])
        manager = new_consul_config_manager(["c1"], rot13, client=consul_client, logger=silent_logger)

        assert json.loads(rot13(manager.get("app"))) == {"k": 1}

    def test_standard_vault_manager(self, vault_client, silent_logger):
        manager = new_standard_vault_config_manager(
            ["http://v1:8200"], client=vault_client, logger=silent_logger, environ={"VAULT_TOKEN": "t"}
        )

        assert isinstance(manager.store, VaultStore)

    def test_vault_manager_with_codecs(self, vault_client, silent_logger):
        manager = new_vault_config_manager(
            ["http://v1:8200"], rot13, client=vault_client, logger=silent_logger, environ={"VAULT_TOKEN": "t"}
        )

        assert json.loads(rot13(manager.get("secret/app"))) == {"password": "s3cret"}

    def test_construction_failure_propagates(self, vault_client, silent_logger):
        with pytest.raises(ConfigurationError):
            new_standard_vault_config_manager(["http://v1:8200"], client=vault_client, logger=silent_logger, environ={})
