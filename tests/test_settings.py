import pytest

from aigc_history.config.settings import Settings


def test_defaults():
    settings = Settings.from_env({})
    assert settings.server.host == "0.0.0.0"
    assert settings.server.port == 8080
    assert settings.database.nodes == ("localhost:9042",)
    assert settings.database.keyspace == "aigc_history"
    assert settings.database.username is None
    assert settings.database.password is None
    assert settings.s3.endpoint == "http://localhost:9000"
    assert settings.s3.bucket == "aigc-images"
    assert settings.s3.region == "us-east-1"
    assert settings.app.max_lineage_depth == 1000
    assert settings.app.max_batch_size == 100


def test_overrides():
    env = {
        "SERVER_HOST": "127.0.0.1",
        "SCYLLA_NODES": "db1:9042, db2:9042 ,db3:9042",
        "SCYLLA_KEYSPACE": "other_ks",
        "SCYLLA_USERNAME": "scylla_user",
        "S3_BUCKET": "bucket-x",
    }
    settings = Settings.from_env(env)
    assert settings.server.host == "127.0.0.1"
    assert settings.database.nodes == ("db1:9042", "db2:9042", "db3:9042")
    assert settings.database.keyspace == "other_ks"
    assert settings.database.username == "scylla_user"
    assert settings.s3.bucket == "bucket-x"


def test_port_parsing():
    assert Settings.from_env({"SERVER_PORT": "9090"}).server.port == 9090
    assert Settings.from_env({"SERVER_PORT": "+9090"}).server.port == 9090


@pytest.mark.parametrize("bad", ["abc", "", "70000", "-1", " 80", "+"])
def test_invalid_port(bad):
    with pytest.raises(ValueError, match="Invalid SERVER_PORT"):
        Settings.from_env({"SERVER_PORT": bad})


@pytest.mark.parametrize("bad", ["bad", "", "-5", "1.5"])
def test_invalid_app_sizes_fall_back(bad):
    settings = Settings.from_env({"MAX_LINEAGE_DEPTH": bad, "MAX_BATCH_SIZE": bad})
    assert settings.app.max_lineage_depth == 1000
    assert settings.app.max_batch_size == 100


def test_app_sizes_read():
    settings = Settings.from_env({"MAX_LINEAGE_DEPTH": "50", "MAX_BATCH_SIZE": "7"})
    assert settings.app.max_lineage_depth == 50
    assert settings.app.max_batch_size == 7


def test_reads_process_environment(monkeypatch):
    monkeypatch.setenv("SERVER_HOST", "10.0.0.5")
    monkeypatch.setenv("SCYLLA_KEYSPACE", "env_ks")
    settings = Settings.from_env()
    assert settings.server.host == "10.0.0.5"
    assert settings.database.keyspace == "env_ks"