from config_loader import load_config


def test_missing_file_uses_defaults(tmp_path, monkeypatch):
    for var in ("LOG_LEVEL", "BILLING_MARKUP_RATE", "BILL_UPLOADS_DIR", "DB_POOL_MAX"):
        monkeypatch.delenv(var, raising=False)
    cfg = load_config(str(tmp_path / "nope.yml"))
    assert cfg["billing"]["markup_rate"] == "0.10"
    assert cfg["database"]["pool_max"] == 10


def test_file_then_env_overrides(tmp_path, monkeypatch):
    path = tmp_path / "config.yml"
    path.write_text("logging:\n  level: DEBUG\nbilling:\n  uploads_dir: /srv/uploads\n", encoding="utf-8")
    monkeypatch.setenv("BILLING_MARKUP_RATE", "0.12")
    monkeypatch.setenv("DB_POOL_MAX", "25")
    monkeypatch.setenv("CORS_ORIGINS", "https://a.test, https://b.test")
    monkeypatch.delenv("LOG_LEVEL", raising=False)
    monkeypatch.delenv("BILL_UPLOADS_DIR", raising=False)

    cfg = load_config(str(path))

    assert cfg["logging"]["level"] == "DEBUG"
    assert cfg["billing"]["uploads_dir"] == "/srv/uploads"
    assert cfg["billing"]["markup_rate"] == "0.12"
    assert cfg["database"]["pool_max"] == 25
    assert cfg["database"]["pool_min"] == 1
    assert cfg["app"]["cors"]["origins"] == ["https://a.test", "https://b.test"]


def test_bad_pool_size_ignored(tmp_path, monkeypatch):
    monkeypatch.setenv("DB_POOL_MAX", "lots")
    cfg = load_config(str(tmp_path / "nope.yml"))
    assert cfg["database"]["pool_max"] == 10
