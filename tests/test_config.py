from bottling.core import config


def test_env_int_tuple_parses_sorted_unique_sizes(monkeypatch):
    monkeypatch.setenv("COMPONENT_SIZES", "100, 30,abc, 50,30,-5")
    assert config._env_int_tuple("COMPONENT_SIZES", (1,)) == (30, 50, 100)


def test_env_int_tuple_falls_back_to_default(monkeypatch):
    monkeypatch.setenv("COMPONENT_SIZES", "none")
    assert config._env_int_tuple("COMPONENT_SIZES", (30, 50)) == (30, 50)
    monkeypatch.delenv("COMPONENT_SIZES")
    assert config._env_int_tuple("COMPONENT_SIZES", (30, 50)) == (30, 50)


def test_env_int_respects_minimum(monkeypatch):
    monkeypatch.setenv("SKU_NAME_LENGTH", "1")
    assert config._env_int("SKU_NAME_LENGTH", 8, min_value=3) == 3
    monkeypatch.setenv("SKU_NAME_LENGTH", "twelve")
    assert config._env_int("SKU_NAME_LENGTH", 8, min_value=3) == 8


def test_configured_size_check(settings):
    assert settings.is_configured_size(50)
    assert not settings.is_configured_size(75)
