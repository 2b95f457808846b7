import logging

import pytest

from storefront.app.config import Settings
from storefront.app.logging_config import configure_logging


@pytest.fixture
def restore_loggers():
    names = ["storefront.app.sensors", "storefront.app.admin", "uvicorn.access"]
    before = {name: logging.getLogger(name).level for name in names}
    root_level = logging.getLogger().level
    yield
    for name, level in before.items():
        logging.getLogger(name).setLevel(level)
    logging.getLogger().setLevel(root_level)


def test_module_levels_override_root(tmp_path, restore_loggers):
    configure_logging("info", tmp_path, module_levels={"storefront.app.sensors": "debug"})

    assert logging.getLogger().level == logging.INFO
    assert logging.getLogger("storefront.app.sensors").level == logging.DEBUG
    assert logging.getLogger("storefront.app.sensors.motion").isEnabledFor(logging.DEBUG)
    assert not logging.getLogger("storefront.app.admin").isEnabledFor(logging.DEBUG)
    assert logging.getLogger("uvicorn.access").level == logging.WARNING


def test_module_levels_from_environment(tmp_path, monkeypatch, restore_loggers):
    monkeypatch.setenv("LOG_MODULE_LEVELS", '{"storefront.app.admin": "WARNING"}')
    settings = Settings(_env_file=None, data_directory=tmp_path / "data", log_directory=tmp_path / "logs")
    assert settings.log_module_levels == {"storefront.app.admin": "WARNING"}

    configure_logging(settings.log_level, settings.log_directory, module_levels=settings.log_module_levels)
    assert logging.getLogger("storefront.app.admin").level == logging.WARNING
    assert (tmp_path / "logs").is_dir()
