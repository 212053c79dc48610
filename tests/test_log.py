import pytest
import structlog

from idiomlint.log import configure_logging


@pytest.fixture(autouse=True)
def reset_structlog():
    yield
    structlog.reset_defaults()


def test_configure_logging_json(capsys):
    configure_logging("debug", json=True)

    structlog.get_logger().info("Analysis finished", file="main.cpp", findings=2)

    err = capsys.readouterr().err
    assert '"event": "Analysis finished"' in err
    assert '"findings": 2' in err


def test_configure_logging_filters_below_level(capsys):
    configure_logging("WARNING")

    structlog.get_logger().info("hidden")

    assert "hidden" not in capsys.readouterr().err


def test_unknown_level_is_rejected():
    with pytest.raises(ValueError):
        configure_logging("chatty")


def test_configure_logging_is_exported():
    import idiomlint

    assert idiomlint.configure_logging is configure_logging
