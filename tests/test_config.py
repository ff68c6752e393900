import pytest

from imgview.config import (
    GENERAL_SECTION,
    Config,
    ConfigError,
    InvalidKeyError,
    InvalidSectionError,
    InvalidValueError,
    config_paths,
    to_bool,
    to_color,
)


def _recorder(store, keys):
    def loader(key, value):
        if key not in keys:
            raise InvalidKeyError(key)
        if value == "bad":
            raise InvalidValueError(value)
        store[key] = value

    return loader


@pytest.fixture
def setup():
    general = {}
    font = {}
    config = Config()
    config.add_loader(GENERAL_SECTION, _recorder(general, {"scale"}))
    config.add_loader("font", _recorder(font, {"size", "name"}))
    return config, general, font


@pytest.mark.parametrize("text,expected", [("yes", True), ("true", True), ("no", False), ("false", False)])
def test_to_bool(text, expected):
    assert to_bool(text) is expected


@pytest.mark.parametrize("text", ["YES", "1", "", "on"])
def test_to_bool_invalid(text):
    with pytest.raises(InvalidValueError):
        to_bool(text)


def test_to_color_with_hash():
    assert to_color("#ff0000") == 0xFF0000


def test_to_color_full_argb():
    assert to_color("ffffffff") == 0xFFFFFFFF


@pytest.mark.parametrize("text", ["zz", "", "#", "1ffffffff", "-1"])
def test_to_color_invalid(text):
    with pytest.raises(InvalidValueError):
        to_color(text)


def test_set_dispatches_to_section(setup):
    config, general, font = setup
    config.set("font", "size", "12")
    assert font == {"size": "12"}
    assert general == {}


def test_set_unknown_section(setup):
    config, _, _ = setup
    with pytest.raises(InvalidSectionError):
        config.set("nowhere", "size", "1")


def test_set_empty_section(setup):
    config, _, _ = setup
    with pytest.raises(InvalidSectionError):
        config.set("", "size", "1")
    with pytest.raises(InvalidSectionError):
        config.set(None, "size", "1")


def test_set_invalid_key_and_value(setup):
    config, _, font = setup
    with pytest.raises(InvalidKeyError):
        config.set("font", "weight", "1")
    with pytest.raises(InvalidValueError):
        config.set("font", "size", "bad")
    assert font == {}


def test_general_section_tries_every_loader():
    extra = {}
    config = Config()
    config.add_loader(GENERAL_SECTION, _recorder({}, {"scale"}))
    config.add_loader(GENERAL_SECTION, _recorder(extra, {"background"}))
    config.set(GENERAL_SECTION, "background", "none")
    assert extra == {"background": "none"}


def test_other_section_stops_at_first_loader():
    second = {}
    config = Config()
    config.add_loader("font", _recorder({}, {"size"}))
    config.add_loader("font", _recorder(second, {"name"}))
    with pytest.raises(InvalidKeyError):
        config.set("font", "name", "mono")
    assert second == {}


def test_command(setup):
    config, general, font = setup
    config.command("font.name=mono=space")
    config.command("general.scale=fit")
    assert font == {"name": "mono=space"}
    assert general == {"scale": "fit"}


@pytest.mark.parametrize("cmd", ["font", "fontsize=1", "font.size", "a" * 32 + ".size=1", "font." + "k" * 32 + "=1"])
def test_command_format_error(setup, cmd):
    config, _, _ = setup
    with pytest.raises(ConfigError):
        config.command(cmd)


def test_command_name_length_limit():
    store = {}
    config = Config()
    section = "s" * 31
    config.add_loader(section, _recorder(store, {"k" * 31}))
    config.command(f"{section}.{'k' * 31}=v")
    assert store == {"k" * 31: "v"}


def test_load_file(tmp_path, setup):
    config, general, font = setup
    path = tmp_path / "config"
    path.write_text(
        "# comment\n"
        "\n"
        "orphan = 1\n"
        "[font]\n"
        "  size  =   14  \n"
        "name=bad\n"
        "garbage line\n"
        "[]\n"
        "[general]\n"
        "scale = fill\n"
    )
    problems = config.load_file(path)
    assert font == {"size": "14"}
    assert general == {"scale": "fill"}
    assert len(problems) == 4
    assert problems[0].startswith(f"Invalid configuration in {path}:3")
    assert problems[1].startswith(f"Invalid configuration in {path}:6")
    assert problems[2] == f"Invalid key=value format in {path}:7"
    assert problems[3] == f"Invalid section define in {path}:8"


def test_load_file_missing(tmp_path, setup):
    config, _, _ = setup
    with pytest.raises(OSError):
        config.load_file(tmp_path / "absent")


def test_config_paths_order():
    env = {"XDG_CONFIG_HOME": "/x", "HOME": "/h", "XDG_CONFIG_DIRS": "/a:/b"}
    paths = list(config_paths(env))
    assert paths[0] == "/x/imgview/config"
    assert paths[1] == "/h/.config/imgview/config"
    assert paths[2] == "/a/imgview/config"
    assert len(paths) == 4


def test_config_paths_skips_empty_variables():
    paths = list(config_paths({"HOME": "", "XDG_CONFIG_HOME": ""}))
    assert paths == ["/etc/xdg/imgview/config"]


def test_load_prefers_xdg_home(tmp_path, setup, capsys):
    config, _, font = setup
    xdg = tmp_path / "xdg"
    (xdg / "imgview").mkdir(parents=True)
    (xdg / "imgview" / "config").write_text("[font]\nsize=9\nbroken\n")
    home = tmp_path / "home"
    (home / ".config" / "imgview").mkdir(parents=True)
    (home / ".config" / "imgview" / "config").write_text("[font]\nsize=20\n")

    loaded = config.load({"XDG_CONFIG_HOME": str(xdg), "HOME": str(home)})
    assert loaded == f"{xdg}/imgview/config"
    assert font == {"size": "9"}
    assert "Invalid key=value format" in capsys.readouterr().err


def test_load_falls_back_to_home(tmp_path, setup):
    config, _, font = setup
    home = tmp_path / "home"
    (home / ".config" / "imgview").mkdir(parents=True)
    (home / ".config" / "imgview" / "config").write_text("[font]\nname=serif\n")
    loaded = config.load({"XDG_CONFIG_HOME": str(tmp_path / "none"), "HOME": str(home)})
    assert loaded == f"{home}/.config/imgview/config"
    assert font == {"name": "serif"}