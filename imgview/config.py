"""Program configuration: named sections of key/value settings and their loaders."""

from __future__ import annotations

import os
import re
import sys
from collections.abc import Callable, Iterator, Mapping

GENERAL_SECTION = "general"

# Longest section or key name accepted by a "section.key=value" command.
_NAME_MAX = 31

# Candidate config file locations: environment variable with a base
# directory (or None for a fixed path) and the constant tail of the path.
_LOCATIONS = (
    ("XDG_CONFIG_HOME", "/imgview/config"),
    ("HOME", "/.config/imgview/config"),
    ("XDG_CONFIG_DIRS", "/imgview/config"),
    (None, "/etc/xdg/imgview/config"),
)

_HEX_COLOR = re.compile(r"(?:0[xX])?[0-9a-fA-F]+")

Loader = Callable[[str, str], None]


class ConfigError(Exception):
    """A configuration setting could not be applied."""


class InvalidSectionError(ConfigError):
    """No loader is registered for the section."""


class InvalidKeyError(ConfigError):
    """The section does not know the key."""


class InvalidValueError(ConfigError, ValueError):
    """The value has an invalid format for the key."""


class Config:
    """Registry of section loaders that settings are dispatched to.

    A loader is called as ``loader(key, value)`` and raises
    :class:`InvalidKeyError` or :class:`InvalidValueError` when it
    rejects the setting.
    """

    def __init__(self) -> None:
        self._loaders: list[tuple[str, Loader]] = []

    def add_loader(self, section: str, loader: Loader) -> None:
        """Register a loader for a section; several may share one section."""
        self._loaders.append((section, loader))

    def set(self, section: str | None, key: str, value: str) -> None:
        """Apply one setting, raising a ConfigError subclass on failure."""
        if not section:
            raise InvalidSectionError("Empty section name")

        error: type[ConfigError] | None = InvalidSectionError
        for name, loader in self._loaders:
            if name != section:
                continue
            try:
                loader(key, value)
            except InvalidKeyError:
                error = InvalidKeyError
                if name == GENERAL_SECTION:
                    continue  # other general loaders may know the key
                break
            except InvalidValueError:
                error = InvalidValueError
                break
            else:
                error = None
                break

        if error is None:
            return
        if error is InvalidSectionError:
            raise InvalidSectionError(f'Invalid section "{section}"')
        if error is InvalidKeyError:
            raise InvalidKeyError(f'Invalid key "{key}"')
        raise InvalidValueError(f'Invalid value "{value}"')

    def command(self, cmd: str) -> None:
        """Apply a setting given as ``section.key=value``."""
        section, dot, rest = cmd.partition(".")
        if not dot or len(section) > _NAME_MAX:
            raise ConfigError(f'Invalid format: "{cmd}"')
        key, equals, value = rest.partition("=")
        if not equals or len(key) > _NAME_MAX:
            raise ConfigError(f'Invalid format: "{cmd}"')
        self.set(section, key, value)

    def load_file(self, path: str | os.PathLike[str]) -> list[str]:
        """Load settings from a file.

        Raises OSError if the file cannot be opened. Malformed or rejected
        lines are skipped; a description of each is returned.
        """
        problems: list[str] = []
        section: str | None = None
        with open(path, encoding="utf-8", errors="replace") as stream:
            for number, raw in enumerate(stream, start=1):
                line = raw.strip()
                if not line or line.startswith("#"):
                    continue

                if line.startswith("["):
                    name, closed, _ = line[1:].partition("]")
                    if not closed or not name:
                        problems.append(f"Invalid section define in {path}:{number}")
                    else:
                        section = name
                    continue

                key, equals, value = line.partition("=")
                if not equals:
                    problems.append(f"Invalid key=value format in {path}:{number}")
                    continue

                try:
                    self.set(section, key.rstrip(), value.lstrip())
                except ConfigError as err:
                    problems.append(f"Invalid configuration in {path}:{number}: {err}")
        return problems

    def load(self, environ: Mapping[str, str] | None = None) -> str | None:
        """Load the first readable config file; return its path or None."""
        for path in config_paths(os.environ if environ is None else environ):
            try:
                problems = self.load_file(path)
            except OSError:
                continue
            for problem in problems:
                print(problem, file=sys.stderr)
            return path
        return None


def config_paths(environ: Mapping[str, str]) -> Iterator[str]:
    """Yield candidate config file paths in order of preference."""
    for variable, tail in _LOCATIONS:
        if variable is None:
            yield tail
            continue
        prefix = environ.get(variable, "")
        if not prefix:
            continue
        # only the first directory of a colon separated list is used
        yield prefix.split(":", 1)[0] + tail


def to_bool(text: str) -> bool:
    """Convert yes/true/no/false to a boolean."""
    if text in ("yes", "true"):
        return True
    if text in ("no", "false"):
        return False
    raise InvalidValueError(f'Invalid value "{text}"')


def to_color(text: str) -> int:
    """Convert a hex color, optionally prefixed with '#', to an ARGB integer."""
    digits = text[1:] if text.startswith("#") else text
    if _HEX_COLOR.fullmatch(digits):
        number = int(digits, 16)
        if number <= 0xFFFFFFFF:
            return number
    raise InvalidValueError(f'Invalid value "{text}"')