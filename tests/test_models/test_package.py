from __future__ import annotations

import pytest

from deplock.models.environment import Environment
from deplock.models.package import Package


@pytest.mark.unit
class TestPackage:
    """Tests for the Package dataclass."""

    def test_name_is_normalized(self) -> None:
        assert Package("Flask_Login", "0.6.3").name == "flask-login"

    def test_defaults(self) -> None:
        package = Package("demo", "1.0")

        assert package.requires_dist == []
        assert package.classifiers == []
        assert package.summary is None

    def test_key_and_str(self) -> None:
        package = Package("demo", "1.0")

        assert package.key == "demo==1.0"
        assert str(package) == "demo@1.0"

    def test_default_lists_are_independent(self) -> None:
        first = Package("a", "1")
        second = Package("b", "1")
        first.requires_dist.append("c")

        assert second.requires_dist == []

    @pytest.mark.parametrize(
        "requires_python, python_version, expected",
        [
            (None, "3.11", True),
            (">=3.8", "3.11", True),
            (">=3.8", "3.7", False),
            ("<3", "3.11", False),
            ("not a specifier", "3.11", True),
        ],
    )
    def test_is_python_compatible(
        self, requires_python: str, python_version: str, expected: bool
    ) -> None:
        package = Package("demo", "1.0", requires_python=requires_python)

        assert package.is_python_compatible(python_version) is expected

    def test_from_pypi_info(self) -> None:
        info = {
            "name": "Requests",
            "version": "2.31.0",
            "summary": "Python HTTP for Humans.",
            "requires_python": ">=3.7",
            "requires_dist": ["idna<4,>=2.5", "PySocks!=1.5.7,>=1.5.6; extra == 'socks'"],
            "classifiers": ["Programming Language :: Python :: 3"],
            "home_page": "https://requests.readthedocs.io",
            "author": "Kenneth Reitz",
            "license": "Apache 2.0",
        }

        package = Package.from_pypi_info(info)

        assert package.name == "requests"
        assert package.version == "2.31.0"
        assert package.requires_dist == info["requires_dist"]
        assert package.author == "Kenneth Reitz"

    def test_from_pypi_info_handles_nulls(self) -> None:
        info = {"name": None, "version": "1.0", "requires_dist": None, "summary": ""}

        package = Package.from_pypi_info(info, fallback_name="fallback")

        assert package.name == "fallback"
        assert package.requires_dist == []
        assert package.summary is None


@pytest.mark.unit
class TestEnvironment:
    """Tests for the Environment snapshot."""

    def test_current_matches_interpreter(self) -> None:
        import platform
        import sys

        env = Environment.current()

        assert env.python_version == f"{sys.version_info.major}.{sys.version_info.minor}"
        assert env.platform == sys.platform
        assert env.python_full_version == platform.python_version()
        assert env.to_marker_vars()["python_full_version"].startswith(env.python_version)

    def test_with_overrides_keeps_unset_fields(self) -> None:
        env = Environment(python_version="3.11", platform="linux")

        changed = env.with_overrides(platform="win32")

        assert changed.platform == "win32"
        assert changed.python_version == "3.11"
        assert env.platform == "linux"

    def test_python_override_replaces_full_version(self) -> None:
        env = Environment(python_version="3.11", python_full_version="3.11.7")

        changed = env.with_overrides(python_version="3.9")

        assert changed.python_full_version == "3.9"
        assert env.with_overrides(platform="win32").python_full_version == "3.11.7"

    def test_is_frozen(self) -> None:
        env = Environment()

        with pytest.raises(AttributeError):
            env.platform = "darwin"  # type: ignore[misc]

    def test_marker_vars(self) -> None:
        env = Environment(
            python_version="3.12",
            platform="darwin",
            implementation="cpython",
            architecture="arm64",
            os_name="posix",
        )

        variables = env.to_marker_vars()

        assert variables["sys_platform"] == "darwin"
        assert variables["platform"] == "darwin"
        assert variables["python_version"] == "3.12"
        assert variables["python_full_version"] == "3.12"
        assert variables["platform_machine"] == "arm64"
        assert variables["implementation_name"] == "cpython"
