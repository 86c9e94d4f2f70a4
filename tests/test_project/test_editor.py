"""Unit tests for reqcheck.project.editor."""

from __future__ import annotations

from pathlib import Path

import pytest

from reqcheck.exceptions import FileOperationError
from reqcheck.project.editor import ProjectEditor


@pytest.fixture
def editor() -> ProjectEditor:
    return ProjectEditor(backup=False)


def _setup_py(tmp_path: Path, content: str) -> Path:
    path = tmp_path / "setup.py"
    path.write_text(content, encoding="utf-8")
    return path


@pytest.mark.unit
class TestPrependLine:
    def test_prepends_to_requirements(self, tmp_path: Path, editor: ProjectEditor) -> None:
        path = tmp_path / "requirements.txt"
        path.write_text("flask>=1.0\n", encoding="utf-8")

        editor.prepend_line(path, "requests")

        assert path.read_text(encoding="utf-8") == "requests\nflask>=1.0\n"

    def test_empty_file(self, tmp_path: Path, editor: ProjectEditor) -> None:
        path = tmp_path / "requirements.txt"
        path.write_text("", encoding="utf-8")

        editor.prepend_line(path, "requests")

        assert path.read_text(encoding="utf-8") == "requests\n"

    def test_backup_is_kept(self, tmp_path: Path) -> None:
        """Test the default editor leaves a backup of the original file."""
        path = tmp_path / "requirements.txt"
        path.write_text("flask\n", encoding="utf-8")

        ProjectEditor().prepend_line(path, "requests")

        backups = list(tmp_path.glob("requirements.txt.*.backup"))
        assert len(backups) == 1
        assert backups[0].read_text(encoding="utf-8") == "flask\n"


@pytest.mark.unit
class TestAppendInstallRequires:
    def test_appends_after_last_element(self, tmp_path: Path, editor: ProjectEditor) -> None:
        path = _setup_py(
            tmp_path,
            "from setuptools import setup\n"
            "setup(\n"
            "    name='demo',\n"
            "    install_requires=['flask', 'click'],\n"
            ")\n",
        )

        editor.append_install_requires(path, "requests")

        assert path.read_text(encoding="utf-8") == (
            "from setuptools import setup\n"
            "setup(\n"
            "    name='demo',\n"
            "    install_requires=['flask', 'click', \"requests\"],\n"
            ")\n"
        )

    def test_empty_list(self, tmp_path: Path, editor: ProjectEditor) -> None:
        path = _setup_py(tmp_path, "from setuptools import setup\nsetup(install_requires=[])\n")

        editor.append_install_requires(path, "requests")

        assert path.read_text(encoding="utf-8") == (
            'from setuptools import setup\nsetup(install_requires=["requests"])\n'
        )

    def test_non_ascii_before_list(self, tmp_path: Path, editor: ProjectEditor) -> None:
        """Test byte columns are converted for non-ASCII lines."""
        path = _setup_py(
            tmp_path,
            "from setuptools import setup\nsetup(name='café', install_requires=['a'])\n",
        )

        editor.append_install_requires(path, "b")

        assert path.read_text(encoding="utf-8").endswith(
            "setup(name='café', install_requires=['a', \"b\"])\n"
        )

    def test_form_feed_and_line_separator_lines(
        self, tmp_path: Path, editor: ProjectEditor
    ) -> None:
        """Test characters that are not Python line ends do not shift lines."""
        path = _setup_py(
            tmp_path,
            "from setuptools import setup\n"
            "# packaging\x0c\n"
            "# notes\u2028more\n"
            "setup(name='demo', install_requires=['a'])\n",
        )

        editor.append_install_requires(path, "b")

        assert path.read_text(encoding="utf-8") == (
            "from setuptools import setup\n"
            "# packaging\x0c\n"
            "# notes\u2028more\n"
            "setup(name='demo', install_requires=['a', \"b\"])\n"
        )

    def test_missing_list(self, tmp_path: Path, editor: ProjectEditor) -> None:
        path = _setup_py(tmp_path, "from setuptools import setup\nsetup(name='demo')\n")

        with pytest.raises(FileOperationError, match="No install_requires list"):
            editor.append_install_requires(path, "requests")


@pytest.mark.unit
class TestAddInstallRequires:
    def test_after_last_argument(self, tmp_path: Path, editor: ProjectEditor) -> None:
        path = _setup_py(
            tmp_path,
            "from setuptools import setup\nsetup(name='demo', version='1.0')\n",
        )

        editor.add_install_requires(path, "requests")

        assert path.read_text(encoding="utf-8") == (
            "from setuptools import setup\n"
            "setup(name='demo', version='1.0', install_requires=[\"requests\"])\n"
        )

    def test_empty_call(self, tmp_path: Path, editor: ProjectEditor) -> None:
        path = _setup_py(tmp_path, "from distutils.core import setup\nsetup()\n")

        editor.add_install_requires(path, "requests")

        assert path.read_text(encoding="utf-8") == (
            'from distutils.core import setup\nsetup(install_requires=["requests"])\n'
        )

    def test_no_setup_call(self, tmp_path: Path, editor: ProjectEditor) -> None:
        path = _setup_py(tmp_path, "print('no setup here')\n")

        with pytest.raises(FileOperationError, match="No setup call found"):
            editor.add_install_requires(path, "requests")

    def test_unparseable_script(self, tmp_path: Path, editor: ProjectEditor) -> None:
        path = _setup_py(tmp_path, "setup(\n")

        with pytest.raises(FileOperationError, match="Cannot parse setup.py"):
            editor.add_install_requires(path, "requests")
