"""Unit tests for the package surface: version string and top-level exports."""

import importlib

import pytest
from click.testing import CliRunner

import imagestudio
from imagestudio.cli import cli


@pytest.mark.unit
class TestVersion:
    def test_version_is_dotted(self):
        parts = imagestudio.__version__.split(".")
        assert len(parts) >= 2
        assert parts[0].isdigit()

    def test_cli_reports_package_version(self):
        result = CliRunner().invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert result.output.strip().endswith(imagestudio.__version__)


@pytest.mark.unit
class TestPublicExports:
    def test_all_names_resolve(self):
        missing = [name for name in imagestudio.__all__ if not hasattr(imagestudio, name)]
        assert missing == []

    @pytest.mark.parametrize(
        "name,module",
        [
            ("edit_image", "imagestudio.core.image_gen"),
            ("enhance_prompt", "imagestudio.core.prompt"),
            ("EditorSession", "imagestudio.core.session"),
            ("FileStore", "imagestudio.utils.counters"),
            ("ErrorKind", "imagestudio.utils.exceptions"),
            ("configure_logging", "imagestudio.logging_config"),
        ],
    )
    def test_reexports_are_the_module_objects(self, name, module):
        assert getattr(imagestudio, name) is getattr(importlib.import_module(module), name)
