"""Unit tests for prompts_loader (YAML-loaded prompt templates)."""

from unittest.mock import mock_open, patch

import pytest
import yaml

import imagestudio.core.prompts_loader as prompts_loader
from imagestudio.core.prompts_loader import (
    _load_prompts,
    get_analysis_prompt,
    get_enhancement_prompts,
    get_prompt,
)
from imagestudio.utils.exceptions import ConfigurationError


@pytest.mark.unit
class TestPromptsLoader:
    def test_enhancement_prompts_for_both_modes(self):
        for mode in ("editing", "generation"):
            prompts = get_enhancement_prompts(mode)
            assert prompts.system
            assert "{instruction}" in prompts.user
            assert "{context}" in prompts.user_with_context

    def test_editing_system_prompt_forbids_new_objects(self):
        system = get_enhancement_prompts("editing").system
        assert "Never add objects" in system
        # Literal block keeps the numbered guidelines on separate lines
        assert "\n1. " in system

    def test_unknown_mode_raises(self):
        with pytest.raises(ConfigurationError):
            get_enhancement_prompts("sketching")

    def test_analysis_prompt(self):
        assert get_analysis_prompt()

    def test_get_prompt_unknown_key_returns_none(self):
        assert get_prompt("nonexistent_key") is None
        assert get_prompt("enhancement", "editing", "nonexistent_subkey") is None

    def test_get_prompt_nested(self):
        assert get_prompt("enhancement", "generation", "user") is not None


@pytest.mark.unit
class TestYAMLValidation:
    """Test YAML validation with Pydantic schema."""

    def setup_method(self):
        """Clear the module-level cache before each test."""
        prompts_loader._prompts_data = None

    def teardown_method(self):
        prompts_loader._prompts_data = None

    def _patched(self, text: str):
        mock_files = patch("importlib.resources.files")
        files = mock_files.start()
        files.return_value.joinpath.return_value.open.return_value = mock_open(read_data=text)()
        return mock_files

    def test_valid_yaml_loads_successfully(self):
        data = _load_prompts()
        assert "enhancement" in data
        assert "analysis" in data

    def test_malformed_yaml_raises_configuration_error(self):
        patcher = self._patched("enhancement:\n  editing: |\n    foo\n  bar:\nbad indentation")
        try:
            with pytest.raises(ConfigurationError) as exc_info:
                _load_prompts()
        finally:
            patcher.stop()
        assert "Failed to parse prompts.yaml" in str(exc_info.value)

    def test_empty_yaml_raises_configuration_error(self):
        patcher = self._patched("")
        try:
            with pytest.raises(ConfigurationError) as exc_info:
                _load_prompts()
        finally:
            patcher.stop()
        assert "empty" in str(exc_info.value).lower()

    def test_missing_required_keys_raises_configuration_error(self):
        patcher = self._patched(yaml.dump({"some_other_key": "value"}))
        try:
            with pytest.raises(ConfigurationError) as exc_info:
                _load_prompts()
        finally:
            patcher.stop()
        error_msg = str(exc_info.value)
        assert "Invalid prompts.yaml structure" in error_msg
        assert "enhancement" in error_msg

    def test_file_not_found_raises_configuration_error(self):
        with patch("importlib.resources.files") as mock_files:
            mock_files.return_value.joinpath.return_value.open.side_effect = FileNotFoundError
            with pytest.raises(ConfigurationError) as exc_info:
                _load_prompts()
        assert "prompts.yaml not found" in str(exc_info.value)

    def test_placeholder_check(self):
        data = {
            "enhancement": {
                "editing": {"system": "s", "user": "no placeholder", "user_with_context": "x"},
                "generation": {
                    "system": "s",
                    "user": "{instruction}",
                    "user_with_context": "{instruction} {context}",
                },
            },
            "analysis": {"prompt": "describe"},
        }
        prompts_loader._prompts_data = data
        with pytest.raises(ConfigurationError) as exc_info:
            get_enhancement_prompts("editing")
        assert "{instruction}" in str(exc_info.value)
        assert get_enhancement_prompts("generation").user == "{instruction}"

    def test_caching_prevents_reload(self):
        _load_prompts()
        prompts_loader._prompts_data = {"test": "cached"}
        assert _load_prompts() == {"test": "cached"}
