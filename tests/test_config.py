"""
Tests for FlowConfig loading.
"""

import pytest
import yaml

from apiflow.config import FlowConfig, config_template


class TestFlowConfig:
    def test_defaults(self):
        config = FlowConfig()

        assert config.framework_entry == '@playwright/test'
        assert config.default_base_url == 'https://api.example.com'
        assert config.test_title == 'Generated API test'
        assert config.validate_references is True
        assert config.port == 8000

    def test_from_dict_coerces(self):
        config = FlowConfig.from_dict({'port': '9000', 'validate_references': 0})

        assert config.port == 9000
        assert config.validate_references is False

    def test_unknown_key(self):
        with pytest.raises(ValueError, match='colour'):
            FlowConfig.from_dict({'colour': 'blue'})

    def test_from_yaml(self, tmp_path):
        path = tmp_path / 'apiflow.yaml'
        path.write_text('default_base_url: https://cfg.test\ntest_title: Smoke\n')
        config = FlowConfig.from_yaml(str(path))

        assert config.default_base_url == 'https://cfg.test'
        assert config.test_title == 'Smoke'
        assert config.host == '127.0.0.1'

    def test_from_empty_yaml(self, tmp_path):
        path = tmp_path / 'apiflow.yaml'
        path.write_text('')
        assert FlowConfig.from_yaml(str(path)) == FlowConfig()

    def test_from_yaml_not_mapping(self, tmp_path):
        path = tmp_path / 'apiflow.yaml'
        path.write_text('- a\n- b\n')

        with pytest.raises(ValueError):
            FlowConfig.from_yaml(str(path))

    def test_from_yaml_missing(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            FlowConfig.from_yaml(str(tmp_path / 'missing.yaml'))

    def test_template_loads_back(self):
        """The template is a valid config file."""
        text = config_template()

        assert text.startswith('# apiflow configuration')
        assert FlowConfig.from_dict(yaml.safe_load(text)) == FlowConfig()
