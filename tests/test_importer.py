"""
Tests for flow import from pasted content and files.
"""

import json

import pytest
import yaml

from apiflow.config import FlowConfig
from apiflow.playwright import FlowImportError, import_flow, load_flow
from apiflow.playwright.importer import is_step_list, steps_from_entries


class TestImportFlow:
    """import_flow on pasted content."""

    def test_json_step_list(self):
        content = json.dumps([
            {'method': 'GET', 'url': '/a', 'saveResponseAs': 'a'},
            {'method': 'POST', 'url': '/b', 'requestBody': '{}', 'baseUrl': 'https://x.test'},
        ])
        flow = import_flow(content)

        assert [s.url for s in flow.steps] == ['/a', '/b']
        assert flow.base_url == 'https://api.example.com'

    def test_json_list_uses_first_step_base_url(self):
        content = json.dumps([{'method': 'GET', 'url': '/a', 'baseUrl': 'https://first.test'}])
        assert import_flow(content).base_url == 'https://first.test'

    def test_invalid_entries_skipped(self, caplog):
        content = json.dumps([
            {'method': 'GET'},
            {'method': 'PATCH', 'url': '/x'},
            'not a step',
            {'method': 'DELETE', 'url': '/ok'},
        ])
        flow = import_flow(content)

        assert [s.method for s in flow.steps] == ['DELETE']
        assert 'Skipped 3 invalid step entries' in caplog.text

    def test_script(self, sample_script):
        flow = import_flow(sample_script)
        assert len(flow.steps) == 3
        assert flow.base_url == 'https://api.myapp.com'

    @pytest.mark.parametrize('content', ['', '   \n', 'const x = 1;', '[]', '[{"method": "GET"}]'])
    def test_nothing_to_import(self, content):
        with pytest.raises(FlowImportError):
            import_flow(content)

    def test_malformed_json(self):
        with pytest.raises(FlowImportError, match='Invalid JSON'):
            import_flow('[{"method": ')

    def test_default_base_url_from_config(self):
        config = FlowConfig(default_base_url='https://cfg.test')
        flow = import_flow('[{"method": "GET", "url": "/a"}]', config)
        assert flow.base_url == 'https://cfg.test'


class TestHelpers:
    def test_is_step_list(self):
        assert is_step_list('  \n[1]')
        assert not is_step_list('import { test }')

    def test_steps_from_entries_keeps_order(self):
        steps = steps_from_entries([
            {'method': 'PUT', 'url': '/1'},
            {'method': 'GET', 'url': '/2'},
        ])
        assert [s.url for s in steps] == ['/1', '/2']


class TestLoadFlow:
    """load_flow on files."""

    def test_json_mapping(self, tmp_path):
        path = tmp_path / 'flow.json'
        path.write_text(json.dumps({
            'baseUrl': 'https://file.test',
            'steps': [{'method': 'GET', 'url': '/a'}],
        }))
        flow = load_flow(str(path))

        assert flow.base_url == 'https://file.test'
        assert flow.steps[0].url == '/a'

    def test_yaml_with_mapping_body(self, tmp_path):
        path = tmp_path / 'flow.yaml'
        path.write_text(yaml.safe_dump({
            'base_url': 'https://yaml.test',
            'steps': [{
                'method': 'post',
                'url': '/login',
                'save_response_as': 'auth',
                'request_body': {'user': 'u'},
            }],
        }))
        flow = load_flow(str(path))

        assert flow.base_url == 'https://yaml.test'
        assert flow.steps[0].method == 'POST'
        assert json.loads(flow.steps[0].request_body) == {'user': 'u'}

    def test_script_file(self, script_file):
        flow = load_flow(str(script_file))
        assert [s.save_response_as for s in flow.steps] == ['authToken', 'userProfile', '']

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_flow(str(tmp_path / 'missing.ts'))
        with pytest.raises(FileNotFoundError):
            load_flow(str(tmp_path / 'missing.json'))

    def test_bad_shape(self, tmp_path):
        path = tmp_path / 'flow.json'
        path.write_text('{"nope": 1}')

        with pytest.raises(ValueError):
            load_flow(str(path))
