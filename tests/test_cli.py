"""
Tests for the apiflow command line.
"""

import json

import pytest
import yaml

from apiflow.cli import build_parser, main


@pytest.fixture
def flow_file(tmp_path):
    path = tmp_path / 'flow.json'
    path.write_text(json.dumps({
        'baseUrl': 'https://cli.test',
        'steps': [
            {'method': 'POST', 'url': '/login', 'saveResponseAs': 'auth', 'requestBody': '{"u": 1}'},
            {'method': 'GET', 'url': '/me', 'headers': {'Authorization': 'Bearer ${auth.token}'}},
        ],
    }))
    return path


@pytest.fixture
def broken_flow_file(tmp_path):
    path = tmp_path / 'broken.json'
    path.write_text(json.dumps([
        {'method': 'GET', 'url': '/a/${later.id}'},
        {'method': 'GET', 'url': '/b', 'saveResponseAs': 'later'},
    ]))
    return path


class TestParser:
    def test_command_required(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args([])

    def test_generate_options(self):
        args = build_parser().parse_args(['generate', 'f.json', '-o', 'out.ts', '--no-validate'])

        assert args.flow == 'f.json'
        assert args.output == 'out.ts'
        assert args.no_validate is True


class TestGenerate:
    def test_stdout(self, flow_file, capsys):
        assert main(['generate', str(flow_file)]) == 0

        captured = capsys.readouterr()
        assert 'const baseUrl = "https://cli.test";' in captured.out
        assert 'Generated 2 steps' in captured.err

    def test_output_file(self, flow_file, tmp_path):
        out = tmp_path / 'out' / 'api.spec.ts'

        assert main(['generate', str(flow_file), '-o', str(out)]) == 0
        assert out.read_text().endswith('});\n')

    def test_base_url_override(self, flow_file, capsys):
        main(['generate', str(flow_file), '--base-url', 'https://other.test'])
        assert 'const baseUrl = "https://other.test";' in capsys.readouterr().out

    def test_invalid_references(self, broken_flow_file, capsys):
        assert main(['generate', str(broken_flow_file)]) == 1
        assert "'later'" in capsys.readouterr().err

    def test_no_validate(self, broken_flow_file):
        assert main(['generate', str(broken_flow_file), '--no-validate']) == 0

    def test_missing_file(self, tmp_path, capsys):
        assert main(['generate', str(tmp_path / 'nope.json')]) == 1
        assert 'not found' in capsys.readouterr().err

    def test_config_file(self, flow_file, tmp_path, capsys):
        config = tmp_path / 'apiflow.yaml'
        config.write_text('test_title: From config\n')

        main(['--config', str(config), 'generate', str(flow_file)])
        assert 'test("From config"' in capsys.readouterr().out


class TestRecover:
    def test_json(self, script_file, capsys):
        assert main(['recover', str(script_file)]) == 0

        data = json.loads(capsys.readouterr().out)
        assert data['baseUrl'] == 'https://api.myapp.com'
        assert len(data['steps']) == 3

    def test_yaml(self, script_file, capsys):
        assert main(['recover', str(script_file), '--format', 'yaml']) == 0

        data = yaml.safe_load(capsys.readouterr().out)
        assert data['steps'][0]['saveResponseAs'] == 'authToken'

    def test_no_steps(self, tmp_path, capsys):
        path = tmp_path / 'empty.ts'
        path.write_text('// nothing here\n')

        assert main(['recover', str(path)]) == 1
        assert 'No API steps found' in capsys.readouterr().err

    def test_missing_script(self, tmp_path):
        assert main(['recover', str(tmp_path / 'nope.ts')]) == 1


class TestRoundtrip:
    def test_generated_script_is_stable(self, flow_file, tmp_path, capsys):
        script = tmp_path / 'api.spec.ts'
        main(['generate', str(flow_file), '-o', str(script)])
        capsys.readouterr()

        assert main(['roundtrip', str(script), '--check']) == 0
        assert 'is stable' in capsys.readouterr().out

    def test_changed_script(self, script_file, capsys):
        """The sample script lacks the blank line before its closing brace."""
        assert main(['roundtrip', str(script_file), '--check']) == 1
        assert '+' in capsys.readouterr().out

    def test_prints_regenerated(self, script_file, capsys):
        assert main(['roundtrip', str(script_file)]) == 0
        assert capsys.readouterr().out.startswith("import { test, expect } from '@playwright/test';")


class TestValidate:
    def test_clean(self, flow_file, capsys):
        assert main(['validate', str(flow_file)]) == 0
        assert 'no issues' in capsys.readouterr().out

    def test_errors(self, broken_flow_file, capsys):
        assert main(['validate', str(broken_flow_file)]) == 1
        assert '[forward_reference]' in capsys.readouterr().out

    def test_warnings_only(self, tmp_path, capsys):
        path = tmp_path / 'warn.json'
        path.write_text(json.dumps([{'method': 'GET', 'url': '/a', 'requestBody': '{}'}]))

        assert main(['validate', str(path)]) == 0
        assert '[ignored_body]' in capsys.readouterr().out


class TestConfigTemplate:
    def test_prints_template(self, capsys):
        assert main(['config-template']) == 0
        assert yaml.safe_load(capsys.readouterr().out)['port'] == 8000
