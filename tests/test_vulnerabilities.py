"""Tests for the risky code pattern scanner."""

import pytest

from blackcube.models import Severity, TextFile
from blackcube.scanners.vulnerabilities import VulnerabilityScanner


def _types(content: str, path: str = "/repo/app.py") -> set[str]:
    return {f.type for f in VulnerabilityScanner().scan([TextFile(path=path, content=content)])}


class TestVulnerabilityScanner:
    @pytest.mark.parametrize("content,rule_id", [
        ("result = eval(user_input)\n", "eval-usage"),
        ("const fn = new Function('a', body);\n", "function-constructor"),
        ("subprocess.run(cmd, shell=True)\n", "subprocess-shell"),
        ("os.system('rm -rf ' + path)\n", "os-system"),
        ("data = pickle.loads(blob)\n", "pickle-load"),
        ("requests.get(url, verify=False)\n", "tls-verification-disabled"),
        ("cfg = yaml.load(fh)\n", "yaml-unsafe-load"),
        ("el.innerHTML = html;\n", "inner-html"),
        ("digest = hashlib.md5(data)\n", "weak-hash"),
        ("DEBUG = True\n", "debug-enabled"),
        ("const id = Math.random();\n", "insecure-random"),
        ('API = "http://api.example.com/v1"\n', "insecure-http-url"),
        ("q = \"SELECT * FROM users WHERE id = \" + user_id\n", "sql-concatenation"),
        ('q = f"SELECT * FROM users WHERE id = {user_id}"\n', "sql-interpolation"),
        ("exec('ls ' + dir)\n", "command-injection"),
    ])
    def test_detects_pattern(self, content, rule_id):
        assert rule_id in _types(content)

    def test_eval_method_not_flagged(self):
        assert "eval-usage" not in _types("model.eval()\n")

    def test_safe_yaml_load_not_flagged(self):
        assert "yaml-unsafe-load" not in _types("cfg = yaml.load(fh, Loader=yaml.SafeLoader)\n")

    def test_localhost_http_allowed(self):
        assert "insecure-http-url" not in _types('URL = "http://localhost:8080"\n')

    def test_severity_and_location(self):
        findings = VulnerabilityScanner().scan([
            TextFile(path="/repo/app.js", content="let a = 1;\nlet b = eval(input);\n"),
        ])
        assert len(findings) == 1
        assert findings[0].severity == Severity.HIGH
        assert findings[0].line == 2
        assert findings[0].fix

    def test_ignore_marker(self):
        assert _types("result = eval(x)  # blackcube-ignore\n") == set()

    def test_clean_code(self):
        assert _types("def add(a, b):\n    return a + b\n") == set()
