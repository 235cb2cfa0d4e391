"""End-to-end tests for swagger2tests."""

import subprocess
import sys
from pathlib import Path

import pytest

FIXTURES = Path(__file__).parent / "fixtures"


class TestCLIEndToEnd:
    """End-to-end tests for the swagger2tests command."""

    def test_generate_from_file(self, tmp_path):
        """Can generate tests from a local file."""
        result = subprocess.run(
            [
                sys.executable, "-m", "swagger2tests",
                "generate",
                str(FIXTURES / "petstore.yaml"),
                "--output", str(tmp_path),
            ],
            capture_output=True,
            text=True
        )

        assert result.returncode == 0
        assert (tmp_path / "pets-test.js").exists()
        assert (tmp_path / ".env").read_text().splitlines() == ["PETSTORE_AUTH=", "API_KEY="]

    def test_version(self):
        """Reports its version."""
        result = subprocess.run(
            [sys.executable, "-m", "swagger2tests", "--version"],
            capture_output=True,
            text=True
        )

        assert result.returncode == 0
        assert "0.1.0" in result.stdout

    def test_verbose_logs_steps(self, tmp_path):
        """--verbose logs each operation."""
        result = subprocess.run(
            [
                sys.executable, "-m", "swagger2tests", "--verbose",
                "generate",
                str(FIXTURES / "petstore.yaml"),
                "--stdout",
            ],
            capture_output=True,
            text=True
        )

        assert result.returncode == 0
        assert "GET /pets" in result.stderr

    @pytest.mark.integration
    def test_generate_from_url(self, tmp_path):
        """Can generate tests from a URL."""
        result = subprocess.run(
            [
                sys.executable, "-m", "swagger2tests",
                "generate",
                "https://petstore.swagger.io/v2/swagger.json",
                "--output", str(tmp_path),
            ],
            capture_output=True,
            text=True
        )

        assert result.returncode == 0
        assert (tmp_path / "pet-test.js").exists()
