"""
Project boot checks run in a fresh interpreter.

Module import order matters here, so each check starts its own Python
process instead of relying on what the test run has already imported.
"""

import os
import subprocess
import sys
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent.parent


def run_python(*args):
    env = dict(os.environ, DJANGO_SETTINGS_MODULE='iyaya.settings')
    return subprocess.run(
        [sys.executable, *args],
        cwd=BASE_DIR,
        env=env,
        capture_output=True,
        text=True,
    )


class TestProjectBoot:
    """The project must load from a cold start."""

    def test_system_check_passes(self):
        result = run_python('manage.py', 'check')
        assert result.returncode == 0, f"manage.py check failed: {result.stderr}"

    def test_authentication_module_imports_first(self):
        """Loading the JWT authentication class before any view must work."""
        result = run_python(
            '-c',
            'import django; django.setup(); '
            'import core.authentication; '
            'from rest_framework.settings import api_settings; '
            'print(api_settings.DEFAULT_AUTHENTICATION_CLASSES[0].__name__)',
        )
        assert result.returncode == 0, f"Importing core.authentication failed: {result.stderr}"
        assert 'ActorJWTAuthentication' in result.stdout

    def test_url_configuration_loads(self):
        result = run_python(
            '-c',
            'import django; django.setup(); '
            'from django.urls import reverse; '
            "print(reverse('admin_dashboard'))",
        )
        assert result.returncode == 0, f"Loading the URL configuration failed: {result.stderr}"
