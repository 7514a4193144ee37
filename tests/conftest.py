"""
Pytest fixtures for iis-deploy tests.

External programs (PowerShell scripts, dotnet) are replaced by small Python
scripts run through the current interpreter, so the real subprocess code
paths are exercised without Windows tooling.
"""
import json
import sys
import textwrap
from pathlib import Path

import pytest

# Add the project root to PYTHONPATH
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from iis_deploy.core import ScriptRunner  # noqa: E402
from iis_deploy.models import ToolSettings  # noqa: E402


# =============================================================================
# SCRIPT STUBS
# =============================================================================

# Turns "-Flag value" argv pairs into a dict, like PowerShell param binding
PARAMS_PRELUDE = """\
import base64
import sys

args = sys.argv[1:]
params = dict(zip(args[::2], args[1::2]))


def password():
    encoded = params.get("-PasswordBase64")
    return base64.b64decode(encoded).decode("utf-16-le") if encoded else None

"""

CREDENTIAL_SCRIPT = PARAMS_PRELUDE + """\
if password() != "s3cret":
    sys.stderr.write("Access denied for " + params.get("-Username", "") + "\\n")
    sys.exit(1)
print("Credentials OK for " + params["-TestPath"])
"""

DEPLOY_SCRIPT = PARAMS_PRELUDE + """\
print("Stopping app pool " + params["-AppPoolName"])
print("Backing up " + params["-AppFolderLocation"] + " to " + params["-BackupFolder"])
print("Copying from " + params["-NewFilesPath"])
print("Exclude cleanup: " + params.get("-ExcludeFromCleanup", "<none>"))
print("Exclude copy: " + params.get("-ExcludeFromCopy", "<none>"))
print("Password ok: " + str(password() == "s3cret"))
print("Deployment complete")
"""

FAILING_DEPLOY_SCRIPT = PARAMS_PRELUDE + """\
print("Stopping app pool " + params["-AppPoolName"])
sys.stdout.flush()
sys.stderr.write("Copy-Item : Access to the path is denied.\\n")
sys.exit(1)
"""

DOTNET_STUB = """\
import os
import sys

args = sys.argv[1:]
assert args[0] == "publish"
output = args[args.index("-o") + 1]
os.makedirs(output, exist_ok=True)
with open(os.path.join(output, "App.dll"), "w") as f:
    f.write("binary")
print("  Restored " + args[1])
print("  App -> " + output)
"""

SDK_PROJECT = """\
<Project Sdk="Microsoft.NET.Sdk.Web">
  <PropertyGroup>
    <TargetFramework>net8.0</TargetFramework>
  </PropertyGroup>
</Project>
"""

VALID_CONFIG = {
    "server": "web01",
    "poolName": "AppPool",
    "appFolderLocation": "D:\\Sites\\App",
    "backupFolderLocation": "D:\\Backups\\App",
    "excludeFromCleanup": "web.config, logs;App_Data",
    "excludeFromCopy": ["appsettings.json"],
}


@pytest.fixture
def write_script(tmp_path):
    """Factory writing a Python stub script and returning its path."""
    def _write(name, body, directory=None):
        target_dir = Path(directory) if directory else tmp_path
        target_dir.mkdir(parents=True, exist_ok=True)
        path = target_dir / name
        path.write_text(textwrap.dedent(body), encoding="utf-8")
        return path
    return _write


@pytest.fixture
def python_runner():
    """ScriptRunner that runs stub scripts with the current interpreter."""
    return ScriptRunner(shell=[sys.executable])


@pytest.fixture
def write_config():
    """Factory writing a deploy configuration file."""
    def _write(directory, data=None, name="deploy.config.json"):
        path = Path(directory) / name
        path.write_text(json.dumps(VALID_CONFIG if data is None else data), encoding="utf-8")
        return path
    return _write


# =============================================================================
# FIXTURES: PROJECT
# =============================================================================

@pytest.fixture
def project_dir(tmp_path, write_config, write_script):
    """
    SDK-style web project with a valid deploy.config.json and stub scripts
    in Scripts/.
    """
    project = tmp_path / "WebApp"
    project.mkdir()
    (project / "WebApp.csproj").write_text(SDK_PROJECT, encoding="utf-8")
    write_config(project)
    write_script("test-credentials.ps1", CREDENTIAL_SCRIPT, project / "Scripts")
    write_script("deploy-template.ps1", DEPLOY_SCRIPT, project / "Scripts")
    return project


@pytest.fixture
def project_file(project_dir):
    return project_dir / "WebApp.csproj"


@pytest.fixture
def dotnet_stub(tmp_path, write_script):
    return [sys.executable, str(write_script("dotnet_stub.py", DOTNET_STUB, tmp_path / "tools"))]


@pytest.fixture
def settings(project_dir, dotnet_stub):
    """Settings pointing every external program at a stub."""
    return ToolSettings(
        scripts_dir=project_dir / "Scripts",
        shell=[sys.executable],
        dotnet=dotnet_stub,
    )
