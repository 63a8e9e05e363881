"""Global test configuration for koncur tests."""

import shutil
from pathlib import Path

import pytest
import yaml
from dotenv import load_dotenv

from koncur.schemas import RULESETS_ADAPTER, RuleSet

# Load environment variables from .env file for testing
env_file = Path(__file__).parent.parent / ".env"
if env_file.exists():
    load_dotenv(env_file)

FIXTURES_DIR = Path(__file__).parent / "koncur" / "fixtures"

SERVLET_DOCUMENT = """
- name: cloud-readiness
  description: Cloud readiness checks
  tags:
    - Servlet
    - embedded-datasource
  violations:
    session-00001:
      description: HTTP session replication
      category: mandatory
      effort: 3
      labels:
        - konveyor.io/target=cloud-readiness
      links:
        - title: Session replication
          url: https://example.com/session
      incidents:
        - uri: file:///src/MyServlet.java
          message: Session state is not replicated
          lineNumber: 42
          codeSnip: " 42  HttpSession session = request.getSession();"
  insights:
    logging-0001:
      description: File system logging
      incidents:
        - uri: file:///src/Logger.java
          message: Logging to the file system
          lineNumber: 7
  unmatched:
    - jni-native-code-00000
  skipped:
    - local-storage-00005
"""


@pytest.fixture(autouse=True)
def koncur_test_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """Select the test logging configuration for every test."""
    monkeypatch.setenv("KONCUR_ENV", "test")


@pytest.fixture
def fixtures_dir() -> Path:
    """Directory holding findings document fixtures."""
    return FIXTURES_DIR


@pytest.fixture
def servlet_document() -> list[RuleSet]:
    """A one-ruleset findings document with a violation and an insight."""
    return RULESETS_ADAPTER.validate_python(yaml.safe_load(SERVLET_DOCUMENT))


@pytest.fixture
def servlet_document_yaml() -> str:
    """Raw YAML of ``servlet_document``."""
    return SERVLET_DOCUMENT


@pytest.fixture
def recorded_suite(tmp_path: Path) -> tuple[Path, Path]:
    """A test directory and a mirrored directory of recorded outputs.

    The suite holds a passing ``servlet`` case, a ``skipped`` case and a
    ``broken`` case whose definition is invalid. Only ``servlet`` has a
    recorded output.
    """
    servlet = FIXTURES_DIR / "servlet"
    suite = tmp_path / "suite"
    outputs = tmp_path / "outputs"

    case = suite / "servlet"
    case.mkdir(parents=True)
    shutil.copy(servlet / "test.yaml", case / "test.yaml")
    shutil.copy(servlet / "expected.yaml", case / "expected.yaml")

    skipped = suite / "skipped"
    skipped.mkdir()
    (skipped / "test.yaml").write_text(
        "# SKIPPED: waiting on analyser fix\n" + (servlet / "test.yaml").read_text()
    )

    broken = suite / "broken"
    broken.mkdir()
    (broken / "test.yaml").write_text("name: broken\n")

    (outputs / "servlet").mkdir(parents=True)
    shutil.copy(servlet / "actual-kantra.yaml", outputs / "servlet" / "output.yaml")
    return suite, outputs
