"""
Register pytest plugins, fixtures, and hooks to be used during test execution.

All fixtures are organized in the fixtures/ directory for better maintainability.
"""

import sys
from pathlib import Path

THIS_DIR = Path(__file__).parent
TESTS_DIR_PARENT = (THIS_DIR / "..").resolve()

# add the parent directory of tests/ to PYTHONPATH
# so that we can use "from tests.<module> import ..." in our tests and fixtures
sys.path.insert(0, str(TESTS_DIR_PARENT))
sys.path.insert(0, str(TESTS_DIR_PARENT / "src"))

pytest_plugins = [
    # Application, settings and identity stubs
    "tests.fixtures.app_fixtures",
    # Seeded request stores and services
    "tests.fixtures.lifecycle_fixtures",
    # asyncpg mocks
    "tests.fixtures.db_fixtures",
]
