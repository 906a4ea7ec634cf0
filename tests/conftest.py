from pathlib import Path

import pytest

here = Path(__file__).parent
root_path = here.parent
fixtures_path = here / "fixtures"
pytest_plugins = ["pytest_databases.docker.bigquery"]


def pytest_addoption(parser: pytest.Parser) -> None:
    parser.addoption(
        "--run-integration",
        action="store_true",
        default=False,
        help="Run tests that need the BigQuery emulator container.",
    )


def pytest_collection_modifyitems(config: pytest.Config, items: "list[pytest.Item]") -> None:
    if config.getoption("--run-integration"):
        return
    skip_integration = pytest.mark.skip(reason="needs --run-integration")
    for item in items:
        if "integration" in item.keywords:
            item.add_marker(skip_integration)


@pytest.fixture
def migrations_path() -> Path:
    return fixtures_path / "migrations"
