import pytest

from testsplitter.ui.console import Console, set_console


@pytest.fixture(autouse=True)
def fresh_console():
    """Each test gets a non-debug console so output assertions are stable."""
    console = Console(debug=False)
    set_console(console)
    yield console


@pytest.fixture
def write_listing(tmp_path):
    def _write(lines, name="listing.txt"):
        path = tmp_path / name
        path.write_text("\n".join(lines) + "\n", encoding="utf-8")
        return path

    return _write
