import pytest

from fxbuild._impl.support.options import reset_options


@pytest.fixture(autouse=True)
def fresh_options():
    # Tests log immediately instead of waiting for the command line to be parsed
    reset_options(verbose=False, very_verbose=False)
    yield
    reset_options(verbose=False, very_verbose=False)
