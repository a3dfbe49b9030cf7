import pytest

from ccat.catalog import Catalog


@pytest.fixture(scope='session')
def bundled_catalog():
    return Catalog.load()
