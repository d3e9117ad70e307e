import logging
import sys

import pytest
from nats_options import registry

from tests.utils import USER_CREDS, USER_SEED

# Configure logging to see debug messages
logging.basicConfig(
    level=logging.DEBUG, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s", stream=sys.stdout
)


@pytest.fixture
def creds_file(tmp_path):
    """Fixture that writes the test user credentials to a .creds file."""
    path = tmp_path / "user.creds"
    path.write_text(USER_CREDS)
    return path


@pytest.fixture
def seed_file(tmp_path):
    path = tmp_path / "user.nk"
    path.write_text(USER_SEED + "\n")
    return path


@pytest.fixture
def clean_registry():
    """Fixture that removes factories registered during a test."""
    kinds = (registry.ERROR_LISTENER, registry.CONNECTION_LISTENER, registry.DATA_PORT)
    before = {kind: set(registry.registered_names(kind)) for kind in kinds}
    yield
    for kind, names in before.items():
        for name in set(registry.registered_names(kind)) - names:
            registry.unregister_factory(kind, name)
