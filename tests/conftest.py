import pytest
import pytest_asyncio

from genescreen.decryption import DecryptionCoordinator
from genescreen.fhe import FheRuntime
from genescreen.gateway import EncryptionGateway
from genescreen.notifications import Notifier
from genescreen.store import RecordStore
from genescreen.submission import SubmissionCoordinator

from fakes import CONTRACT, FakeFheSdk, FakeLedger


@pytest.fixture
def ledger():
    return FakeLedger()


@pytest.fixture
def sdk():
    return FakeFheSdk()


@pytest.fixture
def notifier():
    # Long delays so notifications stay visible for assertions
    return Notifier(success_seconds=60, error_seconds=60)


@pytest.fixture
def runtime(sdk, notifier):
    """Uninitialised runtime around the fake SDK."""
    return FheRuntime(sdk, notifier)


@pytest_asyncio.fixture
async def ready_runtime(runtime):
    await runtime.ensure_ready(connected=True)
    return runtime


@pytest.fixture
def store(ledger, notifier):
    return RecordStore(ledger, notifier)


@pytest.fixture
def gateway(sdk, ready_runtime):
    return EncryptionGateway(sdk, ready_runtime)


@pytest.fixture
def submission(gateway, ledger, store, notifier):
    return SubmissionCoordinator(gateway, ledger, store, CONTRACT, notifier=notifier)


@pytest.fixture
def decryption(sdk, ready_runtime, ledger, store, notifier):
    return DecryptionCoordinator(
        sdk, ready_runtime, ledger, ledger, store, CONTRACT, notifier=notifier,
    )
