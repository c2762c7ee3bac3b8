"""Abstract interfaces for the external collaborators.

These ABCs define the contract that ledger and FHE adapters must fulfil.
The SDK itself ships no chain or FHE implementation; the
``genescreen_db`` package provides a development ledger, and FHE SDK
bindings live in deployment-specific packages.

Typical integration flow::

    runtime = FheRuntime(sdk)
    await runtime.ensure_ready(connected=True)

    store = RecordStore(reader)
    gateway = EncryptionGateway(sdk, runtime)
    submitter = SubmissionCoordinator(gateway, writer, store, contract_address)
    decryptor = DecryptionCoordinator(sdk, runtime, reader, writer, store,
                                      contract_address)

    result = await submitter.submit("Panel A", 42, 7, account)
    outcome = await decryptor.decrypt(result.business_id, account)
"""

from abc import ABC, abstractmethod
from typing import Awaitable, Callable

from genescreen.models.ledger import (
    BusinessData,
    DecryptionProofResult,
    EncryptedPayload,
)

# Callback handed to the SDK's decryption-proof capability.  It receives the
# ABI-encoded clear values and the decryption proof, and must send the
# verification transaction and wait for its finality.
ProofSubmitCallback = Callable[[str, bytes], Awaitable[object]]


class TransactionHandle(ABC):
    """A sent transaction whose finality can be awaited."""

    @property
    @abstractmethod
    def hash(self) -> str:
        ...

    @abstractmethod
    async def wait(self) -> object:
        """Block until the transaction is final; raise if it reverted."""
        ...


class LedgerReader(ABC):
    """Read-only view of the screening contract."""

    @abstractmethod
    async def get_address(self) -> str:
        """Return the contract address records are bound to."""
        ...

    @abstractmethod
    async def get_all_business_ids(self) -> list[str]:
        ...

    @abstractmethod
    async def get_business_data(self, business_id: str) -> BusinessData:
        """Return public data for one entry.

        Raises:
            KeyError: if the business id does not exist
        """
        ...

    @abstractmethod
    async def get_encrypted_value(self, business_id: str) -> str:
        """Return the ciphertext handle stored for ``business_id``."""
        ...


class LedgerWriter(ABC):
    """Signing view of the screening contract.

    Implementations raise :class:`genescreen.errors.UserRejected` when the
    account holder declines to sign, and
    :class:`genescreen.errors.AlreadyVerified` when a second reveal is
    attempted.  Untyped errors carrying the equivalent wallet/contract
    messages are also recognised by the coordinators.
    """

    @abstractmethod
    async def create_business_data(
        self,
        business_id: str,
        name: str,
        ciphertext: bytes,
        proof: bytes,
        public_value1: int,
        public_value2: int,
        category: str,
        *,
        sender: str,
    ) -> TransactionHandle:
        ...

    @abstractmethod
    async def verify_decryption(
        self,
        business_id: str,
        clear_values_encoded: str,
        decryption_proof: bytes,
        *,
        sender: str,
    ) -> TransactionHandle:
        ...


class FheSdk(ABC):
    """The FHE client SDK: key material, encryption and decryption proofs."""

    @property
    @abstractmethod
    def status(self) -> str:
        """Free-form progress string (e.g. "loading public key")."""
        ...

    @abstractmethod
    async def initialize(self) -> None:
        """Load key material.  Idempotent once it has succeeded."""
        ...

    @abstractmethod
    async def encrypt(
        self, contract_address: str, account: str, value: int,
    ) -> EncryptedPayload:
        ...

    @abstractmethod
    async def request_decryption_proof(
        self,
        handles: list[str],
        contract_address: str,
        submit: ProofSubmitCallback,
    ) -> DecryptionProofResult:
        """Compute a decryption proof for ``handles`` and publish it.

        The SDK calls ``submit`` with the encoded clear values and proof once
        they are available, and returns after ``submit`` has completed.
        """
        ...
