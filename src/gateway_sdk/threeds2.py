"""
Contract of the vendor 3-D Secure 2 SDK.

The SDK itself (device fingerprinting, ACS messaging, challenge UI) lives in
the embedding application. The SDK only needs the shape below: create a
transaction, read its authentication request parameters, and run the
challenge with a receiver that is told the outcome exactly once.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional


@dataclass
class AuthenticationRequestParameters:
    sdk_transaction_id: str
    device_data: str
    sdk_ephemeral_public_key: str
    sdk_app_id: str
    sdk_reference_number: str
    message_version: str


@dataclass
class ChallengeParameters:
    three_ds_server_transaction_id: Optional[str] = None
    acs_transaction_id: Optional[str] = None
    acs_ref_number: Optional[str] = None
    acs_signed_content: Optional[str] = None
    three_ds_requestor_app_url: Optional[str] = None


@dataclass
class CompletionEvent:
    sdk_transaction_id: str
    transaction_status: str


@dataclass
class ErrorMessage:
    error_code: str
    error_component: str
    error_description: str
    error_details: Optional[str] = None
    error_message_type: Optional[str] = None
    message_version_number: str = "2.1.0"


@dataclass
class ProtocolErrorEvent:
    error_message: ErrorMessage
    sdk_transaction_id: str


@dataclass
class RuntimeErrorEvent:
    error_code: str
    error_message: str


class Severity(Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"


@dataclass
class SdkWarning:
    id: str
    message: str
    severity: Severity


class ChallengeStatusReceiver(ABC):
    """Told the outcome of a challenge. Exactly one method is called, once."""

    @abstractmethod
    def completed(self, completion_event: CompletionEvent) -> None:
        ...

    @abstractmethod
    def cancelled(self) -> None:
        ...

    @abstractmethod
    def timedout(self) -> None:
        ...

    @abstractmethod
    def protocol_error(self, protocol_error_event: ProtocolErrorEvent) -> None:
        ...

    @abstractmethod
    def runtime_error(self, runtime_error_event: RuntimeErrorEvent) -> None:
        ...


class Transaction(ABC):

    @abstractmethod
    def get_authentication_request_parameters(self) -> AuthenticationRequestParameters:
        ...

    @abstractmethod
    def do_challenge(
        self,
        challenge_parameters: ChallengeParameters,
        receiver: ChallengeStatusReceiver,
        timeout: int,
    ) -> None:
        """Run the challenge; ``timeout`` is in seconds."""

    def close(self) -> None:
        pass


class ThreeDS2Service(ABC):

    @abstractmethod
    def create_transaction(self, directory_server_id: str, message_version: Optional[str]) -> Transaction:
        ...

    def get_sdk_version(self) -> str:
        return "unknown"

    def get_warnings(self) -> List[SdkWarning]:
        return []


# ---- mock SDK: turns the challenge straight around as completed ----


class MockTransaction(Transaction):

    def __init__(self, transaction_status: str = "Y"):
        self.transaction_status = transaction_status
        self.closed = False

    def get_authentication_request_parameters(self) -> AuthenticationRequestParameters:
        return AuthenticationRequestParameters(
            "transaction id", "encrypted data", "ephemeral public key", "app id", "ref number", "2.1.0"
        )

    def do_challenge(self, challenge_parameters, receiver, timeout):
        receiver.completed(CompletionEvent("transaction id", self.transaction_status))

    def close(self) -> None:
        self.closed = True


@dataclass
class MockThreeDS2Service(ThreeDS2Service):
    transaction_status: str = "Y"
    transactions: List[MockTransaction] = field(default_factory=list)

    def create_transaction(self, directory_server_id, message_version):
        transaction = MockTransaction(self.transaction_status)
        self.transactions.append(transaction)
        return transaction

    def get_sdk_version(self) -> str:
        return "mock"
