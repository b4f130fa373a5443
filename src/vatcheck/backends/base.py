"""Backend base interfaces."""

from typing import Protocol

from ..models import NormalizedVatNumber, ValidationOutcome
from ..transport import RemoteRequest, RemoteResponse


class RemoteBackend(Protocol):
    """Protocol defining a remote VAT authority."""

    name: str
    base_url: str

    def build_request(self, vat: NormalizedVatNumber) -> RemoteRequest:
        """Build the request that asks the authority about *vat*."""

        ...

    def interpret(self, vat: NormalizedVatNumber, response: RemoteResponse) -> ValidationOutcome:
        """Classify the authority's response into a ``ValidationOutcome``."""

        ...
