"""Exception taxonomy.

Usage and structural errors are raised before any cryptographic claim is made.
Verification failures are never raised: the verifier reports them through
VerificationResult (see protocol.verifier).
"""


class BasefoldError(Exception):
    """Base class for all errors raised by basefold_spec."""


class EncodingLengthError(BasefoldError, ValueError):
    """Input length is not a power of two supported by the code or field."""


class TranscriptOrderError(BasefoldError, RuntimeError):
    """A challenge was requested before the commitment it must depend on."""


class ProverStateError(BasefoldError, RuntimeError):
    """Prover method called out of order, or a fold challenge reused."""


class IndexOutOfRange(BasefoldError, IndexError):
    """Query or leaf index is beyond the committed leaf count."""
