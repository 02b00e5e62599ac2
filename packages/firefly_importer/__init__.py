"""Public interface for the ``firefly_importer`` package.

This module exposes the package's API functions and public models/types as the
stable import surface. There is no runtime logic here, only symbol re-exports.
"""

__version__ = "0.1.0"

from .api import ImportResult, format_transaction, import_piraeus_file  # noqa: E402
from .classify import (  # noqa: E402
    NO_PENDING,
    ClassificationResult,
    NoPending,
    PendingReference,
    Step,
    classify_rows,
    transition,
)
from .firefly_client import AccountDirectory, FireflyApiError, FireflyClient  # noqa: E402
from .ingest.adapters.piraeus_tsv import (  # noqa: E402
    HeaderNotFoundError,
    MalformedHeaderError,
    PiraeusFormatError,
    iter_rows,
)
from .ingest.utils import EmptyStatementError, read_statement_lines  # noqa: E402
from .models import (  # noqa: E402
    Account,
    NormalizedRow,
    SameAccountTransactionError,
    Transaction,
)
from .resolver import AccountResolver  # noqa: E402

__all__ = [
    "__version__",
    # API
    "import_piraeus_file",
    "format_transaction",
    "read_statement_lines",
    "iter_rows",
    "classify_rows",
    "transition",
    # Collaborators
    "AccountDirectory",
    "AccountResolver",
    "FireflyClient",
    # Models / types
    "Account",
    "ClassificationResult",
    "ImportResult",
    "NormalizedRow",
    "NoPending",
    "NO_PENDING",
    "PendingReference",
    "Step",
    "Transaction",
    # Errors
    "EmptyStatementError",
    "FireflyApiError",
    "HeaderNotFoundError",
    "MalformedHeaderError",
    "PiraeusFormatError",
    "SameAccountTransactionError",
]
