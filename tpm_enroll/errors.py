"""Error taxonomy; ``result`` is the tag written to the result record."""


class EnrollError(RuntimeError):
    result = "FAIL_GENERIC"


class UsageError(EnrollError):
    result = "FAIL_USAGE"


class PreconditionError(EnrollError):
    result = "FAIL_PRECONDITION"


class DiscoveryError(EnrollError):
    result = "FAIL_DISCOVERY"


class SelectionError(DiscoveryError):
    result = "FAIL_SELECTION"


class MutationError(EnrollError):
    result = "FAIL_MUTATION"


class OperatorAbort(EnrollError):
    """The operator declined enrollment; reported without an error line."""

    result = "ABORTED"
