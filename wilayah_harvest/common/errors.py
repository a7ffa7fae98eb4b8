"""Domain errors and failure typing."""


class PipelineError(Exception):
    """Base class for pipeline failures."""

    error_code = "PIPELINE_ERROR"


class ConfigError(PipelineError):
    """Raised for invalid or missing configuration."""

    error_code = "CONFIG_ERROR"


class ContractError(PipelineError):
    """Raised when strict output contracts are broken."""

    error_code = "CONTRACT_ERROR"


class StageError(PipelineError):
    """Raised for stage failures that should halt in strict mode."""

    error_code = "STAGE_ERROR"


class MalformedPayloadError(StageError):
    """Raised when the remote API answers with something other than a JSON array."""

    error_code = "MALFORMED_PAYLOAD"


class FatalFetchError(StageError):
    """Raised when a primary query keeps failing after every retry."""

    error_code = "FATAL_FETCH"


class PeriodSelectionError(StageError):
    """Raised when no harvest period can be chosen."""

    error_code = "PERIOD_SELECTION"
