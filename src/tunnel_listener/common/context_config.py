from pydantic import BaseModel, ConfigDict, Field

DEFAULT_CLOSE_TIMEOUT = 5.0


class TunnelOptions(BaseModel):
    """Pydantic configuration for tunnel close and serve behavior"""

    model_config = ConfigDict(
        validate_assignment=True,
        extra='forbid'
    )

    close_timeout: float = Field(
        default=DEFAULT_CLOSE_TIMEOUT, ge=0.1, le=60.0,
        description="Seconds close() waits for the close acknowledgement"
    )
    block_on_close: bool = Field(default=True, description="Join request handler threads when serve returns")
    daemon_threads: bool = Field(default=False, description="Run request handler threads as daemons")
