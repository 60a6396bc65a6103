"""Node settings injected at construction.

Per-workflow secrets live in ``ServerContext.env_list``; this module only
covers process-wide execution limits that nodes share.
"""

from pathlib import Path

from pydantic import BaseModel
from pydantic import Field


class NodeSettings(BaseModel):
    """Configuration shared by node instances.

    Attributes:
        http_timeout_seconds: Total timeout applied to each outbound HTTP
            request. Default is 30.
        poll_interval_seconds: Wait between status reads when polling a
            long-running generation job. Default is 3.
        poll_timeout_seconds: Wall-clock budget for a polling loop before
            PollingTimeoutError is raised. Default is 60.
        max_poll_attempts: Upper bound on status reads in one polling loop.
            Default is 20.
        scratch_dir: Directory for temporary files created during a run.
        max_delay_seconds: Longest wait the delay node will honour.

    """

    model_config = {"frozen": True}

    http_timeout_seconds: float = Field(default=30.0, gt=0)
    poll_interval_seconds: float = Field(default=3.0, ge=0)
    poll_timeout_seconds: float = Field(default=60.0, gt=0)
    max_poll_attempts: int = Field(default=20, ge=1)
    scratch_dir: Path = Field(default=Path("runtime_files"))
    max_delay_seconds: float = Field(
        default=60.0,
        ge=0,
        description="Longest wait the delay node will honour",
    )
