"""
Common Components for LexIQ

Infrastructure shared by the assessment engine: exceptions, logging,
serialization, scheduling and small helpers.
"""

from lexiq.common.exceptions import (
    BaseError, ValidationError, ConfigurationError, SessionStateError,
    NotFoundError, AnswerTypeError
)

from lexiq.common.logger import (
    configure_logger, configure_from_config, LoggerAdapter, log_execution_time
)

from lexiq.common.scheduling import Scheduler, ScheduledCall, ThreadingScheduler

from lexiq.common.serialization import serialize, to_json, SerializableMixin
